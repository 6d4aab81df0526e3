"""Trusted OAuth token exchange backend."""

from .server import create_app

__all__ = ["create_app"]
