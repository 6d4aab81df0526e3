"""GitHub OAuth and gist publishing."""

from .oauth import (
    FileSessionStore,
    MemorySessionStore,
    OAuthFlow,
    PendingFlow,
    SessionStore,
    TokenExchangeClient,
)
from .gist import GistClient, GistReference, build_gist_payload, parse_gist_url

__all__ = [
    "FileSessionStore",
    "MemorySessionStore",
    "OAuthFlow",
    "PendingFlow",
    "SessionStore",
    "TokenExchangeClient",
    "GistClient",
    "GistReference",
    "build_gist_payload",
    "parse_gist_url",
]
