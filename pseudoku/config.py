"""
Runtime configuration, read from the environment.

The browser-side flow only ever knows the public client id; the client
secret lives in ServerConfig and is read by the exchange backend alone.
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from .core.errors import OAuthError

GITHUB_AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"
GITHUB_API_URL = "https://api.github.com"


def _flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


@dataclass
class OAuthConfig:
    """
    Client side of the authorization-code flow.

    exchange_url points at the trusted backend that holds the client
    secret (POST {exchange_url}/oauth/exchange).
    """
    client_id: str
    exchange_url: str
    redirect_uri: str = "http://localhost:5173/callback"
    scope: str = "gist"
    authorize_endpoint: str = GITHUB_AUTHORIZE_URL
    api_url: str = GITHUB_API_URL
    use_pkce: bool = False
    timeout: float = 10.0         # seconds, per HTTP request

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "OAuthConfig":
        env = os.environ if environ is None else environ
        exchange_url = env.get("PSEUDOKU_OAUTH_API_ENDPOINT", "").rstrip("/")
        if not exchange_url:
            raise OAuthError("Backend server not configured for OAuth")
        client_id = env.get("PSEUDOKU_GITHUB_CLIENT_ID", "")
        if not client_id:
            raise OAuthError("GitHub client id not configured")
        return cls(
            client_id=client_id,
            exchange_url=exchange_url,
            redirect_uri=env.get("PSEUDOKU_REDIRECT_URI", cls.redirect_uri),
            authorize_endpoint=env.get("PSEUDOKU_AUTHORIZE_URL", GITHUB_AUTHORIZE_URL),
            api_url=env.get("PSEUDOKU_GITHUB_API_URL", GITHUB_API_URL).rstrip("/"),
            use_pkce=_flag(env.get("PSEUDOKU_USE_PKCE")),
            timeout=float(env.get("PSEUDOKU_HTTP_TIMEOUT", cls.timeout)),
        )


@dataclass
class ServerConfig:
    """Token exchange backend (never shipped to the browser)"""
    client_id: str
    client_secret: str = field(repr=False)
    token_url: str = GITHUB_TOKEN_URL
    api_url: str = GITHUB_API_URL
    allowed_origins: Tuple[str, ...] = ("http://localhost:5173",)
    host: str = "127.0.0.1"
    port: int = 8000
    timeout: float = 10.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerConfig":
        env = os.environ if environ is None else environ
        origins = env.get("PSEUDOKU_ALLOWED_ORIGINS", ",".join(cls.allowed_origins))
        return cls(
            client_id=env.get("GITHUB_CLIENT_ID", ""),
            client_secret=env.get("GITHUB_CLIENT_SECRET", ""),
            token_url=env.get("GITHUB_TOKEN_URL", GITHUB_TOKEN_URL),
            api_url=env.get("PSEUDOKU_GITHUB_API_URL", GITHUB_API_URL).rstrip("/"),
            allowed_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
            host=env.get("PSEUDOKU_HOST", cls.host),
            port=int(env.get("PSEUDOKU_PORT", cls.port)),
            timeout=float(env.get("PSEUDOKU_HTTP_TIMEOUT", cls.timeout)),
        )

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)
