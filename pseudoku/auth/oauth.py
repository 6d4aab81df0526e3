"""
GitHub OAuth (authorization-code flow) with CSRF protection.

    start()            -> state nonce + pending export saved, authorize URL returned
    <redirect to GitHub and back; in-memory state is gone>
    handle_callback()  -> stored state popped (single use), compared exactly,
                          code exchanged for a token by the trusted backend
    take_pending_export() -> the proof the user wanted to publish

The client secret never appears here: the code is exchanged by the backend
in pseudoku.api.server.
"""

import base64
import hashlib
import json
import logging
import secrets
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, Union
from urllib.parse import urlencode

import requests

from ..config import OAuthConfig
from ..core.codec import ProofExport, decode_export, dumps_export
from ..core.errors import CsrfError, OAuthError

logger = logging.getLogger(__name__)

STATE_KEY = "oauth_state"
PENDING_EXPORT_KEY = "pending_export"
STATE_BYTES = 16
VERIFIER_BYTES = 32


class SessionStore(Protocol):
    """Storage that survives a full-page redirect (sessionStorage equivalent)"""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def pop(self, key: str) -> Optional[str]:
        ...


class MemorySessionStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def pop(self, key: str) -> Optional[str]:
        return self._data.pop(key, None)


class FileSessionStore:
    """
    One JSON document per session id inside `directory`.

    Writes go through a temporary file swapped in with os.replace.
    """

    def __init__(self, directory: Union[str, Path], session_id: str):
        self.directory = Path(directory)
        self.path = self.directory / f"{session_id}.json"
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except ValueError:
            logger.warning("Discarding unreadable session store %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, str]) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        if not data:
            self.path.unlink(missing_ok=True)
            return
        tmp = self.path.with_suffix(".tmp")
        tmp.write_text(json.dumps(data), encoding="utf-8")
        tmp.replace(self.path)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self._save(data)

    def pop(self, key: str) -> Optional[str]:
        with self._lock:
            data = self._load()
            value = data.pop(key, None)
            if value is not None:
                self._save(data)
            return value


@dataclass(frozen=True)
class PendingFlow:
    """What must survive the redirect for one flow instance"""
    state: str
    code_verifier: Optional[str] = None

    def to_json(self) -> str:
        return json.dumps({"state": self.state, "code_verifier": self.code_verifier})

    @classmethod
    def from_json(cls, raw: Optional[str]) -> Optional["PendingFlow"]:
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except ValueError:
            return None
        if not isinstance(data, dict) or not isinstance(data.get("state"), str):
            return None
        return cls(state=data["state"], code_verifier=data.get("code_verifier"))


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def pkce_challenge(verifier: str) -> str:
    return _b64url(hashlib.sha256(verifier.encode("ascii")).digest())


class TokenExchangeClient:
    """Talks to the trusted backend's POST /oauth/exchange"""

    def __init__(self, base_url: str, timeout: float = 10.0,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def exchange(self, code: str, redirect_uri: str,
                 code_verifier: Optional[str] = None) -> Dict[str, Any]:
        body = {"code": code, "redirect_uri": redirect_uri}
        if code_verifier:
            body["code_verifier"] = code_verifier
        try:
            response = self.session.post(f"{self.base_url}/oauth/exchange", json=body,
                                         timeout=self.timeout)
        except requests.RequestException as e:
            raise OAuthError(f"Failed to exchange code for token: {e}") from e
        if not response.ok:
            raise OAuthError(f"Failed to exchange code for token (HTTP {response.status_code})")
        try:
            data = response.json()
        except ValueError as e:
            raise OAuthError("Token exchange returned invalid JSON") from e
        if not isinstance(data, dict) or not data.get("access_token"):
            detail = (data.get("error_description") or data.get("error")) if isinstance(data, dict) else None
            raise OAuthError(detail or "Token exchange returned no access token")
        return data


class OAuthFlow:
    """
    CSRF-safe authorization-code flow.

    Args:
        config: client-side OAuth settings
        store: storage that outlives the redirect
        exchanger: token exchange client; built from config when omitted
        randbytes: secure random source (tests inject a fixed one)
    """

    def __init__(self, config: OAuthConfig, store: SessionStore,
                 exchanger: Optional[TokenExchangeClient] = None,
                 randbytes: Optional[Callable[[int], bytes]] = None):
        self.config = config
        self.store = store
        self.exchanger = exchanger or TokenExchangeClient(config.exchange_url, config.timeout)
        self._randbytes = randbytes or secrets.token_bytes

    def start(self, pending_export: Optional[ProofExport] = None,
              client_id: Optional[str] = None) -> str:
        """Persist a fresh flow (and the export to publish) and return the authorize URL"""
        state = self._randbytes(STATE_BYTES).hex()
        params = {
            "client_id": client_id or self.config.client_id,
            "redirect_uri": self.config.redirect_uri,
            "scope": self.config.scope,
            "state": state,
        }
        verifier = None
        if self.config.use_pkce:
            verifier = _b64url(self._randbytes(VERIFIER_BYTES))
            params["code_challenge"] = pkce_challenge(verifier)
            params["code_challenge_method"] = "S256"

        # The redirect wipes in-memory state: everything needed afterwards goes to the store
        if pending_export is not None:
            self.store.set(PENDING_EXPORT_KEY, dumps_export(pending_export))
        self.store.set(STATE_KEY, PendingFlow(state, verifier).to_json())
        logger.info("Starting OAuth flow (pending export: %s)", pending_export is not None)
        return f"{self.config.authorize_endpoint}?{urlencode(params)}"

    def handle_callback(self, code: str, state: str) -> str:
        """Validate `state` (single use) and exchange `code` for an access token"""
        flow = PendingFlow.from_json(self.store.pop(STATE_KEY))
        if flow is None or state != flow.state:
            logger.warning("OAuth callback rejected: state mismatch")
            raise CsrfError("Invalid OAuth state")
        if not code:
            raise OAuthError("Authorization code missing from callback")
        data = self.exchanger.exchange(code, self.config.redirect_uri, flow.code_verifier)
        logger.info("OAuth token obtained (scope: %s)", data.get("scope", ""))
        return data["access_token"]

    def handle_redirect(self, query: Mapping[str, str]) -> str:
        """Callback entry point taking the redirect's query parameters"""
        if query.get("error"):
            self.store.pop(STATE_KEY)
            raise OAuthError(query.get("error_description") or query["error"])
        return self.handle_callback(query.get("code", ""), query.get("state", ""))

    def take_pending_export(self) -> Optional[ProofExport]:
        """Retrieve and clear the export saved by start()"""
        raw = self.store.get(PENDING_EXPORT_KEY)
        if raw is None:
            return None
        export = decode_export(raw)
        self.store.pop(PENDING_EXPORT_KEY)
        return export

    @property
    def has_pending_export(self) -> bool:
        return self.store.get(PENDING_EXPORT_KEY) is not None
