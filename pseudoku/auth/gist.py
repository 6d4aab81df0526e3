"""
Publishing proof exports as GitHub gists.

POST {api}/gists with a bearer token; the gist holds one file,
pseudoku_proof.json, containing the pretty-printed export. Public gists can
be read back without a token for external verification.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from ..config import GITHUB_API_URL
from ..core.codec import ProofExport, decode_export, dumps_export
from ..core.display import gist_description
from ..core.errors import FormatError, PublishError

logger = logging.getLogger(__name__)

GIST_FILENAME = "pseudoku_proof.json"
GITHUB_API_VERSION = "2022-11-28"

_GIST_URL = re.compile(r"^https://gist\.github\.com/([^/]+)/([a-f0-9]+)$", re.IGNORECASE)


@dataclass(frozen=True)
class GistReference:
    url: str
    id: str


def parse_gist_url(url: str) -> GistReference:
    """Validate a manually pasted gist URL (manual publish fallback)"""
    match = _GIST_URL.match((url or "").strip())
    if not match:
        raise FormatError("Invalid Gist URL. Format should be: https://gist.github.com/username/id")
    return GistReference(url=match.group(0), id=match.group(2))


def build_gist_payload(export: ProofExport, description: Optional[str] = None,
                       public: bool = True) -> Dict[str, Any]:
    return {
        "description": description or gist_description(export.time_in_ms),
        "public": public,
        "files": {GIST_FILENAME: {"content": dumps_export(export)}},
    }


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.reason or f"HTTP {response.status_code}"
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"HTTP {response.status_code}"


class GistClient:
    def __init__(self, token: Optional[str] = None, api_url: str = GITHUB_API_URL,
                 timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def create_gist(self, export: ProofExport, description: Optional[str] = None,
                    public: bool = True) -> GistReference:
        if not self.token:
            raise PublishError("Please enter a GitHub Personal Access Token")
        payload = build_gist_payload(export, description, public)
        try:
            response = self.session.post(f"{self.api_url}/gists", json=payload,
                                         headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as e:
            raise PublishError(f"Failed to create gist: {e}") from e
        if not response.ok:
            raise PublishError(f"Failed to create gist: {_error_message(response)}",
                               response.status_code)
        try:
            gist = response.json()
            reference = GistReference(url=gist["html_url"], id=str(gist["id"]))
        except (ValueError, KeyError, TypeError) as e:
            raise PublishError("Failed to create gist: unexpected response from GitHub",
                               response.status_code) from e
        logger.info("Gist created: %s", reference.url)
        return reference

    def fetch_export(self, gist_id: str) -> ProofExport:
        """Read a published proof back for verification"""
        try:
            response = self.session.get(f"{self.api_url}/gists/{gist_id}",
                                        headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as e:
            raise PublishError(f"Failed to fetch gist: {e}") from e
        if not response.ok:
            raise PublishError(f"Failed to fetch gist: {_error_message(response)}",
                               response.status_code)
        try:
            body = response.json()
        except ValueError as e:
            raise PublishError("Failed to fetch gist: unexpected response from GitHub",
                               response.status_code) from e
        files = body.get("files") if isinstance(body, dict) else None
        entry = files.get(GIST_FILENAME) if isinstance(files, dict) else None
        if not isinstance(entry, dict):
            raise FormatError(f"Gist {gist_id} has no {GIST_FILENAME}")
        return decode_export(entry.get("content") or "")
