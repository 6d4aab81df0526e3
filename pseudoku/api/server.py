"""
Token exchange backend
======================
A small FastAPI service that holds the GitHub OAuth client secret, so the
browser never sees it.

API:
  POST /oauth/exchange  ->  { access_token, token_type, scope }
  POST /gists           ->  GitHub's response, relayed as-is
  GET  /health          ->  { status, configured }

Run with: uvicorn pseudoku.api.server:app
"""

import logging
from typing import Dict, Optional

import requests
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel

from ..auth.gist import GITHUB_API_VERSION
from ..config import ServerConfig

logger = logging.getLogger(__name__)


class ExchangeRequest(BaseModel):
    code: str
    redirect_uri: Optional[str] = None
    code_verifier: Optional[str] = None


class GistFileModel(BaseModel):
    content: str


class GistProxyRequest(BaseModel):
    token: str
    description: str = ""
    public: bool = True
    files: Dict[str, GistFileModel]


def create_app(config: Optional[ServerConfig] = None) -> FastAPI:
    config = config or ServerConfig.from_env()

    app = FastAPI(
        title="Pseudoku OAuth Backend",
        description="Exchanges GitHub OAuth codes for tokens and proxies gist creation.",
        version="1.0.0",
    )
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.allowed_origins),
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health():
        return {"status": "ok", "configured": config.configured}

    @app.post("/oauth/exchange")
    def exchange(req: ExchangeRequest):
        if not config.configured:
            raise HTTPException(status_code=503, detail="OAuth client is not configured")

        body = {
            "client_id": config.client_id,
            "client_secret": config.client_secret,
            "code": req.code,
        }
        if req.redirect_uri:
            body["redirect_uri"] = req.redirect_uri
        if req.code_verifier:
            body["code_verifier"] = req.code_verifier

        try:
            upstream = requests.post(config.token_url, data=body,
                                     headers={"Accept": "application/json"},
                                     timeout=config.timeout)
        except requests.RequestException as e:
            logger.error("Token endpoint unreachable: %s", e)
            raise HTTPException(status_code=502, detail="Token endpoint unreachable") from e
        if not upstream.ok:
            logger.error("Token endpoint returned HTTP %d", upstream.status_code)
            raise HTTPException(status_code=502, detail=f"Token endpoint returned HTTP {upstream.status_code}")

        try:
            data = upstream.json()
        except ValueError as e:
            raise HTTPException(status_code=502, detail="Token endpoint returned invalid JSON") from e
        if not isinstance(data, dict):
            raise HTTPException(status_code=502, detail="Token endpoint returned invalid JSON")

        # GitHub reports bad codes with HTTP 200 and an error field
        if data.get("error") or not data.get("access_token"):
            detail = data.get("error_description") or data.get("error") or "No access token returned"
            raise HTTPException(status_code=400, detail=detail)

        return {
            "access_token": data["access_token"],
            "token_type": data.get("token_type", "bearer"),
            "scope": data.get("scope", ""),
        }

    @app.post("/gists")
    def create_gist(req: GistProxyRequest):
        payload = {
            "description": req.description,
            "public": req.public,
            "files": {name: {"content": f.content} for name, f in req.files.items()},
        }
        try:
            upstream = requests.post(
                f"{config.api_url}/gists",
                json=payload,
                headers={
                    "Accept": "application/vnd.github+json",
                    "Authorization": f"Bearer {req.token}",
                    "X-GitHub-Api-Version": GITHUB_API_VERSION,
                },
                timeout=config.timeout,
            )
        except requests.RequestException as e:
            logger.error("GitHub API unreachable: %s", e)
            raise HTTPException(status_code=502, detail="GitHub API unreachable") from e
        return Response(content=upstream.text, status_code=upstream.status_code,
                        media_type="application/json")

    return app


app = create_app()
