"""Minimal Drone API client covering build lookup and fork."""

from __future__ import annotations

from typing import Dict, List, Optional
from urllib.parse import quote

import requests

from .errors import APIError
from .http_client import build_session, json_body, send
from .models import BuildRecord


class DroneClient:
    """Reads builds and forks them on a Drone server."""

    def __init__(self, server: str, token: Optional[str]) -> None:
        self.server = server.rstrip("/")
        self.session: requests.Session = build_session(token, scheme="Bearer")

    def _repo_url(self, owner: str, name: str, suffix: str = "") -> str:
        return f"{self.server}/api/repos/{quote(owner, safe='')}/{quote(name, safe='')}{suffix}"

    def build_last(self, owner: str, name: str, branch: str = "") -> BuildRecord:
        """Return the latest build, optionally restricted to ``branch``."""
        url = self._repo_url(owner, name, "/builds/latest")
        params = {"branch": branch} if branch else None
        body = json_body(send(self.session, "GET", url, params=params), url)
        if not isinstance(body, dict):
            raise APIError(f"unexpected build payload from {url}")
        return BuildRecord.from_json(body)

    def build_list(self, owner: str, name: str) -> List[BuildRecord]:
        """Return the build history, newest first as the server orders it."""
        url = self._repo_url(owner, name, "/builds")
        body = json_body(send(self.session, "GET", url), url)
        if not isinstance(body, list):
            raise APIError(f"unexpected build list payload from {url}")
        return [BuildRecord.from_json(entry) for entry in body if isinstance(entry, dict)]

    def build_fork(self, owner: str, name: str, number: int,
                   params: Optional[Dict[str, str]] = None) -> BuildRecord:
        """Re-run build ``number`` as a new build with ``params`` as overrides."""
        url = self._repo_url(owner, name, f"/builds/{number}")
        query = dict(params or {})
        query["fork"] = "true"
        body = json_body(send(self.session, "POST", url, params=query), url)
        return BuildRecord.from_json(body if isinstance(body, dict) else {})


__all__ = ["DroneClient"]
