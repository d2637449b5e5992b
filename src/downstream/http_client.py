"""HTTP session and response helpers shared by the GitHub and Drone clients."""

from __future__ import annotations

from typing import Any, Dict, Optional

import requests

from .config import REQUEST_TIMEOUT, USER_AGENT
from .errors import APIError


def build_session(token: Optional[str] = None, scheme: str = "token") -> requests.Session:
    """Create a session with JSON headers and an optional Authorization header."""
    session = requests.Session()
    session.headers.update(
        {
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }
    )
    if token:
        session.headers["Authorization"] = f"{scheme} {token}"
    return session


def error_message(resp: requests.Response) -> str:
    """Pull the most useful message out of an error response body."""
    try:
        body = resp.json()
    except ValueError:
        body = {"text": (resp.text or "")[:300]}
    if not isinstance(body, dict):
        return str(body)[:300]
    return str(body.get("message") or body.get("error") or body.get("text") or "")


def log_http_error(resp: requests.Response, url: str) -> None:
    """Print a short, human-readable message when a remote API returns an error."""
    print(f"[error] HTTP {resp.status_code} for {url}\n  -> {error_message(resp)}")


def send(session: requests.Session, method: str, url: str, **kwargs: Any) -> requests.Response:
    """Issue one request; transport failures and non-2xx statuses raise APIError."""
    kwargs.setdefault("timeout", REQUEST_TIMEOUT)
    try:
        resp = session.request(method, url, **kwargs)
    except requests.RequestException as exc:
        raise APIError(f"{method} {url} failed: {exc}") from exc

    if not 200 <= resp.status_code < 300:
        log_http_error(resp, url)
        raise APIError(
            f"{method} {url} returned HTTP {resp.status_code}: {error_message(resp)}",
            status=resp.status_code,
        )
    return resp


def json_body(resp: requests.Response, url: str) -> Any:
    try:
        return resp.json()
    except ValueError as exc:
        raise APIError(f"invalid JSON from {url}: {exc}", status=resp.status_code) from exc


def header_int(headers: Optional[Dict[str, str]], name: str) -> Optional[int]:
    value = (headers or {}).get(name)
    if value is None or not str(value).strip().lstrip("-").isdigit():
        return None
    return int(value)


__all__ = [
    "build_session",
    "error_message",
    "log_http_error",
    "send",
    "json_body",
    "header_int",
]
