"""Thin wrapper around the GitHub repository search API."""

from __future__ import annotations

from typing import Dict, Optional, Tuple
from urllib.parse import parse_qs, urlparse

import requests
from requests.utils import parse_header_links

from .config import GITHUB_API_URL, PER_PAGE
from .http_client import build_session, header_int, json_body, send
from .models import UNLIMITED, RateLimitSignal, SearchPage


def last_page_from_link(link_header: Optional[str], current_page: int) -> int:
    """Return the page number of ``rel="last"``, or ``current_page`` when absent."""
    if not link_header:
        return current_page
    for link in parse_header_links(link_header):
        if link.get("rel") != "last":
            continue
        values = parse_qs(urlparse(link.get("url", "")).query).get("page")
        if values and values[0].isdigit():
            return int(values[0])
    return current_page


def rate_limit_from_headers(headers: Optional[Dict[str, str]]) -> RateLimitSignal:
    remaining = header_int(headers, "X-RateLimit-Remaining")
    reset = header_int(headers, "X-RateLimit-Reset")
    if remaining is None or reset is None:
        return UNLIMITED
    return RateLimitSignal(remaining_calls=remaining, reset_at_epoch_seconds=reset)


class GitHubClient:
    """Searches repositories, sorted by most recently updated first."""

    def __init__(self, token: Optional[str] = None, base_url: str = GITHUB_API_URL) -> None:
        self.base_url = base_url.rstrip("/")
        self.session: requests.Session = build_session(token, scheme="token")
        self.session.headers["Accept"] = "application/vnd.github.v3+json"

    def search_repositories(self, query: str, page: int) -> Tuple[SearchPage, RateLimitSignal]:
        url = f"{self.base_url}/search/repositories"
        params = {
            "q": query,
            "sort": "updated",
            "order": "desc",
            "per_page": PER_PAGE,
            "page": page,
        }
        resp = send(self.session, "GET", url, params=params)
        body = json_body(resp, url) or {}
        items = tuple(
            entry["full_name"]
            for entry in body.get("items") or []
            if isinstance(entry, dict) and entry.get("full_name")
        )
        headers = resp.headers or {}
        search_page = SearchPage(
            items=items,
            page_number=page,
            last_page=last_page_from_link(headers.get("Link"), page),
        )
        return search_page, rate_limit_from_headers(headers)


__all__ = ["GitHubClient", "last_page_from_link", "rate_limit_from_headers"]
