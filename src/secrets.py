"""Last-resort API tokens from a gitignored ``local_secrets.json``.

Flags and environment variables always win; this file is only opened when
one of them left a token empty.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

SECRETS_FILENAME = "local_secrets.json"
TOKEN_KEYS = ("github_token", "drone_token")


@dataclass(frozen=True)
class LocalTokens:
    github_token: str = ""
    drone_token: str = ""


def secrets_file(path: Optional[str | Path] = None) -> Path:
    """Explicit path, then ``LOCAL_SECRETS_FILE``, then the repository root."""
    if path:
        return Path(path).expanduser()
    override = os.getenv("LOCAL_SECRETS_FILE")
    if override:
        return Path(override).expanduser()
    return Path(__file__).resolve().parents[1] / SECRETS_FILENAME


def load_tokens(path: Optional[str | Path] = None) -> LocalTokens:
    source = secrets_file(path)
    if not source.is_file():
        return LocalTokens()
    try:
        payload = json.loads(source.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        print(f"[warn] ignoring unreadable secrets file {source}: {exc}")
        return LocalTokens()
    if not isinstance(payload, dict):
        print(f"[warn] ignoring secrets file {source}: expected a JSON object")
        return LocalTokens()
    # Non-string values are treated as unset.
    found = {key: payload[key] for key in TOKEN_KEYS if isinstance(payload.get(key), str)}
    return LocalTokens(**found)


def fill_missing_tokens(github_token: str, drone_token: str,
                        path: Optional[str | Path] = None) -> LocalTokens:
    if github_token and drone_token:
        return LocalTokens(github_token, drone_token)
    stored = load_tokens(path)
    return LocalTokens(github_token or stored.github_token, drone_token or stored.drone_token)


__all__ = ["LocalTokens", "SECRETS_FILENAME", "TOKEN_KEYS", "fill_missing_tokens", "load_tokens", "secrets_file"]
