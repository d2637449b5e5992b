"""Configuration constants and CLI/environment resolution for downstream runs."""

from __future__ import annotations

import argparse
import math
import os
import re
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Tuple

from src.secrets import fill_missing_tokens

from .errors import ConfigurationError

USER_AGENT = "github-search-downstream/1.0"
GITHUB_API_URL = os.getenv("GITHUB_API_URL", "https://api.github.com").rstrip("/")
PER_PAGE = 100
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "30"))
TICK_INTERVAL_SEC = 1.0
DEFAULT_TIMEOUT_SEC = 60.0

# First variable that is set wins.
ENV_VARS = {
    "github_query": ("GITHUB_SEARCH_DOWNSTREAM_GITHUB_QUERY", "PLUGIN_GITHUB_QUERY"),
    "github_token": ("GITHUB_TOKEN", "GITHUB_SEARCH_DOWNSTREAM_GITHUB_TOKEN", "PLUGIN_GITHUB_TOKEN"),
    "branch": ("GITHUB_SEARCH_DOWNSTREAM_BRANCH", "PLUGIN_BRANCH"),
    "drone_server": ("GITHUB_SEARCH_DOWNSTREAM_DRONE_SERVER", "PLUGIN_DRONE_SERVER"),
    "drone_token": ("DRONE_TOKEN", "GITHUB_SEARCH_DOWNSTREAM_DRONE_TOKEN", "PLUGIN_DRONE_TOKEN"),
    "fork": ("PLUGIN_FORK",),
    "wait": ("PLUGIN_WAIT",),
    "timeout": ("PLUGIN_WAIT_TIMEOUT",),
    "last_successful": ("PLUGIN_LAST_SUCCESSFUL",),
    "ignore_missing": ("PLUGIN_IGNORE_MISSING",),
    "params": ("PLUGIN_PARAMS",),
    "params_from_env": ("PLUGIN_PARAMS_FROM_ENV",),
}

_TRUTHY = {"1", "t", "true", "yes", "on"}
_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


@dataclass(frozen=True)
class PluginConfig:
    """Resolved, immutable settings for one downstream run."""

    github_query: str
    github_token: str
    drone_server: str
    drone_token: str
    branch: str = ""
    # Accepted for compatibility; every trigger is already a fork.
    fork: bool = False
    wait: bool = False
    timeout: float = DEFAULT_TIMEOUT_SEC
    last_successful: bool = False
    ignore_missing: bool = False
    params: Tuple[str, ...] = field(default_factory=tuple)
    params_from_env: Tuple[str, ...] = field(default_factory=tuple)


def env_value(key: str, environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Return the first set environment variable mapped to ``key``."""
    environ = os.environ if environ is None else environ
    for name in ENV_VARS[key]:
        value = environ.get(name)
        if value is not None:
            return value
    return None


def env_flag(key: str, environ: Optional[Mapping[str, str]] = None) -> bool:
    value = env_value(key, environ)
    return bool(value) and value.strip().lower() in _TRUTHY


def env_list(key: str, environ: Optional[Mapping[str, str]] = None) -> List[str]:
    value = env_value(key, environ)
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_duration(value: str) -> float:
    """Parse ``90s``/``1m30s``/``2h``/``500ms`` (or bare seconds) into seconds."""
    text = (value or "").strip()
    if not text:
        raise ConfigurationError("Error: invalid timeout ''.")
    try:
        total = float(text)
    except ValueError:
        pos = 0
        total = 0.0
        for match in _DURATION_PART_RE.finditer(text):
            if match.start() != pos:
                break
            total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
            pos = match.end()
        if pos != len(text):
            raise ConfigurationError(f"Error: invalid timeout '{value}'.")

    if not math.isfinite(total) or total < 0:
        raise ConfigurationError(f"Error: invalid timeout '{value}'.")
    return total


def build_arg_parser(environ: Optional[Mapping[str, str]] = None) -> argparse.ArgumentParser:
    """Return the CLI parser; defaults come from the environment."""

    parser = argparse.ArgumentParser(
        prog="github-search-downstream",
        description="Trigger downstream Drone builds for every repository matching a GitHub search.",
    )
    parser.add_argument("--github-query", default=env_value("github_query", environ) or "",
                        help="Github repo search query")
    parser.add_argument("--github-token", default=env_value("github_token", environ) or "",
                        help="Github auth token")
    parser.add_argument("--branch", default=env_value("branch", environ) or "",
                        help="Remote branch to trigger")
    parser.add_argument("--drone-server", default=env_value("drone_server", environ) or "",
                        help="Trigger a drone build on a custom server")
    parser.add_argument("--drone-token", default=env_value("drone_token", environ) or "",
                        help="Drone API token from your user settings")
    parser.add_argument("--fork", action="store_true", default=env_flag("fork", environ),
                        help="Trigger a new build for a repository")
    parser.add_argument("--wait", action="store_true", default=env_flag("wait", environ),
                        help="Wait for any currently running builds to finish")
    parser.add_argument("--timeout", default=env_value("timeout", environ) or "60s",
                        help="How long to wait on any currently running builds")
    parser.add_argument("--last-successful", action="store_true",
                        default=env_flag("last_successful", environ),
                        help="Trigger last successful build")
    parser.add_argument("--ignore-missing", action="store_true",
                        default=env_flag("ignore_missing", environ),
                        help="Skip repositories whose latest build cannot be fetched")
    parser.add_argument("--params", action="append", default=None,
                        help="Param (key=value or file path of params) to pass to triggered builds")
    parser.add_argument("--params-from-env", action="append", default=None,
                        help="Environment variable to pass to triggered builds")
    return parser


def parse_args(argv: Optional[List[str]] = None,
               environ: Optional[Mapping[str, str]] = None) -> argparse.Namespace:
    """Parse command-line arguments; accepts argv/environ overrides for testing."""

    parser = build_arg_parser(environ)
    args = parser.parse_args(argv)
    if args.params is None:
        args.params = env_list("params", environ)
    if args.params_from_env is None:
        args.params_from_env = env_list("params_from_env", environ)
    return args


def resolve_config(args: Optional[argparse.Namespace] = None,
                   secrets_path: Optional[str] = None) -> PluginConfig:
    """Build the immutable run configuration.

    Tokens come from flags or the environment; ``local_secrets.json`` is read
    only for a token neither of them supplied.
    """

    args = args or parse_args()
    tokens = fill_missing_tokens(args.github_token, args.drone_token, secrets_path)
    return PluginConfig(
        github_query=args.github_query,
        github_token=tokens.github_token,
        drone_server=args.drone_server.rstrip("/"),
        drone_token=tokens.drone_token,
        branch=args.branch,
        fork=bool(args.fork),
        wait=bool(args.wait),
        timeout=parse_duration(str(args.timeout)),
        last_successful=bool(args.last_successful),
        ignore_missing=bool(args.ignore_missing),
        params=tuple(args.params or ()),
        params_from_env=tuple(args.params_from_env or ()),
    )


def validate_config(config: PluginConfig) -> None:
    """Reject configurations that cannot run, before touching the network."""
    if not config.github_query:
        raise ConfigurationError("Error: you must provide a Github repo search query.")
    if not config.drone_token:
        raise ConfigurationError("Error: you must provide your Drone access token.")
    if not config.drone_server:
        raise ConfigurationError("Error: you must provide your Drone server.")
    if config.wait and config.last_successful:
        raise ConfigurationError(
            "Error: only one of wait and last_successful can be true; choose one"
        )


def format_duration(seconds: float) -> str:
    """Render seconds the way the timeout flag accepts them (``1m30s``)."""
    if seconds == 0:
        return "0s"
    if seconds < 1:
        return f"{seconds * 1000:g}ms"
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    out = ""
    if hours:
        out += f"{int(hours)}h"
    if hours or minutes:
        out += f"{int(minutes)}m"
    return out + f"{secs:g}s"


__all__ = [
    "USER_AGENT",
    "GITHUB_API_URL",
    "PER_PAGE",
    "REQUEST_TIMEOUT",
    "TICK_INTERVAL_SEC",
    "DEFAULT_TIMEOUT_SEC",
    "ENV_VARS",
    "PluginConfig",
    "env_value",
    "env_flag",
    "env_list",
    "parse_duration",
    "format_duration",
    "build_arg_parser",
    "parse_args",
    "resolve_config",
    "validate_config",
]
