"""Entry points for discovering repositories and triggering their downstream builds."""

from __future__ import annotations

import os
import sys
import time
from typing import Callable, List, Mapping, Optional

from .config import PluginConfig, parse_args, resolve_config, validate_config
from .drone import DroneClient
from .errors import ConfigurationError, DownstreamError
from .github import GitHubClient
from .locator import discover_repositories
from .models import RepositoryRef
from .params import build_trigger_params
from .pager import SearchClient
from .poller import BuildClient, BuildPollLoop, PollState
from .policy import mode_for


def _build_github_client(config: PluginConfig) -> GitHubClient:
    return GitHubClient(token=config.github_token or None)


def _build_drone_client(config: PluginConfig) -> DroneClient:
    return DroneClient(server=config.drone_server, token=config.drone_token)


def run(
    config: PluginConfig,
    github_client: Optional[SearchClient] = None,
    drone_client: Optional[BuildClient] = None,
    environ: Optional[Mapping[str, str]] = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> List[RepositoryRef]:
    """Trigger a build for every repository matching the search query.

    Repositories are processed one at a time in search order; the first fatal
    error stops the run. Returns the repositories that got a new build.
    """
    validate_config(config)
    params = build_trigger_params(
        config.params,
        config.params_from_env,
        os.environ if environ is None else environ,
    )

    github_client = github_client or _build_github_client(config)
    repos = discover_repositories(github_client, config.github_query, config.branch or None, sleep=sleep)

    for ref in repos:
        if not ref.is_valid():
            raise ConfigurationError(f"Error: unable to parse repository name {ref}.")

    drone_client = drone_client or _build_drone_client(config)
    mode = mode_for(config.wait, config.last_successful)
    triggered: List[RepositoryRef] = []
    for ref in repos:
        loop = BuildPollLoop(
            drone_client,
            ref,
            mode,
            params,
            timeout=config.timeout,
            ignore_missing=config.ignore_missing,
            params_from_env=config.params_from_env,
            clock=clock,
            sleep=sleep,
        )
        if loop.run() is PollState.DONE:
            triggered.append(ref)

    print(f"Triggered {len(triggered)} of {len(repos)} repositories.")
    return triggered


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point; returns the process exit code."""
    try:
        config = resolve_config(parse_args(argv))
        run(config)
    except DownstreamError as exc:
        print(f"[error] {exc}", file=sys.stderr)
        return 1
    return 0


__all__ = ["run", "main"]


if __name__ == "__main__":
    sys.exit(main())
