"""Decide what to do with the latest build of a repository."""

from __future__ import annotations

from enum import Enum
from typing import Iterable, Optional

from .models import STATUS_SUCCESS, BuildRecord


class Mode(Enum):
    WAIT = "wait"
    LAST_SUCCESSFUL = "last-successful"
    IMMEDIATE = "immediate"


class Decision(Enum):
    KEEP_WAITING = "keep-waiting"
    # Wait mode, build still active after the wait notice was already given.
    POLL_AGAIN = "poll-again"
    SEARCH_HISTORY = "search-history"
    FIRE_BUILD = "fire-build"


def mode_for(wait: bool, last_successful: bool) -> Mode:
    """Map the configured flags to a mode; both set is rejected during validation."""
    if wait:
        return Mode.WAIT
    if last_successful:
        return Mode.LAST_SUCCESSFUL
    return Mode.IMMEDIATE


def decide(build: BuildRecord, mode: Mode, already_waited_once: bool) -> Decision:
    if mode is Mode.WAIT and build.is_active:
        return Decision.POLL_AGAIN if already_waited_once else Decision.KEEP_WAITING
    if mode is Mode.LAST_SUCCESSFUL and build.status != STATUS_SUCCESS:
        return Decision.SEARCH_HISTORY
    return Decision.FIRE_BUILD


def select_last_successful(builds: Iterable[BuildRecord], branch: str = "") -> Optional[BuildRecord]:
    """First successful build in list order, limited to ``branch`` when one is set."""
    for build in builds:
        if branch and build.branch != branch:
            continue
        if build.status == STATUS_SUCCESS:
            return build
    return None


__all__ = ["Mode", "Decision", "mode_for", "decide", "select_last_successful"]
