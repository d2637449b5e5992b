"""Value objects shared by discovery, polling, and triggering."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

# Drone build states.
STATUS_PENDING = "pending"
STATUS_RUNNING = "running"
STATUS_SUCCESS = "success"
STATUS_FAILURE = "failure"
STATUS_ERROR = "error"
STATUS_KILLED = "killed"
STATUS_SKIPPED = "skipped"
STATUS_BLOCKED = "blocked"
STATUS_DECLINED = "declined"

ACTIVE_STATUSES = frozenset({STATUS_PENDING, STATUS_RUNNING})


@dataclass(frozen=True)
class RepositoryRef:
    """A repository to trigger, optionally pinned to a branch."""

    owner: str
    name: str
    branch: str = ""
    source: str = field(default="", compare=False, repr=False)

    @classmethod
    def parse(cls, token: str) -> "RepositoryRef":
        """Parse ``owner/name`` or ``owner/name@branch``.

        Tokens that do not split cleanly yield an empty owner and name; callers
        reject those with ``is_valid``.
        """
        owner = name = branch = ""
        repo = token
        parts = repo.split("@")
        if len(parts) == 2:
            repo, branch = parts
        parts = repo.split("/")
        if len(parts) == 2:
            owner, name = parts
        return cls(owner=owner, name=name, branch=branch, source=token)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def is_valid(self) -> bool:
        return bool(self.owner) and bool(self.name)

    def __str__(self) -> str:
        if self.source:
            return self.source
        if self.branch:
            return f"{self.full_name}@{self.branch}"
        return self.full_name


@dataclass(frozen=True)
class SearchPage:
    """One page of repository search results."""

    items: Tuple[str, ...]
    page_number: int
    last_page: int


@dataclass(frozen=True)
class RateLimitSignal:
    """Quota advice returned alongside each search response."""

    remaining_calls: int
    reset_at_epoch_seconds: int

    @property
    def exhausted(self) -> bool:
        return self.remaining_calls <= 1


UNLIMITED = RateLimitSignal(remaining_calls=2 ** 31 - 1, reset_at_epoch_seconds=0)


@dataclass(frozen=True)
class BuildRecord:
    number: int
    status: str
    branch: str = ""

    @classmethod
    def from_json(cls, payload: Dict[str, Any]) -> "BuildRecord":
        return cls(
            number=int(payload.get("number") or 0),
            status=str(payload.get("status") or ""),
            branch=str(payload.get("branch") or ""),
        )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES


__all__ = [
    "STATUS_PENDING",
    "STATUS_RUNNING",
    "STATUS_SUCCESS",
    "STATUS_FAILURE",
    "STATUS_ERROR",
    "STATUS_KILLED",
    "STATUS_SKIPPED",
    "STATUS_BLOCKED",
    "STATUS_DECLINED",
    "ACTIVE_STATUSES",
    "RepositoryRef",
    "SearchPage",
    "RateLimitSignal",
    "UNLIMITED",
    "BuildRecord",
]
