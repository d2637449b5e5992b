"""Turn search results into the ordered list of repositories to trigger."""

from __future__ import annotations

import time
from typing import Callable, List, Optional

from .models import RepositoryRef, SearchPage
from .pager import SearchClient, iter_pages


def build_refs(page: SearchPage, branch_override: Optional[str] = None) -> List[RepositoryRef]:
    """Map each ``owner/name`` on the page to a ref, pinned to the override branch if set."""
    refs: List[RepositoryRef] = []
    for full_name in page.items:
        token = f"{full_name}@{branch_override}" if branch_override else full_name
        refs.append(RepositoryRef.parse(token))
    return refs


def discover_repositories(
    client: SearchClient,
    query: str,
    branch_override: Optional[str] = None,
    now: Callable[[], float] = time.time,
    sleep: Callable[[float], None] = time.sleep,
) -> List[RepositoryRef]:
    """Collect every matching repository in search order.

    Duplicates across pages are kept; the search is not a stable snapshot.
    """
    repos: List[RepositoryRef] = []
    for page in iter_pages(client, query, now=now, sleep=sleep):
        for ref in build_refs(page, branch_override):
            repos.append(ref)
            print(f"Added {ref} to the downstream list.")
    return repos


__all__ = ["build_refs", "discover_repositories"]
