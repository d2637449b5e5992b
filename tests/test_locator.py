"""Tests for src.downstream.locator covering ref building and full discovery.

Run with coverage:
    pytest tests/test_locator.py --maxfail=1 -v --cov=src.downstream.locator --cov-report=term-missing
"""

from unittest.mock import MagicMock

from src.downstream import locator
from src.downstream.models import UNLIMITED, RepositoryRef, SearchPage


def test_build_refs_without_override():
    page = SearchPage(items=("acme/api", "acme/web"), page_number=1, last_page=1)
    refs = locator.build_refs(page)
    assert refs == [RepositoryRef("acme", "api"), RepositoryRef("acme", "web")]
    assert all(ref.branch == "" for ref in refs)


def test_build_refs_with_branch_override():
    page = SearchPage(items=("acme/api",), page_number=1, last_page=1)
    (ref,) = locator.build_refs(page, "release")
    assert ref == RepositoryRef("acme", "api", "release")
    assert str(ref) == "acme/api@release"


def test_discover_repositories_keeps_order_across_pages(capsys):
    first = tuple(f"acme/repo-{i}" for i in range(100))
    second = tuple(f"acme/repo-{i}" for i in range(100, 150))
    client = MagicMock()
    client.search_repositories.side_effect = [
        (SearchPage(items=first, page_number=1, last_page=2), UNLIMITED),
        (SearchPage(items=second, page_number=2, last_page=2), UNLIMITED),
    ]

    refs = locator.discover_repositories(client, "org:acme")

    assert len(refs) == 150
    assert [ref.name for ref in refs] == [f"repo-{i}" for i in range(150)]
    out = capsys.readouterr().out.splitlines()
    assert out[0] == "Added acme/repo-0 to the downstream list."
    assert out[-1] == "Added acme/repo-149 to the downstream list."


def test_discover_repositories_does_not_deduplicate(capsys):
    client = MagicMock()
    client.search_repositories.side_effect = [
        (SearchPage(items=("acme/api", "acme/web"), page_number=1, last_page=2), UNLIMITED),
        (SearchPage(items=("acme/web",), page_number=2, last_page=2), UNLIMITED),
    ]
    refs = locator.discover_repositories(client, "org:acme", "main")
    assert [str(ref) for ref in refs] == ["acme/api@main", "acme/web@main", "acme/web@main"]
    assert "Added acme/web@main to the downstream list." in capsys.readouterr().out
