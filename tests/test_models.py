"""Tests for src.downstream.models covering ref parsing and JSON decoding.

Run with coverage:
    pytest tests/test_models.py --maxfail=1 -v --cov=src.downstream.models --cov-report=term-missing
"""

import pytest

from src.downstream.models import BuildRecord, RateLimitSignal, RepositoryRef


@pytest.mark.parametrize(
    "token, expected",
    [
        ("octo/app", ("octo", "app", "")),
        ("octo/app@release", ("octo", "app", "release")),
        ("octo/app@feature/x", ("octo", "app", "feature/x")),
    ],
)
def test_parse_well_formed_tokens(token, expected):
    ref = RepositoryRef.parse(token)
    assert (ref.owner, ref.name, ref.branch) == expected
    assert ref.is_valid()
    assert str(ref) == token


@pytest.mark.parametrize("token", ["octo", "octo@main", "a/b/c", ""])
def test_parse_malformed_tokens_yield_empty_names(token):
    ref = RepositoryRef.parse(token)
    assert ref.owner == "" and ref.name == ""
    assert not ref.is_valid()
    assert str(ref) == token


def test_parse_keeps_second_at_sign_in_name():
    ref = RepositoryRef.parse("octo/app@a@b")
    assert (ref.owner, ref.name, ref.branch) == ("octo", "app@a@b", "")


def test_ref_str_without_source():
    assert str(RepositoryRef("o", "r")) == "o/r"
    assert str(RepositoryRef("o", "r", "dev")) == "o/r@dev"
    assert RepositoryRef("o", "r", "dev") == RepositoryRef.parse("o/r@dev")


def test_build_record_from_json():
    build = BuildRecord.from_json({"number": 12, "status": "running", "branch": "main", "extra": 1})
    assert build == BuildRecord(number=12, status="running", branch="main")
    assert build.is_active
    assert not BuildRecord.from_json({"number": 3, "status": "success"}).is_active
    assert BuildRecord.from_json({}) == BuildRecord(number=0, status="", branch="")


def test_rate_limit_signal_exhausted():
    assert RateLimitSignal(1, 0).exhausted
    assert RateLimitSignal(0, 0).exhausted
    assert not RateLimitSignal(2, 0).exhausted
