"""Tests for src.downstream.policy covering trigger decisions and history selection.

Run with coverage:
    pytest tests/test_policy.py --maxfail=1 -v --cov=src.downstream.policy --cov-report=term-missing
"""

import pytest

from src.downstream.models import BuildRecord
from src.downstream.policy import Decision, Mode, decide, mode_for, select_last_successful


def _build(status, number=1, branch=""):
    return BuildRecord(number=number, status=status, branch=branch)


def test_mode_for_flags():
    assert mode_for(True, False) is Mode.WAIT
    assert mode_for(False, True) is Mode.LAST_SUCCESSFUL
    assert mode_for(False, False) is Mode.IMMEDIATE


@pytest.mark.parametrize("status", ["pending", "running"])
def test_wait_mode_keeps_waiting_then_polls_again(status):
    assert decide(_build(status), Mode.WAIT, False) is Decision.KEEP_WAITING
    assert decide(_build(status), Mode.WAIT, True) is Decision.POLL_AGAIN


@pytest.mark.parametrize("status", ["success", "failure", "error", "killed"])
def test_wait_mode_fires_on_terminal_build(status):
    assert decide(_build(status), Mode.WAIT, False) is Decision.FIRE_BUILD
    assert decide(_build(status), Mode.WAIT, True) is Decision.FIRE_BUILD


@pytest.mark.parametrize("status", ["running", "failure", "pending"])
def test_last_successful_searches_history_unless_success(status):
    assert decide(_build(status), Mode.LAST_SUCCESSFUL, False) is Decision.SEARCH_HISTORY
    assert decide(_build("success"), Mode.LAST_SUCCESSFUL, False) is Decision.FIRE_BUILD


@pytest.mark.parametrize("status", ["running", "pending", "failure", "success"])
def test_immediate_mode_always_fires(status):
    assert decide(_build(status), Mode.IMMEDIATE, False) is Decision.FIRE_BUILD


def test_select_last_successful_takes_first_match_in_list_order():
    builds = [_build("failure", 10), _build("success", 7), _build("success", 9)]
    assert select_last_successful(builds).number == 7


def test_select_last_successful_filters_by_branch():
    builds = [
        _build("success", 11, "feature"),
        _build("failure", 10, "main"),
        _build("success", 8, "main"),
    ]
    assert select_last_successful(builds, "main").number == 8
    assert select_last_successful(builds, "release") is None


def test_select_last_successful_none_when_history_has_no_success():
    assert select_last_successful([]) is None
    assert select_last_successful([_build("failure"), _build("killed")]) is None
