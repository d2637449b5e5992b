"""Tests for src.secrets covering the local token fallback.

Run with coverage:
    pytest tests/test_secrets.py --maxfail=1 -v --cov=src.secrets --cov-report=term-missing
"""

import json
from unittest.mock import patch

from src import secrets
from src.secrets import LocalTokens


def test_load_tokens_reads_known_keys_only(tmp_path):
    path = tmp_path / "local_secrets.json"
    path.write_text(json.dumps({"drone_token": "abc", "github_token": 42, "other": "x"}))
    assert secrets.load_tokens(path) == LocalTokens(github_token="", drone_token="abc")


def test_load_tokens_missing_file(tmp_path):
    assert secrets.load_tokens(tmp_path / "nope.json") == LocalTokens()


def test_secrets_file_prefers_explicit_path_then_env(tmp_path, monkeypatch):
    monkeypatch.setenv("LOCAL_SECRETS_FILE", str(tmp_path / "env.json"))
    assert secrets.secrets_file(tmp_path / "cli.json") == tmp_path / "cli.json"
    assert secrets.secrets_file() == tmp_path / "env.json"

    monkeypatch.delenv("LOCAL_SECRETS_FILE")
    assert secrets.secrets_file().name == secrets.SECRETS_FILENAME


def test_load_tokens_ignores_unusable_files(tmp_path, capsys):
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    assert secrets.load_tokens(path) == LocalTokens()
    assert "[warn] ignoring unreadable secrets file" in capsys.readouterr().out

    path.write_text(json.dumps(["not", "a", "dict"]))
    assert secrets.load_tokens(path) == LocalTokens()
    assert "expected a JSON object" in capsys.readouterr().out


def test_fill_missing_tokens_only_fills_gaps(tmp_path):
    path = tmp_path / "local_secrets.json"
    path.write_text(json.dumps({"github_token": "file-gh", "drone_token": "file-drone"}))
    assert secrets.fill_missing_tokens("", "cli-drone", path) == LocalTokens("file-gh", "cli-drone")


def test_fill_missing_tokens_skips_file_when_both_supplied(tmp_path):
    with patch("src.secrets.load_tokens") as load:
        tokens = secrets.fill_missing_tokens("gh", "drone", tmp_path / "local_secrets.json")
    assert tokens == LocalTokens("gh", "drone")
    load.assert_not_called()
