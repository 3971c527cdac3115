import subprocess

import pytest

from snapshot_merge.errors import ConfigurationError
from snapshot_merge.providers.github.auth import select_auth_token


def test_auth_prefers_config_token(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("gh should not be consulted")

    monkeypatch.setenv("HYALINE_CONFIG_GITHUB_TOKEN", "config_token")
    monkeypatch.setenv("GITHUB_TOKEN", "env_token")
    monkeypatch.setattr(subprocess, "run", fail)
    assert select_auth_token() == "config_token"


def test_auth_prefers_gh_token_over_github_token(monkeypatch):
    class Result:
        returncode = 0
        stdout = "ghp_123\n"

    monkeypatch.delenv("HYALINE_CONFIG_GITHUB_TOKEN", raising=False)
    monkeypatch.setenv("GITHUB_TOKEN", "env_token")
    monkeypatch.setattr(subprocess, "run", lambda *args, **kwargs: Result())
    assert select_auth_token() == "ghp_123"


def test_auth_falls_back_to_env_when_gh_unavailable(monkeypatch):
    def raise_error(*args, **kwargs):
        raise FileNotFoundError()

    monkeypatch.delenv("HYALINE_CONFIG_GITHUB_TOKEN", raising=False)
    monkeypatch.setenv("GITHUB_TOKEN", "env_token")
    monkeypatch.setattr(subprocess, "run", raise_error)
    assert select_auth_token() == "env_token"


def test_auth_raises_without_token(monkeypatch):
    def raise_error(*args, **kwargs):
        raise FileNotFoundError()

    monkeypatch.delenv("HYALINE_CONFIG_GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.setattr(subprocess, "run", raise_error)
    with pytest.raises(ConfigurationError):
        select_auth_token()
