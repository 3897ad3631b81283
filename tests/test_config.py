"""Unit tests for environment-driven runtime settings."""

from pathlib import Path

import pytest

from idxwatch.config import DEFAULT_CONFIG_PATH, Config

ENV_VARS = [
    "IDXWATCH_CONFIG_PATH",
    "IDXWATCH_REFRESH_INTERVAL",
    "IDXWATCH_NEWS_REFRESH_INTERVAL",
    "IDXWATCH_HTTP_TIMEOUT",
    "IDXWATCH_MAX_RETRIES",
    "IDXWATCH_USER_AGENT",
    "IDXWATCH_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = Config.from_env()
    assert config.config_path == DEFAULT_CONFIG_PATH
    assert config.refresh_interval_secs is None
    assert config.news_refresh_interval_secs == 300
    assert config.http_timeout == 15
    assert config.max_retries == 2
    assert config.log_level == "INFO"


def test_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("IDXWATCH_CONFIG_PATH", str(tmp_path / "cfg.json"))
    monkeypatch.setenv("IDXWATCH_REFRESH_INTERVAL", "5")
    monkeypatch.setenv("IDXWATCH_HTTP_TIMEOUT", "30")
    monkeypatch.setenv("IDXWATCH_LOG_LEVEL", "debug")
    config = Config.from_env()
    assert config.config_path == Path(tmp_path / "cfg.json")
    assert config.refresh_interval_secs == 5
    assert config.http_timeout == 30
    assert config.log_level == "DEBUG"


def test_interval_below_floor_rejected(monkeypatch):
    monkeypatch.setenv("IDXWATCH_REFRESH_INTERVAL", "0")
    with pytest.raises(ValueError):
        Config.from_env()


def test_negative_max_retries_rejected(monkeypatch):
    monkeypatch.setenv("IDXWATCH_MAX_RETRIES", "-1")
    with pytest.raises(ValueError):
        Config.from_env()


def test_zero_max_retries_allowed(monkeypatch):
    monkeypatch.setenv("IDXWATCH_MAX_RETRIES", "0")
    assert Config.from_env().max_retries == 0
