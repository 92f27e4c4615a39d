"""Tests for configuration loading."""

from pathlib import Path

import pytest

from originguard import config as config_module
from originguard.config import Config, default_feeds, load_config, validate_config
from originguard.constants import (
    DEFAULT_AGGREGATE_URL,
    DEFAULT_HOTLIST_URL,
    DEFAULT_REFRESH_INTERVAL_SECONDS,
    FeedSchema,
)
from originguard.reputation.models import FeedSource

ENV_KEYS = [
    "PHISHING_CONFIG_URL",
    "PHISHING_HOTLIST_URL",
    "REFRESH_INTERVAL_SECONDS",
    "FETCH_TIMEOUT_SECONDS",
    "REPUTATION_DISABLED",
    "FALLBACK_CONFIG_PATH",
    "HEALTH_PORT",
    "HEALTH_ENABLED",
    "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("CONFIG_DIR", str(tmp_path))
    # Keep a developer's .env out of the tests
    monkeypatch.setattr(config_module, "load_dotenv", lambda *a, **k: False)
    return tmp_path


def test_defaults(clean_env):
    config = load_config()
    assert [f.name for f in config.feeds] == ["MetaMask", "PhishFort"]
    assert config.feeds[0].url == DEFAULT_AGGREGATE_URL
    assert config.feeds[0].schema == FeedSchema.AGGREGATE
    assert config.feeds[1].url == DEFAULT_HOTLIST_URL
    assert config.feeds[1].schema == FeedSchema.HOTLIST
    assert config.refresh_interval_seconds == DEFAULT_REFRESH_INTERVAL_SECONDS
    assert config.disabled is False
    assert config.fallback_config_path is None
    assert validate_config(config) == []


def test_env_overrides(clean_env, monkeypatch):
    monkeypatch.setenv("PHISHING_HOTLIST_URL", "https://mirror.test/hotlist.json")
    monkeypatch.setenv("REFRESH_INTERVAL_SECONDS", "900")
    monkeypatch.setenv("REPUTATION_DISABLED", "true")
    monkeypatch.setenv("FALLBACK_CONFIG_PATH", "/tmp/fallback.json")
    monkeypatch.setenv("HEALTH_ENABLED", "false")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    config = load_config()

    assert config.feeds[1].url == "https://mirror.test/hotlist.json"
    assert config.refresh_interval_seconds == 900
    assert config.disabled is True
    assert config.fallback_config_path == Path("/tmp/fallback.json")
    assert config.health_enabled is False
    assert config.log_level == "DEBUG"


def test_feeds_yaml_replaces_feed_list(clean_env):
    (clean_env / "feeds.yaml").write_text(
        """
feeds:
  - name: Primary
    url: https://feeds.test/config.json
    schema: aggregate
  - name: Broken
    url: https://feeds.test/broken.json
    schema: csv
  - name: Community
    url: https://feeds.test/community.json
    schema: HOTLIST
  - url: https://feeds.test/nameless.json
"""
    )

    config = load_config()

    assert config.feeds == [
        FeedSource(name="Primary", url="https://feeds.test/config.json", schema=FeedSchema.AGGREGATE),
        FeedSource(name="Community", url="https://feeds.test/community.json", schema=FeedSchema.HOTLIST),
    ]


def test_unparseable_feeds_yaml_uses_defaults(clean_env):
    (clean_env / "feeds.yaml").write_text("feeds: [unclosed")
    config = load_config()
    assert [f.name for f in config.feeds] == ["MetaMask", "PhishFort"]


def test_validate_config_reports_errors():
    feeds = default_feeds() + [FeedSource(name="MetaMask", url="ftp://feeds.test/x", schema=FeedSchema.HOTLIST)]
    config = Config(feeds=feeds, refresh_interval_seconds=0, fetch_timeout_seconds=-1)

    errors = validate_config(config)

    assert "REFRESH_INTERVAL_SECONDS must be positive" in errors
    assert "FETCH_TIMEOUT_SECONDS must be positive" in errors
    assert "Duplicate feed name: MetaMask" in errors
    assert any("must be http(s)" in e for e in errors)


def test_validate_config_requires_a_feed():
    assert "At least one feed must be configured" in validate_config(Config(feeds=[]))
