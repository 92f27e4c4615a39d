"""Configuration management for OriginGuard."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import yaml
from dotenv import load_dotenv

from .constants import (
    DEFAULT_AGGREGATE_NAME,
    DEFAULT_AGGREGATE_URL,
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    DEFAULT_HOTLIST_NAME,
    DEFAULT_HOTLIST_URL,
    DEFAULT_REFRESH_INTERVAL_SECONDS,
    FeedSchema,
)
from .reputation.models import FeedSource

logger = logging.getLogger(__name__)


def default_feeds(
    aggregate_url: str = DEFAULT_AGGREGATE_URL,
    hotlist_url: str = DEFAULT_HOTLIST_URL,
) -> list[FeedSource]:
    """Primary aggregate feed first, then the flat hotlist."""
    return [
        FeedSource(name=DEFAULT_AGGREGATE_NAME, url=aggregate_url, schema=FeedSchema.AGGREGATE),
        FeedSource(name=DEFAULT_HOTLIST_NAME, url=hotlist_url, schema=FeedSchema.HOTLIST),
    ]


@dataclass
class Config:
    """Application configuration loaded from environment."""

    # Feeds, in priority order (primary first)
    feeds: list[FeedSource] = field(default_factory=default_feeds)

    # Refresh schedule
    refresh_interval_seconds: float = DEFAULT_REFRESH_INTERVAL_SECONDS
    fetch_timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS
    disabled: bool = False

    # Ruleset used until the first successful refresh (None = bundled)
    fallback_config_path: Optional[Path] = None

    # Health server (optional)
    health_host: str = "0.0.0.0"
    health_port: int = 8081
    health_enabled: bool = True

    config_dir: Path = field(default_factory=lambda: Path("./config"))
    log_level: str = "INFO"

    def __post_init__(self):
        self.config_dir = Path(self.config_dir)
        if self.fallback_config_path is not None:
            self.fallback_config_path = Path(self.fallback_config_path)


def _load_feeds(config_dir: Path) -> list[FeedSource] | None:
    """Load the feed list from config/feeds.yaml (optional).

    Returns None when the file is absent or unusable so env defaults apply.
    """
    path = Path(config_dir or ".") / "feeds.yaml"
    if not path.exists():
        return None

    try:
        data = yaml.safe_load(path.read_text()) or {}
    except Exception as exc:
        logger.warning("Failed to parse feeds.yaml: %s", exc)
        return None

    raw_feeds = data.get("feeds") if isinstance(data, dict) else None
    if not isinstance(raw_feeds, list):
        logger.warning("feeds.yaml has no 'feeds' list; using defaults")
        return None

    feeds: list[FeedSource] = []
    for entry in raw_feeds:
        if not isinstance(entry, dict):
            continue
        name = str(entry.get("name") or "").strip()
        url = str(entry.get("url") or "").strip()
        if not name or not url:
            logger.warning("Skipping feed entry without name/url: %r", entry)
            continue
        try:
            schema = FeedSchema.from_string(entry.get("schema"))
        except ValueError:
            logger.warning("Skipping feed %s: unknown schema %r", name, entry.get("schema"))
            continue
        feeds.append(FeedSource(name=name, url=url, schema=schema))

    return feeds or None


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def load_config() -> Config:
    """Load configuration from environment variables."""
    load_dotenv()

    config_dir = Path(os.getenv("CONFIG_DIR", "./config"))
    feeds = _load_feeds(config_dir) or default_feeds(
        aggregate_url=os.getenv("PHISHING_CONFIG_URL", DEFAULT_AGGREGATE_URL),
        hotlist_url=os.getenv("PHISHING_HOTLIST_URL", DEFAULT_HOTLIST_URL),
    )

    fallback = os.getenv("FALLBACK_CONFIG_PATH", "").strip()

    return Config(
        feeds=feeds,
        refresh_interval_seconds=float(
            os.getenv("REFRESH_INTERVAL_SECONDS", str(DEFAULT_REFRESH_INTERVAL_SECONDS))
        ),
        fetch_timeout_seconds=float(
            os.getenv("FETCH_TIMEOUT_SECONDS", str(DEFAULT_FETCH_TIMEOUT_SECONDS))
        ),
        disabled=_env_bool("REPUTATION_DISABLED", "false"),
        fallback_config_path=Path(fallback) if fallback else None,
        health_host=os.getenv("HEALTH_HOST", "0.0.0.0"),
        health_port=int(os.getenv("HEALTH_PORT", "8081")),
        health_enabled=_env_bool("HEALTH_ENABLED", "true"),
        config_dir=config_dir,
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )


def validate_config(config: Config) -> list[str]:
    """Validate configuration and return list of error messages."""
    errors: list[str] = []
    if config.refresh_interval_seconds <= 0:
        errors.append("REFRESH_INTERVAL_SECONDS must be positive")
    if config.fetch_timeout_seconds <= 0:
        errors.append("FETCH_TIMEOUT_SECONDS must be positive")

    if not config.feeds:
        errors.append("At least one feed must be configured")

    seen: set[str] = set()
    for feed in config.feeds:
        if feed.name in seen:
            errors.append(f"Duplicate feed name: {feed.name}")
        seen.add(feed.name)
        if urlparse(feed.url).scheme not in ("http", "https"):
            errors.append(f"Feed {feed.name} URL must be http(s): {feed.url}")

    if config.fallback_config_path and not config.fallback_config_path.exists():
        # Detection still runs, just with an empty ruleset until the first refresh.
        logger.warning("FALLBACK_CONFIG_PATH %s does not exist", config.fallback_config_path)

    return errors
