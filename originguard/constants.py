"""Centralized constants for OriginGuard.

Enums and defaults shared by the configuration layer and the reputation
engine, kept in one place so both agree on names and wire values.
"""

from enum import Enum


class MatchKind(str, Enum):
    """Which rule family produced a detection result."""

    NONE = "none"
    ALLOW = "allow"
    BLOCK = "block"
    FUZZY = "fuzzy"

    def __str__(self) -> str:
        return self.value


class FeedSchema(str, Enum):
    """Wire format of a remote feed."""

    AGGREGATE = "aggregate"  # {whitelist, blacklist, fuzzylist, tolerance, version}
    HOTLIST = "hotlist"  # bare list of blocked domains

    @classmethod
    def from_string(cls, value: str | None) -> "FeedSchema":
        """Convert a schema name to enum; raises ValueError for unknown names."""
        return cls((value or "").strip().lower())

    def __str__(self) -> str:
        return self.value


DEFAULT_AGGREGATE_URL = (
    "https://cdn.jsdelivr.net/gh/MetaMask/eth-phishing-detect@master/src/config.json"
)
DEFAULT_HOTLIST_URL = (
    "https://cdn.jsdelivr.net/gh/phishfort/phishfort-lists@master/blacklists/hotlist.json"
)
DEFAULT_AGGREGATE_NAME = "MetaMask"
DEFAULT_HOTLIST_NAME = "PhishFort"

DEFAULT_REFRESH_INTERVAL_SECONDS = 60 * 60
DEFAULT_FETCH_TIMEOUT_SECONDS = 30

# Hotlist feeds carry no version of their own.
HOTLIST_VERSION = 1

# Source name reported by check() when a session override short-circuits detection.
BYPASS_SOURCE_NAME = "bypass"

# Keys written to the state container.
STATE_KEY_PHISHING = "phishing"
STATE_KEY_BYPASSED = "bypassed"
