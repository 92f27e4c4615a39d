"""Data model for the origin reputation engine."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from ..constants import FeedSchema, MatchKind


def _whole_number(value: Any) -> int:
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f"not a finite number: {value!r}")
    return int(value or 0)


def unique_entries(values: Iterable[str]) -> tuple[str, ...]:
    """Lowercase, strip and dedupe list entries, keeping first occurrence order."""
    seen: dict[str, None] = {}
    for value in values:
        entry = str(value).strip().lower()
        if entry and entry not in seen:
            seen[entry] = None
    return tuple(seen)


@dataclass(frozen=True)
class FeedSource:
    """A configured remote feed."""

    name: str
    url: str
    schema: FeedSchema


@dataclass(frozen=True)
class AggregateFeed:
    """Parsed legacy aggregate document."""

    whitelist: tuple[str, ...] = ()
    blacklist: tuple[str, ...] = ()
    fuzzylist: tuple[str, ...] = ()
    tolerance: int = 0
    version: int = 0


@dataclass(frozen=True)
class HotlistFeed:
    """Parsed flat hotlist document (blocked domains only)."""

    entries: tuple[str, ...] = ()


@dataclass(frozen=True)
class FeedResult:
    """Outcome of fetching one feed; ``document`` is None when unavailable."""

    source: FeedSource
    document: AggregateFeed | HotlistFeed | None = None

    @property
    def available(self) -> bool:
        return self.document is not None


@dataclass(frozen=True)
class ListSource:
    """One feed's ruleset in canonical shape."""

    name: str
    allowlist: tuple[str, ...] = ()
    blocklist: tuple[str, ...] = ()
    fuzzylist: tuple[str, ...] = ()
    tolerance: int = 0
    version: int = 0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "allowlist": list(self.allowlist),
            "blocklist": list(self.blocklist),
            "fuzzylist": list(self.fuzzylist),
            "tolerance": self.tolerance,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ListSource":
        return cls(
            name=str(data.get("name") or ""),
            allowlist=unique_entries(data.get("allowlist") or []),
            blocklist=unique_entries(data.get("blocklist") or []),
            fuzzylist=unique_entries(data.get("fuzzylist") or []),
            tolerance=max(0, _whole_number(data.get("tolerance"))),
            version=_whole_number(data.get("version")),
        )


@dataclass(frozen=True)
class MergedRuleset:
    """Ordered, deduplicated sources in priority order (primary first)."""

    sources: tuple[ListSource, ...] = field(default_factory=tuple)

    def __iter__(self):
        return iter(self.sources)

    def __len__(self) -> int:
        return len(self.sources)

    def get(self, name: str) -> Optional[ListSource]:
        for source in self.sources:
            if source.name == name:
                return source
        return None

    def to_state(self) -> list[dict]:
        return [source.to_dict() for source in self.sources]

    @classmethod
    def from_state(cls, data: Iterable[dict[str, Any]]) -> "MergedRuleset":
        return cls(sources=tuple(ListSource.from_dict(item) for item in data))


@dataclass(frozen=True)
class DetectionResult:
    """Result of classifying one origin."""

    phishing: bool = False
    match_kind: MatchKind = MatchKind.NONE
    matched_source: Optional[str] = None
    matched_entry: Optional[str] = None
    version: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "phishing": self.phishing,
            "match_kind": str(self.match_kind),
            "matched_source": self.matched_source,
            "matched_entry": self.matched_entry,
            "version": self.version,
        }
