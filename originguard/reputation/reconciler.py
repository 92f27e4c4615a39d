"""Merge per-feed documents into a single prioritized ruleset."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from ..constants import HOTLIST_VERSION
from .models import (
    AggregateFeed,
    FeedResult,
    HotlistFeed,
    ListSource,
    MergedRuleset,
    unique_entries,
)

logger = logging.getLogger(__name__)


def shape_aggregate(name: str, document: AggregateFeed) -> ListSource:
    """Map legacy field names onto the canonical shape."""
    return ListSource(
        name=name,
        allowlist=unique_entries(document.whitelist),
        blocklist=unique_entries(document.blacklist),
        fuzzylist=unique_entries(document.fuzzylist),
        tolerance=document.tolerance,
        version=document.version,
    )


def shape_hotlist(name: str, document: HotlistFeed) -> ListSource:
    return ListSource(
        name=name,
        blocklist=unique_entries(document.entries),
        tolerance=0,
        version=HOTLIST_VERSION,
    )


def _without_claimed(source: ListSource, claimed: set[str]) -> ListSource:
    blocklist = tuple(entry for entry in source.blocklist if entry not in claimed)
    dropped = len(source.blocklist) - len(blocklist)
    if dropped:
        logger.debug("%s: dropped %d blocklist entries owned by higher-priority feeds", source.name, dropped)
        return ListSource(
            name=source.name,
            allowlist=source.allowlist,
            blocklist=blocklist,
            fuzzylist=source.fuzzylist,
            tolerance=source.tolerance,
            version=source.version,
        )
    return source


def reconcile(results: Iterable[FeedResult]) -> Optional[MergedRuleset]:
    """
    Build a MergedRuleset from fetch results given in priority order.

    Unavailable feeds contribute nothing. A blocked entry is attributed to the
    first (highest-priority) feed that lists it; later duplicates are dropped.
    Returns None when no feed was available so the caller keeps its current
    ruleset.
    """
    accepted: list[ListSource] = []
    claimed: set[str] = set()

    for result in results:
        if not result.available:
            continue
        document = result.document
        name = result.source.name
        if isinstance(document, AggregateFeed):
            source = shape_aggregate(name, document)
        elif isinstance(document, HotlistFeed):
            source = shape_hotlist(name, document)
        else:
            logger.warning("Skipping %s: unsupported document type %s", name, type(document).__name__)
            continue

        if accepted:
            source = _without_claimed(source, claimed)
        claimed.update(source.blocklist)
        accepted.append(source)

    if not accepted:
        return None
    return MergedRuleset(sources=tuple(accepted))
