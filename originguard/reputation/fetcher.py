"""Concurrent retrieval of remote reputation feeds.

Every feed is fetched independently: a failing endpoint (transport error,
non-200 status, malformed body) is reported as unavailable for this cycle
only and never affects the other feeds. There are no retries here; the next
scheduled refresh is the retry.
"""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Any, Iterable

import aiohttp

from ..constants import FeedSchema
from .errors import FeedSchemaError, FeedUnavailable
from .models import AggregateFeed, FeedResult, FeedSource, HotlistFeed

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


def _string_list(name: str, payload: dict, key: str) -> tuple[str, ...]:
    value = payload.get(key)
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise FeedSchemaError(name, f"'{key}' must be a list of strings")
    return tuple(value)


def _number(name: str, payload: dict, key: str) -> int:
    value = payload.get(key, 0)
    if value is None:
        return 0
    # bool is an int subclass but never a valid count
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise FeedSchemaError(name, f"'{key}' must be a number")
    if isinstance(value, float) and not math.isfinite(value):
        raise FeedSchemaError(name, f"'{key}' must be a finite number")
    return int(value)


def parse_aggregate(name: str, payload: Any) -> AggregateFeed:
    """Validate a legacy aggregate document."""
    if not isinstance(payload, dict):
        raise FeedSchemaError(name, "expected a JSON object")
    tolerance = _number(name, payload, "tolerance")
    if tolerance < 0:
        raise FeedSchemaError(name, "'tolerance' must be >= 0")
    return AggregateFeed(
        whitelist=_string_list(name, payload, "whitelist"),
        blacklist=_string_list(name, payload, "blacklist"),
        fuzzylist=_string_list(name, payload, "fuzzylist"),
        tolerance=tolerance,
        version=_number(name, payload, "version"),
    )


def parse_hotlist(name: str, payload: Any) -> HotlistFeed:
    """Validate a flat hotlist document."""
    if not isinstance(payload, list) or not all(isinstance(item, str) for item in payload):
        raise FeedSchemaError(name, "expected a JSON array of strings")
    return HotlistFeed(entries=tuple(payload))


SCHEMA_PARSERS = {
    FeedSchema.AGGREGATE: parse_aggregate,
    FeedSchema.HOTLIST: parse_hotlist,
}


class ListSourceFetcher:
    """Fetches all configured feeds in parallel, one GET per feed."""

    def __init__(self, sources: Iterable[FeedSource], timeout: float = 30):
        self.sources = list(sources)
        self.timeout = timeout

    async def fetch_all(self) -> list[FeedResult]:
        """Fetch every feed; results come back in configuration order."""
        if not self.sources:
            return []
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with aiohttp.ClientSession() as session:
            return list(
                await asyncio.gather(
                    *(self._fetch_one(session, source, timeout) for source in self.sources)
                )
            )

    async def _fetch_one(
        self,
        session: aiohttp.ClientSession,
        source: FeedSource,
        timeout: aiohttp.ClientTimeout,
    ) -> FeedResult:
        try:
            payload = await self._query(session, source, timeout)
            document = SCHEMA_PARSERS[source.schema](source.name, payload)
        except asyncio.CancelledError:
            raise
        except FeedUnavailable as e:
            logger.warning("Feed %s unavailable: HTTP %s", source.name, e.status_code)
            return FeedResult(source=source)
        except FeedSchemaError as e:
            logger.warning("Feed %s returned a malformed body: %s", source.name, e.message)
            return FeedResult(source=source)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning("Feed %s fetch failed: %s", source.name, e or type(e).__name__)
            return FeedResult(source=source)
        except Exception as e:
            logger.warning(
                "Feed %s unusable (%s): %s", source.name, type(e).__name__, e
            )
            return FeedResult(source=source)

        logger.debug("Feed %s fetched (%s)", source.name, source.schema)
        return FeedResult(source=source, document=document)

    async def _query(
        self,
        session: aiohttp.ClientSession,
        source: FeedSource,
        timeout: aiohttp.ClientTimeout,
    ) -> Any:
        async with session.get(source.url, headers=NO_CACHE_HEADERS, timeout=timeout) as resp:
            if resp.status != 200:
                raise FeedUnavailable(source.name, resp.status)
            # Feeds are often served as text/plain from CDNs.
            return await resp.json(content_type=None)
