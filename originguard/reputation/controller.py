"""Origin reputation controller.

Passively polls the configured feeds for allowed and blocked origins and
answers synchronous phishing queries against the last good ruleset.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Optional

from ..constants import (
    BYPASS_SOURCE_NAME,
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    DEFAULT_REFRESH_INTERVAL_SECONDS,
    STATE_KEY_BYPASSED,
    STATE_KEY_PHISHING,
    MatchKind,
)
from ..state import InMemoryStateStore, StateStore
from ..utils.domains import normalize_origin
from .detector import DetectionEngine
from .fallback import load_fallback_ruleset
from .fetcher import ListSourceFetcher
from .models import DetectionResult, FeedSource, MergedRuleset
from .overrides import OverrideStore
from .reconciler import reconcile
from .scheduler import RefreshScheduler

if TYPE_CHECKING:
    from ..config import Config

logger = logging.getLogger(__name__)


class PhishingController:
    """
    Keeps a live origin ruleset and answers "is this origin phishing".

    Query path: normalize -> session overrides -> detection engine. Queries
    never touch the network. Refreshes replace the engine as a whole, so a
    query sees either the old or the new ruleset, never a mix.

    Usage:
        controller = PhishingController(feeds)
        await controller.start()      # first refresh now, then every interval
        controller.test("example.com")
        controller.bypass("example.com")
        await controller.stop()
    """

    name = "PhishingController"

    def __init__(
        self,
        feeds: Iterable[FeedSource],
        *,
        interval: float = DEFAULT_REFRESH_INTERVAL_SECONDS,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
        disabled: bool = False,
        state_store: Optional[StateStore] = None,
        fallback_path: Optional[Path] = None,
        fetcher: Optional[ListSourceFetcher] = None,
    ):
        self.state_store = state_store if state_store is not None else InMemoryStateStore()
        self.disabled = disabled
        self.fetcher = fetcher or ListSourceFetcher(feeds, timeout=fetch_timeout)

        state = self.state_store.get_state()
        self._engine = DetectionEngine(self._initial_ruleset(state, fallback_path))
        self.overrides = OverrideStore(
            normalize_origin(str(origin)) for origin in state.get(STATE_KEY_BYPASSED) or []
        )
        self.scheduler = RefreshScheduler(self.update_phishing_lists, interval)

        self.last_refresh_at: Optional[datetime] = None
        self.last_refresh_sources: list[str] = []

    @classmethod
    def from_config(cls, config: "Config", state_store: Optional[StateStore] = None) -> "PhishingController":
        return cls(
            config.feeds,
            interval=config.refresh_interval_seconds,
            fetch_timeout=config.fetch_timeout_seconds,
            disabled=config.disabled,
            state_store=state_store,
            fallback_path=config.fallback_config_path,
        )

    @staticmethod
    def _initial_ruleset(state: dict, fallback_path: Optional[Path]) -> MergedRuleset:
        persisted = state.get(STATE_KEY_PHISHING)
        if persisted:
            try:
                ruleset = MergedRuleset.from_state(persisted)
                logger.info("Restored ruleset from state (%d sources)", len(ruleset))
                return ruleset
            except (AttributeError, TypeError, ValueError, OverflowError) as e:
                logger.warning("Ignoring unreadable persisted ruleset: %s", e)
        return load_fallback_ruleset(fallback_path)

    @property
    def ruleset(self) -> MergedRuleset:
        return self._engine.ruleset

    @property
    def engine(self) -> DetectionEngine:
        return self._engine

    async def start(self) -> None:
        """Run the first refresh eagerly and start the schedule."""
        await self.poll()

    async def poll(self, interval: Optional[float] = None) -> None:
        """Refresh now and (re)start the schedule, optionally with a new interval."""
        await self.scheduler.poll(interval)

    async def stop(self) -> None:
        await self.scheduler.stop()

    def configure(self, *, disabled: Optional[bool] = None) -> None:
        """Toggle administrative disablement; the schedule keeps running either way."""
        if disabled is not None and disabled != self.disabled:
            self.disabled = disabled
            logger.info("%s %s", self.name, "disabled" if disabled else "enabled")

    def test(self, origin: str) -> bool:
        """Determine if a given origin is unapproved.

        Args:
            origin: Domain origin of a website.

        Returns:
            True if the origin is blocked or fuzzy-matches a protected domain.
        """
        punycode_origin = normalize_origin(origin)
        if punycode_origin in self.overrides:
            return False
        return self._engine.classify(punycode_origin).phishing

    def check(self, origin: str) -> DetectionResult:
        """Like test(), but return the full detection result."""
        punycode_origin = normalize_origin(origin)
        if punycode_origin in self.overrides:
            return DetectionResult(
                phishing=False,
                match_kind=MatchKind.ALLOW,
                matched_source=BYPASS_SOURCE_NAME,
                matched_entry=punycode_origin,
            )
        return self._engine.classify(punycode_origin)

    def bypass(self, origin: str) -> None:
        """Mark a given origin as trusted for the rest of the session."""
        punycode_origin = normalize_origin(origin)
        if not self.overrides.add(punycode_origin):
            return
        logger.info("Bypass added for %s", punycode_origin)
        self.state_store.update({STATE_KEY_BYPASSED: self.overrides.snapshot()})

    async def update_phishing_lists(self) -> bool:
        """Fetch, merge and swap in a new ruleset.

        Returns True if the ruleset was replaced. Disabled controllers and
        cycles where every feed is unavailable leave the current ruleset alone.
        """
        if self.disabled:
            logger.debug("%s disabled; skipping refresh", self.name)
            return False

        results = await self.fetcher.fetch_all()
        ruleset = reconcile(results)
        if ruleset is None:
            logger.info("All %d feeds unavailable; keeping current ruleset", len(results))
            return False

        self._engine = DetectionEngine(ruleset)
        self.state_store.update({STATE_KEY_PHISHING: ruleset.to_state()})
        self.last_refresh_at = datetime.now(timezone.utc)
        self.last_refresh_sources = [source.name for source in ruleset]

        logger.info(
            "Ruleset updated: %s",
            ", ".join(
                f"{s.name} v{s.version} ({len(s.blocklist)} blocked, "
                f"{len(s.allowlist)} allowed, {len(s.fuzzylist)} fuzzy)"
                for s in ruleset
            ),
        )
        return True

    def status(self) -> dict:
        """Lightweight status dict for health endpoints."""
        scheduler = self.scheduler
        return {
            "status": "disabled" if self.disabled else "ok",
            "sources": len(self.ruleset),
            "overrides": len(self.overrides),
            "refresh_interval_seconds": scheduler.interval,
            "scheduled": scheduler.is_scheduled,
            "cycles_run": scheduler.cycles_run,
            "cycles_failed": scheduler.cycles_failed,
            "last_refresh_at": self.last_refresh_at.isoformat() if self.last_refresh_at else None,
            "last_refresh_sources": list(self.last_refresh_sources),
            "feeds": [
                {
                    "name": source.name,
                    "version": source.version,
                    "tolerance": source.tolerance,
                    "allowlist_size": len(source.allowlist),
                    "blocklist_size": len(source.blocklist),
                    "fuzzylist_size": len(source.fuzzylist),
                }
                for source in self.ruleset
            ],
        }
