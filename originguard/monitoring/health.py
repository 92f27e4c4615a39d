"""Health and metrics endpoints for the reputation service."""

from __future__ import annotations

import logging
from typing import Callable

from aiohttp import web

logger = logging.getLogger(__name__)

# Service-wide gauges taken from the controller status dict.
SERVICE_GAUGES = (
    "sources",
    "overrides",
    "refresh_interval_seconds",
    "scheduled",
    "cycles_run",
    "cycles_failed",
)

# Per-feed gauges, labelled by source name.
FEED_GAUGES = (
    "version",
    "tolerance",
    "allowlist_size",
    "blocklist_size",
    "fuzzylist_size",
)


def _label(value: str) -> str:
    return str(value).replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _gauge(value) -> int | float | None:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    return None


def render_metrics(status: dict) -> str:
    """Render a controller status dict as Prometheus text exposition."""
    state = status.get("status", "ok")
    lines = [
        f"originguard_up {0 if state == 'error' else 1}",
        f"originguard_disabled {1 if state == 'disabled' else 0}",
    ]

    for key in SERVICE_GAUGES:
        value = _gauge(status.get(key))
        if value is not None:
            lines.append(f"originguard_{key} {value}")

    for feed in status.get("feeds") or []:
        source = _label(feed.get("name", ""))
        for key in FEED_GAUGES:
            value = _gauge(feed.get(key))
            if value is not None:
                lines.append(f'originguard_feed_{key}{{source="{source}"}} {value}')

    return "\n".join(lines) + "\n"


class HealthServer:
    """Serves /healthz (JSON status) and /metrics (Prometheus text)."""

    def __init__(
        self,
        host: str,
        port: int,
        status_provider: Callable[[], dict],
        enabled: bool = True,
    ):
        self.host = host
        self.port = port
        self.status_provider = status_provider
        self.enabled = enabled
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/healthz", self._handle_health)
        app.router.add_get("/metrics", self._handle_metrics)
        return app

    async def start(self):
        if not self.enabled:
            logger.info("Health server disabled")
            return

        self._runner = web.AppRunner(self.build_app())
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self.host, self.port)
        await self._site.start()
        logger.info("Health server listening on %s:%s", self.host, self.port)

    async def stop(self):
        if self._site:
            await self._site.stop()
        if self._runner:
            await self._runner.cleanup()
        self._runner = None
        self._site = None

    def _snapshot(self) -> dict:
        try:
            return dict(self.status_provider() or {})
        except Exception as exc:
            logger.warning("Health status provider failed: %s", exc)
            return {"status": "error", "message": str(exc)}

    async def _handle_health(self, request):  # noqa: ANN001
        payload = self._snapshot()
        payload.setdefault("status", "ok")
        return web.json_response(payload, headers={"Access-Control-Allow-Origin": "*"})

    async def _handle_metrics(self, request):  # noqa: ANN001
        return web.Response(text=render_metrics(self._snapshot()))
