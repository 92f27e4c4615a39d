"""Main entry point for the OriginGuard reputation service.

Usage:
    python -m originguard.main                     # run until SIGINT/SIGTERM
    python -m originguard.main check example.com   # refresh once and classify
"""

import argparse
import asyncio
import json
import logging
import signal
import sys

from .config import Config, load_config, validate_config
from .monitoring.health import HealthServer
from .reputation import PhishingController

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


class OriginGuardService:
    """Runs the reputation controller alongside the health server."""

    def __init__(self, config: Config):
        self.config = config
        self.controller = PhishingController.from_config(config)
        self.health_server = HealthServer(
            host=config.health_host,
            port=config.health_port,
            status_provider=self.controller.status,
            enabled=config.health_enabled,
        )
        self._stopped = asyncio.Event()

    async def start(self):
        """Start all components and wait until stop() is called."""
        logger.info("Starting OriginGuard (%d feeds)...", len(self.config.feeds))
        await self.controller.start()
        await self.health_server.start()
        logger.info("OriginGuard running")
        await self._stopped.wait()

    async def stop(self):
        """Stop all components (idempotent)."""
        if self._stopped.is_set():
            return
        logger.info("Stopping OriginGuard...")
        await self.controller.stop()
        await self.health_server.stop()
        self._stopped.set()


async def run_service(config: Config):
    """Run the OriginGuard service."""
    service = OriginGuardService(config)

    # Handle shutdown signals
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, lambda: asyncio.create_task(service.stop()))

    try:
        await service.start()
    except KeyboardInterrupt:
        pass
    finally:
        await service.stop()


async def run_check(config: Config, origins: list[str]) -> int:
    """Refresh once, print one JSON line per origin; exit code 2 if any is phishing."""
    controller = PhishingController.from_config(config)
    await controller.update_phishing_lists()

    flagged = False
    for origin in origins:
        result = controller.check(origin)
        flagged = flagged or result.phishing
        print(json.dumps({"origin": origin, **result.to_dict()}))
    return 2 if flagged else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="originguard", description="Origin reputation service")
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("serve", help="Run the refresh loop and health server (default)")
    check = sub.add_parser("check", help="Refresh once and classify origins")
    check.add_argument("origins", nargs="+", help="Origins to classify")
    return parser


def main(argv: list[str] | None = None):
    """Entry point."""
    args = build_parser().parse_args(argv)
    config = load_config()
    configure_logging(config.log_level)

    validation_errors = validate_config(config)
    if validation_errors:
        for err in validation_errors:
            logger.error(err)
        sys.exit(1)

    if args.command == "check":
        sys.exit(asyncio.run(run_check(config, args.origins)))
    asyncio.run(run_service(config))


if __name__ == "__main__":
    main()
