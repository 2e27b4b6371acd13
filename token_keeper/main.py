"""
Keeper process entrypoint.

Runs the credential refresh jobs until SIGINT/SIGTERM:

    python -m token_keeper.main
"""

from __future__ import annotations

import asyncio
import signal

from prometheus_client import start_http_server

from token_keeper import __version__
from token_keeper.config.settings import Config, config
from token_keeper.core.logger import logger, setup_logging
from token_keeper.services.context import build_context
from token_keeper.services.credentials.refresher import CredentialRefresher
from token_keeper.services.system.scheduler import TaskScheduler


async def run(settings: Config) -> None:
    logger.info("=" * 60)
    logger.info("token-keeper v{}", __version__)
    logger.info("=" * 60)

    settings.log_startup_warnings()

    if settings.metrics_port:
        start_http_server(settings.metrics_port)
        logger.info("Metrics endpoint listening on :{}", settings.metrics_port)

    ctx = await build_context(settings)
    scheduler = TaskScheduler(timezone=settings.app_timezone)
    refresher = CredentialRefresher(ctx, scheduler)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops have no signal handlers; Ctrl+C still raises
            pass

    try:
        # Fill a cold cache right away instead of waiting one interval
        await refresher.run_once()
        refresher.start()
        scheduler.start()
        await stop_event.wait()
        logger.info("Shutdown signal received")
    finally:
        refresher.stop()
        scheduler.stop()
        await ctx.aclose()
        logger.info("token-keeper stopped")


def main() -> None:
    setup_logging(config.log_level, json=config.log_json)
    asyncio.run(run(config))


if __name__ == "__main__":
    main()
