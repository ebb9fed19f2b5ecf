# src/mstodo_fetcher/cli/main.py

"""
CLI entrypoint.

Initializes logging, loads the accounts file, then polls every account until
SIGINT/SIGTERM. Fetched tasks and fetch errors are written to stdout as JSON lines.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
import sys

from ..cli.bootstrap import create_coordinator, create_http_client
from ..config import Settings, get_settings, load_accounts
from ..logging_setup import setup_logging
from ..todo.errors import ConfigError

logger = logging.getLogger(__name__)


async def run(settings: Settings) -> int:
    try:
        accounts = load_accounts(settings.accounts_file, default_refresh_seconds=settings.default_refresh_seconds)
    except ConfigError as exc:
        logger.error("Cannot load accounts: %s", exc)
        return 2

    if not accounts:
        logger.error("No accounts configured in %s", settings.accounts_file)
        return 2

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        # add_signal_handler is not available on every platform (e.g. Windows).
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(signum, stop.set)

    async with create_http_client(settings) as http:
        coordinator = create_coordinator(http=http, settings=settings)
        for account in accounts:
            coordinator.start_polling(account.id, account)
        logger.info("Polling %d account(s). Press Ctrl+C to stop.", len(accounts))

        try:
            await stop.wait()
        finally:
            logger.info("Shutting down...")
            await coordinator.stop_all()
            # the shared client closes when this block exits
            await coordinator.wait_in_flight(timeout=settings.http_timeout_seconds)

    return 0


def main() -> None:
    settings = get_settings()

    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    # keep noisy libs readable
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger.info("Starting %s...", settings.app_name)
    try:
        code = asyncio.run(run(settings))
    except KeyboardInterrupt:
        code = 0
    logger.info("Bye.")
    sys.exit(code)


if __name__ == "__main__":
    main()
