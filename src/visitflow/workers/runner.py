"""
Shared entry-point plumbing for standalone worker processes.
"""

import asyncio
import logging
import signal
from typing import Awaitable, Callable

from visitflow.adapters.db.mongo.database import init_database
from visitflow.core.config import Settings
from visitflow.core.structured_logger import configure_logging

logger = logging.getLogger("visitflow")


async def run_worker_until_signalled(
    name: str, settings: Settings, loop_factory: Callable[[Settings], Awaitable[None]]
) -> None:
    """Connect to MongoDB, run ``loop_factory(settings)`` and stop on SIGTERM/SIGINT."""
    configure_logging(settings.logging.level, settings.logging.format)
    client = await init_database(settings.database)

    stop_event = asyncio.Event()

    def _signal_handler() -> None:
        logger.info("Shutdown signal received for %s, stopping gracefully", name)
        stop_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _signal_handler)

    try:
        task = asyncio.create_task(loop_factory(settings))
        stop_waiter = asyncio.create_task(stop_event.wait())
        await asyncio.wait({task, stop_waiter}, return_when=asyncio.FIRST_COMPLETED)
        for pending in (task, stop_waiter):
            pending.cancel()
        try:
            await task
        except asyncio.CancelledError:
            logger.info("%s task cancelled", name)
    finally:
        client.close()
        logger.info("%s MongoDB client closed", name)
