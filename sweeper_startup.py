"""
Standalone entry point for the stale visit sweeper.

    python sweeper_startup.py
"""

import asyncio
import logging

from visitflow.core.config import get_settings
from visitflow.workers.runner import run_worker_until_signalled
from visitflow.workers.stale_visit_sweeper import run_stale_sweeper_forever

logger = logging.getLogger("visitflow")


async def main() -> None:
    settings = get_settings()
    if not settings.sweeper.enabled:
        logger.info("Stale visit sweeper is disabled. Set STALE_SWEEPER_ENABLED=true to enable.")
        return

    logger.info(
        "Sweeper config: interval=%ss, transcribing_timeout=%smin, summarizing_timeout=%smin",
        settings.sweeper.interval_seconds,
        settings.sweeper.transcribing_timeout_minutes,
        settings.sweeper.summarizing_timeout_minutes,
    )
    await run_worker_until_signalled("stale sweeper", settings, run_stale_sweeper_forever)


if __name__ == "__main__":
    asyncio.run(main())
