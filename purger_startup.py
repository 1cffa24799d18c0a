"""
Standalone entry point for the scheduled soft-delete purge.

    python purger_startup.py
"""

import asyncio
import logging

from visitflow.core.config import get_settings
from visitflow.workers.runner import run_worker_until_signalled
from visitflow.workers.soft_delete_purger import run_purger_forever

logger = logging.getLogger("visitflow")


async def main() -> None:
    settings = get_settings()
    if not settings.retention.enabled:
        logger.info("Soft-delete purger is disabled. Set RETENTION_ENABLED=true to enable.")
        return

    logger.info(
        "Purger config: retention=%sd, interval=%ss, page_size=%s, max_pages=%s",
        settings.retention.days,
        settings.retention.interval_seconds,
        settings.retention.page_size,
        settings.retention.max_pages_per_run,
    )
    await run_worker_until_signalled("soft-delete purger", settings, run_purger_forever)


if __name__ == "__main__":
    asyncio.run(main())
