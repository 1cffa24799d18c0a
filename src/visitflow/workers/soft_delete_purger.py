"""
Scheduled retention purge of soft-deleted records.
"""

import asyncio
from typing import Optional, Sequence

from visitflow.adapters.db.mongo.repositories.soft_delete_repository import (
    default_soft_deletable_collections,
)
from visitflow.application.ports.repositories.soft_delete_repo import SoftDeletableCollection
from visitflow.application.use_cases.purge_soft_deleted import (
    PurgeRequest,
    PurgeResult,
    PurgeSoftDeletedUseCase,
)
from visitflow.core.config import RetentionSettings, Settings, get_settings
from visitflow.core.structured_logger import get_logger

logger = get_logger("visitflow.workers.purger")


async def purge_until_drained(
    use_case: PurgeSoftDeletedUseCase, retention: RetentionSettings
) -> PurgeResult:
    """Purge page after page while more candidates remain, up to the per-run cap.

    Returns the totals of the run; ``has_more`` reflects the last page.
    """
    run_total = PurgeResult()
    request = PurgeRequest(retention_days=retention.days, page_size=retention.page_size)

    for page in range(1, retention.max_pages_per_run + 1):
        result = await use_case.execute(request)
        run_total.total_scanned += result.total_scanned
        run_total.total_purged += result.total_purged
        run_total.cutoff = result.cutoff
        run_total.has_more = result.has_more
        run_total.collections.extend(result.collections)

        # A page that deletes nothing would be re-read forever
        if not result.has_more or result.total_purged == 0:
            break
    else:
        logger.warning(
            "[Purge] Stopped after max pages; more records remain",
            max_pages_per_run=retention.max_pages_per_run,
        )

    logger.info(
        "[Purge] Scheduled run finished",
        pages=page,
        total_scanned=run_total.total_scanned,
        total_purged=run_total.total_purged,
        has_more=run_total.has_more,
        failed_collections=run_total.failed_collections,
    )
    return run_total


async def run_purger_forever(
    settings: Optional[Settings] = None,
    collections: Optional[Sequence[SoftDeletableCollection]] = None,
) -> None:
    """Run the purge on an interval until cancelled."""
    settings = settings or get_settings()
    if not settings.retention.enabled:
        logger.info("[Purge] Scheduled purge disabled via RETENTION_ENABLED")
        return

    use_case = PurgeSoftDeletedUseCase(
        collections if collections is not None else default_soft_deletable_collections(),
        batch_max=settings.retention.batch_max,
    )
    logger.info(
        "[Purge] Starting scheduled purge",
        interval_seconds=settings.retention.interval_seconds,
        retention_days=settings.retention.days,
        collections=use_case.collection_names,
    )

    while True:
        try:
            await purge_until_drained(use_case, settings.retention)
        except Exception as e:  # noqa: BLE001
            logger.error(f"[Purge] Scheduled run failed: {e}", exc_info=True)
        await asyncio.sleep(settings.retention.interval_seconds)
