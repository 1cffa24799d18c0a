"""Purge Soft-Deleted use case: hard-delete records past the retention window.

Purging is advisory cleanup. Collections are processed independently; a
failure in one is logged and reported but never rolls back or blocks the
others. Undeleted records stay queryable and are picked up by the next run.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from visitflow.application.ports.repositories.soft_delete_repo import SoftDeletableCollection
from visitflow.domain.value_objects.timestamps import days_to_millis, now_millis

logger = logging.getLogger("visitflow")

DEFAULT_RETENTION_DAYS = 90
DEFAULT_PAGE_SIZE = 200
MAX_BATCH_SIZE = 500


@dataclass
class PurgeRequest:
    retention_days: int = DEFAULT_RETENTION_DAYS
    page_size: int = DEFAULT_PAGE_SIZE
    collections: Optional[Sequence[str]] = None

    def __post_init__(self) -> None:
        if self.retention_days < 0:
            raise ValueError("retention_days must not be negative")
        if self.page_size <= 0:
            raise ValueError("page_size must be a positive integer")


@dataclass
class CollectionPurgeResult:
    collection: str
    scanned: int = 0
    purged: int = 0
    has_more: bool = False
    error: Optional[str] = None


@dataclass
class PurgeResult:
    total_scanned: int = 0
    total_purged: int = 0
    has_more: bool = False
    cutoff: int = 0
    collections: List[CollectionPurgeResult] = field(default_factory=list)

    @property
    def failed_collections(self) -> List[str]:
        return [result.collection for result in self.collections if result.error]


def chunked(items: Sequence[str], size: int) -> List[Sequence[str]]:
    return [items[start:start + size] for start in range(0, len(items), size)]


class PurgeSoftDeletedUseCase:
    """Find soft-deleted records older than the cutoff and delete them in bounded batches."""

    def __init__(
        self,
        collections: Sequence[SoftDeletableCollection],
        batch_max: int = MAX_BATCH_SIZE,
        clock: Callable[[], int] = now_millis,
    ):
        self._collections: Dict[str, SoftDeletableCollection] = {c.name: c for c in collections}
        self._batch_max = batch_max
        self._clock = clock

    @property
    def collection_names(self) -> List[str]:
        return list(self._collections)

    def _select(self, names: Optional[Sequence[str]]) -> List[SoftDeletableCollection]:
        if not names:
            return list(self._collections.values())
        unknown = [name for name in names if name not in self._collections]
        if unknown:
            raise ValueError(f"Unknown soft-deletable collections: {', '.join(unknown)}")
        return [self._collections[name] for name in names]

    async def execute(self, request: PurgeRequest) -> PurgeResult:
        selected = self._select(request.collections)
        cutoff = self._clock() - days_to_millis(request.retention_days)
        result = PurgeResult(cutoff=cutoff)

        for collection in selected:
            collection_result = await self._purge_collection(collection, cutoff, request.page_size)
            result.collections.append(collection_result)
            result.total_scanned += collection_result.scanned
            result.total_purged += collection_result.purged
            result.has_more = result.has_more or collection_result.has_more

        logger.info(
            "[Purge] Scanned %d, purged %d soft-deleted records (has_more=%s, failed=%s)",
            result.total_scanned,
            result.total_purged,
            result.has_more,
            result.failed_collections,
        )
        return result

    async def _purge_collection(
        self, collection: SoftDeletableCollection, cutoff: int, page_size: int
    ) -> CollectionPurgeResult:
        outcome = CollectionPurgeResult(collection=collection.name)
        try:
            record_ids = await collection.list_expired_ids(cutoff, page_size)
        except Exception as e:
            logger.error("[Purge] Failed to query %s: %s", collection.name, e, exc_info=True)
            outcome.error = str(e)
            return outcome

        outcome.scanned = len(record_ids)
        outcome.has_more = len(record_ids) >= page_size

        # Each chunk is awaited before the next; a failed chunk stops this collection only
        for chunk in chunked(record_ids, self._batch_max):
            try:
                outcome.purged += await collection.delete_batch(chunk)
            except Exception as e:
                logger.error(
                    "[Purge] Batch delete failed for %s (%d ids): %s",
                    collection.name,
                    len(chunk),
                    e,
                    exc_info=True,
                )
                outcome.error = str(e)
                break

        if outcome.purged:
            logger.info("[Purge] Purged %d records from %s", outcome.purged, collection.name)
        return outcome
