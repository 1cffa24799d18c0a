"""
Operator maintenance endpoints.
"""

import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Header, Request

from ...application.use_cases.purge_soft_deleted import PurgeRequest, PurgeSoftDeletedUseCase
from ...domain.value_objects.timestamps import to_iso
from ..deps import SettingsDep, SoftDeletableCollectionsDep
from ..errors import ServiceUnavailableError, UnauthorizedError, ValidationError
from ..schemas.common import ApiResponse
from ..schemas.maintenance import (
    CollectionPurgeSummary,
    PurgeSoftDeletedRequest,
    PurgeSoftDeletedResponse,
)
from ..utils.responses import ok

router = APIRouter(prefix="/maintenance", tags=["maintenance"])
logger = logging.getLogger("visitflow")


@router.post("/purge-soft-deleted", response_model=ApiResponse[PurgeSoftDeletedResponse])
async def purge_soft_deleted(
    request: Request,
    collections: SoftDeletableCollectionsDep,
    settings: SettingsDep,
    payload: Optional[PurgeSoftDeletedRequest] = None,
    x_maintenance_key: Optional[str] = Header(None),
):
    """
    Hard-delete records soft-deleted longer than the retention window.

    One call purges at most one page per collection; call again while
    ``has_more`` is true.
    """
    expected_key = settings.retention.maintenance_key
    if not expected_key:
        raise ServiceUnavailableError("Manual purge is disabled; set RETENTION_MAINTENANCE_KEY")
    if not hmac.compare_digest(expected_key, x_maintenance_key or ""):
        raise UnauthorizedError("Invalid maintenance key")

    payload = payload or PurgeSoftDeletedRequest()
    try:
        purge_request = PurgeRequest(
            retention_days=payload.retention_days
            if payload.retention_days is not None
            else settings.retention.days,
            page_size=payload.page_size or settings.retention.page_size,
            collections=payload.collections,
        )
        use_case = PurgeSoftDeletedUseCase(collections, batch_max=settings.retention.batch_max)
        result = await use_case.execute(purge_request)
    except ValueError as e:
        raise ValidationError(str(e))

    logger.info(
        "[Purge] Manual purge removed %d of %d scanned records", result.total_purged, result.total_scanned
    )
    return ok(
        request,
        data=PurgeSoftDeletedResponse(
            total_scanned=result.total_scanned,
            total_purged=result.total_purged,
            has_more=result.has_more,
            cutoff=to_iso(result.cutoff),
            failed_collections=result.failed_collections,
            collections=[
                CollectionPurgeSummary(
                    collection=c.collection,
                    scanned=c.scanned,
                    purged=c.purged,
                    has_more=c.has_more,
                    error=c.error,
                )
                for c in result.collections
            ],
        ),
        message="Purge completed",
    )
