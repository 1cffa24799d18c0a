"""Visit record use cases: create, read, soft delete and restore."""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

from visitflow.application.ports.repositories.action_repo import ActionRepository
from visitflow.application.ports.repositories.visit_repo import VisitRepository
from visitflow.domain.entities.visit import Visit
from visitflow.domain.enums.processing import ProcessingStatus, VisitStatus
from visitflow.domain.errors import Failure
from visitflow.domain.value_objects.timestamps import now_millis
from visitflow.domain.value_objects.visit_id import VisitId

logger = logging.getLogger("visitflow")


@dataclass
class CreateVisitRequest:
    owner_user_id: str
    storage_path: Optional[str] = None
    notes: Optional[str] = None


class CreateVisitUseCase:
    """Create a pending visit for the caller."""

    def __init__(self, visit_repository: VisitRepository, clock: Callable[[], int] = now_millis):
        self._visit_repository = visit_repository
        self._clock = clock

    async def execute(self, request: CreateVisitRequest) -> Visit:
        now = self._clock()
        visit = Visit(
            visit_id=VisitId.generate().value,
            owner_user_id=request.owner_user_id,
            processing_status=ProcessingStatus.PENDING,
            status=VisitStatus.PENDING,
            storage_path=request.storage_path,
            notes=request.notes,
            retry_count=0,
            created_at=now,
            updated_at=now,
        )
        saved = await self._visit_repository.create(visit)
        logger.info("[Visits] Created visit %s for user %s", saved.visit_id, saved.owner_user_id)
        return saved


async def load_owned_visit(
    visit_repository: VisitRepository,
    visit_id: str,
    caller_id: str,
    allow_deleted: bool = False,
) -> Union[Visit, Failure]:
    """Load a visit the caller owns; deleted visits count as missing unless allowed."""
    visit = await visit_repository.find_by_id(visit_id)
    if visit is None or (visit.is_deleted and not allow_deleted):
        return Failure.visit_not_found(visit_id)
    if not visit.is_owned_by(caller_id):
        return Failure.forbidden(visit_id)
    return visit


class GetVisitUseCase:

    def __init__(self, visit_repository: VisitRepository):
        self._visit_repository = visit_repository

    async def execute(self, visit_id: str, caller_id: str) -> Union[Visit, Failure]:
        return await load_owned_visit(self._visit_repository, visit_id, caller_id)


@dataclass
class SoftDeleteResponse:
    visit_id: str
    affected_actions: int


class DeleteVisitUseCase:
    """Soft-delete a visit and its action items. Processing status is left untouched."""

    def __init__(
        self,
        visit_repository: VisitRepository,
        action_repository: ActionRepository,
        clock: Callable[[], int] = now_millis,
    ):
        self._visit_repository = visit_repository
        self._action_repository = action_repository
        self._clock = clock

    async def execute(self, visit_id: str, caller_id: str) -> Union[SoftDeleteResponse, Failure]:
        visit = await load_owned_visit(self._visit_repository, visit_id, caller_id)
        if isinstance(visit, Failure):
            return visit

        now = self._clock()
        await self._visit_repository.update_fields(
            visit_id,
            set_fields={"deleted_at": now, "deleted_by": caller_id, "updated_at": now},
        )
        affected = await self._action_repository.set_deleted_for_visit(
            caller_id, visit_id, deleted_at=now, deleted_by=caller_id
        )
        logger.info(
            "[Visits] Soft-deleted visit %s and %d actions for user %s", visit_id, affected, caller_id
        )
        return SoftDeleteResponse(visit_id, affected)


class RestoreVisitUseCase:
    """Undo a soft delete before the retention purge removes the record."""

    def __init__(
        self,
        visit_repository: VisitRepository,
        action_repository: ActionRepository,
        clock: Callable[[], int] = now_millis,
    ):
        self._visit_repository = visit_repository
        self._action_repository = action_repository
        self._clock = clock

    async def execute(self, visit_id: str, caller_id: str) -> Union[SoftDeleteResponse, Failure]:
        visit = await load_owned_visit(self._visit_repository, visit_id, caller_id, allow_deleted=True)
        if isinstance(visit, Failure):
            return visit
        if not visit.is_deleted:
            return Failure.not_deleted(visit_id)

        await self._visit_repository.update_fields(
            visit_id,
            set_fields={"deleted_at": None, "deleted_by": None, "updated_at": self._clock()},
        )
        restored = await self._action_repository.set_deleted_for_visit(
            caller_id, visit_id, deleted_at=None, deleted_by=None
        )
        logger.info("[Visits] Restored visit %s and %d actions", visit_id, restored)
        return SoftDeleteResponse(visit_id, restored)
