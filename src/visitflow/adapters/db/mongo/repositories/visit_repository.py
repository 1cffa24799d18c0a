"""
MongoDB implementation of VisitRepository.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from visitflow.application.pagination import CursorPosition, SortDirection
from visitflow.application.ports.repositories.visit_repo import VisitRepository
from visitflow.domain.entities.visit import Visit
from visitflow.domain.enums.processing import ProcessingStatus

from ..models.visit_m import VisitMongo
from .cursor_query import active_owner_filter, after_cursor_filter, sort_spec

logger = logging.getLogger("visitflow")


class MongoVisitRepository(VisitRepository):
    """MongoDB implementation of VisitRepository."""

    async def create(self, visit: Visit) -> Visit:
        visit_mongo = self._domain_to_mongo(visit)
        await visit_mongo.insert()
        logger.info(f"Visit {visit.visit_id} saved to database with ID: {visit_mongo.id}")
        return self._mongo_to_domain(visit_mongo)

    async def find_by_id(self, visit_id: str) -> Optional[Visit]:
        visit_mongo = await VisitMongo.find_one(VisitMongo.visit_id == visit_id)
        if not visit_mongo:
            return None
        return self._mongo_to_domain(visit_mongo)

    async def find_transcribing_by_transcription_id(self, transcription_id: str) -> Optional[Visit]:
        visit_mongo = await VisitMongo.find_one(
            {
                "transcription_id": transcription_id,
                "processing_status": ProcessingStatus.TRANSCRIBING.value,
            }
        )
        if not visit_mongo:
            return None
        return self._mongo_to_domain(visit_mongo)

    async def update_fields(
        self,
        visit_id: str,
        set_fields: Mapping[str, Any],
        unset_fields: Sequence[str] = (),
        inc_fields: Optional[Mapping[str, int]] = None,
        expected: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        query = guarded_visit_filter(visit_id, expected)
        update = update_document(set_fields, unset_fields, inc_fields)
        if not update:
            return False

        collection = VisitMongo.get_motor_collection()
        result = await collection.update_one(query, update)
        if result.matched_count == 0:
            logger.debug(f"Conditional update skipped for visit {visit_id} (expected={expected})")
        return result.matched_count > 0

    async def resolve_cursor(self, owner_user_id: str, cursor: str) -> Optional[CursorPosition]:
        query = active_owner_filter(owner_user_id)
        query["visit_id"] = cursor
        visit_mongo = await VisitMongo.find_one(query)
        if not visit_mongo:
            return None
        return CursorPosition(record_id=visit_mongo.visit_id, created_at=visit_mongo.created_at)

    async def list_for_owner(
        self,
        owner_user_id: str,
        limit: int,
        sort: SortDirection = SortDirection.DESC,
        after: Optional[CursorPosition] = None,
    ) -> List[Visit]:
        query = active_owner_filter(owner_user_id)
        query.update(after_cursor_filter("visit_id", after, sort))
        visits_mongo = await VisitMongo.find(query).sort(sort_spec("visit_id", sort)).limit(limit).to_list()
        return [self._mongo_to_domain(v) for v in visits_mongo]

    async def list_all_for_owner(
        self, owner_user_id: str, sort: SortDirection = SortDirection.DESC
    ) -> List[Visit]:
        visits_mongo = await VisitMongo.find(active_owner_filter(owner_user_id)).sort(
            sort_spec("visit_id", sort)
        ).to_list()
        return [self._mongo_to_domain(v) for v in visits_mongo]

    async def find_stale(self, processing_status: str, updated_before: int, limit: int) -> List[Visit]:
        visits_mongo = await VisitMongo.find(
            {
                "processing_status": processing_status,
                "updated_at": {"$lt": updated_before},
                "deleted_at": None,
            }
        ).sort([("updated_at", 1)]).limit(limit).to_list()
        return [self._mongo_to_domain(v) for v in visits_mongo]

    def _domain_to_mongo(self, visit: Visit) -> VisitMongo:
        """Convert domain entity to MongoDB model."""
        return VisitMongo(
            visit_id=visit.visit_id,
            owner_user_id=visit.owner_user_id,
            processing_status=_enum_value(visit.processing_status),
            status=_enum_value(visit.status),
            storage_path=visit.storage_path,
            notes=visit.notes,
            transcription_id=visit.transcription_id,
            transcription_status=visit.transcription_status,
            transcription_submitted_at=visit.transcription_submitted_at,
            transcript=visit.transcript,
            transcript_text=visit.transcript_text,
            summary=visit.summary,
            diagnoses=list(visit.diagnoses),
            medications=dict(visit.medications),
            imaging=list(visit.imaging),
            next_steps=list(visit.next_steps),
            processed_at=visit.processed_at,
            processing_error=visit.processing_error,
            retry_count=visit.retry_count,
            last_retry_at=visit.last_retry_at,
            deleted_at=visit.deleted_at,
            deleted_by=visit.deleted_by,
            created_at=visit.created_at,
            updated_at=visit.updated_at,
        )

    def _mongo_to_domain(self, visit_mongo: VisitMongo) -> Visit:
        """Convert MongoDB model to domain entity."""
        return Visit(
            visit_id=visit_mongo.visit_id,
            owner_user_id=visit_mongo.owner_user_id,
            processing_status=visit_mongo.processing_status,
            status=visit_mongo.status,
            storage_path=visit_mongo.storage_path,
            notes=visit_mongo.notes,
            transcription_id=visit_mongo.transcription_id,
            transcription_status=visit_mongo.transcription_status,
            transcription_submitted_at=visit_mongo.transcription_submitted_at,
            transcript=visit_mongo.transcript,
            transcript_text=visit_mongo.transcript_text,
            summary=visit_mongo.summary,
            diagnoses=list(visit_mongo.diagnoses or []),
            medications=dict(visit_mongo.medications or {}),
            imaging=list(visit_mongo.imaging or []),
            next_steps=list(visit_mongo.next_steps or []),
            processed_at=visit_mongo.processed_at,
            processing_error=visit_mongo.processing_error,
            retry_count=visit_mongo.retry_count or 0,
            last_retry_at=visit_mongo.last_retry_at,
            deleted_at=visit_mongo.deleted_at,
            deleted_by=visit_mongo.deleted_by,
            created_at=visit_mongo.created_at,
            updated_at=visit_mongo.updated_at,
        )


def _enum_value(value):
    return getattr(value, "value", value)


def guarded_visit_filter(visit_id: str, expected: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Match the visit only while every expected field still holds its value."""
    # A None expectation matches both a null and a missing field
    query: Dict[str, Any] = {"visit_id": visit_id}
    query.update(expected or {})
    return query


def update_document(
    set_fields: Mapping[str, Any],
    unset_fields: Sequence[str] = (),
    inc_fields: Optional[Mapping[str, int]] = None,
) -> Dict[str, Any]:
    update: Dict[str, Any] = {}
    if set_fields:
        update["$set"] = dict(set_fields)
    if unset_fields:
        update["$unset"] = {name: "" for name in unset_fields}
    if inc_fields:
        update["$inc"] = dict(inc_fields)
    return update
