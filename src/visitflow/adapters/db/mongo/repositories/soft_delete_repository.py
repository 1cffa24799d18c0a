"""
MongoDB implementation of the SoftDeletableCollection capability.
"""

from typing import Any, Dict, List, Sequence, Type

from bson import ObjectId

from visitflow.application.ports.repositories.soft_delete_repo import SoftDeletableCollection

from ..models.action_m import ActionMongo
from ..models.base_m import SoftDeletableDocument
from ..models.records_m import (
    CareTaskMongo,
    HealthLogMongo,
    MedicationMongo,
    MedicationReminderMongo,
)
from ..models.visit_m import VisitMongo


def expired_filter(cutoff_millis: int) -> Dict[str, Any]:
    """Soft-deleted at or before the cutoff; live records have a null deleted_at."""
    return {"deleted_at": {"$ne": None, "$lte": cutoff_millis}}


class MongoSoftDeletableCollection(SoftDeletableCollection):
    """Expired-record lookup and batch delete for one Beanie document type."""

    def __init__(self, document_model: Type[SoftDeletableDocument], name: str):
        self._document_model = document_model
        self.name = name

    async def list_expired_ids(self, cutoff_millis: int, limit: int) -> List[str]:
        collection = self._document_model.get_motor_collection()
        cursor = (
            collection.find(
                expired_filter(cutoff_millis),
                projection={"_id": 1},
            )
            .sort("deleted_at", 1)
            .limit(limit)
        )
        return [str(doc["_id"]) async for doc in cursor]

    async def delete_batch(self, record_ids: Sequence[str]) -> int:
        if not record_ids:
            return 0
        object_ids = [ObjectId(record_id) for record_id in record_ids]
        result = await self._document_model.get_motor_collection().delete_many(
            {"_id": {"$in": object_ids}}
        )
        return result.deleted_count


def default_soft_deletable_collections() -> List[MongoSoftDeletableCollection]:
    """Every collection that supports soft delete, in purge order."""
    return [
        MongoSoftDeletableCollection(ActionMongo, "actions"),
        MongoSoftDeletableCollection(VisitMongo, "visits"),
        MongoSoftDeletableCollection(MedicationMongo, "medications"),
        MongoSoftDeletableCollection(HealthLogMongo, "health_logs"),
        MongoSoftDeletableCollection(MedicationReminderMongo, "medication_reminders"),
        MongoSoftDeletableCollection(CareTaskMongo, "care_tasks"),
    ]
