"""
MongoDB Beanie models for the remaining soft-deletable record types.

The service only purges these collections; their content is written by
other parts of the product.
"""

from typing import Any, Dict, Optional

from pydantic import Field

from .base_m import SoftDeletableDocument


class MedicationMongo(SoftDeletableDocument):
    name: str = Field(..., description="Medication name")
    dose: Optional[str] = None
    frequency: Optional[str] = None
    active: bool = True

    class Settings:
        name = "medications"
        indexes = [[("deleted_at", 1)], "owner_user_id"]


class HealthLogMongo(SoftDeletableDocument):
    log_type: str = Field(..., description="Kind of reading, e.g. blood_pressure")
    value: Dict[str, Any] = Field(default_factory=dict)

    class Settings:
        name = "health_logs"
        indexes = [[("deleted_at", 1)], "owner_user_id"]


class MedicationReminderMongo(SoftDeletableDocument):
    medication_id: str = Field(..., description="Medication this reminder belongs to")
    times: list = Field(default_factory=list, description="HH:MM reminder times")
    enabled: bool = True

    class Settings:
        name = "medication_reminders"
        indexes = [[("deleted_at", 1)], "owner_user_id"]


class CareTaskMongo(SoftDeletableDocument):
    title: str = Field(..., description="Task title")
    patient_user_id: Optional[str] = None
    status: str = "open"

    class Settings:
        name = "care_tasks"
        indexes = [[("deleted_at", 1)], "owner_user_id"]
