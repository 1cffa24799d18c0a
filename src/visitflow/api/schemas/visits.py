"""
Visit request/response schemas.

Timestamps are stored as epoch milliseconds and rendered as ISO-8601 here.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from visitflow.domain.entities.visit import Visit
from visitflow.domain.value_objects.timestamps import to_iso


class CreateVisitRequest(BaseModel):
    storage_path: Optional[str] = Field(None, description="Blob path of the uploaded audio")
    notes: Optional[str] = Field(None, max_length=5000, description="Free-text notes")

    @field_validator("storage_path")
    @classmethod
    def strip_storage_path(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class VisitResponse(BaseModel):
    visit_id: str
    processing_status: str = Field(..., description="Normalized processing status")
    status: Optional[str] = None
    storage_path: Optional[str] = None
    notes: Optional[str] = None
    transcription_id: Optional[str] = None
    transcription_status: Optional[str] = None
    transcript: Optional[str] = None
    summary: Optional[str] = None
    diagnoses: List[str] = Field(default_factory=list)
    medications: Dict[str, List[Any]] = Field(default_factory=dict)
    imaging: List[str] = Field(default_factory=list)
    next_steps: List[str] = Field(default_factory=list)
    processing_error: Optional[str] = None
    retry_count: int = 0
    last_retry_at: Optional[str] = None
    processed_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    deleted_at: Optional[str] = None

    @classmethod
    def from_entity(cls, visit: Visit) -> "VisitResponse":
        return cls(
            visit_id=visit.visit_id,
            processing_status=visit.normalized_status.value,
            status=getattr(visit.status, "value", visit.status),
            storage_path=visit.storage_path,
            notes=visit.notes,
            transcription_id=visit.transcription_id,
            transcription_status=visit.transcription_status,
            transcript=visit.transcript or visit.transcript_text,
            summary=visit.summary,
            diagnoses=visit.diagnoses,
            medications=visit.medications,
            imaging=visit.imaging,
            next_steps=visit.next_steps,
            processing_error=visit.processing_error,
            retry_count=visit.retry_count,
            last_retry_at=to_iso(visit.last_retry_at),
            processed_at=to_iso(visit.processed_at),
            created_at=to_iso(visit.created_at),
            updated_at=to_iso(visit.updated_at),
            deleted_at=to_iso(visit.deleted_at),
        )


class RetryVisitResult(BaseModel):
    visit: VisitResponse
    resume_point: str = Field(..., description="summarize or retranscribe")


class RestoreVisitResult(BaseModel):
    visit_id: str
    restored_actions: int
