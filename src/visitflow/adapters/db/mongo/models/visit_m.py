"""
MongoDB Beanie model for visits.
"""

from typing import Any, Dict, List, Optional

from pydantic import Field

from .base_m import SoftDeletableDocument


class VisitMongo(SoftDeletableDocument):
    """MongoDB model for visit."""

    visit_id: str = Field(..., description="Visit ID")
    processing_status: Optional[str] = Field(default="pending")
    status: Optional[str] = Field(default="pending")  # pending, processing, completed, failed
    storage_path: Optional[str] = Field(default=None, description="Audio blob path")
    notes: Optional[str] = None

    # Transcription
    transcription_id: Optional[str] = None
    transcription_status: Optional[str] = None
    transcription_submitted_at: Optional[int] = None
    transcript: Optional[str] = None
    transcript_text: Optional[str] = None

    # Summarization
    summary: Optional[str] = None
    diagnoses: List[str] = Field(default_factory=list)
    medications: Dict[str, List[Any]] = Field(
        default_factory=lambda: {"started": [], "stopped": [], "changed": []}
    )
    imaging: List[str] = Field(default_factory=list)
    next_steps: List[str] = Field(default_factory=list)
    processed_at: Optional[int] = None
    processing_error: Optional[str] = None

    # Retry bookkeeping
    retry_count: int = 0
    last_retry_at: Optional[int] = None

    class Settings:
        name = "visits"
        indexes = [
            "visit_id",
            "transcription_id",
            [("owner_user_id", 1), ("deleted_at", 1), ("created_at", -1), ("visit_id", -1)],
            [("processing_status", 1), ("updated_at", 1)],
            [("deleted_at", 1)],
        ]
