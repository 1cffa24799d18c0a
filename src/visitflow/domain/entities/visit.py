"""Visit domain entity representing one audio-derived medical encounter."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from ..enums.processing import ProcessingStatus, VisitStatus
from ..status import normalize_visit_status
from ..value_objects.timestamps import now_millis


def _empty_medications() -> Dict[str, List[Any]]:
    return {"started": [], "stopped": [], "changed": []}


@dataclass
class VisitSummary:
    """Output of the summarization provider for one transcript."""

    summary: str
    diagnoses: List[str] = field(default_factory=list)
    medications: Dict[str, List[Any]] = field(default_factory=_empty_medications)
    imaging: List[str] = field(default_factory=list)
    next_steps: List[str] = field(default_factory=list)


@dataclass
class Visit:
    """Visit record and its processing lifecycle.

    ``processing_status`` keeps whatever the store holds (it may be a raw
    string from older records); use ``normalized_status`` for decisions.
    """

    visit_id: str
    owner_user_id: str
    processing_status: Union[ProcessingStatus, str, None] = ProcessingStatus.PENDING
    status: Union[VisitStatus, str, None] = VisitStatus.PENDING
    storage_path: Optional[str] = None
    notes: Optional[str] = None

    # Transcription
    transcription_id: Optional[str] = None
    transcription_status: Optional[str] = None
    transcription_submitted_at: Optional[int] = None
    transcript: Optional[str] = None
    transcript_text: Optional[str] = None

    # Summarization
    summary: Optional[str] = None
    diagnoses: List[str] = field(default_factory=list)
    medications: Dict[str, List[Any]] = field(default_factory=_empty_medications)
    imaging: List[str] = field(default_factory=list)
    next_steps: List[str] = field(default_factory=list)
    processed_at: Optional[int] = None
    processing_error: Optional[str] = None

    # Retry bookkeeping
    retry_count: int = 0
    last_retry_at: Optional[int] = None

    # Soft delete
    deleted_at: Optional[int] = None
    deleted_by: Optional[str] = None

    created_at: int = field(default_factory=now_millis)
    updated_at: int = field(default_factory=now_millis)

    @property
    def normalized_status(self) -> ProcessingStatus:
        return normalize_visit_status(self.processing_status, self.summary)

    def processing_status_value(self) -> Optional[str]:
        """The stored processing status as a plain string (for conditional updates)."""
        if isinstance(self.processing_status, ProcessingStatus):
            return self.processing_status.value
        return self.processing_status

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def has_transcript(self) -> bool:
        """True when a non-blank transcript is already stored."""
        for text in (self.transcript, self.transcript_text):
            if text and text.strip():
                return True
        return False

    def is_owned_by(self, user_id: str) -> bool:
        return self.owner_user_id == user_id
