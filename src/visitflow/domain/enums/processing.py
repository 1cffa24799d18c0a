"""
Processing lifecycle enums for visits.
"""

from enum import Enum


class ProcessingStatus(str, Enum):
    """Fine-grained lifecycle state of a visit."""

    PENDING = "pending"
    PROCESSING = "processing"
    TRANSCRIBING = "transcribing"
    SUMMARIZING = "summarizing"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    FAILED = "failed"


class VisitStatus(str, Enum):
    """Coarse status mirrored from ProcessingStatus on every transition."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class TranscriptionStatus(str, Enum):
    """State of the provider-side transcription job."""

    SUBMITTED = "submitted"
    COMPLETED = "completed"
    ERROR = "error"


# Work is outstanding at a provider; retries must not be issued.
IN_FLIGHT_STATUSES = frozenset(
    {
        ProcessingStatus.PROCESSING,
        ProcessingStatus.TRANSCRIBING,
        ProcessingStatus.SUMMARIZING,
        ProcessingStatus.FINALIZING,
    }
)
