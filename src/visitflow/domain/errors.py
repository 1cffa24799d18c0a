"""
Domain error codes, failure values and the domain exception type.

Use cases return ``Failure`` values for expected outcomes (missing visit,
wrong owner, throttled retry, ...) so callers must handle them explicitly.
The HTTP layer turns a failure into a ``DomainError`` which the app-level
handler renders with the status code mapped from its error code.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

NOT_FOUND = "not_found"
FORBIDDEN = "forbidden"
ALREADY_PROCESSING = "already_processing"
RETRY_TOO_SOON = "retry_too_soon"
MISSING_AUDIO = "missing_audio"
RETRY_FAILED = "retry_failed"
VALIDATION_FAILED = "validation_failed"
NOT_DELETED = "not_deleted"


class DomainError(Exception):
    """Base domain error."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


@dataclass(frozen=True)
class Failure:
    """An expected, typed failure returned by a use case."""

    code: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_error(self) -> DomainError:
        return DomainError(self.message, self.code, dict(self.details))

    @classmethod
    def visit_not_found(cls, visit_id: str) -> "Failure":
        return cls(NOT_FOUND, "Visit not found", {"visit_id": visit_id})

    @classmethod
    def forbidden(cls, visit_id: str) -> "Failure":
        return cls(FORBIDDEN, "You do not have access to this visit", {"visit_id": visit_id})

    @classmethod
    def already_processing(cls, visit_id: str, status: str) -> "Failure":
        return cls(
            ALREADY_PROCESSING,
            "Visit is already being processed",
            {"visit_id": visit_id, "processing_status": status},
        )

    @classmethod
    def nothing_to_retry(cls, visit_id: str, status: str) -> "Failure":
        return cls(
            ALREADY_PROCESSING,
            "Only failed visits can be retried",
            {"visit_id": visit_id, "processing_status": status},
        )

    @classmethod
    def retry_too_soon(cls, visit_id: str, wait_seconds: int) -> "Failure":
        return cls(
            RETRY_TOO_SOON,
            f"Please wait {wait_seconds} more seconds before retrying",
            {"visit_id": visit_id, "wait_seconds": wait_seconds},
        )

    @classmethod
    def missing_audio(cls, visit_id: str) -> "Failure":
        return cls(MISSING_AUDIO, "Visit has no audio file to process", {"visit_id": visit_id})

    @classmethod
    def retry_failed(cls, visit_id: str, reason: str) -> "Failure":
        return cls(
            RETRY_FAILED,
            "Failed to resubmit visit for processing",
            {"visit_id": visit_id, "reason": reason},
        )

    @classmethod
    def invalid_limit(cls) -> "Failure":
        return cls(VALIDATION_FAILED, "limit must be a positive integer", {"field": "limit"})

    @classmethod
    def invalid_cursor(cls) -> "Failure":
        return cls(VALIDATION_FAILED, "Invalid cursor", {"field": "cursor"})

    @classmethod
    def not_deleted(cls, visit_id: str) -> "Failure":
        return cls(NOT_DELETED, "Visit is not deleted", {"visit_id": visit_id})
