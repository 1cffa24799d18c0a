"""
Exception handling for VisitFlow.

Infrastructure-level exceptions raised by adapters (database, providers,
storage). Expected business outcomes are not exceptions; see
``visitflow.domain.errors``.
"""

from typing import Any, Dict, Optional


class VisitFlowException(Exception):
    """Base exception class for VisitFlow."""

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


class ConfigurationError(VisitFlowException):
    """Raised when there's a configuration error."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, "CONFIG_ERROR", details)


class ExternalServiceError(VisitFlowException):
    """Raised when an external provider call fails."""

    def __init__(
        self,
        service: str,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.service = service
        self.status_code = status_code
        merged = {"service": service, "status_code": status_code}
        merged.update(details or {})
        super().__init__(message, "EXTERNAL_SERVICE_ERROR", merged)


class TranscriptionError(ExternalServiceError):
    """Raised when the transcription provider rejects or fails a request."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__("transcription", message, status_code, details)


class SummarizationError(ExternalServiceError):
    """Raised when the summarization provider fails or returns unusable output."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__("summarization", message, status_code, details)


class StorageError(ExternalServiceError):
    """Raised when blob storage cannot produce a signed audio URL."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__("storage", message, None, details)
