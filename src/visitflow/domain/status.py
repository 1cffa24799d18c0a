"""
Read-side status normalization for visits.
"""

from typing import Optional, Union

from .enums.processing import ProcessingStatus

_KNOWN_STATUSES = {status.value: status for status in ProcessingStatus}


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def normalize_visit_status(
    processing_status: Union[ProcessingStatus, str, None],
    summary: Optional[str] = None,
) -> ProcessingStatus:
    """
    Derive the canonical lifecycle state from raw stored fields.

    - missing status -> pending
    - completed without a summary -> finalizing
    - a recognized value -> itself
    - anything else -> pending
    """
    if isinstance(processing_status, ProcessingStatus):
        raw = processing_status.value
    elif _is_blank(processing_status):
        return ProcessingStatus.PENDING
    else:
        raw = str(processing_status).strip().lower()

    status = _KNOWN_STATUSES.get(raw)
    if status is None:
        return ProcessingStatus.PENDING

    if status == ProcessingStatus.COMPLETED and _is_blank(summary):
        return ProcessingStatus.FINALIZING

    return status
