"""Retry Visit use case: client-initiated reprocessing of a failed visit."""

import copy
import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional, Union

from visitflow.application.ports.repositories.visit_repo import VisitRepository
from visitflow.application.ports.services.audio_storage_service import AudioStorageService
from visitflow.application.ports.services.transcription_service import TranscriptionService
from visitflow.application.use_cases.manage_visit import load_owned_visit
from visitflow.domain.entities.visit import Visit
from visitflow.domain.enums.processing import (
    IN_FLIGHT_STATUSES,
    ProcessingStatus,
    TranscriptionStatus,
    VisitStatus,
)
from visitflow.domain.errors import Failure
from visitflow.domain.value_objects.timestamps import MILLIS_PER_SECOND, now_millis

logger = logging.getLogger("visitflow")

RESUME_SUMMARIZE = "summarize"
RESUME_RETRANSCRIBE = "retranscribe"

# Summary artifacts are cleared whenever processing restarts
_SUMMARY_UNSET_FIELDS = ("summary", "processed_at")
_SUMMARY_RESET_VALUES = {
    "diagnoses": [],
    "medications": {"started": [], "stopped": [], "changed": []},
    "imaging": [],
    "next_steps": [],
}


@dataclass
class RetryVisitRequest:
    visit_id: str
    caller_id: str


@dataclass
class RetryVisitResponse:
    visit: Visit
    resume_point: str

    @property
    def processing_status(self) -> ProcessingStatus:
        return self.visit.normalized_status

    @property
    def transcription_id(self) -> Optional[str]:
        return self.visit.transcription_id


def retry_wait_seconds(last_retry_at: Optional[int], now: int, window_seconds: int) -> int:
    """Seconds left in the throttle window, rounded up; 0 when a retry is allowed."""
    if last_retry_at is None or window_seconds <= 0:
        return 0
    remaining_ms = window_seconds * MILLIS_PER_SECOND - (now - last_retry_at)
    if remaining_ms <= 0:
        return 0
    return math.ceil(remaining_ms / MILLIS_PER_SECOND)


def resolve_resume_point(visit: Visit) -> str:
    """Skip transcription when a transcript already exists."""
    return RESUME_SUMMARIZE if visit.has_transcript() else RESUME_RETRANSCRIBE


class RetryVisitUseCase:
    """Decide whether a retry is allowed and restart processing at the right stage."""

    def __init__(
        self,
        visit_repository: VisitRepository,
        transcription_service: TranscriptionService,
        storage_service: AudioStorageService,
        throttle_seconds: int = 30,
        signed_url_expiry_hours: int = 4,
        clock: Callable[[], int] = now_millis,
    ):
        self._visit_repository = visit_repository
        self._transcription_service = transcription_service
        self._storage_service = storage_service
        self._throttle_seconds = throttle_seconds
        self._signed_url_expiry_hours = signed_url_expiry_hours
        self._clock = clock

    async def execute(self, request: RetryVisitRequest) -> Union[RetryVisitResponse, Failure]:
        """Execute the retry visit use case."""
        visit = await load_owned_visit(self._visit_repository, request.visit_id, request.caller_id)
        if isinstance(visit, Failure):
            return visit

        status = visit.normalized_status
        if status in IN_FLIGHT_STATUSES:
            return Failure.already_processing(visit.visit_id, status.value)
        if status != ProcessingStatus.FAILED:
            return Failure.nothing_to_retry(visit.visit_id, status.value)

        now = self._clock()
        wait_seconds = retry_wait_seconds(visit.last_retry_at, now, self._throttle_seconds)
        if wait_seconds > 0:
            logger.info(
                "[Retry] Throttled retry for visit %s (wait %ss)", visit.visit_id, wait_seconds
            )
            return Failure.retry_too_soon(visit.visit_id, wait_seconds)

        resume_point = resolve_resume_point(visit)
        if resume_point == RESUME_RETRANSCRIBE and not visit.storage_path:
            return Failure.missing_audio(visit.visit_id)

        set_fields = {
            "status": VisitStatus.PROCESSING.value,
            "last_retry_at": now,
            "updated_at": now,
            **copy.deepcopy(_SUMMARY_RESET_VALUES),
        }
        unset_fields = ["processing_error", *_SUMMARY_UNSET_FIELDS]

        if resume_point == RESUME_SUMMARIZE:
            set_fields["processing_status"] = ProcessingStatus.SUMMARIZING.value
        else:
            try:
                audio_url = self._storage_service.generate_signed_url(
                    visit.storage_path, expires_in_hours=self._signed_url_expiry_hours
                )
                transcription_id = await self._transcription_service.submit_transcription(audio_url)
            except Exception as e:
                logger.error(
                    "[Retry] Failed to resubmit visit %s for transcription: %s",
                    visit.visit_id,
                    e,
                    exc_info=True,
                )
                return Failure.retry_failed(visit.visit_id, str(e))

            set_fields.update(
                {
                    "processing_status": ProcessingStatus.TRANSCRIBING.value,
                    "transcription_id": transcription_id,
                    "transcription_status": TranscriptionStatus.SUBMITTED.value,
                    "transcription_submitted_at": now,
                }
            )
            unset_fields.extend(["transcript", "transcript_text"])

        # Guard on the status we read so two concurrent retries cannot both apply
        applied = await self._visit_repository.update_fields(
            visit.visit_id,
            set_fields=set_fields,
            unset_fields=unset_fields,
            inc_fields={"retry_count": 1},
            expected={"processing_status": visit.processing_status_value(), "deleted_at": None},
        )
        if not applied:
            current = await self._visit_repository.find_by_id(visit.visit_id)
            current_status = current.normalized_status.value if current else status.value
            logger.info(
                "[Retry] Visit %s changed state during retry (now %s)", visit.visit_id, current_status
            )
            return Failure.already_processing(visit.visit_id, current_status)

        updated = await self._visit_repository.find_by_id(visit.visit_id)
        logger.info(
            "[Retry] Visit %s retried via %s path (retry_count=%s)",
            visit.visit_id,
            resume_point,
            updated.retry_count if updated else visit.retry_count + 1,
        )
        return RetryVisitResponse(visit=updated or visit, resume_point=resume_point)
