"""Start Transcription use case: submit a pending visit's audio to the provider."""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from visitflow.application.ports.repositories.visit_repo import VisitRepository
from visitflow.application.ports.services.audio_storage_service import AudioStorageService
from visitflow.application.ports.services.transcription_service import TranscriptionService
from visitflow.domain.enums.processing import ProcessingStatus, TranscriptionStatus, VisitStatus
from visitflow.domain.value_objects.timestamps import now_millis

logger = logging.getLogger("visitflow")

# A visit already bound to a provider job in one of these states is left alone
_ALREADY_STARTED = frozenset(
    {
        ProcessingStatus.TRANSCRIBING,
        ProcessingStatus.SUMMARIZING,
        ProcessingStatus.FINALIZING,
        ProcessingStatus.COMPLETED,
    }
)


@dataclass
class StartTranscriptionResponse:
    visit_id: str
    started: bool
    transcription_id: Optional[str] = None
    reason: Optional[str] = None


class StartTranscriptionUseCase:
    """Idempotently start transcription for a newly submitted visit."""

    def __init__(
        self,
        visit_repository: VisitRepository,
        transcription_service: TranscriptionService,
        storage_service: AudioStorageService,
        signed_url_expiry_hours: int = 4,
        clock: Callable[[], int] = now_millis,
    ):
        self._visit_repository = visit_repository
        self._transcription_service = transcription_service
        self._storage_service = storage_service
        self._signed_url_expiry_hours = signed_url_expiry_hours
        self._clock = clock

    async def execute(self, visit_id: str) -> StartTranscriptionResponse:
        visit = await self._visit_repository.find_by_id(visit_id)
        if visit is None or visit.is_deleted:
            return StartTranscriptionResponse(visit_id, False, reason="not_found")

        status = visit.normalized_status
        if visit.transcription_id and status in _ALREADY_STARTED:
            logger.info(
                "[Transcription] Visit %s already has transcript job %s (%s); skipping",
                visit_id,
                visit.transcription_id,
                status.value,
            )
            return StartTranscriptionResponse(visit_id, False, visit.transcription_id, "already_started")

        if not visit.storage_path:
            return StartTranscriptionResponse(visit_id, False, reason="missing_audio")

        now = self._clock()
        try:
            audio_url = self._storage_service.generate_signed_url(
                visit.storage_path, expires_in_hours=self._signed_url_expiry_hours
            )
            transcription_id = await self._transcription_service.submit_transcription(audio_url)
        except Exception as e:
            logger.error(
                "[Transcription] Failed to submit visit %s: %s", visit_id, e, exc_info=True
            )
            await self._visit_repository.update_fields(
                visit_id,
                set_fields={
                    "processing_status": ProcessingStatus.FAILED.value,
                    "status": VisitStatus.FAILED.value,
                    "processing_error": f"Failed to submit transcription: {e}",
                    "updated_at": now,
                },
                expected={"processing_status": visit.processing_status_value()},
            )
            return StartTranscriptionResponse(visit_id, False, reason="submit_failed")

        applied = await self._visit_repository.update_fields(
            visit_id,
            set_fields={
                "processing_status": ProcessingStatus.TRANSCRIBING.value,
                "status": VisitStatus.PROCESSING.value,
                "transcription_id": transcription_id,
                "transcription_status": TranscriptionStatus.SUBMITTED.value,
                "transcription_submitted_at": now,
                "updated_at": now,
            },
            unset_fields=["processing_error"],
            inc_fields={"retry_count": 1},
            expected={"processing_status": visit.processing_status_value()},
        )
        if not applied:
            return StartTranscriptionResponse(visit_id, False, reason="state_changed")

        logger.info("[Transcription] Visit %s submitted as %s", visit_id, transcription_id)
        return StartTranscriptionResponse(visit_id, True, transcription_id)
