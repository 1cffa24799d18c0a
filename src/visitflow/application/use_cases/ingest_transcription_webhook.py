"""Ingest Transcription Webhook use case.

Provider callbacks are delivered at least once and may arrive after the
visit has moved on (e.g. a retry issued a new transcription ID). Every
state change is a conditional update bound to the current transcription ID
and the ``transcribing`` state, so duplicates and stale events are no-ops.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from visitflow.application.ports.repositories.visit_repo import VisitRepository
from visitflow.application.ports.services.transcription_service import TranscriptionService
from visitflow.domain.enums.processing import ProcessingStatus, TranscriptionStatus, VisitStatus
from visitflow.domain.value_objects.timestamps import now_millis

logger = logging.getLogger("visitflow")

OUTCOME_COMPLETED = "completed"
OUTCOME_ERROR = "error"

RESULT_ADVANCED = "advanced"
RESULT_FAILED = "failed"
RESULT_IGNORED = "ignored"


@dataclass
class TranscriptionWebhookEvent:
    transcription_id: str
    status: str  # completed | error
    text: Optional[str] = None
    error: Optional[str] = None


@dataclass
class WebhookAck:
    """Acknowledgement returned to the provider; never an error."""

    result: str
    message: str
    visit_id: Optional[str] = None

    @property
    def should_summarize(self) -> bool:
        return self.result == RESULT_ADVANCED


class IngestTranscriptionWebhookUseCase:
    """Apply a transcription provider callback to the bound visit."""

    def __init__(
        self,
        visit_repository: VisitRepository,
        transcription_service: TranscriptionService,
        clock: Callable[[], int] = now_millis,
    ):
        self._visit_repository = visit_repository
        self._transcription_service = transcription_service
        self._clock = clock

    async def execute(self, event: TranscriptionWebhookEvent) -> WebhookAck:
        visit = await self._visit_repository.find_transcribing_by_transcription_id(
            event.transcription_id
        )
        if visit is None:
            logger.info(
                "[Webhook] No transcribing visit for transcript %s; acknowledging",
                event.transcription_id,
            )
            return WebhookAck(RESULT_IGNORED, "Already processed or not found")

        now = self._clock()
        guard = {
            "transcription_id": event.transcription_id,
            "processing_status": ProcessingStatus.TRANSCRIBING.value,
        }

        if event.status == OUTCOME_COMPLETED:
            transcript = await self._load_transcript(event)
            applied = await self._visit_repository.update_fields(
                visit.visit_id,
                set_fields={
                    "processing_status": ProcessingStatus.SUMMARIZING.value,
                    "status": VisitStatus.PROCESSING.value,
                    "transcription_status": TranscriptionStatus.COMPLETED.value,
                    "transcript": transcript,
                    "transcript_text": transcript,
                    "updated_at": now,
                },
                unset_fields=["processing_error"],
                expected=guard,
            )
            if not applied:
                return self._superseded(visit.visit_id, event)
            logger.info(
                "[Webhook] Visit %s transcribed (%d chars); moving to summarizing",
                visit.visit_id,
                len(transcript),
            )
            return WebhookAck(RESULT_ADVANCED, "Transcript stored", visit.visit_id)

        error_message = event.error or "Transcription failed"
        applied = await self._visit_repository.update_fields(
            visit.visit_id,
            set_fields={
                "processing_status": ProcessingStatus.FAILED.value,
                "status": VisitStatus.FAILED.value,
                "transcription_status": TranscriptionStatus.ERROR.value,
                "processing_error": error_message,
                "updated_at": now,
            },
            expected=guard,
        )
        if not applied:
            return self._superseded(visit.visit_id, event)
        logger.warning(
            "[Webhook] Transcription %s failed for visit %s: %s",
            event.transcription_id,
            visit.visit_id,
            error_message,
        )
        return WebhookAck(RESULT_FAILED, "Visit marked as failed", visit.visit_id)

    async def _load_transcript(self, event: TranscriptionWebhookEvent) -> str:
        """Speaker-formatted transcript from the provider, falling back to the payload text."""
        try:
            result = await self._transcription_service.get_transcript(event.transcription_id)
            text = result.formatted_text or result.text
            if text:
                return text
        except Exception as e:
            logger.warning(
                "[Webhook] Could not fetch transcript %s, using payload text: %s",
                event.transcription_id,
                e,
            )
        return event.text or ""

    @staticmethod
    def _superseded(visit_id: str, event: TranscriptionWebhookEvent) -> WebhookAck:
        logger.info(
            "[Webhook] Visit %s moved on before transcript %s was applied",
            visit_id,
            event.transcription_id,
        )
        return WebhookAck(RESULT_IGNORED, "Already processed or not found", visit_id)
