"""Sweep Stale Visits use case: recover visits stuck in an in-flight state.

A visit whose webhook never arrives would otherwise sit in ``transcribing``
forever and could not be retried (only ``failed`` visits are retryable).
The sweeper either resumes such visits or moves them to ``failed``.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from visitflow.application.ports.repositories.visit_repo import VisitRepository
from visitflow.application.ports.services.transcription_service import TranscriptionService
from visitflow.application.use_cases.start_transcription import StartTranscriptionUseCase
from visitflow.application.use_cases.summarize_visit import SummarizeVisitUseCase
from visitflow.domain.entities.visit import Visit
from visitflow.domain.enums.processing import ProcessingStatus, TranscriptionStatus, VisitStatus
from visitflow.domain.value_objects.timestamps import MILLIS_PER_MINUTE, now_millis

logger = logging.getLogger("visitflow")

FAIL_MAX_RETRIES = "fail_max_retries"
RETRY_PENDING = "retry_pending"
CHECK_PROVIDER = "check_provider"
RESUME_SUMMARIZING = "resume_summarizing"
MARK_FAILED = "mark_failed"
SKIP = "skip"
RETRY = "retry"

OUTCOME_RETRIED = "retried"
OUTCOME_FAILED = "failed"
OUTCOME_SKIPPED = "skipped"


def resolve_transcribing_recovery(
    retry_count: int,
    has_transcription_id: bool,
    max_retries: int,
    provider_status: Optional[str] = None,
) -> str:
    """Decide how to recover a visit stuck in transcribing."""
    if retry_count >= max_retries:
        return FAIL_MAX_RETRIES
    if not has_transcription_id:
        return RETRY_PENDING
    if provider_status is None:
        return CHECK_PROVIDER
    if provider_status == "completed":
        return RESUME_SUMMARIZING
    if provider_status == "error":
        return MARK_FAILED
    return SKIP


def resolve_summarizing_recovery(retry_count: int, max_retries: int) -> str:
    return FAIL_MAX_RETRIES if retry_count >= max_retries else RETRY


@dataclass
class SweepStats:
    stale_transcribing: int = 0
    stale_summarizing: int = 0
    retried: int = 0
    failed: int = 0
    skipped: int = 0

    def record(self, outcome: str) -> None:
        if outcome == OUTCOME_RETRIED:
            self.retried += 1
        elif outcome == OUTCOME_FAILED:
            self.failed += 1
        else:
            self.skipped += 1


class SweepStaleVisitsUseCase:
    """One sweep over visits stuck in transcribing or summarizing."""

    def __init__(
        self,
        visit_repository: VisitRepository,
        transcription_service: TranscriptionService,
        start_transcription: StartTranscriptionUseCase,
        summarize_visit: SummarizeVisitUseCase,
        transcribing_timeout_minutes: int = 30,
        summarizing_timeout_minutes: int = 15,
        max_retries: int = 3,
        batch_size: int = 50,
        clock: Callable[[], int] = now_millis,
    ):
        self._visit_repository = visit_repository
        self._transcription_service = transcription_service
        self._start_transcription = start_transcription
        self._summarize_visit = summarize_visit
        self._transcribing_timeout_ms = transcribing_timeout_minutes * MILLIS_PER_MINUTE
        self._summarizing_timeout_ms = summarizing_timeout_minutes * MILLIS_PER_MINUTE
        self._max_retries = max_retries
        self._batch_size = batch_size
        self._clock = clock

    async def execute(self) -> SweepStats:
        stats = SweepStats()
        now = self._clock()

        transcribing = await self._visit_repository.find_stale(
            ProcessingStatus.TRANSCRIBING.value, now - self._transcribing_timeout_ms, self._batch_size
        )
        stats.stale_transcribing = len(transcribing)
        for visit in transcribing:
            stats.record(await self._recover_transcribing(visit))

        summarizing = await self._visit_repository.find_stale(
            ProcessingStatus.SUMMARIZING.value, now - self._summarizing_timeout_ms, self._batch_size
        )
        stats.stale_summarizing = len(summarizing)
        for visit in summarizing:
            stats.record(await self._recover_summarizing(visit))

        logger.info(
            "[StaleSweeper] transcribing=%d summarizing=%d retried=%d failed=%d skipped=%d",
            stats.stale_transcribing,
            stats.stale_summarizing,
            stats.retried,
            stats.failed,
            stats.skipped,
        )
        return stats

    async def _recover_transcribing(self, visit: Visit) -> str:
        guard = {
            "processing_status": ProcessingStatus.TRANSCRIBING.value,
            "transcription_id": visit.transcription_id,
        }
        mode = resolve_transcribing_recovery(
            visit.retry_count, bool(visit.transcription_id), self._max_retries
        )

        if mode == FAIL_MAX_RETRIES:
            await self._mark_failed(
                visit, f"Transcription failed after {self._max_retries} attempts", guard
            )
            return OUTCOME_FAILED

        if mode == RETRY_PENDING:
            return await self._reset_to_pending(visit, "Transcription timed out, retrying", guard)

        try:
            result = await self._transcription_service.get_transcript(visit.transcription_id)
        except Exception as e:
            logger.error(
                "[StaleSweeper] Provider lookup failed for visit %s: %s", visit.visit_id, e, exc_info=True
            )
            return await self._reset_to_pending(
                visit, f"Failed to check transcription status: {e}", guard
            )

        mode = resolve_transcribing_recovery(
            visit.retry_count, True, self._max_retries, provider_status=result.status
        )
        if mode == RESUME_SUMMARIZING:
            transcript = result.formatted_text or result.text
            applied = await self._visit_repository.update_fields(
                visit.visit_id,
                set_fields={
                    "processing_status": ProcessingStatus.SUMMARIZING.value,
                    "status": VisitStatus.PROCESSING.value,
                    "transcription_status": TranscriptionStatus.COMPLETED.value,
                    "transcript": transcript,
                    "transcript_text": transcript,
                    "updated_at": self._clock(),
                },
                expected=guard,
            )
            if not applied:
                return OUTCOME_SKIPPED
            logger.info("[StaleSweeper] Recovered transcript for visit %s", visit.visit_id)
            await self._summarize_visit.execute(visit.visit_id)
            return OUTCOME_RETRIED

        if mode == MARK_FAILED:
            await self._mark_failed(visit, result.error or "Transcription failed at provider", guard)
            return OUTCOME_FAILED

        logger.info(
            "[StaleSweeper] Visit %s still %s at provider", visit.visit_id, result.status
        )
        return OUTCOME_SKIPPED

    async def _recover_summarizing(self, visit: Visit) -> str:
        guard = {"processing_status": ProcessingStatus.SUMMARIZING.value}
        if resolve_summarizing_recovery(visit.retry_count, self._max_retries) == FAIL_MAX_RETRIES:
            await self._mark_failed(
                visit, f"Summarization failed after {self._max_retries} attempts", guard
            )
            return OUTCOME_FAILED

        applied = await self._visit_repository.update_fields(
            visit.visit_id,
            set_fields={"updated_at": self._clock()},
            inc_fields={"retry_count": 1},
            expected=guard,
        )
        if not applied:
            return OUTCOME_SKIPPED
        logger.info("[StaleSweeper] Re-running summarization for visit %s", visit.visit_id)
        await self._summarize_visit.execute(visit.visit_id)
        return OUTCOME_RETRIED

    async def _reset_to_pending(self, visit: Visit, reason: str, guard: dict) -> str:
        applied = await self._visit_repository.update_fields(
            visit.visit_id,
            set_fields={
                "processing_status": ProcessingStatus.PENDING.value,
                "status": VisitStatus.PENDING.value,
                "processing_error": reason,
                "updated_at": self._clock(),
            },
            unset_fields=["transcription_id", "transcription_status"],
            inc_fields={"retry_count": 1},
            expected=guard,
        )
        if not applied:
            return OUTCOME_SKIPPED
        logger.info("[StaleSweeper] Visit %s reset to pending: %s", visit.visit_id, reason)
        await self._start_transcription.execute(visit.visit_id)
        return OUTCOME_RETRIED

    async def _mark_failed(self, visit: Visit, reason: str, guard: dict) -> None:
        await self._visit_repository.update_fields(
            visit.visit_id,
            set_fields={
                "processing_status": ProcessingStatus.FAILED.value,
                "status": VisitStatus.FAILED.value,
                "processing_error": reason,
                "updated_at": self._clock(),
            },
            expected=guard,
        )
        logger.warning("[StaleSweeper] Visit %s marked failed: %s", visit.visit_id, reason)
