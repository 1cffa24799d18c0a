"""Summarize Visit use case: summarizing -> completed (or failed)."""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from visitflow.application.ports.repositories.visit_repo import VisitRepository
from visitflow.application.ports.services.summarization_service import SummarizationService
from visitflow.domain.enums.processing import ProcessingStatus, VisitStatus
from visitflow.domain.value_objects.timestamps import now_millis

logger = logging.getLogger("visitflow")


@dataclass
class SummarizeVisitResponse:
    visit_id: str
    processing_status: Optional[str]
    skipped: bool = False
    error: Optional[str] = None


class SummarizeVisitUseCase:
    """Run summarization for a visit sitting in ``summarizing``."""

    def __init__(
        self,
        visit_repository: VisitRepository,
        summarization_service: SummarizationService,
        clock: Callable[[], int] = now_millis,
    ):
        self._visit_repository = visit_repository
        self._summarization_service = summarization_service
        self._clock = clock

    async def execute(self, visit_id: str) -> SummarizeVisitResponse:
        visit = await self._visit_repository.find_by_id(visit_id)
        if visit is None or visit.is_deleted:
            logger.info("[Summarize] Visit %s not found or deleted; skipping", visit_id)
            return SummarizeVisitResponse(visit_id, None, skipped=True)

        if visit.normalized_status != ProcessingStatus.SUMMARIZING:
            logger.info(
                "[Summarize] Visit %s is %s, not summarizing; skipping",
                visit_id,
                visit.normalized_status.value,
            )
            return SummarizeVisitResponse(visit_id, visit.normalized_status.value, skipped=True)

        transcript = visit.transcript_text or visit.transcript or ""
        guard = {"processing_status": ProcessingStatus.SUMMARIZING.value}

        if not transcript.strip():
            return await self._fail(visit_id, "Transcript is empty", guard)

        try:
            result = await self._summarization_service.summarize(transcript)
        except Exception as e:
            logger.error("[Summarize] Summarization failed for visit %s: %s", visit_id, e, exc_info=True)
            return await self._fail(visit_id, f"Summarization failed: {e}", guard)

        if not result.summary or not result.summary.strip():
            return await self._fail(visit_id, "Summarization returned an empty summary", guard)

        now = self._clock()
        applied = await self._visit_repository.update_fields(
            visit_id,
            set_fields={
                "processing_status": ProcessingStatus.COMPLETED.value,
                "status": VisitStatus.COMPLETED.value,
                "summary": result.summary,
                "diagnoses": result.diagnoses,
                "medications": result.medications,
                "imaging": result.imaging,
                "next_steps": result.next_steps,
                "processed_at": now,
                "updated_at": now,
            },
            unset_fields=["processing_error"],
            expected=guard,
        )
        if not applied:
            logger.info("[Summarize] Visit %s left summarizing before completion; dropping result", visit_id)
            return SummarizeVisitResponse(visit_id, None, skipped=True)

        logger.info("[Summarize] Visit %s completed", visit_id)
        return SummarizeVisitResponse(visit_id, ProcessingStatus.COMPLETED.value)

    async def _fail(self, visit_id: str, reason: str, guard: dict) -> SummarizeVisitResponse:
        now = self._clock()
        await self._visit_repository.update_fields(
            visit_id,
            set_fields={
                "processing_status": ProcessingStatus.FAILED.value,
                "status": VisitStatus.FAILED.value,
                "processing_error": reason,
                "updated_at": now,
            },
            expected=guard,
        )
        logger.warning("[Summarize] Visit %s failed: %s", visit_id, reason)
        return SummarizeVisitResponse(visit_id, ProcessingStatus.FAILED.value, error=reason)
