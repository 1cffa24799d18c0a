"""
Background loop recovering visits stuck in transcribing or summarizing.
"""

import asyncio
from typing import Optional

from visitflow.adapters.db.mongo.repositories.visit_repository import MongoVisitRepository
from visitflow.adapters.external.summarization_service_openai import OpenAISummarizationService
from visitflow.adapters.external.transcription_service_assemblyai import (
    AssemblyAITranscriptionService,
)
from visitflow.adapters.storage.azure_blob_service import AzureBlobAudioStorageService
from visitflow.application.use_cases.start_transcription import StartTranscriptionUseCase
from visitflow.application.use_cases.summarize_visit import SummarizeVisitUseCase
from visitflow.application.use_cases.sweep_stale_visits import SweepStaleVisitsUseCase, SweepStats
from visitflow.core.config import Settings, get_settings
from visitflow.core.structured_logger import get_logger

logger = get_logger("visitflow.workers.stale_sweeper")

MIN_INTERVAL_SECONDS = 60


def build_sweep_use_case(settings: Settings) -> SweepStaleVisitsUseCase:
    visit_repository = MongoVisitRepository()
    transcription_service = AssemblyAITranscriptionService(
        settings.assemblyai, webhook_secret=settings.webhook.secret
    )
    start_transcription = StartTranscriptionUseCase(
        visit_repository,
        transcription_service,
        AzureBlobAudioStorageService(settings.azure_blob),
        signed_url_expiry_hours=settings.azure_blob.signed_url_expiry_hours,
    )
    summarize_visit = SummarizeVisitUseCase(
        visit_repository, OpenAISummarizationService(settings.azure_openai)
    )
    return SweepStaleVisitsUseCase(
        visit_repository,
        transcription_service,
        start_transcription,
        summarize_visit,
        transcribing_timeout_minutes=settings.sweeper.transcribing_timeout_minutes,
        summarizing_timeout_minutes=settings.sweeper.summarizing_timeout_minutes,
        max_retries=settings.sweeper.max_retries,
        batch_size=settings.sweeper.batch_size,
    )


async def _sweep_once(use_case: SweepStaleVisitsUseCase) -> SweepStats:
    stats = await use_case.execute()
    logger.info(
        "[StaleSweeper] Sweep finished",
        stale_transcribing=stats.stale_transcribing,
        stale_summarizing=stats.stale_summarizing,
        retried=stats.retried,
        failed=stats.failed,
        skipped=stats.skipped,
    )
    return stats


async def run_stale_sweeper_forever(
    settings: Optional[Settings] = None,
    use_case: Optional[SweepStaleVisitsUseCase] = None,
) -> None:
    """Run sweeps until cancelled; a failed sweep is logged and the loop continues."""
    settings = settings or get_settings()
    if not settings.sweeper.enabled:
        logger.info("[StaleSweeper] Disabled via STALE_SWEEPER_ENABLED")
        return

    use_case = use_case or build_sweep_use_case(settings)
    interval = max(MIN_INTERVAL_SECONDS, settings.sweeper.interval_seconds)
    logger.info(
        "[StaleSweeper] Starting",
        interval_seconds=interval,
        transcribing_timeout_minutes=settings.sweeper.transcribing_timeout_minutes,
        summarizing_timeout_minutes=settings.sweeper.summarizing_timeout_minutes,
        max_retries=settings.sweeper.max_retries,
    )

    while True:
        try:
            await _sweep_once(use_case)
        except Exception as e:  # noqa: BLE001
            logger.error(f"[StaleSweeper] Sweep iteration failed: {e}", exc_info=True)
        await asyncio.sleep(interval)
