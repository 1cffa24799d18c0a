"""
Stale visit sweeper tests.
"""

import asyncio

import pytest

from visitflow.application.ports.services.transcription_service import TranscriptResult
from visitflow.application.use_cases.start_transcription import StartTranscriptionUseCase
from visitflow.application.use_cases.summarize_visit import SummarizeVisitUseCase
from visitflow.application.use_cases.sweep_stale_visits import (
    CHECK_PROVIDER,
    FAIL_MAX_RETRIES,
    MARK_FAILED,
    RESUME_SUMMARIZING,
    RETRY_PENDING,
    SKIP,
    SweepStaleVisitsUseCase,
    SweepStats,
    resolve_transcribing_recovery,
)
from visitflow.core.config import Settings, SweeperSettings
from visitflow.domain.value_objects.timestamps import MILLIS_PER_MINUTE
from visitflow.workers import stale_visit_sweeper
from visitflow.workers.stale_visit_sweeper import run_stale_sweeper_forever

from fakes import NOW

SWEEP_AT = NOW + 60 * MILLIS_PER_MINUTE


def _sweep(visit_repo, transcription_service, summarization_service, storage_service):
    clock = lambda: SWEEP_AT  # noqa: E731
    use_case = SweepStaleVisitsUseCase(
        visit_repo,
        transcription_service,
        StartTranscriptionUseCase(visit_repo, transcription_service, storage_service, clock=clock),
        SummarizeVisitUseCase(visit_repo, summarization_service, clock=clock),
        transcribing_timeout_minutes=30,
        summarizing_timeout_minutes=15,
        max_retries=3,
        clock=clock,
    )
    return asyncio.run(use_case.execute())


def test_recovery_decisions():
    assert resolve_transcribing_recovery(3, True, 3) == FAIL_MAX_RETRIES
    assert resolve_transcribing_recovery(0, False, 3) == RETRY_PENDING
    assert resolve_transcribing_recovery(0, True, 3) == CHECK_PROVIDER
    assert resolve_transcribing_recovery(0, True, 3, "completed") == RESUME_SUMMARIZING
    assert resolve_transcribing_recovery(0, True, 3, "error") == MARK_FAILED
    assert resolve_transcribing_recovery(0, True, 3, "processing") == SKIP


def test_recent_visits_are_not_touched(
    visit_repo, transcription_service, summarization_service, storage_service, make_visit
):
    visit_repo.add(
        make_visit(processing_status="transcribing", transcription_id="tx-1", updated_at=SWEEP_AT - 1000)
    )

    stats = _sweep(visit_repo, transcription_service, summarization_service, storage_service)

    assert stats.stale_transcribing == 0
    assert visit_repo.update_calls == []


def test_finished_provider_job_resumes_summarization(
    visit_repo, transcription_service, summarization_service, storage_service, make_visit
):
    visit_repo.add(make_visit(processing_status="transcribing", transcription_id="tx-1"))
    transcription_service.transcripts["tx-1"] = TranscriptResult("tx-1", "completed", text="hello")

    stats = _sweep(visit_repo, transcription_service, summarization_service, storage_service)

    assert stats.retried == 1
    stored = visit_repo.get("VISIT-1")
    assert stored.transcript == "hello"
    assert stored.processing_status == "completed"


def test_provider_error_fails_the_visit(
    visit_repo, transcription_service, summarization_service, storage_service, make_visit
):
    visit_repo.add(make_visit(processing_status="transcribing", transcription_id="tx-1"))
    transcription_service.transcripts["tx-1"] = TranscriptResult("tx-1", "error", error="bad audio")

    stats = _sweep(visit_repo, transcription_service, summarization_service, storage_service)

    assert stats.failed == 1
    stored = visit_repo.get("VISIT-1")
    assert stored.processing_status == "failed"
    assert stored.processing_error == "bad audio"


def test_exhausted_retries_fail_the_visit(
    visit_repo, transcription_service, summarization_service, storage_service, make_visit
):
    visit_repo.add(make_visit(processing_status="summarizing", transcript="t", retry_count=3))

    stats = _sweep(visit_repo, transcription_service, summarization_service, storage_service)

    assert stats.stale_summarizing == 1
    assert stats.failed == 1
    assert visit_repo.get("VISIT-1").processing_error == "Summarization failed after 3 attempts"


def test_lost_provider_job_is_resubmitted(
    visit_repo, transcription_service, summarization_service, storage_service, make_visit
):
    visit_repo.add(make_visit(processing_status="transcribing", transcription_id="tx-gone"))

    stats = _sweep(visit_repo, transcription_service, summarization_service, storage_service)

    assert stats.retried == 1
    stored = visit_repo.get("VISIT-1")
    assert stored.processing_status == "transcribing"
    assert stored.transcription_id == "tx-1"
    assert stored.retry_count == 2


def test_stale_summarizing_visit_is_summarized_again(
    visit_repo, transcription_service, summarization_service, storage_service, make_visit
):
    visit_repo.add(make_visit(processing_status="summarizing", transcript="text", retry_count=1))

    stats = _sweep(visit_repo, transcription_service, summarization_service, storage_service)

    assert stats.retried == 1
    stored = visit_repo.get("VISIT-1")
    assert stored.processing_status == "completed"
    assert stored.retry_count == 2


def _sweeper_settings(**fields):
    settings = Settings()
    settings.sweeper = SweeperSettings(**fields)
    return settings


def test_disabled_sweeper_loop_returns_immediately():
    assert asyncio.run(run_stale_sweeper_forever(_sweeper_settings(enabled=False))) is None


def test_sweeper_loop_survives_a_failed_sweep(monkeypatch):
    calls = []
    sleeps = []

    class FlakySweep:
        async def execute(self):
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("mongo down")
            return SweepStats()

    async def fake_sleep(seconds):
        sleeps.append(seconds)
        if len(sleeps) == 2:
            raise asyncio.CancelledError

    monkeypatch.setattr(stale_visit_sweeper.asyncio, "sleep", fake_sleep)

    with pytest.raises(asyncio.CancelledError):
        asyncio.run(
            run_stale_sweeper_forever(
                _sweeper_settings(enabled=True, interval_seconds=10), use_case=FlakySweep()
            )
        )

    assert len(calls) == 2
    assert sleeps == [60, 60]
