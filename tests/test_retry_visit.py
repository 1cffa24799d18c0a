"""
Client-initiated retry tests.
"""

import asyncio

import pytest

from visitflow.application.use_cases.retry_visit import (
    RESUME_RETRANSCRIBE,
    RESUME_SUMMARIZE,
    RetryVisitRequest,
    RetryVisitUseCase,
    retry_wait_seconds,
)
from visitflow.domain.enums.processing import ProcessingStatus, VisitStatus
from visitflow.domain.errors import (
    ALREADY_PROCESSING,
    FORBIDDEN,
    MISSING_AUDIO,
    NOT_FOUND,
    RETRY_FAILED,
    RETRY_TOO_SOON,
    Failure,
)

from fakes import NOW, OWNER


def _use_case(visit_repo, transcription_service, storage_service, now=NOW + 60_000):
    return RetryVisitUseCase(
        visit_repo,
        transcription_service,
        storage_service,
        throttle_seconds=30,
        clock=lambda: now,
    )


def _retry(use_case, visit_id="VISIT-1", caller=OWNER):
    return asyncio.run(use_case.execute(RetryVisitRequest(visit_id=visit_id, caller_id=caller)))


def test_failed_visit_with_transcript_resumes_at_summarization(
    visit_repo, transcription_service, storage_service, make_visit
):
    visit_repo.add(
        make_visit(
            processing_status="failed",
            status="failed",
            transcript="[00:00] Speaker A: Hello",
            summary="stale summary",
            diagnoses=["old"],
            processing_error="Summarization failed",
            retry_count=1,
        )
    )

    result = _retry(_use_case(visit_repo, transcription_service, storage_service))

    assert result.resume_point == RESUME_SUMMARIZE
    stored = visit_repo.get("VISIT-1")
    assert stored.processing_status == ProcessingStatus.SUMMARIZING.value
    assert stored.status == VisitStatus.PROCESSING.value
    assert stored.summary is None
    assert stored.diagnoses == []
    assert stored.processing_error is None
    assert stored.retry_count == 2
    assert stored.last_retry_at == NOW + 60_000
    assert stored.transcript == "[00:00] Speaker A: Hello"
    assert transcription_service.submitted == []


def test_failed_visit_without_transcript_is_resubmitted(
    visit_repo, transcription_service, storage_service, make_visit
):
    visit_repo.add(make_visit(processing_status="failed", transcription_id="tx-old"))

    result = _retry(_use_case(visit_repo, transcription_service, storage_service))

    assert result.resume_point == RESUME_RETRANSCRIBE
    assert result.transcription_id == "tx-1"
    assert result.processing_status == ProcessingStatus.TRANSCRIBING
    assert storage_service.requested == ["audio/visit-1.mp3"]
    stored = visit_repo.get("VISIT-1")
    assert stored.transcription_id == "tx-1"
    assert stored.transcription_status == "submitted"
    assert stored.transcription_submitted_at == NOW + 60_000


def test_retranscribe_clears_stale_summary_artifacts(
    visit_repo, transcription_service, storage_service, make_visit
):
    visit_repo.add(
        make_visit(
            processing_status="failed",
            transcript="   ",
            summary="stale summary",
            diagnoses=["old"],
            medications={"started": [{"name": "Old"}], "stopped": [], "changed": []},
            imaging=["MRI"],
            next_steps=["old step"],
            processed_at=NOW - 1000,
        )
    )

    result = _retry(_use_case(visit_repo, transcription_service, storage_service))

    assert result.resume_point == RESUME_RETRANSCRIBE
    stored = visit_repo.get("VISIT-1")
    assert stored.transcript is None
    assert stored.summary is None
    assert stored.processed_at is None
    assert stored.diagnoses == []
    assert stored.medications == {"started": [], "stopped": [], "changed": []}
    assert stored.imaging == []
    assert stored.next_steps == []


@pytest.mark.parametrize("status", ["processing", "transcribing", "summarizing"])
def test_in_flight_visits_cannot_be_retried(
    status, visit_repo, transcription_service, storage_service, make_visit
):
    visit_repo.add(make_visit(processing_status=status))

    result = _retry(_use_case(visit_repo, transcription_service, storage_service))

    assert isinstance(result, Failure)
    assert result.code == ALREADY_PROCESSING
    assert visit_repo.update_calls == []


def test_completed_without_summary_counts_as_in_flight(
    visit_repo, transcription_service, storage_service, make_visit
):
    visit_repo.add(make_visit(processing_status="completed", summary=None))

    result = _retry(_use_case(visit_repo, transcription_service, storage_service))

    assert result.code == ALREADY_PROCESSING
    assert result.details["processing_status"] == "finalizing"


@pytest.mark.parametrize("status", ["pending", "completed", None, "bogus"])
def test_only_failed_visits_are_retryable(
    status, visit_repo, transcription_service, storage_service, make_visit
):
    visit_repo.add(make_visit(processing_status=status, summary="done"))

    result = _retry(_use_case(visit_repo, transcription_service, storage_service))

    assert isinstance(result, Failure)
    assert result.code == ALREADY_PROCESSING


def test_unknown_and_deleted_visits_are_not_found(
    visit_repo, transcription_service, storage_service, make_visit
):
    visit_repo.add(make_visit(processing_status="failed", deleted_at=NOW))
    use_case = _use_case(visit_repo, transcription_service, storage_service)

    assert _retry(use_case).code == NOT_FOUND
    assert _retry(use_case, visit_id="VISIT-missing").code == NOT_FOUND


def test_other_owners_are_forbidden(visit_repo, transcription_service, storage_service, make_visit):
    visit_repo.add(make_visit(processing_status="failed"))

    result = _retry(_use_case(visit_repo, transcription_service, storage_service), caller="intruder")

    assert result.code == FORBIDDEN


def test_retry_inside_throttle_window_reports_wait(
    visit_repo, transcription_service, storage_service, make_visit
):
    visit_repo.add(make_visit(processing_status="failed", last_retry_at=NOW))

    result = _retry(_use_case(visit_repo, transcription_service, storage_service, now=NOW + 10_500))

    assert result.code == RETRY_TOO_SOON
    assert result.details["wait_seconds"] == 20


def test_retry_exactly_at_window_edge_is_allowed(
    visit_repo, transcription_service, storage_service, make_visit
):
    visit_repo.add(make_visit(processing_status="failed", last_retry_at=NOW))

    result = _retry(_use_case(visit_repo, transcription_service, storage_service, now=NOW + 30_000))

    assert not isinstance(result, Failure)


def test_wait_seconds_rounds_up():
    assert retry_wait_seconds(None, NOW, 30) == 0
    assert retry_wait_seconds(NOW, NOW + 29_001, 30) == 1
    assert retry_wait_seconds(NOW, NOW + 1, 30) == 30
    assert retry_wait_seconds(NOW, NOW, 0) == 0


def test_retranscribe_without_audio_is_rejected(
    visit_repo, transcription_service, storage_service, make_visit
):
    visit_repo.add(make_visit(processing_status="failed", storage_path=None))

    result = _retry(_use_case(visit_repo, transcription_service, storage_service))

    assert result.code == MISSING_AUDIO


def test_provider_submission_failure_leaves_visit_failed(
    visit_repo, storage_service, make_visit
):
    from fakes import FakeTranscriptionService

    visit_repo.add(make_visit(processing_status="failed", retry_count=1))
    failing = FakeTranscriptionService(fail_submit=True)

    result = _retry(_use_case(visit_repo, failing, storage_service))

    assert result.code == RETRY_FAILED
    stored = visit_repo.get("VISIT-1")
    assert stored.processing_status == "failed"
    assert stored.retry_count == 1
    assert stored.last_retry_at is None


def test_losing_a_concurrent_retry_reports_already_processing(
    visit_repo, transcription_service, storage_service, make_visit
):
    visit_repo.add(make_visit(processing_status="failed", transcript="text"))
    use_case = _use_case(visit_repo, transcription_service, storage_service)
    original_update = visit_repo.update_fields

    async def racing_update(visit_id, **kwargs):
        # Another retry wins between the read and the conditional write
        visit_repo.get(visit_id).processing_status = "summarizing"
        return await original_update(visit_id, **kwargs)

    visit_repo.update_fields = racing_update

    result = _retry(use_case)

    assert result.code == ALREADY_PROCESSING
    assert result.details["processing_status"] == "summarizing"
    assert visit_repo.get("VISIT-1").retry_count == 0
