"""
Transcription webhook ingestion tests.
"""

import asyncio

from visitflow.application.ports.services.transcription_service import TranscriptResult
from visitflow.application.use_cases.ingest_transcription_webhook import (
    RESULT_ADVANCED,
    RESULT_FAILED,
    RESULT_IGNORED,
    IngestTranscriptionWebhookUseCase,
    TranscriptionWebhookEvent,
)

from fakes import NOW


def _ingest(visit_repo, transcription_service, event):
    use_case = IngestTranscriptionWebhookUseCase(visit_repo, transcription_service, clock=lambda: NOW + 5)
    return asyncio.run(use_case.execute(event))


def _transcribing(make_visit, **fields):
    values = {"processing_status": "transcribing", "transcription_id": "tx-1", "processing_error": "old"}
    values.update(fields)
    return make_visit(**values)


def test_completed_event_stores_formatted_transcript(visit_repo, transcription_service, make_visit):
    visit_repo.add(_transcribing(make_visit))
    transcription_service.transcripts["tx-1"] = TranscriptResult(
        transcription_id="tx-1",
        status="completed",
        text="hello",
        formatted_text="[00:00] Speaker A: hello",
    )

    ack = _ingest(
        visit_repo, transcription_service, TranscriptionWebhookEvent("tx-1", "completed", text="hello")
    )

    assert ack.result == RESULT_ADVANCED
    assert ack.should_summarize
    assert ack.visit_id == "VISIT-1"
    stored = visit_repo.get("VISIT-1")
    assert stored.processing_status == "summarizing"
    assert stored.transcription_status == "completed"
    assert stored.transcript == "[00:00] Speaker A: hello"
    assert stored.transcript_text == "[00:00] Speaker A: hello"
    assert stored.processing_error is None
    assert stored.updated_at == NOW + 5


def test_payload_text_is_used_when_provider_lookup_fails(visit_repo, transcription_service, make_visit):
    visit_repo.add(_transcribing(make_visit))

    ack = _ingest(
        visit_repo, transcription_service, TranscriptionWebhookEvent("tx-1", "completed", text="raw text")
    )

    assert ack.result == RESULT_ADVANCED
    assert visit_repo.get("VISIT-1").transcript == "raw text"


def test_error_event_fails_the_visit(visit_repo, transcription_service, make_visit):
    visit_repo.add(_transcribing(make_visit))

    ack = _ingest(
        visit_repo,
        transcription_service,
        TranscriptionWebhookEvent("tx-1", "error", error="Audio file is corrupted"),
    )

    assert ack.result == RESULT_FAILED
    assert not ack.should_summarize
    stored = visit_repo.get("VISIT-1")
    assert stored.processing_status == "failed"
    assert stored.status == "failed"
    assert stored.transcription_status == "error"
    assert stored.processing_error == "Audio file is corrupted"


def test_error_event_without_message_uses_default(visit_repo, transcription_service, make_visit):
    visit_repo.add(_transcribing(make_visit))

    _ingest(visit_repo, transcription_service, TranscriptionWebhookEvent("tx-1", "error"))

    assert visit_repo.get("VISIT-1").processing_error == "Transcription failed"


def test_unknown_transcript_is_acknowledged(visit_repo, transcription_service):
    ack = _ingest(visit_repo, transcription_service, TranscriptionWebhookEvent("tx-404", "completed"))

    assert ack.result == RESULT_IGNORED
    assert ack.visit_id is None
    assert visit_repo.update_calls == []


def test_duplicate_delivery_is_a_no_op(visit_repo, transcription_service, make_visit):
    visit_repo.add(_transcribing(make_visit))
    event = TranscriptionWebhookEvent("tx-1", "completed", text="hello")

    first = _ingest(visit_repo, transcription_service, event)
    second = _ingest(visit_repo, transcription_service, event)

    assert first.result == RESULT_ADVANCED
    assert second.result == RESULT_IGNORED
    assert visit_repo.get("VISIT-1").processing_status == "summarizing"


def test_callback_for_superseded_transcription_is_ignored(visit_repo, transcription_service, make_visit):
    # A retry bound the visit to tx-2; the late tx-1 error must not fail it
    visit_repo.add(_transcribing(make_visit, transcription_id="tx-2"))

    ack = _ingest(
        visit_repo, transcription_service, TranscriptionWebhookEvent("tx-1", "error", error="late")
    )

    assert ack.result == RESULT_IGNORED
    stored = visit_repo.get("VISIT-1")
    assert stored.processing_status == "transcribing"
    assert stored.transcription_id == "tx-2"


def test_state_change_between_lookup_and_write_is_ignored(visit_repo, transcription_service, make_visit):
    visit_repo.add(_transcribing(make_visit))
    original_update = visit_repo.update_fields

    async def racing_update(visit_id, **kwargs):
        visit_repo.get(visit_id).processing_status = "failed"
        return await original_update(visit_id, **kwargs)

    visit_repo.update_fields = racing_update

    ack = _ingest(visit_repo, transcription_service, TranscriptionWebhookEvent("tx-1", "completed", text="x"))

    assert ack.result == RESULT_IGNORED
    assert ack.visit_id == "VISIT-1"
    assert visit_repo.get("VISIT-1").processing_status == "failed"
