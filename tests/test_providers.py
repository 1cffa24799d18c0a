"""
Provider adapter helpers: transcript formatting, summary parsing and blob signing.
"""

import pytest

from visitflow.adapters.external.summarization_service_openai import parse_summary_json
from visitflow.adapters.external.transcription_service_assemblyai import (
    AssemblyAITranscriptionService,
    format_transcript,
)
from visitflow.adapters.storage.azure_blob_service import (
    AzureBlobAudioStorageService,
    parse_connection_string,
)
from visitflow.core.config import AssemblyAISettings, AzureBlobSettings
from visitflow.core.exceptions import ConfigurationError, StorageError, SummarizationError


def test_format_transcript_labels_speakers_with_timestamps():
    utterances = [
        {"speaker": "A", "start": 0, "text": " Hello doctor. "},
        {"speaker": "B", "start": 75_500, "text": "Hi, how are you?"},
    ]

    assert format_transcript(utterances) == (
        "[00:00] Speaker A: Hello doctor.\n[01:15] Speaker B: Hi, how are you?"
    )


def test_format_transcript_falls_back_to_plain_text():
    assert format_transcript(None, "plain text") == "plain text"
    assert format_transcript([], "") == ""


def test_assemblyai_requires_api_key():
    with pytest.raises(ConfigurationError):
        AssemblyAITranscriptionService(AssemblyAISettings(api_key=""))


def test_parse_summary_json_normalizes_fields():
    summary = parse_summary_json(
        '{"summary": " Routine check. ", "diagnoses": ["Hypertension", 3, ""],'
        ' "medications": {"started": ["Lisinopril", {"name": "Aspirin", "dose": "81mg"}], "stopped": "x"},'
        ' "nextSteps": ["Recheck BP"]}'
    )

    assert summary.summary == "Routine check."
    assert summary.diagnoses == ["Hypertension"]
    assert summary.medications == {
        "started": [{"name": "Lisinopril"}, {"name": "Aspirin", "dose": "81mg"}],
        "stopped": [],
        "changed": [],
    }
    assert summary.imaging == []
    assert summary.next_steps == ["Recheck BP"]


def test_parse_summary_json_extracts_fenced_object():
    summary = parse_summary_json('```json\n{"summary": "ok", "next_steps": ["rest"]}\n```')

    assert summary.summary == "ok"
    assert summary.next_steps == ["rest"]


@pytest.mark.parametrize("content", ["no json here", "[1, 2]", "{broken"])
def test_parse_summary_json_rejects_unusable_output(content):
    with pytest.raises(SummarizationError):
        parse_summary_json(content)


def test_parse_connection_string_keeps_equals_in_values():
    parts = parse_connection_string(
        "DefaultEndpointsProtocol=https;AccountName=acct;AccountKey=abc==;EndpointSuffix=core.windows.net"
    )

    assert parts["AccountName"] == "acct"
    assert parts["AccountKey"] == "abc=="


def test_signed_url_uses_account_key():
    service = AzureBlobAudioStorageService(
        AzureBlobSettings(account_name="acct", account_key="dGVzdGtleQ==", container_name="visit-audio")
    )

    url = service.generate_signed_url("audio/a.mp3", expires_in_hours=1)

    assert url.startswith("https://acct.blob.core.windows.net/visit-audio/audio/a.mp3?")
    assert "sig=" in url
    assert "sp=r" in url


def test_signed_url_falls_back_to_connection_string_sas():
    service = AzureBlobAudioStorageService(
        AzureBlobSettings(
            connection_string="DefaultEndpointsProtocol=https;AccountName=acct;SharedAccessSignature=?sv=1&sig=x",
            container_name="visit-audio",
        )
    )

    assert service.generate_signed_url("a.mp3") == "https://acct.blob.core.windows.net/visit-audio/a.mp3?sv=1&sig=x"


def test_signed_url_without_credentials_fails():
    service = AzureBlobAudioStorageService(AzureBlobSettings(account_name="acct"))

    with pytest.raises(StorageError):
        service.generate_signed_url("a.mp3")
