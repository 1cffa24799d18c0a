"""
AssemblyAI asynchronous transcription with speaker labels.

Jobs are submitted with a webhook so the provider calls back when the
transcript is ready; ``get_transcript`` is used by the webhook handler and
the stale sweeper to read the final text.
"""

import logging
from typing import Any, Dict, List, Optional

import aiohttp

from visitflow.application.ports.services.transcription_service import (
    TranscriptionService,
    TranscriptResult,
)
from visitflow.core.config import AssemblyAISettings
from visitflow.core.exceptions import ConfigurationError, TranscriptionError

logger = logging.getLogger("visitflow")

WEBHOOK_SECRET_HEADER = "X-AssemblyAI-Secret"


def format_transcript(utterances: Optional[List[Dict[str, Any]]], fallback_text: str = "") -> str:
    """Render utterances as ``[MM:SS] Speaker X: text`` lines."""
    if not utterances:
        return fallback_text or ""

    lines = []
    for utterance in utterances:
        start_seconds = int(utterance.get("start") or 0) // 1000
        minutes, seconds = divmod(start_seconds, 60)
        text = (utterance.get("text") or "").strip()
        lines.append(f"[{minutes:02d}:{seconds:02d}] Speaker {utterance.get('speaker')}: {text}")
    return "\n".join(lines)


def _raise_for_status(status: int, body: str, action: str, transcription_id: str = "") -> None:
    if status < 400:
        return
    if status == 401:
        raise TranscriptionError("AssemblyAI authentication failed - API key may be invalid", status)
    if status == 404 and transcription_id:
        raise TranscriptionError(f"Transcript not found: {transcription_id}", status)
    if status == 400:
        raise TranscriptionError(f"AssemblyAI request error: {body}", status)
    if status == 429:
        raise TranscriptionError("AssemblyAI rate limit exceeded - please try again later", status)
    if status >= 500:
        raise TranscriptionError("AssemblyAI service temporarily unavailable - please try again later", status)
    raise TranscriptionError(f"Failed to {action}: {status} {body}", status)


class AssemblyAITranscriptionService(TranscriptionService):
    """AssemblyAI REST implementation of TranscriptionService."""

    def __init__(self, settings: AssemblyAISettings, webhook_secret: str = "") -> None:
        if not settings.api_key:
            raise ConfigurationError(
                "AssemblyAI API key is required. Please set ASSEMBLYAI_API_KEY environment variable."
            )
        self._settings = settings
        self._webhook_secret = webhook_secret
        self._headers = {"authorization": settings.api_key, "content-type": "application/json"}
        self._timeout = aiohttp.ClientTimeout(total=settings.timeout_seconds)

    def _submission_payload(self, audio_url: str) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "audio_url": audio_url,
            "speaker_labels": True,
            "punctuate": True,
            "format_text": True,
            "language_code": self._settings.language_code,
            "disfluencies": True,
            "auto_chapters": False,
        }
        if self._settings.webhook_url:
            payload["webhook_url"] = self._settings.webhook_url
            if self._webhook_secret:
                payload["webhook_auth_header_name"] = WEBHOOK_SECRET_HEADER
                payload["webhook_auth_header_value"] = self._webhook_secret
        return payload

    async def submit_transcription(self, audio_url: str) -> str:
        url = f"{self._settings.base_url}/transcript"
        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.post(
                    url, json=self._submission_payload(audio_url), headers=self._headers
                ) as response:
                    body = await response.text()
                    _raise_for_status(response.status, body, "submit transcription")
                    data = await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise TranscriptionError(f"Unexpected error submitting transcription: {e}") from e

        transcription_id = data.get("id")
        if not transcription_id:
            raise TranscriptionError("AssemblyAI did not return a transcript id")
        logger.info(f"AssemblyAI transcription submitted: {transcription_id}")
        return transcription_id

    async def get_transcript(self, transcription_id: str) -> TranscriptResult:
        url = f"{self._settings.base_url}/transcript/{transcription_id}"
        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.get(url, headers=self._headers) as response:
                    body = await response.text()
                    _raise_for_status(response.status, body, "get transcript", transcription_id)
                    data = await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise TranscriptionError(f"Unexpected error getting transcript: {e}") from e

        text = data.get("text") or ""
        return TranscriptResult(
            transcription_id=data.get("id") or transcription_id,
            status=data.get("status") or "queued",
            text=text,
            formatted_text=format_transcript(data.get("utterances"), text),
            error=data.get("error"),
        )
