"""
Transcription service interface for audio-to-text conversion.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class TranscriptResult:
    """Provider-side state of one transcription job."""

    transcription_id: str
    status: str  # queued, processing, completed, error
    text: str = ""
    formatted_text: str = ""
    error: Optional[str] = None

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    @property
    def is_error(self) -> bool:
        return self.status == "error"


class TranscriptionService(ABC):
    """Abstract service for asynchronous audio transcription."""

    @abstractmethod
    async def submit_transcription(self, audio_url: str) -> str:
        """
        Submit audio for transcription.

        Args:
            audio_url: Signed URL the provider can fetch the audio from

        Returns:
            Provider transcription ID
        """

    @abstractmethod
    async def get_transcript(self, transcription_id: str) -> TranscriptResult:
        """Fetch the current state (and text, when finished) of a transcription."""
