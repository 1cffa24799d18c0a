"""
Audio storage interface used to hand audio to external providers.
"""

from abc import ABC, abstractmethod
from typing import Optional


class AudioStorageService(ABC):

    @abstractmethod
    def generate_signed_url(self, blob_path: str, expires_in_hours: Optional[int] = None) -> str:
        """Return a time-limited read URL for the blob at ``blob_path``."""
