"""
Summarization service interface for transcript-to-summary generation.
"""

from abc import ABC, abstractmethod

from visitflow.domain.entities.visit import VisitSummary


class SummarizationService(ABC):
    """Abstract service producing a visit summary from a transcript."""

    @abstractmethod
    async def summarize(self, transcript: str) -> VisitSummary:
        """
        Summarize a visit transcript.

        Args:
            transcript: Speaker-labelled transcript text

        Returns:
            VisitSummary with summary text and extracted items
        """
