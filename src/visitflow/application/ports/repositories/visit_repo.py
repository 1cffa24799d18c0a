"""
Visit repository interface for managing visit data.
"""

from typing import Any, List, Mapping, Optional, Sequence

from visitflow.application.pagination import CursorPosition, SortDirection
from visitflow.domain.entities.visit import Visit


class VisitRepository:
    """Repository interface for managing visits."""

    async def create(self, visit: Visit) -> Visit:
        """Persist a new visit."""
        raise NotImplementedError

    async def find_by_id(self, visit_id: str) -> Optional[Visit]:
        """Find a visit by ID, including soft-deleted ones."""
        raise NotImplementedError

    async def find_transcribing_by_transcription_id(self, transcription_id: str) -> Optional[Visit]:
        """Find the visit currently transcribing under this provider handle."""
        raise NotImplementedError

    async def update_fields(
        self,
        visit_id: str,
        set_fields: Mapping[str, Any],
        unset_fields: Sequence[str] = (),
        inc_fields: Optional[Mapping[str, int]] = None,
        expected: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        """Apply one atomic single-document update.

        ``expected`` holds field values the stored document must still have
        for the update to apply. Returns whether a document matched and was updated.
        """
        raise NotImplementedError

    async def resolve_cursor(self, owner_user_id: str, cursor: str) -> Optional[CursorPosition]:
        """Position of an active visit owned by ``owner_user_id``, or None."""
        raise NotImplementedError

    async def list_for_owner(
        self,
        owner_user_id: str,
        limit: int,
        sort: SortDirection = SortDirection.DESC,
        after: Optional[CursorPosition] = None,
    ) -> List[Visit]:
        """Up to ``limit`` active visits strictly after ``after`` in sort order."""
        raise NotImplementedError

    async def list_all_for_owner(
        self, owner_user_id: str, sort: SortDirection = SortDirection.DESC
    ) -> List[Visit]:
        """Every active visit of the owner."""
        raise NotImplementedError

    async def find_stale(self, processing_status: str, updated_before: int, limit: int) -> List[Visit]:
        """Active visits stuck in ``processing_status`` since before ``updated_before``."""
        raise NotImplementedError
