"""
Action item repository interface.
"""

from typing import List, Optional

from visitflow.application.pagination import CursorPosition, SortDirection
from visitflow.domain.entities.action import ActionItem


class ActionRepository:
    """Repository interface for owner action items."""

    async def create(self, action: ActionItem) -> ActionItem:
        raise NotImplementedError

    async def resolve_cursor(self, owner_user_id: str, cursor: str) -> Optional[CursorPosition]:
        raise NotImplementedError

    async def list_for_owner(
        self,
        owner_user_id: str,
        limit: int,
        sort: SortDirection = SortDirection.DESC,
        after: Optional[CursorPosition] = None,
    ) -> List[ActionItem]:
        raise NotImplementedError

    async def list_all_for_owner(
        self, owner_user_id: str, sort: SortDirection = SortDirection.DESC
    ) -> List[ActionItem]:
        raise NotImplementedError

    async def set_deleted_for_visit(
        self, owner_user_id: str, visit_id: str, deleted_at: Optional[int], deleted_by: Optional[str]
    ) -> int:
        """Soft-delete (or restore, with ``deleted_at=None``) the visit's actions.

        Returns the number of actions changed.
        """
        raise NotImplementedError
