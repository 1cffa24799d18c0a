"""
Query builders for owner-scoped cursor pagination.

Records are ordered by ``(created_at, <id field>)`` so records sharing a
creation timestamp still page deterministically.
"""

from typing import Any, Dict, List, Optional, Tuple

from visitflow.application.pagination import CursorPosition, SortDirection


def active_owner_filter(owner_user_id: str) -> Dict[str, Any]:
    return {"owner_user_id": owner_user_id, "deleted_at": None}


def after_cursor_filter(
    id_field: str, after: Optional[CursorPosition], sort: SortDirection
) -> Dict[str, Any]:
    """Records strictly past ``after`` in the given sort order."""
    if after is None:
        return {}
    op = "$gt" if sort == SortDirection.ASC else "$lt"
    return {
        "$or": [
            {"created_at": {op: after.created_at}},
            {"created_at": after.created_at, id_field: {op: after.record_id}},
        ]
    }


def sort_spec(id_field: str, sort: SortDirection) -> List[Tuple[str, int]]:
    direction = 1 if sort == SortDirection.ASC else -1
    return [("created_at", direction), (id_field, direction)]
