"""
Cursor pagination primitives shared by every owner-scoped listing.

A page request is parsed from raw query values, handed to a repository that
fetches ``limit + 1`` records after the cursor position, and the repository
result is folded into a ``CursorPage``.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, List, Optional, Sequence, TypeVar, Union

from ..domain.errors import Failure

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortDirection":
        """``asc`` selects ascending order; anything else is descending."""
        if value is not None and str(value).strip().lower() == cls.ASC.value:
            return cls.ASC
        return cls.DESC


@dataclass(frozen=True)
class PageRequest:
    """Validated listing parameters."""

    limit: int
    cursor: Optional[str]
    sort: SortDirection
    paginated: bool

    @classmethod
    def parse(
        cls,
        limit: Any = None,
        cursor: Optional[str] = None,
        sort: Optional[str] = None,
        default_limit: int = DEFAULT_PAGE_SIZE,
        max_limit: int = MAX_PAGE_SIZE,
    ) -> Union["PageRequest", Failure]:
        """Parse raw query values.

        Pagination mode is enabled when either ``limit`` or ``cursor`` is
        supplied. Requested limits above ``max_limit`` are capped.
        """
        cursor = cursor.strip() if isinstance(cursor, str) and cursor.strip() else None
        direction = SortDirection.parse(sort)
        paginated = limit is not None or cursor is not None

        page_size = default_limit
        if limit is not None:
            parsed = _parse_positive_int(limit)
            if parsed is None:
                return Failure.invalid_limit()
            page_size = min(parsed, max_limit)

        return cls(limit=page_size, cursor=cursor, sort=direction, paginated=paginated)


def _parse_positive_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    # Leading integer prefix, so "10abc" reads as 10
    match = _INT_PREFIX.match(str(value))
    if match is None:
        return None
    parsed = int(match.group(1))
    return parsed if parsed > 0 else None


@dataclass(frozen=True)
class CursorPosition:
    """Sort key of the record a cursor points to."""

    record_id: str
    created_at: int


@dataclass
class CursorPage(Generic[T]):
    """One page of results plus continuation metadata."""

    items: List[T]
    has_more: bool = False
    next_cursor: Optional[str] = None

    @classmethod
    def from_overfetch(cls, records: Sequence[T], limit: int, id_of) -> "CursorPage[T]":
        """Build a page from a ``limit + 1`` fetch.

        ``id_of`` extracts the cursor id of a record.
        """
        has_more = len(records) > limit
        items = list(records[:limit])
        next_cursor = id_of(items[-1]) if has_more and items else None
        return cls(items=items, has_more=has_more, next_cursor=next_cursor)

    def headers(self) -> dict:
        return {
            "X-Has-More": "true" if self.has_more else "false",
            "X-Next-Cursor": self.next_cursor or "",
        }


async def fetch_owner_page(
    repository,
    owner_user_id: str,
    page_request: PageRequest,
    id_of,
) -> Union[CursorPage, Failure]:
    """Resolve the cursor and fetch one owner-scoped page from ``repository``.

    ``repository`` provides ``resolve_cursor`` and ``list_for_owner``.
    """
    after = None
    if page_request.cursor:
        after = await repository.resolve_cursor(owner_user_id, page_request.cursor)
        if after is None:
            return Failure.invalid_cursor()

    records = await repository.list_for_owner(
        owner_user_id, page_request.limit + 1, page_request.sort, after
    )
    return CursorPage.from_overfetch(records, page_request.limit, id_of)
