"""List Visits use case: owner-scoped, optionally cursor-paginated."""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from visitflow.application.pagination import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    CursorPage,
    PageRequest,
    fetch_owner_page,
)
from visitflow.application.ports.repositories.visit_repo import VisitRepository
from visitflow.domain.entities.visit import Visit
from visitflow.domain.errors import Failure

logger = logging.getLogger("visitflow")


@dataclass
class ListVisitsRequest:
    owner_user_id: str
    limit: Any = None
    cursor: Optional[str] = None
    sort: Optional[str] = None


@dataclass
class ListVisitsResponse:
    page: CursorPage
    paginated: bool


class ListVisitsUseCase:
    """List the caller's active visits."""

    def __init__(
        self,
        visit_repository: VisitRepository,
        default_limit: int = DEFAULT_PAGE_SIZE,
        max_limit: int = MAX_PAGE_SIZE,
    ):
        self._visit_repository = visit_repository
        self._default_limit = default_limit
        self._max_limit = max_limit

    async def execute(self, request: ListVisitsRequest) -> Union[ListVisitsResponse, Failure]:
        page_request = PageRequest.parse(
            request.limit,
            request.cursor,
            request.sort,
            default_limit=self._default_limit,
            max_limit=self._max_limit,
        )
        if isinstance(page_request, Failure):
            return page_request

        if not page_request.paginated:
            # Unpaginated listing for small result sets
            visits = await self._visit_repository.list_all_for_owner(
                request.owner_user_id, page_request.sort
            )
            return ListVisitsResponse(page=CursorPage(items=visits), paginated=False)

        page = await fetch_owner_page(
            self._visit_repository, request.owner_user_id, page_request, _visit_cursor_id
        )
        if isinstance(page, Failure):
            logger.info(
                "[Visits] Invalid cursor %s for user %s", request.cursor, request.owner_user_id
            )
            return page

        logger.info(
            "[Visits] Listed %d visits for user %s (has_more=%s, sort=%s)",
            len(page.items),
            request.owner_user_id,
            page.has_more,
            page_request.sort.value,
        )
        return ListVisitsResponse(page=page, paginated=True)


def _visit_cursor_id(visit: Visit) -> str:
    return visit.visit_id
