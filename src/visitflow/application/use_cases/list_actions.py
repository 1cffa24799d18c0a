"""List Actions use case: the same cursor pagination applied to action items."""

from dataclasses import dataclass
from typing import Any, Optional, Union

from visitflow.application.pagination import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    CursorPage,
    PageRequest,
    fetch_owner_page,
)
from visitflow.application.ports.repositories.action_repo import ActionRepository
from visitflow.domain.errors import Failure


@dataclass
class ListActionsRequest:
    owner_user_id: str
    limit: Any = None
    cursor: Optional[str] = None
    sort: Optional[str] = None


@dataclass
class ListActionsResponse:
    page: CursorPage
    paginated: bool


class ListActionsUseCase:

    def __init__(
        self,
        action_repository: ActionRepository,
        default_limit: int = DEFAULT_PAGE_SIZE,
        max_limit: int = MAX_PAGE_SIZE,
    ):
        self._action_repository = action_repository
        self._default_limit = default_limit
        self._max_limit = max_limit

    async def execute(self, request: ListActionsRequest) -> Union[ListActionsResponse, Failure]:
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
            actions = await self._action_repository.list_all_for_owner(
                request.owner_user_id, page_request.sort
            )
            return ListActionsResponse(page=CursorPage(items=actions), paginated=False)

        page = await fetch_owner_page(
            self._action_repository,
            request.owner_user_id,
            page_request,
            lambda action: action.action_id,
        )
        if isinstance(page, Failure):
            return page
        return ListActionsResponse(page=page, paginated=True)
