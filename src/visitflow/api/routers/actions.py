"""
Action item listing endpoint.
"""

from typing import List, Optional

from fastapi import APIRouter, Query, Request, Response

from ...application.use_cases.list_actions import ListActionsRequest, ListActionsUseCase
from ...domain.errors import Failure
from ..deps import ActionRepositoryDep, CurrentUserDep, SettingsDep
from ..errors import api_error_from_failure
from ..schemas.actions import ActionResponse
from ..schemas.common import ApiResponse
from ..utils.responses import ok

router = APIRouter(prefix="/actions", tags=["actions"])


@router.get("", response_model=ApiResponse[List[ActionResponse]])
async def list_actions(
    request: Request,
    response: Response,
    user_id: CurrentUserDep,
    action_repo: ActionRepositoryDep,
    settings: SettingsDep,
    limit: Optional[str] = Query(None),
    cursor: Optional[str] = Query(None),
    sort: Optional[str] = Query(None),
):
    use_case = ListActionsUseCase(
        action_repo,
        default_limit=settings.pagination.default_limit,
        max_limit=settings.pagination.max_limit,
    )
    result = await use_case.execute(
        ListActionsRequest(owner_user_id=user_id, limit=limit, cursor=cursor, sort=sort)
    )
    if isinstance(result, Failure):
        raise api_error_from_failure(result)

    if result.paginated:
        response.headers.update(result.page.headers())
    return ok(request, data=[ActionResponse.from_entity(a) for a in result.page.items])
