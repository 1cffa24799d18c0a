"""
Visit endpoints: listing, lifecycle and client-initiated retry.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Query, Request, Response, status

from ...application.use_cases.list_visits import ListVisitsRequest, ListVisitsUseCase
from ...application.use_cases.manage_visit import (
    CreateVisitRequest as CreateVisitCommand,
    CreateVisitUseCase,
    DeleteVisitUseCase,
    GetVisitUseCase,
    RestoreVisitUseCase,
)
from ...application.use_cases.retry_visit import (
    RESUME_SUMMARIZE,
    RetryVisitRequest,
    RetryVisitUseCase,
)
from ...application.use_cases.start_transcription import StartTranscriptionUseCase
from ...application.use_cases.summarize_visit import SummarizeVisitUseCase
from ...domain.errors import Failure
from ..deps import (
    ActionRepositoryDep,
    AudioStorageServiceDep,
    CurrentUserDep,
    SettingsDep,
    SummarizationServiceDep,
    TranscriptionServiceDep,
    VisitRepositoryDep,
)
from ..errors import api_error_from_failure
from ..schemas.common import ApiResponse
from ..schemas.visits import (
    CreateVisitRequest,
    RestoreVisitResult,
    RetryVisitResult,
    VisitResponse,
)
from ..utils.responses import ok

router = APIRouter(prefix="/visits", tags=["visits"])
logger = logging.getLogger("visitflow")


@router.get("", response_model=ApiResponse[List[VisitResponse]])
async def list_visits(
    request: Request,
    response: Response,
    user_id: CurrentUserDep,
    visit_repo: VisitRepositoryDep,
    settings: SettingsDep,
    limit: Optional[str] = Query(None, description="Page size; enables pagination"),
    cursor: Optional[str] = Query(None, description="visit_id of the last item of the previous page"),
    sort: Optional[str] = Query(None, description="asc or desc (default) by created_at"),
):
    """List the caller's visits, newest first unless ``sort=asc``."""
    use_case = ListVisitsUseCase(
        visit_repo,
        default_limit=settings.pagination.default_limit,
        max_limit=settings.pagination.max_limit,
    )
    result = await use_case.execute(
        ListVisitsRequest(owner_user_id=user_id, limit=limit, cursor=cursor, sort=sort)
    )
    if isinstance(result, Failure):
        raise api_error_from_failure(result)

    if result.paginated:
        response.headers.update(result.page.headers())
    visits = [VisitResponse.from_entity(v) for v in result.page.items]
    return ok(request, data=visits, message=f"{len(visits)} visits")


@router.post("", response_model=ApiResponse[VisitResponse], status_code=status.HTTP_201_CREATED)
async def create_visit(
    request: Request,
    payload: CreateVisitRequest,
    background_tasks: BackgroundTasks,
    user_id: CurrentUserDep,
    visit_repo: VisitRepositoryDep,
    transcription_service: TranscriptionServiceDep,
    storage_service: AudioStorageServiceDep,
    settings: SettingsDep,
):
    """Create a visit; transcription starts in the background when audio is attached."""
    visit = await CreateVisitUseCase(visit_repo).execute(
        CreateVisitCommand(owner_user_id=user_id, storage_path=payload.storage_path, notes=payload.notes)
    )
    if visit.storage_path:
        start = StartTranscriptionUseCase(
            visit_repo,
            transcription_service,
            storage_service,
            signed_url_expiry_hours=settings.azure_blob.signed_url_expiry_hours,
        )
        background_tasks.add_task(start.execute, visit.visit_id)
    return ok(request, data=VisitResponse.from_entity(visit), message="Visit created")


@router.get("/{visit_id}", response_model=ApiResponse[VisitResponse])
async def get_visit(
    request: Request,
    visit_id: str,
    user_id: CurrentUserDep,
    visit_repo: VisitRepositoryDep,
):
    result = await GetVisitUseCase(visit_repo).execute(visit_id, user_id)
    if isinstance(result, Failure):
        raise api_error_from_failure(result)
    return ok(request, data=VisitResponse.from_entity(result))


@router.delete("/{visit_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_visit(
    visit_id: str,
    user_id: CurrentUserDep,
    visit_repo: VisitRepositoryDep,
    action_repo: ActionRepositoryDep,
):
    """Soft-delete a visit and its action items."""
    result = await DeleteVisitUseCase(visit_repo, action_repo).execute(visit_id, user_id)
    if isinstance(result, Failure):
        raise api_error_from_failure(result)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{visit_id}/restore", response_model=ApiResponse[RestoreVisitResult])
async def restore_visit(
    request: Request,
    visit_id: str,
    user_id: CurrentUserDep,
    visit_repo: VisitRepositoryDep,
    action_repo: ActionRepositoryDep,
):
    result = await RestoreVisitUseCase(visit_repo, action_repo).execute(visit_id, user_id)
    if isinstance(result, Failure):
        raise api_error_from_failure(result)
    return ok(
        request,
        data=RestoreVisitResult(visit_id=result.visit_id, restored_actions=result.affected_actions),
        message="Visit restored",
    )


@router.post("/{visit_id}/retry", response_model=ApiResponse[RetryVisitResult])
async def retry_visit(
    request: Request,
    visit_id: str,
    background_tasks: BackgroundTasks,
    user_id: CurrentUserDep,
    visit_repo: VisitRepositoryDep,
    transcription_service: TranscriptionServiceDep,
    summarization_service: SummarizationServiceDep,
    storage_service: AudioStorageServiceDep,
    settings: SettingsDep,
):
    """
    Retry a failed visit.

    Resumes at summarization when a transcript already exists, otherwise
    resubmits the audio for transcription.
    """
    use_case = RetryVisitUseCase(
        visit_repo,
        transcription_service,
        storage_service,
        throttle_seconds=settings.retry.throttle_seconds,
        signed_url_expiry_hours=settings.azure_blob.signed_url_expiry_hours,
    )
    result = await use_case.execute(RetryVisitRequest(visit_id=visit_id, caller_id=user_id))
    if isinstance(result, Failure):
        logger.info("[Retry] Rejected retry for visit %s: %s", visit_id, result.code)
        raise api_error_from_failure(result)

    if result.resume_point == RESUME_SUMMARIZE:
        summarize = SummarizeVisitUseCase(visit_repo, summarization_service)
        background_tasks.add_task(summarize.execute, visit_id)

    return ok(
        request,
        data=RetryVisitResult(
            visit=VisitResponse.from_entity(result.visit), resume_point=result.resume_point
        ),
        message="Visit retry started",
    )
