"""
Transcription provider webhook.

Once the caller is authenticated and the payload parses, the endpoint always
answers 200 so the provider never retries delivery; outcomes that do not
apply (unknown transcript, superseded retry, redelivery) are folded into the
acknowledgement instead.
"""

import hmac
import json
import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Request
from pydantic import ValidationError as PydanticValidationError

from ...application.use_cases.ingest_transcription_webhook import (
    IngestTranscriptionWebhookUseCase,
    TranscriptionWebhookEvent,
)
from ...application.use_cases.summarize_visit import SummarizeVisitUseCase
from ...adapters.external.transcription_service_assemblyai import WEBHOOK_SECRET_HEADER
from ..deps import (
    SettingsDep,
    SummarizationServiceDep,
    TranscriptionServiceDep,
    VisitRepositoryDep,
)
from ..errors import UnauthorizedError, ValidationError
from ..schemas.common import ApiResponse
from ..schemas.webhooks import AssemblyAIWebhookPayload, WebhookAckResponse
from ..utils.responses import ok

router = APIRouter(prefix="/webhooks", tags=["webhooks"])
logger = logging.getLogger("visitflow")


def verify_webhook_secret(expected: str, provided: Optional[str]) -> bool:
    """Constant-time comparison; no configured secret means verification is off."""
    if not expected:
        return True
    if not provided:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), provided.encode("utf-8"))


async def _parse_payload(request: Request) -> AssemblyAIWebhookPayload:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Webhook body must be valid JSON")
    try:
        return AssemblyAIWebhookPayload.model_validate(body)
    except PydanticValidationError as e:
        raise ValidationError(
            "Invalid webhook payload",
            {"errors": [{"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()]},
        )


@router.post("/assemblyai/transcription-complete", response_model=ApiResponse[WebhookAckResponse])
async def assemblyai_transcription_complete(
    request: Request,
    background_tasks: BackgroundTasks,
    visit_repo: VisitRepositoryDep,
    transcription_service: TranscriptionServiceDep,
    summarization_service: SummarizationServiceDep,
    settings: SettingsDep,
):
    provided = request.headers.get(WEBHOOK_SECRET_HEADER) or request.query_params.get("secret")
    if not verify_webhook_secret(settings.webhook.secret, provided):
        logger.warning("[Webhook] Rejected callback with missing or invalid secret")
        raise UnauthorizedError("Invalid webhook secret")

    payload = await _parse_payload(request)
    logger.info("[Webhook] Received %s for transcript %s", payload.status, payload.transcript_id)

    ack = await IngestTranscriptionWebhookUseCase(visit_repo, transcription_service).execute(
        TranscriptionWebhookEvent(
            transcription_id=payload.transcript_id,
            status=payload.status,
            text=payload.text,
            error=payload.error,
        )
    )
    if ack.should_summarize:
        summarize = SummarizeVisitUseCase(visit_repo, summarization_service)
        background_tasks.add_task(summarize.execute, ack.visit_id)

    return ok(
        request,
        data=WebhookAckResponse(result=ack.result, message=ack.message, visit_id=ack.visit_id),
        message=ack.message,
    )
