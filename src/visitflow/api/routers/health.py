"""
Health check endpoints.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from pydantic import BaseModel

from ..deps import SettingsDep
from ..schemas.common import ApiResponse
from ..utils.responses import ok

router = APIRouter(prefix="/health", tags=["health"])


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    timestamp: datetime
    version: str
    service: str


@router.get("/", response_model=ApiResponse[HealthResponse])
async def health_check(request: Request, settings: SettingsDep):
    """Returns the current status of the service."""
    return ok(request, data=HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=settings.app_version,
        service=settings.app_name,
    ), message="OK")


@router.get("/ready", response_model=ApiResponse[dict])
async def readiness_check(request: Request, settings: SettingsDep):
    """
    Readiness check endpoint.

    Checks database connectivity and reports which providers are configured.
    """
    from motor.motor_asyncio import AsyncIOMotorClient

    checks = {}
    all_ok = True

    try:
        client = AsyncIOMotorClient(settings.database.uri, serverSelectionTimeoutMS=5000)
        await client.admin.command("ping")
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {str(e)[:50]}"
        all_ok = False

    checks["assemblyai"] = "configured" if settings.assemblyai.api_key else "not_configured"
    checks["azure_openai"] = (
        "configured" if settings.azure_openai.endpoint and settings.azure_openai.api_key else "not_configured"
    )
    checks["azure_blob_storage"] = (
        "configured"
        if settings.azure_blob.connection_string or settings.azure_blob.account_key
        else "not_configured"
    )
    if "not_configured" in (checks["assemblyai"], checks["azure_openai"], checks["azure_blob_storage"]):
        all_ok = False

    return ok(request, data={
        "status": "ready" if all_ok else "degraded",
        "timestamp": datetime.now(timezone.utc),
        "checks": checks,
    }, message="OK" if all_ok else "Some services unavailable")


@router.get("/live", response_model=ApiResponse[dict])
async def liveness_check(request: Request):
    """Returns whether the process is alive."""
    return ok(request, data={"status": "alive", "timestamp": datetime.now(timezone.utc)}, message="OK")
