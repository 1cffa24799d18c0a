"""
FastAPI application factory and main app configuration.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.errors import STATUS_BY_CODE, APIError
from .api.routers import actions, health, maintenance, visits, webhooks
from .api.schemas.common import ErrorResponse
from .core.config import get_settings
from .core.structured_logger import configure_logging
from .domain.errors import VALIDATION_FAILED, DomainError
from .middleware.performance_middleware import PerformanceMiddleware
from .middleware.request_id_middleware import RequestIDMiddleware
from .middleware.user_middleware import UserMiddleware

logger = logging.getLogger("visitflow")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    from .adapters.db.mongo.database import init_database
    from .workers.soft_delete_purger import run_purger_forever
    from .workers.stale_visit_sweeper import run_stale_sweeper_forever

    settings = get_settings()
    configure_logging(settings.logging.level, settings.logging.format)
    logger.info(f"Starting {settings.app_name} v{settings.app_version} (env={settings.app_env})")

    try:
        client = await init_database(settings.database)
    except Exception as e:
        logger.error(f"Database connection failed: {type(e).__name__}: {e}", exc_info=True)
        raise

    # In-process workers are optional; production runs them via the *_startup.py entry points
    background_tasks = []
    if settings.sweeper.enabled:
        background_tasks.append(asyncio.create_task(run_stale_sweeper_forever(settings)))
        logger.info("Stale visit sweeper started as background task")
    if settings.retention.enabled:
        background_tasks.append(asyncio.create_task(run_purger_forever(settings)))
        logger.info("Soft-delete purger started as background task")

    try:
        yield
    finally:
        for task in background_tasks:
            task.cancel()
        for task in background_tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        client.close()
        logger.info("Shutting down")


def _error_response(request: Request, status_code: int, error: str, message: str, details=None) -> JSONResponse:
    req_id = getattr(request.state, "request_id", None)
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=error,
            message=message,
            request_id=req_id or "",
            details=details or {},
        ).model_dump(),
    )


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Visit audio processing pipeline: transcription, summarization and retention",
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.allowed_origins,
        allow_credentials=False,
        allow_methods=settings.cors.allowed_methods,
        allow_headers=settings.cors.allowed_headers,
        expose_headers=["X-Has-More", "X-Next-Cursor", "X-Request-ID", "X-Process-Time"],
        max_age=600,
    )
    app.add_middleware(UserMiddleware)
    app.add_middleware(PerformanceMiddleware)
    # Outermost, so every other middleware sees request.state.request_id
    app.add_middleware(RequestIDMiddleware)

    app.include_router(health.router)
    app.include_router(visits.router)
    app.include_router(actions.router)
    app.include_router(webhooks.router)
    app.include_router(maintenance.router)

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        status_code = STATUS_BY_CODE.get(exc.error_code, 400)
        return _error_response(request, status_code, exc.error_code or "domain_error", exc.message, exc.details)

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        req_id = getattr(request.state, "request_id", None)
        log = logger.error if exc.http_status >= 500 else logger.info
        log(f"APIError: {exc.code} ({exc.http_status}) {exc.message} | request_id={req_id}")
        return _error_response(request, exc.http_status, exc.code, exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"loc": list(error.get("loc", [])), "msg": error.get("msg", "Validation error")}
            for error in exc.errors()
        ]
        messages = "; ".join(" -> ".join(str(x) for x in e["loc"]) + f": {e['msg']}" for e in errors)
        logger.info(f"ValidationError on {request.method} {request.url.path}: {messages}")
        return _error_response(
            request,
            400,
            VALIDATION_FAILED,
            f"Input validation failed: {messages}",
            {"errors": errors, "path": request.url.path},
        )

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception):
        req_id = getattr(request.state, "request_id", None)
        logger.error(f"Unhandled error: {type(exc).__name__}: {exc} | request_id={req_id}", exc_info=exc)
        return _error_response(
            request, 500, "internal_error", "An unexpected error has occurred. Please try again later."
        )

    @app.get("/", tags=["health"])
    async def root():
        """Root endpoint with API information."""
        return {
            "service": settings.app_name,
            "version": settings.app_version,
            "environment": settings.app_env,
            "status": "running",
            "docs": "/docs",
            "endpoints": {
                "health": "/health",
                "list_visits": "GET /visits?limit&cursor&sort",
                "create_visit": "POST /visits",
                "get_visit": "GET /visits/{visit_id}",
                "delete_visit": "DELETE /visits/{visit_id}",
                "restore_visit": "POST /visits/{visit_id}/restore",
                "retry_visit": "POST /visits/{visit_id}/retry",
                "list_actions": "GET /actions?limit&cursor&sort",
                "transcription_webhook": "POST /webhooks/assemblyai/transcription-complete",
                "purge_soft_deleted": "POST /maintenance/purge-soft-deleted",
            },
        }

    return app


app = create_app()
