"""User middleware to extract and validate X-User-ID per request."""

import logging
import re

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from visitflow.api.schemas.common import ErrorResponse
from visitflow.core.config import get_settings

logger = logging.getLogger(__name__)

USER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.:@-]{1,128}$")


class UserMiddleware(BaseHTTPMiddleware):
    """Bind the caller's user ID from X-User-ID to request.state.

    Identity is asserted by the gateway in front of the service; this
    middleware only checks that a well-formed ID is present.
    """

    PUBLIC_PATHS = {
        "/",
        "/favicon.ico",
        "/docs",
        "/redoc",
        "/openapi.json",
        "/health",
        "/health/live",
        "/health/ready",
    }
    # Webhooks and maintenance carry their own shared secrets
    PUBLIC_PATH_PREFIXES = {
        "/docs",
        "/redoc",
        "/webhooks",
        "/maintenance",
    }

    def is_public_endpoint(self, path: str) -> bool:
        normalized_path = path.rstrip("/") or "/"
        if normalized_path in self.PUBLIC_PATHS:
            return True
        for prefix in self.PUBLIC_PATH_PREFIXES:
            if path.startswith(prefix + "/"):
                return True
        return False

    def _error(self, request: Request, status_code: int, error: str, message: str) -> JSONResponse:
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=error,
                message=message,
                request_id=getattr(request.state, "request_id", None) or "",
                details={"path": request.url.path, "method": request.method},
            ).model_dump(),
        )

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS" or self.is_public_endpoint(request.url.path):
            return await call_next(request)

        settings = get_settings()
        user_id = (request.headers.get("X-User-ID") or "").strip()

        if not user_id:
            if settings.require_user_id or not settings.default_user_id:
                logger.warning("Missing X-User-ID header for %s %s", request.method, request.url.path)
                return self._error(request, 401, "unauthorized", "X-User-ID header is required")
            user_id = settings.default_user_id
            logger.warning(
                "Missing X-User-ID header for %s %s, falling back to DEFAULT_USER_ID=%s",
                request.method,
                request.url.path,
                user_id,
            )

        if not USER_ID_PATTERN.match(user_id):
            logger.warning("Invalid user_id format: %s", user_id[:80])
            return self._error(
                request,
                400,
                "validation_failed",
                "X-User-ID must be 1-128 chars of letters, digits or . _ : @ -",
            )

        request.state.user_id = user_id
        return await call_next(request)
