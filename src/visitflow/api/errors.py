from visitflow.domain import errors as codes
from visitflow.domain.errors import Failure


class APIError(Exception):
    def __init__(self, code: str, message: str, http_status: int = 400, details: dict = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.http_status = http_status
        self.details = details


class ValidationError(APIError):
    def __init__(self, message: str, details: dict = None):
        super().__init__(codes.VALIDATION_FAILED, message, 400, details)


class UnauthorizedError(APIError):
    def __init__(self, message: str = "Unauthorized", details: dict = None):
        super().__init__("unauthorized", message, 401, details)


class ForbiddenError(APIError):
    def __init__(self, message: str, details: dict = None):
        super().__init__(codes.FORBIDDEN, message, 403, details)


class NotFoundError(APIError):
    def __init__(self, message: str, details: dict = None):
        super().__init__(codes.NOT_FOUND, message, 404, details)


class ConflictError(APIError):
    def __init__(self, message: str, details: dict = None, code: str = codes.ALREADY_PROCESSING):
        super().__init__(code, message, 409, details)


class RateLimitError(APIError):
    def __init__(self, message: str, details: dict = None):
        super().__init__(codes.RETRY_TOO_SOON, message, 429, details)


class DownstreamError(APIError):
    def __init__(self, message: str, details: dict = None):
        super().__init__(codes.RETRY_FAILED, message, 502, details)


class ServiceUnavailableError(APIError):
    def __init__(self, message: str, details: dict = None):
        super().__init__("service_unavailable", message, 503, details)


# HTTP status per domain error code
STATUS_BY_CODE = {
    codes.NOT_FOUND: 404,
    codes.FORBIDDEN: 403,
    codes.ALREADY_PROCESSING: 409,
    codes.NOT_DELETED: 409,
    codes.RETRY_TOO_SOON: 429,
    codes.MISSING_AUDIO: 400,
    codes.VALIDATION_FAILED: 400,
    codes.RETRY_FAILED: 502,
}


def api_error_from_failure(failure: Failure) -> APIError:
    """Translate a use-case failure value into the matching APIError."""
    details = dict(failure.details)
    if failure.code == codes.NOT_FOUND:
        return NotFoundError(failure.message, details)
    if failure.code == codes.FORBIDDEN:
        return ForbiddenError(failure.message, details)
    if failure.code in (codes.ALREADY_PROCESSING, codes.NOT_DELETED):
        return ConflictError(failure.message, details, code=failure.code)
    if failure.code == codes.RETRY_TOO_SOON:
        return RateLimitError(failure.message, details)
    if failure.code == codes.RETRY_FAILED:
        return DownstreamError(failure.message, details)
    return APIError(failure.code, failure.message, STATUS_BY_CODE.get(failure.code, 400), details)
