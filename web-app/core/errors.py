"""
Standard error envelope returned by the API.

Every failure leaves the service as
    {"error": <code>, "error_description": <text>, "timestamp": <ISO8601>, "requestId": <id>}
"""
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import NoReturn, Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from utils.logger import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "x-request-id"


class AppErrorCode(str, Enum):
    AUTHENTICATION_FAILED = "authentication_failed"
    SESSION_EXPIRED = "session_expired"
    INVALID_TOKEN = "invalid_token"
    UNAUTHORIZED = "unauthorized"
    TOKEN_EXPIRED = "token_expired"
    USER_NOT_FOUND = "user_not_found"
    INSUFFICIENT_PERMISSIONS = "insufficient_permissions"
    PERMISSION_CHECK_ERROR = "permission_check_error"
    SSO_SERVICE_UNAVAILABLE = "sso_service_unavailable"
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    INTERNAL_ERROR = "internal_error"


class ErrorResponse(BaseModel):
    error: str
    error_description: str
    timestamp: str
    requestId: Optional[str] = None


class APIError(HTTPException):
    """HTTPException that renders as the standard error envelope."""

    def __init__(self, status_code: int, error: "AppErrorCode | str", error_description: str):
        self.error = error.value if isinstance(error, AppErrorCode) else error
        self.error_description = error_description
        super().__init__(status_code=status_code, detail=error_description)

    # Authentication (401)
    @classmethod
    def unauthorized(cls) -> "APIError":
        return cls(status.HTTP_401_UNAUTHORIZED, AppErrorCode.UNAUTHORIZED, "Authentication required")

    @classmethod
    def token_expired(cls) -> "APIError":
        return cls(status.HTTP_401_UNAUTHORIZED, AppErrorCode.TOKEN_EXPIRED, "Session expired, please login again")

    @classmethod
    def session_expired(cls) -> "APIError":
        return cls(status.HTTP_401_UNAUTHORIZED, AppErrorCode.SESSION_EXPIRED, "Session expired. Please login again.")

    # Authorization (403)
    @classmethod
    def user_not_found(cls) -> "APIError":
        return cls(
            status.HTTP_403_FORBIDDEN,
            AppErrorCode.USER_NOT_FOUND,
            "You don't have access to AssignWork. Please contact your administrator.",
        )

    @classmethod
    def insufficient_permissions(cls, reason: Optional[str] = None) -> "APIError":
        return cls(
            status.HTTP_403_FORBIDDEN,
            AppErrorCode.INSUFFICIENT_PERMISSIONS,
            reason or "You do not have permission to access this resource. Please contact your administrator.",
        )

    # System (5xx)
    @classmethod
    def permission_check_error(cls) -> "APIError":
        return cls(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            AppErrorCode.PERMISSION_CHECK_ERROR,
            "An error occurred while checking permissions",
        )

    @classmethod
    def internal_error(cls) -> "APIError":
        return cls(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            AppErrorCode.INTERNAL_ERROR,
            "An internal error occurred. Please try again later.",
        )

    @classmethod
    def sso_service_unavailable(cls) -> "APIError":
        return cls(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            AppErrorCode.SSO_SERVICE_UNAVAILABLE,
            "SSO Service is temporarily unavailable. Please try again later.",
        )

    # Request problems
    @classmethod
    def not_found(cls, what: str) -> "APIError":
        return cls(status.HTTP_404_NOT_FOUND, AppErrorCode.NOT_FOUND, f"{what} not found")

    @classmethod
    def conflict(cls, description: str) -> "APIError":
        return cls(status.HTTP_409_CONFLICT, AppErrorCode.CONFLICT, description)

    @classmethod
    def validation_error(cls, description: str) -> "APIError":
        return cls(status.HTTP_400_BAD_REQUEST, AppErrorCode.VALIDATION_ERROR, description)


def get_request_id(request: Request) -> str:
    """Reuse the caller's x-request-id, or mint one."""
    request_id = getattr(request.state, "request_id", None)
    if request_id is None:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
    return request_id


def create_error_response(
    error: "AppErrorCode | str",
    error_description: str,
    status_code: int,
    request_id: Optional[str] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=error.value if isinstance(error, AppErrorCode) else error,
        error_description=error_description,
        timestamp=datetime.now(timezone.utc).isoformat(),
        requestId=request_id,
    )
    response = JSONResponse(body.model_dump(exclude_none=True), status_code=status_code, headers=headers)
    if request_id:
        response.headers[REQUEST_ID_HEADER] = request_id
    return response


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    return create_error_response(exc.error, exc.error_description, exc.status_code, get_request_id(request))


STATUS_ERROR_CODES = {
    status.HTTP_400_BAD_REQUEST: AppErrorCode.VALIDATION_ERROR,
    status.HTTP_401_UNAUTHORIZED: AppErrorCode.UNAUTHORIZED,
    status.HTTP_403_FORBIDDEN: AppErrorCode.INSUFFICIENT_PERMISSIONS,
    status.HTTP_404_NOT_FOUND: AppErrorCode.NOT_FOUND,
    status.HTTP_405_METHOD_NOT_ALLOWED: AppErrorCode.METHOD_NOT_ALLOWED,
    status.HTTP_409_CONFLICT: AppErrorCode.CONFLICT,
    status.HTTP_422_UNPROCESSABLE_ENTITY: AppErrorCode.VALIDATION_ERROR,
}


def _describe_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        # Drop the leading "body"/"query" segment
        loc = ".".join(str(p) for p in err.get("loc", ())[1:])
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return create_error_response(
        AppErrorCode.VALIDATION_ERROR,
        _describe_validation_errors(exc),
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        get_request_id(request),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Routing errors (unknown path, wrong method) raised by Starlette itself."""
    if exc.status_code >= 500:
        code = AppErrorCode.INTERNAL_ERROR
    else:
        code = STATUS_ERROR_CODES.get(exc.status_code, AppErrorCode.VALIDATION_ERROR)
    return create_error_response(
        code, str(exc.detail), exc.status_code, get_request_id(request), headers=getattr(exc, "headers", None)
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = get_request_id(request)
    logger.exception(f"[{request_id}] Unhandled error on {request.method} {request.url.path}: {exc}")
    return create_error_response(
        AppErrorCode.INTERNAL_ERROR,
        "An internal error occurred. Please try again later.",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        request_id,
    )


def register_error_handlers(app) -> None:
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


def raise_for_failure(error: Optional[str]) -> NoReturn:
    """Turn a structured service failure message into the matching APIError."""
    error = error or "Operation failed"
    if error.endswith("not found"):
        raise APIError(status.HTTP_404_NOT_FOUND, AppErrorCode.NOT_FOUND, error)
    if error.endswith("already exists"):
        raise APIError.conflict(error)
    raise APIError.validation_error(error)
