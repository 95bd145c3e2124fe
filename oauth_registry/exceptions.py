"""
RFC 7807 Problem Details exception handling.

Provides standardized error responses for the registry API following the
"Problem Details for HTTP APIs" standard.

See: https://datatracker.ietf.org/doc/html/rfc7807
"""

from typing import Optional, Dict, Any, List
from enum import Enum
from pydantic import BaseModel, Field
from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
from datetime import datetime
from http import HTTPStatus

from oauth_registry.middleware.correlation import generate_id, get_request_id

logger = logging.getLogger(__name__)

PROBLEM_TYPE_BASE = "https://oauth-registry.local/problems/"


def _get_trace_id() -> str:
    """Get trace ID from correlation context or generate a new one."""
    request_id = get_request_id()
    if request_id != "-":
        return request_id
    return generate_id()


class ErrorCode(str, Enum):
    """Standardized error codes for the registry API."""

    # Authentication & Authorization
    UNAUTHORIZED = "AUTH_001"
    FORBIDDEN = "AUTH_002"

    # Validation
    VALIDATION_ERROR = "VAL_001"
    INVALID_FORMAT = "VAL_002"
    MISSING_FIELD = "VAL_003"

    # Patch documents
    MALFORMED_PATCH = "PATCH_001"
    UNSUPPORTED_OPERATION = "PATCH_002"

    # Resource
    NOT_FOUND = "RES_001"
    METHOD_NOT_ALLOWED = "RES_002"

    # Server
    INTERNAL_ERROR = "SRV_001"
    SERVICE_UNAVAILABLE = "SRV_002"


class ProblemDetail(BaseModel):
    """RFC 7807 body returned for every registry error.

    ``code`` is the stable machine-readable value clients should branch on;
    ``errors`` lists the offending form or patch fields when there are any.
    """

    type: str = "about:blank"
    title: str
    status: int
    detail: str
    instance: Optional[str] = Field(default=None, description="Request path that failed")
    code: str = Field(description="Registry error code, e.g. RES_001")
    timestamp: str
    trace_id: str = Field(description="Request ID of the failed request")
    errors: Optional[List[Dict[str, Any]]] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "type": "https://oauth-registry.local/problems/res-001",
                "title": "Not Found",
                "status": 404,
                "detail": "OAuth client with ID client_3f9a was not found",
                "instance": "/app/client_3f9a",
                "code": "RES_001",
                "timestamp": "2026-01-29T10:30:00Z",
                "trace_id": "abc123def456"
            }
        }
    }


def _problem_type(code: ErrorCode) -> str:
    return f"{PROBLEM_TYPE_BASE}{code.value.lower().replace('_', '-')}"


class RegistryException(HTTPException):
    """
    Base exception for the registry API with RFC 7807 support.

    Usage:
        raise RegistryException(
            status_code=400,
            code=ErrorCode.MISSING_FIELD,
            detail="client_name is required",
        )
    """

    def __init__(
        self,
        status_code: int,
        code: ErrorCode,
        detail: str,
        title: Optional[str] = None,
        instance: Optional[str] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.code = code
        self.title = title or self._default_title(status_code)
        self.instance = instance
        self.errors = errors
        self.trace_id = _get_trace_id()
        self.timestamp = datetime.utcnow().isoformat() + "Z"

        super().__init__(status_code=status_code, detail=detail, headers=headers)

    @staticmethod
    def _default_title(status_code: int) -> str:
        try:
            return HTTPStatus(status_code).phrase
        except ValueError:
            return "Error"

    def to_problem_detail(self, instance: Optional[str] = None) -> ProblemDetail:
        """Convert to RFC 7807 ProblemDetail."""
        return ProblemDetail(
            type=_problem_type(self.code),
            title=self.title,
            status=self.status_code,
            detail=self.detail,
            instance=self.instance or instance,
            code=self.code.value,
            timestamp=self.timestamp,
            trace_id=self.trace_id,
            errors=self.errors,
        )


# Convenience exception classes

class MissingFieldError(RegistryException):
    """A required request field is absent (400)."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(
            status_code=400,
            code=ErrorCode.MISSING_FIELD,
            detail=f"{field} is required",
            errors=[{"field": field, "message": "field required", "type": "missing"}],
        )


class InvalidFieldFormatError(RegistryException):
    """A request field is present but malformed (400)."""

    def __init__(self, field: str, detail: str):
        self.field = field
        super().__init__(
            status_code=400,
            code=ErrorCode.INVALID_FORMAT,
            detail=detail,
            errors=[{"field": field, "message": detail, "type": "invalid_format"}],
        )


class MalformedPatchError(RegistryException):
    """Patch document does not have the expected shape (400)."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=400,
            code=ErrorCode.MALFORMED_PATCH,
            detail=detail,
        )


class UnsupportedOperationError(RegistryException):
    """Patch operation is well-formed but not supported (400)."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=400,
            code=ErrorCode.UNSUPPORTED_OPERATION,
            detail=detail,
        )


class ClientNotFoundError(RegistryException):
    """Client is absent or not owned by the caller (404).

    Both cases produce the same response.
    """

    def __init__(self, client_id: str):
        super().__init__(
            status_code=404,
            code=ErrorCode.NOT_FOUND,
            detail=f"OAuth client with ID {client_id} was not found",
        )


class UnauthorizedError(RegistryException):
    """Authentication required (401)."""

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=401,
            code=ErrorCode.UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenError(RegistryException):
    """Permission denied (403)."""

    def __init__(self, detail: str = "Permission denied"):
        super().__init__(
            status_code=403,
            code=ErrorCode.FORBIDDEN,
            detail=detail,
        )


# Exception handlers for FastAPI

def create_problem_response(
    status_code: int,
    code: ErrorCode,
    detail: str,
    request: Request,
    errors: Optional[List[Dict[str, Any]]] = None,
    trace_id: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Create a RFC 7807 compliant JSON response."""
    problem = ProblemDetail(
        type=_problem_type(code),
        title=RegistryException._default_title(status_code),
        status=status_code,
        detail=detail,
        instance=str(request.url.path),
        code=code.value,
        timestamp=datetime.utcnow().isoformat() + "Z",
        trace_id=trace_id or _get_trace_id(),
        errors=errors,
    )

    return JSONResponse(
        status_code=status_code,
        content=problem.model_dump(exclude_none=True),
        media_type="application/problem+json",
        headers=headers,
    )


async def registry_exception_handler(request: Request, exc: RegistryException) -> JSONResponse:
    """Handle RegistryException with RFC 7807 response."""
    logger.warning(
        f"RegistryException: {exc.code.value} - {exc.detail}",
        extra={
            "trace_id": exc.trace_id,
            "status_code": exc.status_code,
            "path": request.url.path,
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_problem_detail(instance=str(request.url.path)).model_dump(exclude_none=True),
        media_type="application/problem+json",
        headers=exc.headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle standard HTTPException with RFC 7807 response."""
    code_map = {
        400: ErrorCode.VALIDATION_ERROR,
        401: ErrorCode.UNAUTHORIZED,
        403: ErrorCode.FORBIDDEN,
        404: ErrorCode.NOT_FOUND,
        405: ErrorCode.METHOD_NOT_ALLOWED,
        422: ErrorCode.VALIDATION_ERROR,
        500: ErrorCode.INTERNAL_ERROR,
        503: ErrorCode.SERVICE_UNAVAILABLE,
    }

    fallback = ErrorCode.VALIDATION_ERROR if exc.status_code < 500 else ErrorCode.INTERNAL_ERROR
    code = code_map.get(exc.status_code, fallback)

    return create_problem_response(
        status_code=exc.status_code,
        code=code,
        detail=str(exc.detail),
        request=request,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report request validation errors as 400 with field-level details."""
    errors = []
    for error in exc.errors():
        errors.append({
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        })

    return create_problem_response(
        status_code=400,
        code=ErrorCode.VALIDATION_ERROR,
        detail="Request validation failed",
        request=request,
        errors=errors,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions with RFC 7807 response."""
    trace_id = _get_trace_id()
    logger.exception(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}",
        extra={"trace_id": trace_id},
    )

    # Don't expose internal details in production
    from oauth_registry.config import settings
    detail = str(exc) if settings.DEBUG else "An unexpected error occurred"

    return create_problem_response(
        status_code=500,
        code=ErrorCode.INTERNAL_ERROR,
        detail=detail,
        request=request,
        trace_id=trace_id,
    )


def register_exception_handlers(app) -> None:
    """Attach the RFC 7807 handlers to a FastAPI app."""
    app.add_exception_handler(RegistryException, registry_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
