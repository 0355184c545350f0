"""Exception handlers.

Domain errors reach the API unchanged; their category decides the HTTP
status and their ``code`` becomes ``error_code`` in the body.
"""

import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from storefront.domain.exceptions import (
    DomainError,
    DomainValidationError,
    InfrastructureError,
    NotAuthenticatedError,
    NotFoundError,
    PrincipalFieldMissingError,
    StateConflictError,
    UniquenessConflictError,
)

logger = structlog.get_logger()

# Most specific first
_STATUS_BY_CATEGORY: tuple[tuple[type[DomainError], int], ...] = (
    (NotAuthenticatedError, status.HTTP_401_UNAUTHORIZED),
    (PrincipalFieldMissingError, status.HTTP_401_UNAUTHORIZED),
    (DomainValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (StateConflictError, status.HTTP_409_CONFLICT),
    (UniquenessConflictError, status.HTTP_409_CONFLICT),
    (InfrastructureError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_code_for(error: DomainError) -> int:
    for category, code in _STATUS_BY_CATEGORY:
        if isinstance(error, category):
            return code
    return status.HTTP_400_BAD_REQUEST


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Render a domain error with its stable code."""
    status_code = status_code_for(exc)
    log = logger.error if status_code >= 500 else logger.info
    log(
        "Domain error",
        path=request.url.path,
        method=request.method,
        error_code=exc.code,
        status_code=status_code,
    )
    return JSONResponse(
        status_code=status_code,
        content={**exc.to_dict(), "request_id": _request_id(request)},
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions with consistent format."""
    detail = exc.detail
    if isinstance(detail, dict):
        error_code = detail.get("error_code", "ERROR")
        message = detail.get("message", str(detail))
        details = detail.get("details", {})
    else:
        error_code = "ERROR"
        message = str(detail)
        details = {}

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": message,
            "details": details,
            "request_id": _request_id(request),
        },
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions with consistent format."""
    logger.exception(
        "Unhandled exception in handler",
        path=request.url.path,
        method=request.method,
        error=str(exc),
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "INTERNAL_ERROR",
            "message": "An internal error occurred",
            "details": {},
            "request_id": _request_id(request),
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
