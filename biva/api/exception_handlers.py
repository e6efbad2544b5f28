"""Global exception handlers that map domain exceptions to HTTP responses."""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

from biva.errors import (
    ConflictError,
    DomainError,
    DomainValidationError,
    ForbiddenError,
    InvariantViolationError,
    NotFoundError,
    PreconditionError,
    UnauthorizedError,
)
from biva.schemas.error import ErrorResponse

logger = logging.getLogger(__name__)


def _error_response(status_code: int, exc: DomainError) -> JSONResponse:
    """Return a standardized error response with detail and machine-readable code."""
    body = ErrorResponse(detail=str(exc), code=exc.code)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def domain_validation_error_handler(
    _request: Request, exc: DomainValidationError
) -> JSONResponse:
    return _error_response(status.HTTP_400_BAD_REQUEST, exc)


def conflict_error_handler(_request: Request, exc: ConflictError) -> JSONResponse:
    return _error_response(status.HTTP_409_CONFLICT, exc)


def not_found_error_handler(_request: Request, exc: NotFoundError) -> JSONResponse:
    return _error_response(status.HTTP_404_NOT_FOUND, exc)


def forbidden_error_handler(_request: Request, exc: ForbiddenError) -> JSONResponse:
    return _error_response(status.HTTP_403_FORBIDDEN, exc)


def unauthorized_error_handler(_request: Request, exc: UnauthorizedError) -> JSONResponse:
    return _error_response(status.HTTP_401_UNAUTHORIZED, exc)


def precondition_error_handler(_request: Request, exc: PreconditionError) -> JSONResponse:
    return _error_response(status.HTTP_412_PRECONDITION_FAILED, exc)


def invariant_violation_error_handler(
    request: Request, exc: InvariantViolationError
) -> JSONResponse:
    logger.error("Invariant violation on %s %s: %s", request.method, request.url.path, exc)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc)


def register_exception_handlers(app):
    """Register domain exception handlers on the FastAPI app.

    Subclasses (DuplicateResourceError, NotActionableError, InvalidActionError)
    resolve to their parent's handler and keep their own ``code``.
    """
    app.add_exception_handler(DomainValidationError, domain_validation_error_handler)
    app.add_exception_handler(ConflictError, conflict_error_handler)
    app.add_exception_handler(ForbiddenError, forbidden_error_handler)
    app.add_exception_handler(NotFoundError, not_found_error_handler)
    app.add_exception_handler(UnauthorizedError, unauthorized_error_handler)
    app.add_exception_handler(PreconditionError, precondition_error_handler)
    app.add_exception_handler(InvariantViolationError, invariant_violation_error_handler)
