"""Map domain exceptions onto HTTP responses"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from weekbook.domain.exceptions import (
    ConflictError,
    DomainException,
    ForbiddenError,
    NotFoundError,
    RangeError,
    StateError,
    UnauthenticatedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# exception class -> (status code, error code)
ERROR_MAP = {
    ValidationError: (status.HTTP_400_BAD_REQUEST, "ERR_VALIDATION"),
    UnauthenticatedError: (status.HTTP_401_UNAUTHORIZED, "ERR_UNAUTHORIZED"),
    ForbiddenError: (status.HTTP_403_FORBIDDEN, "ERR_FORBIDDEN"),
    NotFoundError: (status.HTTP_404_NOT_FOUND, "ERR_NOT_FOUND"),
    ConflictError: (status.HTTP_409_CONFLICT, "ERR_CONFLICT"),
    StateError: (status.HTTP_400_BAD_REQUEST, "ERR_STATE"),
    RangeError: (status.HTTP_400_BAD_REQUEST, "ERR_RANGE"),
}


def _error_body(error_code: str, message: str, details: dict | None = None) -> dict:
    return {"error_code": error_code, "message": message, "details": details or {}}


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    status_code, error_code = ERROR_MAP.get(type(exc), (status.HTTP_400_BAD_REQUEST, "ERR_BAD_REQUEST"))
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthenticatedError) else None
    return JSONResponse(status_code=status_code, content=_error_body(error_code, exc.message), headers=headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed payloads are a 400, same as domain validation failures"""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("ERR_VALIDATION", "Validation error", {"errors": jsonable_encoder(exc.errors())}),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled exception: %s: %s",
        type(exc).__name__,
        exc,
        exc_info=exc,
        extra={"request_id": getattr(request.state, "request_id", "unknown")},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("ERR_INTERNAL_SERVER", "Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
