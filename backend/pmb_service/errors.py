"""Error taxonomy and the FastAPI exception handlers that render it.

Controllers raise the `ApiError` subclasses below. Store-level failures
(SQLAlchemy unique violations and missing rows) and request validation
failures are translated here, so services never special-case storage
error codes. Every response uses the uniform envelope.
"""

import logging
from typing import Iterable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import IntegrityError, NoResultFound
from starlette.exceptions import HTTPException as StarletteHTTPException

from .schemas import Envelope

logger = logging.getLogger("pmb_service.errors")

GENERIC_SERVER_MESSAGE = "Something went wrong"


class ApiError(Exception):
    """Base class for errors with a client-facing status and message."""
    status_code = 500
    error = "Internal Server Error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ApiError):
    status_code = 400
    error = "Bad Request"


class AuthError(ApiError):
    status_code = 401
    error = "Unauthorized"


class NotFoundError(ApiError):
    status_code = 404
    error = "Not Found"


class ConflictError(ApiError):
    status_code = 409
    error = "Conflict"


class InternalError(ApiError):
    status_code = 500
    error = "Internal Server Error"


def error_response(status_code: int, error: str, message: str) -> JSONResponse:
    body = Envelope(success=False, error=error, message=message)
    return JSONResponse(status_code=status_code, content=body.to_content())


def _field_label(loc: Iterable) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    if not parts:
        return "request body"
    # list indexes read better attached to the field before them
    return to_camel(parts[0]) + "".join(f"[{p}]" for p in parts[1:] if p.isdigit())


def describe_validation_errors(errors: list) -> str:
    """Turn pydantic error dicts into one short human-readable message."""
    missing = []
    invalid = []
    for err in errors:
        label = _field_label(err.get("loc", ()))
        if err.get("type") in ("missing", "string_too_short"):
            if label not in missing:
                missing.append(label)
        else:
            invalid.append(f"{label}: {err.get('msg', 'invalid value')}")
    parts = []
    if missing:
        parts.append(f"Missing required fields: {', '.join(missing)}")
    if invalid:
        parts.append(f"Invalid fields: {'; '.join(invalid)}")
    return ". ".join(parts) or "Invalid request"


def _log_error(request: Request, message: str, status_code: int, exc: Exception):
    client = request.client.host if request.client else "unknown"
    if status_code >= 500:
        logger.error(
            "request_error method=%s path=%s client=%s status=%s message=%s",
            request.method, request.url.path, client, status_code, message,
            exc_info=exc,
        )
    else:
        logger.warning(
            "request_error method=%s path=%s client=%s status=%s message=%s",
            request.method, request.url.path, client, status_code, message,
        )


def register_error_handlers(app: FastAPI, production: bool = False):
    """Install the central exception handlers on `app`."""

    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError):
        message = exc.message
        if production and exc.status_code >= 500:
            message = GENERIC_SERVER_MESSAGE
        _log_error(request, exc.message, exc.status_code, exc)
        return error_response(exc.status_code, exc.error, message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        message = describe_validation_errors(exc.errors())
        _log_error(request, message, 400, exc)
        return error_response(400, ValidationError.error, message)

    @app.exception_handler(IntegrityError)
    async def handle_integrity_error(request: Request, exc: IntegrityError):
        _log_error(request, str(exc.orig), 409, exc)
        return error_response(409, ConflictError.error, "A record with this unique field already exists.")

    @app.exception_handler(NoResultFound)
    async def handle_no_result(request: Request, exc: NoResultFound):
        _log_error(request, str(exc), 404, exc)
        return error_response(404, NotFoundError.error, "Record not found.")

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            message = f"Route {request.method} {request.url.path} not found."
            return error_response(404, NotFoundError.error, message)
        _log_error(request, str(exc.detail), exc.status_code, exc)
        return error_response(exc.status_code, "Error", str(exc.detail))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        message = GENERIC_SERVER_MESSAGE if production else (str(exc) or "Internal Server Error")
        _log_error(request, str(exc), 500, exc)
        return error_response(500, InternalError.error, message)
