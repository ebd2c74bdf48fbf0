"""
Application errors and the HTTP error-translation boundary.

Services raise the typed errors below; the handlers registered by
``register_exception_handlers`` turn them (and framework / database errors)
into the JSON error envelope:

    {"success": false, "status": 404, "message": "...", "errors": [...]}
"""

import re
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from loguru import logger
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from tropicario.core.config import Settings


class AppError(Exception):
    """Base class for errors that carry an HTTP status."""

    status_code: int = 500
    default_message: str = "Internal Server Error"

    def __init__(
        self,
        message: str | None = None,
        errors: list[dict[str, str]] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class BadRequestError(AppError):
    status_code = 400
    default_message = "Bad request"


class UnauthorizedError(AppError):
    status_code = 401
    default_message = "Unauthorized"


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class ConflictError(AppError):
    status_code = 409
    default_message = "Conflict"


class TooManyRequestsError(AppError):
    status_code = 429
    default_message = "Too many requests"


class InternalServerError(AppError):
    status_code = 500


# ==================== Helpers ====================


_SQLITE_UNIQUE = re.compile(r"UNIQUE constraint failed: \w+\.(\w+)")
_POSTGRES_UNIQUE = re.compile(r"Key \(([\w\s,]+)\)=")


def to_camel(name: str) -> str:
    head, *tail = name.split("_")
    return head + "".join(part.capitalize() for part in tail)


def duplicate_field(exc: IntegrityError) -> str | None:
    """Extract the offending column from a unique-constraint violation."""
    text = str(exc.orig) if exc.orig is not None else str(exc)
    for pattern in (_SQLITE_UNIQUE, _POSTGRES_UNIQUE):
        match = pattern.search(text)
        if match:
            return to_camel(match.group(1).split(",")[0].strip())
    return None


def error_body(
    status_code: int,
    message: str,
    errors: list[dict[str, str]] | None = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "success": False,
        "status": status_code,
        "message": message,
    }
    if errors:
        body["errors"] = errors
    return body


def _validation_errors(exc: RequestValidationError) -> list[dict[str, str]]:
    errors = []
    for err in exc.errors():
        loc = [part for part in err.get("loc", ()) if not isinstance(part, int)]
        field = str(loc[-1]) if loc else "body"
        if err.get("type") == "missing":
            message = f"{field} is required"
        elif err.get("type") == "value_error" and "error" in err.get("ctx", {}):
            message = str(err["ctx"]["error"])
        else:
            message = err.get("msg", "Invalid value")
        errors.append({"field": field, "message": message})
    return errors


# ==================== Handlers ====================


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Install the handlers that shape every error response."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> ORJSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return ORJSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.status_code, exc.message, exc.errors),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        return ORJSONResponse(
            status_code=400,
            content=error_body(400, "Validation failed", _validation_errors(exc)),
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(
        request: Request, exc: IntegrityError
    ) -> ORJSONResponse:
        field = duplicate_field(exc)
        if field is None:
            logger.warning(f"Integrity error on {request.url.path}: {exc.orig}")
            return ORJSONResponse(
                status_code=409,
                content=error_body(409, "Request conflicts with existing data"),
            )
        return ORJSONResponse(
            status_code=409,
            content=error_body(
                409,
                f"Duplicate value for field: {field}",
                [{"field": field, "message": f"{field[0].upper()}{field[1:]} already exists"}],
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        message = "Route not found" if exc.status_code == 404 else str(exc.detail)
        return ORJSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.status_code, message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> ORJSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        message = "Internal Server Error" if settings.is_production else str(exc)
        return ORJSONResponse(status_code=500, content=error_body(500, message))
