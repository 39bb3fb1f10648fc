"""
Error taxonomy and the HTTP boundary that renders it.

Services fail fast by raising one of the ``AppError`` subclasses below.
``register_exception_handlers`` installs the only place where these are
turned into HTTP responses: every error leaves the API as the uniform
envelope ``{"success": false, "message": ..., "error": ...}``.  Anything
that is not recognised collapses to a generic 500 and is logged with its
traceback server‑side.
"""

import logging
import sqlite3
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error: str = "Internal server error"

    def __init__(self, message: str, error: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        if error is not None:
            self.error = error

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return None


class ValidationFailed(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "Validation failed"


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error = "Authentication failed"

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    error = "Access denied"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "Not found"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    error = "Conflict"


class InternalError(AppError):
    pass


def error_body(message: str, error: Any) -> Dict[str, Any]:
    return {"success": False, "message": message, "error": error}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, exc.error),
        headers=exc.headers,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render body/query validation failures as 400 instead of FastAPI's 422."""
    details = []
    for err in exc.errors():
        # Drop the leading "body"/"query" segment so clients see field names.
        loc = [str(part) for part in err.get("loc", ())[1:]]
        field = ".".join(loc)
        details.append(f"{field}: {err.get('msg')}" if field else str(err.get("msg")))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Validation failed", ", ".join(details)),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        message = f"Route {request.url.path} not found"
    else:
        message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message, message),
        headers=getattr(exc, "headers", None),
    )


async def integrity_error_handler(request: Request, exc: sqlite3.IntegrityError) -> JSONResponse:
    logger.warning("Integrity violation on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=error_body("A record with this information already exists", "Conflict"),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error", "Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the error boundary to ``app``."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(sqlite3.IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
