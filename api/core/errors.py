"""
Error kinds shared by the content features, and their HTTP mapping.

Services and the save pipeline raise these; `install_error_handlers` turns
them into JSON responses so routers never build error payloads by hand.
"""

from __future__ import annotations

import logging

import asyncpg
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ContentError(RuntimeError):
    status_code = 500

    def __init__(self, message: str, *, errors: list[dict[str, str]] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = list(errors or [])


class ValidationError(ContentError):
    """
    Input rejected before anything is written. `errors` holds
    `{"field": ..., "message": ...}` entries.
    """

    status_code = 422

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls("Validation failed.", errors=[{"field": field, "message": message}])


class NotFoundError(ContentError):
    status_code = 404


class ConflictError(ContentError):
    status_code = 409


class PayloadTooLargeError(ContentError):
    status_code = 413


class StorageError(ContentError):
    status_code = 500


def _payload(exc: ContentError) -> dict:
    body: dict = {"detail": exc.message}
    if exc.errors:
        body["errors"] = exc.errors
    return body


async def _handle_content_error(request: Request, exc: ContentError) -> JSONResponse:
    if isinstance(exc, StorageError):
        logger.error(
            "storage_error method=%s path=%s message=%s",
            request.method,
            request.url.path,
            exc.message,
            exc_info=exc,
        )
        return JSONResponse(status_code=exc.status_code, content={"detail": "Internal storage error."})
    return JSONResponse(status_code=exc.status_code, content=_payload(exc))


async def _handle_database_error(request: Request, exc: asyncpg.PostgresError) -> JSONResponse:
    logger.error(
        "database_error method=%s path=%s sqlstate=%s",
        request.method,
        request.url.path,
        getattr(exc, "sqlstate", None),
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"detail": "Internal storage error."})


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ContentError, _handle_content_error)
    app.add_exception_handler(asyncpg.PostgresError, _handle_database_error)
