from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

log = logging.getLogger(__name__)


class AppError(Exception):
    """Domain failure carrying the HTTP status it maps to at the boundary."""

    status_code: int = 400
    error_code: str = "validation_error"

    def __init__(self, message: str, *, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(AppError):
    status_code = 400
    error_code = "validation_error"


class UnauthorizedError(AppError):
    status_code = 401
    error_code = "unauthorized"


class ForbiddenError(AppError):
    status_code = 403
    error_code = "forbidden"


class NotFoundError(AppError):
    status_code = 404
    error_code = "not_found"


class ConflictError(AppError):
    status_code = 409
    error_code = "conflict"


class InternalError(AppError):
    """Store, crypto or transport fault. The caller only ever sees a generic message."""

    status_code = 500
    error_code = "server_error"

    def __init__(self, detail: str = "Internal Server Error") -> None:
        super().__init__("Internal Server Error")
        self.detail = detail


def error_body(status_code: int, message: str, details: Optional[Any] = None) -> dict:
    body = {
        "code": status_code,
        "error": HTTPStatus(status_code).phrase,
        "message": message,
    }
    if details is not None:
        body["details"] = details
    return body


def _response(status_code: int, message: str, details: Optional[Any] = None) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(
        status_code=status_code,
        content=error_body(status_code, message, details),
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        if isinstance(exc, InternalError):
            log.error("internal error on %s %s: %s", request.method, request.url.path, exc.detail)
        else:
            log.info(
                "%s on %s %s: %s",
                exc.error_code, request.method, request.url.path, exc.message,
            )
        return _response(exc.status_code, exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        details = [
            {"field": ".".join(str(p) for p in err.get("loc", ())[1:]), "message": err.get("msg")}
            for err in exc.errors()
        ]
        return _response(400, "Validation error", details)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        log.exception("unhandled error on %s %s", request.method, request.url.path)
        return _response(500, "Internal Server Error")
