"""
Error taxonomy and its translation to the JSON error envelope.

Services raise ``AppError`` subclasses; the handlers registered by
``register_exception_handlers`` turn them into
``{"error": {"code": ..., "message": ...}}`` responses.
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

log = structlog.get_logger()


class AppError(Exception):
    code = "INTERNAL_ERROR"
    status_code = 500
    default_message = "An unexpected error occurred."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(AppError):
    code = "UNAUTHORIZED"
    status_code = 401
    default_message = "Authentication required."


class Forbidden(AppError):
    code = "FORBIDDEN"
    status_code = 403
    default_message = "You do not have access to this resource."


class NotFound(AppError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found."


class BadRequest(AppError):
    code = "BAD_REQUEST"
    status_code = 400
    default_message = "Malformed request."


class ValidationError(AppError):
    code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "Invalid input."


class Conflict(AppError):
    code = "CONFLICT"
    status_code = 409
    default_message = "The request conflicts with the current state."


class InvalidState(AppError):
    code = "INVALID_STATE"
    status_code = 409
    default_message = "The resource is not in a state that allows this action."


class InternalError(AppError):
    pass


_HTTP_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "BAD_REQUEST",
    409: "CONFLICT",
}


def error_body(code: str, message: str) -> dict:
    return {"error": {"code": code, "message": message}}


def _first_validation_message(exc: RequestValidationError) -> tuple[str, str]:
    errors = exc.errors()
    if not errors:
        return "VALIDATION_ERROR", "Invalid input."
    first = errors[0]
    if first.get("type") == "json_invalid":
        return "BAD_REQUEST", "Request body is not valid JSON."
    loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    msg = first.get("msg", "Invalid input.")
    return "VALIDATION_ERROR", f"{loc}: {msg}" if loc else msg


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        log.error("request.failed", path=request.url.path, code=exc.code, message=exc.message)
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.code, exc.message))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    code, message = _first_validation_message(exc)
    return JSONResponse(status_code=400, content=error_body(code, message))


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = _HTTP_CODES.get(exc.status_code, "INTERNAL_ERROR")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(code, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("request.unhandled_error", path=request.url.path)
    return JSONResponse(status_code=500, content=error_body(InternalError.code, InternalError.default_message))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(HTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
