from __future__ import annotations

import traceback
import uuid
from typing import Any, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.logging import get_logger

USER_FRIENDLY_MESSAGES = {
    "internal_error": "We're experiencing technical difficulties. Please try again in a moment.",
    "validation_error": "Please check your input and try again.",
    "service_unavailable": "A service we depend on is temporarily unavailable. Please try again shortly.",
}

RETRYABLE_CODES = {"service_unavailable", "internal_error"}


def _request_id(request: Optional[Request]) -> Optional[str]:
    return getattr(getattr(request, "state", None), "request_id", None)


def error_payload(
    code: str,
    message: str,
    details: Any = None,
    request: Optional[Request] = None,
    error_id: Optional[str] = None,
) -> dict:
    """Create error payload with user-friendly messages.

    Technical codes map to a user-facing message; the original text is kept in
    ``technical_message`` when the two differ.
    """
    user_message = USER_FRIENDLY_MESSAGES.get(code, message)
    out = {
        "error": {
            "code": code,
            "message": user_message,
            "technical_message": message if user_message != message else None,
            "details": details,
            "retryable": code in RETRYABLE_CODES,
        }
    }
    rid = _request_id(request)
    if rid:
        out["error"]["request_id"] = rid
    if error_id:
        out["error"]["error_id"] = error_id
    return out


def install_exception_handlers(app):
    log = get_logger("podsite.exceptions")

    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException):
        log.warning(
            "HTTPException %s %s -> %s: %s",
            request.method, request.url.path, exc.status_code, exc.detail,
        )
        code = "service_unavailable" if exc.status_code == 503 else "http_error"
        return JSONResponse(
            error_payload(code, str(exc.detail), {"status_code": exc.status_code}, request),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    @app.exception_handler(ValidationError)
    async def validation_exc_handler(request: Request, exc: Exception):
        errors = jsonable_encoder(exc.errors(), custom_encoder={Exception: str})  # type: ignore[attr-defined]
        log.info("ValidationError %s %s: %s", request.method, request.url.path, errors)
        return JSONResponse(
            error_payload("validation_error", "Validation failed", errors, request),
            status_code=422,
        )

    @app.exception_handler(Exception)
    async def unhandled_exc_handler(request: Request, exc: Exception):
        err_id = str(uuid.uuid4())
        tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        log.error(
            "Unhandled exception [%s] %s %s\nTraceback:\n%s",
            err_id, request.method, request.url.path, tb,
        )
        return JSONResponse(
            error_payload("internal_error", "Something went wrong", None, request, error_id=err_id),
            status_code=500,
        )
