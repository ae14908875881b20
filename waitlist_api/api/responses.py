"""Response envelope and the error-to-status mapping at the HTTP boundary.

Success: ``{statusCode, data, meta?, message}``.
Failure: ``{statusCode, error: {message, ...details}, message}``.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from waitlist_api.core.exceptions import (
    InternalError,
    StorageTimeoutError,
    StorageUnavailableError,
    ValidationError,
    WaitlistBaseError,
)
from waitlist_api.core.logging import get_logger

log = get_logger(__name__)

_ERROR_TITLES = {
    400: "Invalid data",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not found",
    409: "Conflict",
    503: "Service temporarily unavailable",
    504: "Request timeout",
}


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, list):
        return [_dump(v) for v in value]
    return jsonable_encoder(value)


def send_response(
    status_code: int,
    data: Any,
    message: str | None = None,
    meta: Any = None,
) -> JSONResponse:
    """Wrap ``data`` in the success envelope."""
    body: dict[str, Any] = {"statusCode": status_code, "data": _dump(data)}
    if meta is not None:
        body["meta"] = _dump(meta)
    body["message"] = message or "Success"
    return JSONResponse(status_code=status_code, content=body)


def send_error(
    status_code: int,
    message: str,
    details: dict[str, Any] | None = None,
    title: str | None = None,
) -> JSONResponse:
    """Wrap an error in the failure envelope."""
    error: dict[str, Any] = {"message": message, **jsonable_encoder(details or {})}
    return JSONResponse(
        status_code=status_code,
        content={
            "statusCode": status_code,
            "error": error,
            "message": title or _ERROR_TITLES.get(status_code, "Error"),
        },
    )


# ── Exception handlers ───────────────────────────────────────────


async def handle_waitlist_error(request: Request, exc: WaitlistBaseError) -> JSONResponse:
    if isinstance(exc, (StorageUnavailableError, StorageTimeoutError)):
        # Cause is logged where it was translated; expose only the class.
        return send_error(exc.status_code, exc.message)
    if isinstance(exc, InternalError):
        log.error("internal_error", path=request.url.path, error=exc.message)
        return send_error(exc.status_code, exc.message, title="Something went wrong")
    return send_error(exc.status_code, exc.message, exc.context)


async def handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({"field": ".".join(loc), "message": err.get("msg", "Invalid value")})
    validation = ValidationError(errors)
    log.info("request_validation_failed", path=request.url.path, fields=[e["field"] for e in errors])
    return send_error(validation.status_code, validation.message, validation.context)


async def handle_http_exception(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return send_error(exc.status_code, str(exc.detail))


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    log.exception("unhandled_error", path=request.url.path, error_type=type(exc).__name__)
    internal = InternalError()
    return send_error(internal.status_code, internal.message, title="Something went wrong")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(WaitlistBaseError, handle_waitlist_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, handle_request_validation)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, handle_unexpected)
