# sinmungo/core/errors.py
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

log = logging.getLogger("sinmungo.errors")


# -----------------------------
# Domain exceptions (raised by services, rendered by the handlers below)
# -----------------------------
class DomainError(Exception):
    status_code = 400
    type = "domain_error"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationFailed(DomainError):
    """Input rejected before any side effect (empty comment, bad enum, ...)."""

    status_code = 422
    type = "validation_error"


class UploadError(ValidationFailed):
    """File rejected or upload could not be completed."""

    type = "upload_error"


class AuthenticationRequired(DomainError):
    status_code = 401
    type = "authentication_required"


class PermissionDenied(DomainError):
    status_code = 403
    type = "permission_denied"


class NotFound(DomainError):
    status_code = 404
    type = "not_found"


class Conflict(DomainError):
    """The record is not in a state that allows the requested action."""

    status_code = 409
    type = "conflict"


class InvalidTransition(Conflict):
    type = "invalid_transition"


class StorageError(DomainError):
    """Blob store failure (write, read or delete)."""

    status_code = 502
    type = "storage_error"




# -----------------------------
# Rendering
# -----------------------------
def _trace_id(request: Request) -> str:
    """
    The id RequestLoggingMiddleware put on request.state, else the inbound
    X-Request-ID, else a fresh one.
    """
    trace_id = getattr(request.state, "trace_id", None) or request.headers.get("x-request-id")
    if not trace_id:
        trace_id = uuid.uuid4().hex
        request.state.trace_id = trace_id
    return str(trace_id)


def _payload(
    *,
    message: str,
    typ: str,
    status: int,
    trace_id: str,
    details: Optional[Any] = None,
) -> Dict[str, Any]:
    error: Dict[str, Any] = {
        "type": typ,
        "message": message,
        "status": status,
        "trace_id": trace_id,
    }
    if details is not None:
        error["details"] = details
    return {"ok": False, "error": error}


def _render(
    request: Request,
    *,
    status: int,
    typ: str,
    message: str,
    details: Optional[Any] = None,
    headers: Optional[Dict[str, str]] = None,
    log_detail: Any = None,
) -> JSONResponse:
    trace_id = _trace_id(request)
    log.log(
        logging.ERROR if status >= 500 else logging.WARNING,
        "%s %s %s -> %s | trace_id=%s | %r",
        typ,
        request.method,
        request.url.path,
        status,
        trace_id,
        log_detail if log_detail is not None else message,
    )
    return JSONResponse(
        status_code=status,
        headers={**(headers or {}), "X-Request-ID": trace_id},
        content=_payload(message=message, typ=typ, status=status, trace_id=trace_id, details=details),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    All errors leave the API as {"ok": false, "error": {type, message, status, trace_id}}
    with the same X-Request-ID header as successful responses.
    """

    @app.exception_handler(DomainError)
    async def domain_exc_handler(request: Request, exc: DomainError):
        return _render(
            request,
            status=exc.status_code,
            typ=exc.type,
            message=exc.message,
            details=exc.details,
        )

    @app.exception_handler(HTTPException)
    async def http_exc_handler(request: Request, exc: HTTPException):
        # Auth layer (401/403/429) and routing (404/405)
        return _render(
            request,
            status=int(exc.status_code),
            typ="http_error",
            message=exc.detail if isinstance(exc.detail, str) else "HTTP error",
            details=exc.detail if isinstance(exc.detail, dict) else None,
            headers=dict(exc.headers or {}),
            log_detail=exc.detail,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")}
            for e in exc.errors()
        ]
        return _render(
            request,
            status=422,
            typ="validation_error",
            message="Validation failed.",
            details=errors,
        )

    @app.exception_handler(Exception)
    async def unhandled_exc_handler(request: Request, exc: Exception):
        # Traceback to the server log only
        log.error("unhandled %s on %s %s", type(exc).__name__, request.method, request.url.path, exc_info=exc)
        return _render(request, status=500, typ="internal_error", message="Internal server error.")
