"""Exception handlers rendering the ``{"error": {...}}`` envelope.

Gateway failures are not errors at this layer: they travel as
``{"success": false, ...}`` bodies with status 200. Only malformed HTTP
input and unexpected exceptions reach these handlers.
"""

from __future__ import annotations

import traceback
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..util.log import Log
from .schemas import ErrorInfo, ErrorResponse

log = Log.create({"service": "server.errors"})

Details = dict[str, object] | list[object] | str | None


def _request_id(request: Request) -> str | None:
    rid = getattr(request.state, "request_id", None)
    return rid if isinstance(rid, str) and rid else None


def error_envelope(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: Details = None,
) -> JSONResponse:
    """Build an error response, echoing the request ID when one was assigned."""
    body = ErrorResponse(error=ErrorInfo(code=code, message=message, details=details))
    response = JSONResponse(body.model_dump(exclude_none=True), status_code=status_code)
    rid = _request_id(request)
    if rid:
        response.headers["X-Request-ID"] = rid
    return response


async def _on_value_error(request: Request, exc: Exception) -> JSONResponse:
    log.warn("bad request", {"path": request.url.path, "error": str(exc)})
    return error_envelope(request, 400, "bad_request", str(exc))


async def _on_validation_error(request: Request, exc: Exception) -> JSONResponse:
    errors: list[Any] = exc.errors() if isinstance(exc, RequestValidationError) else []
    log.debug("request body rejected", {"path": request.url.path, "errors": len(errors)})
    return error_envelope(
        request,
        422,
        "validation_error",
        "Request validation failed",
        {"errors": errors},
    )


async def _on_unhandled(request: Request, exc: Exception) -> JSONResponse:
    log.error("unhandled error", {
        "request_id": _request_id(request),
        "route": f"{request.method} {request.url.path}",
        "error": f"{type(exc).__name__}: {exc}",
        "traceback": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
    })
    return error_envelope(
        request,
        500,
        "internal_error",
        "Internal server error",
        {"error": str(exc)},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValueError, _on_value_error)
    app.add_exception_handler(RequestValidationError, _on_validation_error)
    app.add_exception_handler(Exception, _on_unhandled)
