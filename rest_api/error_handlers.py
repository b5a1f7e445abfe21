"""Error pipeline for the check-in REST API.

Every failure that leaves a route ends up in :func:`normalize_error`, which
maps it to a :class:`rest_api.errors.WireErrorResponse` and logs it. Routes get
there through :class:`BoundaryRoute` (handler exceptions) and the catch-all
:func:`route_not_found` route (unmatched paths); exceptions raised outside a
route (middleware, framework internals) reach it through the app-level
exception handlers installed by :func:`install_error_handlers`.

Order matters: ``install_not_found`` must run after every other route has been
registered, otherwise the catch-all shadows real endpoints.
"""

import functools
import logging
from typing import Any, Awaitable, Callable, NamedTuple, Optional

import pydantic
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from .errors import PayloadParseError, ServerError, ValidationFailure, WireErrorResponse

log = logging.getLogger("rest_api.errors")

Handler = Callable[[Request], Awaitable[Response]]
ErrorSink = Callable[[Request, Exception], Awaitable[Response]]

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]

INVALID_JSON_MESSAGE = "Invalid JSON in request body"
INTERNAL_ERROR_MESSAGE = "Internal server error"


class ErrorMapping(NamedTuple):
    """Status and wire body chosen for one failure."""

    status_code: int
    body: WireErrorResponse


def classify_error(exc: BaseException) -> ErrorMapping:
    """Map ``exc`` to a status code and wire body.

    Evaluated in order: ``ServerError``, framework ``HTTPException``,
    validation-kind failures, body-parse failures, everything else.
    """
    if isinstance(exc, ServerError):
        return ErrorMapping(
            exc.status_code,
            WireErrorResponse(
                error=exc.message or exc.code, code=exc.code, details=exc.details
            ),
        )
    if isinstance(exc, StarletteHTTPException) and 400 <= exc.status_code <= 599:
        return ErrorMapping(
            exc.status_code,
            WireErrorResponse(
                error=str(exc.detail or "Request failed"),
                code=f"HTTP_{exc.status_code}",
            ),
        )
    if isinstance(exc, (ValidationFailure, pydantic.ValidationError, RequestValidationError)):
        return ErrorMapping(
            400,
            WireErrorResponse(
                error=_failure_text(exc) or "Validation failed", code="VALIDATION_ERROR"
            ),
        )
    if isinstance(exc, PayloadParseError):
        return ErrorMapping(
            400, WireErrorResponse(error=INVALID_JSON_MESSAGE, code="INVALID_JSON")
        )
    return ErrorMapping(
        500, WireErrorResponse(error=INTERNAL_ERROR_MESSAGE, code="INTERNAL_ERROR")
    )


async def normalize_error(request: Request, exc: Exception) -> JSONResponse:
    """Terminal error handler: log ``exc`` and answer with the wire format."""
    mapping = classify_error(exc)
    _log_failure(request, exc, mapping)
    return JSONResponse(status_code=mapping.status_code, content=mapping.body.to_wire())


def guard_handler(handler: Handler, on_error: Optional[ErrorSink] = None) -> Handler:
    """Wrap an async request handler so its failures reach the error sink.

    The wrapper neither logs nor alters the exception; ``on_error`` (by default
    :func:`normalize_error`) owns both.
    """

    @functools.wraps(handler)
    async def guarded(request: Request) -> Response:
        try:
            return await handler(request)
        except Exception as exc:
            sink = on_error or normalize_error
            return await sink(request, exc)

    return guarded


class BoundaryRoute(APIRoute):
    """APIRoute whose request handler is wrapped by :func:`guard_handler`."""

    def get_route_handler(self) -> Handler:
        return guard_handler(super().get_route_handler())


async def route_not_found(request: Request) -> Response:
    """Catch-all endpoint: raise ``ROUTE_NOT_FOUND`` into the error pipeline."""
    target = request.url.path
    if request.url.query:
        target = f"{target}?{request.url.query}"
    raise ServerError(
        f"{request.method.upper()} {target} not found", 404, "ROUTE_NOT_FOUND"
    )


def install_not_found(app: FastAPI) -> None:
    """Register the catch-all route; call after all other routes."""
    app.router.add_api_route(
        "/{unmatched_path:path}",
        route_not_found,
        methods=ALL_METHODS,
        include_in_schema=False,
        route_class_override=BoundaryRoute,
    )


def install_error_handlers(app: FastAPI) -> None:
    """Route exceptions raised outside a guarded handler to the normalizer."""
    for exc_class in (
        ServerError,
        RequestValidationError,
        StarletteHTTPException,
        Exception,
    ):
        app.add_exception_handler(exc_class, normalize_error)


def _log_failure(request: Request, exc: BaseException, mapping: ErrorMapping) -> None:
    client = request.client.host if request.client else "-"
    detail: Any = getattr(exc, "details", None)
    if mapping.status_code >= 500:
        log.error(
            "%s %s - client %s -> %d %s: %s: %s",
            request.method,
            request.url.path,
            client,
            mapping.status_code,
            mapping.body.code,
            type(exc).__name__,
            _failure_text(exc),
            exc_info=(type(exc), exc, exc.__traceback__),
        )
        return
    log.warning(
        "%s %s - client %s -> %d %s: %s%s",
        request.method,
        request.url.path,
        client,
        mapping.status_code,
        mapping.body.code,
        _failure_text(exc),
        f" details={detail!r}" if detail is not None else "",
    )


def _failure_text(exc: BaseException) -> str:
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    try:
        return str(exc)
    except Exception:
        return type(exc).__name__


__all__ = [
    "ALL_METHODS",
    "BoundaryRoute",
    "ErrorMapping",
    "classify_error",
    "guard_handler",
    "install_error_handlers",
    "install_not_found",
    "normalize_error",
    "route_not_found",
]
