"""Request logging for the check-in REST API.

``RequestLoggerMiddleware`` logs one entry line and exactly one completion line
per HTTP request. Completion is observed on the ASGI ``http.response.start``
message, so the logged status is whatever the error pipeline finally sent.
The middleware never touches request or response bodies.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .settings import ServerSettings

log = logging.getLogger("rest_api.request")

_DEFAULT_DATEFMT = "%Y-%m-%dT%H:%M:%S"


@dataclass(frozen=True)
class RequestContext:
    """Immutable per-request facts captured on entry.

    Attributes
    ----------
    method : str
        Upper-case HTTP method.
    path : str
        Requested path including the query string, if any.
    client_address : str
        Peer host, or ``"-"`` when the server did not report one.
    started_at : float
        ``time.perf_counter()`` reading taken on entry.
    """

    method: str
    path: str
    client_address: str
    started_at: float

    @classmethod
    def from_scope(cls, scope: Scope) -> "RequestContext":
        path = scope.get("path", "")
        query = scope.get("query_string", b"")
        if query:
            path = f"{path}?{query.decode('latin-1')}"
        client = scope.get("client")
        return cls(
            method=str(scope.get("method", "")).upper(),
            path=path,
            client_address=client[0] if client else "-",
            started_at=time.perf_counter(),
        )

    def elapsed_ms(self) -> int:
        return int((time.perf_counter() - self.started_at) * 1000)


class RequestLoggerMiddleware:
    """Pure ASGI middleware that logs request entry and completion."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        ctx = RequestContext.from_scope(scope)
        log.info("%s %s - client %s", ctx.method, ctx.path, ctx.client_address)
        status: Optional[int] = None

        async def observe(message: Message) -> None:
            nonlocal status
            if message["type"] == "http.response.start":
                status = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, observe)
        finally:
            log.info(
                "%s %s - %d - %dms",
                ctx.method,
                ctx.path,
                status if status is not None else 500,
                ctx.elapsed_ms(),
            )


def configure_logging(settings: ServerSettings) -> int:
    """Install a timestamped root handler once and apply the configured level."""
    level = settings.log_level_number()
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=settings.log_format, datefmt=_DEFAULT_DATEFMT)
    root.setLevel(level)
    return level
