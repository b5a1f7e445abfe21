"""Shared HTTP transport for the check-in REST adapter.

This module layers three pieces on top of ``requests.Session``:

- ``TimeoutGuard`` runs a single attempt under a deadline and converts
  transport exceptions into typed ``ApiTransportError``/``ApiTimeoutError``.
- ``RetryExecutor`` repeats the guarded attempt with exponential backoff, but
  only for transport failures; any received response ends the loop.
- ``JsonApiClient`` builds JSON requests, interprets the status code and raises
  structured errors for non-success responses.

Dependencies:
    - ``requests`` for network I/O.
    - ``checkin.adapters.api_errors`` for the typed failure taxonomy.

Call context:
    - Constructed by ``checkin.adapters.checkin_rest.CheckInRestAdapter``.
    - Each ``post`` call owns its retry state; nothing is shared across calls.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

import requests
from requests import exceptions as req_exc

from checkin.adapters.api_errors import (
    ApiDecodeError,
    ApiTimeoutError,
    ApiTransportError,
    response_error,
)
from checkin.config import ClientConfig

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestSpec:
    """Description of one outbound call, reusable across retry attempts."""

    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None

    @property
    def context(self) -> str:
        return f"{self.method} {self.url}"


class TimeoutGuard:
    """Execute a single request under a deadline.

    ``requests`` enforces the deadline on both connect and read, so there is no
    separate timer to release once the attempt finishes.
    """

    def __init__(self, session: Any, timeout_s: float = 10.0) -> None:
        self.session = session
        self.timeout_s = timeout_s

    def send(self, spec: RequestSpec, timeout_s: Optional[float] = None) -> Any:
        """Send ``spec`` once.

        Raises:
            ApiTimeoutError: The attempt did not complete within the deadline.
            ApiTransportError: The connection failed before a response arrived.
        """
        deadline = self.timeout_s if timeout_s is None else timeout_s
        try:
            return self.session.request(
                spec.method,
                spec.url,
                data=spec.body,
                headers=dict(spec.headers),
                timeout=deadline,
            )
        # ConnectTimeout is both a Timeout and a ConnectionError; report it as a timeout.
        except req_exc.Timeout as exc:
            raise ApiTimeoutError(
                f"Request timeout after {deadline:g}s contacting {spec.url}",
                context=spec.context,
            ) from exc
        except req_exc.ConnectionError as exc:
            raise ApiTransportError(
                f"Connection failed contacting {spec.url}: {exc}",
                context=spec.context,
            ) from exc


class RetryExecutor:
    """Repeat guarded attempts with exponential backoff on transport failures."""

    def __init__(
        self,
        guard: TimeoutGuard,
        config: ClientConfig,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.guard = guard
        self.config = config
        self._sleep = sleep

    def execute(self, spec: RequestSpec, retries: Optional[int] = None) -> Any:
        """Return the first received response for ``spec``.

        Args:
            spec: Request to send.
            retries: Retry budget override; defaults to ``config.max_retries``.
                A budget of ``0`` means exactly one attempt.

        Raises:
            ApiTransportError: The last transport failure once the budget is spent.
        """
        budget = self.config.max_retries if retries is None else retries
        if budget < 0:
            raise ValueError("retries must be >= 0")
        attempt = 0
        while True:
            log.debug("%s attempt %d", spec.context, attempt + 1)
            try:
                return self.guard.send(spec, self.config.request_timeout_s)
            except ApiTransportError as exc:
                remaining = budget - attempt
                if remaining <= 0:
                    raise
                delay = self.config.retry_delay_s(attempt)
                log.warning(
                    "%s failed (%s), retrying in %.1fs (%d retries left)",
                    spec.context,
                    exc,
                    delay,
                    remaining,
                )
                self._sleep(delay)
                attempt += 1


class JsonApiClient:
    """Typed JSON client (POST and GET) on top of :class:`RetryExecutor`."""

    def __init__(
        self,
        config: ClientConfig,
        *,
        session: Any = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.session = session if session is not None else requests.Session()
        self.executor = RetryExecutor(
            TimeoutGuard(self.session, config.request_timeout_s),
            config,
            sleep=sleep,
        )

    def _headers(self) -> Dict[str, str]:
        return {"Accept": "application/json", "Content-Type": "application/json"}

    def post(self, endpoint: str, payload: Any) -> Any:
        """POST ``payload`` as JSON to ``endpoint`` and return the parsed body.

        Raises:
            ApiClientError: HTTP 4xx; ``message`` comes from the body's ``error``.
            ApiServerError: HTTP 5xx.
            ApiDecodeError: A success response that is not JSON.
            ApiTransportError: Transport failures after retries are exhausted.
        """
        return self._send(
            RequestSpec(
                method="POST",
                url=self.config.make_url(endpoint),
                headers=self._headers(),
                body=json.dumps(payload),
            )
        )

    def get(self, endpoint: str) -> Any:
        """GET ``endpoint`` and return the parsed body; raises like :meth:`post`."""
        return self._send(
            RequestSpec(
                method="GET",
                url=self.config.make_url(endpoint),
                headers={"Accept": "application/json"},
            )
        )

    def _send(self, spec: RequestSpec) -> Any:
        resp = self.executor.execute(spec)
        status = int(resp.status_code)
        data = _json_or_none(resp)
        if not 200 <= status < 300:
            raise response_error(status, data, context=spec.context)
        if data is None:
            raise ApiDecodeError(
                "Response body is not valid JSON", status=status, context=spec.context
            )
        return data


def _json_or_none(resp: Any) -> Any:
    try:
        return resp.json()
    except ValueError:
        return None


__all__ = ["JsonApiClient", "RequestSpec", "RetryExecutor", "TimeoutGuard"]
