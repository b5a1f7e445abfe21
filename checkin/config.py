"""Client configuration for check-in API calls.

Values are read once at startup (``ClientConfig.from_env``) and passed
explicitly to :class:`checkin.adapters.http_client.JsonApiClient`, so tests can
inject deterministic timing without touching the process environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

BASE_URL_ENV = "CHECKIN_API_URL"


@dataclass(frozen=True)
class ClientConfig:
    """Transport policy shared by all outbound requests.

    Attributes:
        base_url: Prefix joined in front of every endpoint path.
        max_retries: Retry budget for transport failures (0 means one attempt).
        initial_backoff_s: Delay before the first retry; doubles per retry.
        request_timeout_s: Per-attempt deadline in seconds.
    """

    base_url: str = ""
    max_retries: int = 3
    initial_backoff_s: float = 1.0
    request_timeout_s: float = 10.0

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.initial_backoff_s < 0:
            raise ValueError("initial_backoff_s must be >= 0")
        if self.request_timeout_s <= 0:
            raise ValueError("request_timeout_s must be > 0")

    def retry_delay_s(self, attempt: int) -> float:
        """Return the backoff before retry number ``attempt`` (0-based)."""
        return self.initial_backoff_s * (2 ** attempt)

    def make_url(self, endpoint: str) -> str:
        return f"{self.base_url}{endpoint}"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ClientConfig":
        env = os.environ if environ is None else environ
        base = (env.get(BASE_URL_ENV) or "").strip().rstrip("/")
        return cls(base_url=base)


__all__ = ["BASE_URL_ENV", "ClientConfig"]
