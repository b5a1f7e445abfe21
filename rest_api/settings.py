"""Environment-driven settings for the check-in REST API."""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _split_csv(value: Optional[str]) -> List[str]:
    return [item.strip() for item in (value or "").split(",") if item.strip()]


@dataclass(frozen=True)
class ServerSettings:
    """Process-wide server settings, read once at startup."""

    log_level: str = "INFO"
    log_format: str = DEFAULT_LOG_FORMAT
    cors_allow_origins: List[str] = field(default_factory=list)
    cors_allow_methods: List[str] = field(default_factory=lambda: ["GET", "POST", "OPTIONS"])
    cors_allow_headers: List[str] = field(default_factory=lambda: ["Content-Type"])
    students_file: Optional[str] = None
    port: int = 3000

    def log_level_number(self) -> int:
        candidate = getattr(logging, self.log_level.upper(), None)
        return candidate if isinstance(candidate, int) else logging.INFO

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerSettings":
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            log_level=(env.get("LOG_LEVEL") or defaults.log_level).upper(),
            log_format=env.get("LOG_FORMAT") or defaults.log_format,
            cors_allow_origins=_split_csv(env.get("CORS_ALLOW_ORIGINS")),
            cors_allow_methods=_split_csv(env.get("CORS_ALLOW_METHODS"))
            or defaults.cors_allow_methods,
            cors_allow_headers=_split_csv(env.get("CORS_ALLOW_HEADERS"))
            or defaults.cors_allow_headers,
            students_file=env.get("STUDENTS_FILE") or None,
            port=int(env.get("PORT") or defaults.port),
        )
