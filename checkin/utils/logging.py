from __future__ import annotations

import logging
import os
from typing import Optional

_DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_DEFAULT_DATEFMT = "%H:%M:%S"
_LEVEL_ENV_VAR = "CHECKIN_LOG_LEVEL"
_DEBUG_FLAG = "CHECKIN_DEBUG"


def coerce_level(value: Optional[str], fallback: int) -> int:
    if not value:
        return fallback
    text = value.strip()
    if not text:
        return fallback
    if text.isdigit():
        return int(text)
    candidate = getattr(logging, text.upper(), None)
    if isinstance(candidate, int):
        return candidate
    return fallback


def _env_truthy(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def configure_root(default_level: int | str = logging.WARNING) -> int:
    """
    Configure the root logger with a compact format.

    Environment overrides:
      - CHECKIN_LOG_LEVEL: explicit log level
      - CHECKIN_DEBUG: truthy -> DEBUG
    """
    fallback = (
        coerce_level(default_level, logging.WARNING)
        if isinstance(default_level, str)
        else int(default_level)
    )
    effective = coerce_level(os.getenv(_LEVEL_ENV_VAR), fallback)
    if _env_truthy(os.getenv(_DEBUG_FLAG)):
        effective = logging.DEBUG

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=effective, format=_DEFAULT_FORMAT, datefmt=_DEFAULT_DATEFMT)
    root.setLevel(effective)
    return effective
