"""Classify adapter failures and translate them into user-facing messages.

``is_transport_failure`` and ``describe_error`` are total: they accept any
value a caller might have caught (including non-exceptions) and never raise.
"""

from __future__ import annotations

from typing import Any, Optional

from requests import exceptions as req_exc

from checkin.adapters.api_errors import (
    ApiError,
    ApiResponseError,
    ApiTimeoutError,
    ApiTransportError,
)
from checkin.domain.ports import UseCaseError

NETWORK_ERROR_MESSAGE = "Network error. Please check your connection and try again."
GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again."
TIMEOUT_ERROR_MESSAGE = "Request timed out. Check connection."


def is_transport_failure(err: Any) -> bool:
    """Return True if ``err`` never produced a response from the server."""
    try:
        return isinstance(
            err, (ApiTransportError, req_exc.ConnectionError, req_exc.Timeout)
        )
    # isinstance consults __class__, which arbitrary objects may override.
    except Exception:
        return False


def describe_error(err: Any) -> str:
    """Return a non-empty message suitable for display.

    Args:
        err: Any caught value; ``None`` and non-exception values are allowed.

    Returns:
        str: The connectivity message for transport failures, the error's own
        message for structured errors, otherwise a generic fallback.
    """
    if is_transport_failure(err):
        return NETWORK_ERROR_MESSAGE
    try:
        is_exception = isinstance(err, BaseException)
    except Exception:
        return GENERIC_ERROR_MESSAGE
    if is_exception:
        return _message_of(err) or GENERIC_ERROR_MESSAGE
    return GENERIC_ERROR_MESSAGE


def map_api_error(
    exc: Exception,
    *,
    default_code: str,
    default_message: Optional[str] = None,
) -> UseCaseError:
    """Map adapter exceptions to stable UseCaseError codes.

    Args:
        exc (Exception): Failure raised by an adapter call.
        default_code (str): Code used for failures this module does not know.
        default_message (Optional[str]): Message override for unknown failures.

    Returns:
        UseCaseError: Value returned to the caller.
    """
    if isinstance(exc, UseCaseError):
        return exc
    if isinstance(exc, ApiTimeoutError):
        return UseCaseError("REQUEST_TIMEOUT", TIMEOUT_ERROR_MESSAGE)
    if is_transport_failure(exc):
        return UseCaseError("NETWORK_ERROR", NETWORK_ERROR_MESSAGE)
    if isinstance(exc, ApiResponseError):
        return UseCaseError(exc.code or "REQUEST_FAILED", describe_error(exc))
    if isinstance(exc, ApiError):
        return UseCaseError("API_ERROR", describe_error(exc))

    message = default_message or describe_error(exc)
    return UseCaseError(default_code, message)


def _message_of(err: BaseException) -> Optional[str]:
    try:
        message = getattr(err, "message", None)
        if isinstance(message, str) and message.strip():
            return message
        text = str(err)
    except Exception:
        return None
    return text if text.strip() else None


__all__ = [
    "GENERIC_ERROR_MESSAGE",
    "NETWORK_ERROR_MESSAGE",
    "TIMEOUT_ERROR_MESSAGE",
    "describe_error",
    "is_transport_failure",
    "map_api_error",
]
