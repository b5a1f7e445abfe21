from __future__ import annotations

from typing import Any, Optional


class ApiError(RuntimeError):
    """Base class for check-in API adapter failures."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        code: Optional[str] = None,
        data: Any = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.data = data
        self.context = context


class ApiTransportError(ApiError):
    """The request never produced a response (refused, reset, DNS)."""

    def __init__(self, message: str, *, context: Optional[str] = None) -> None:
        super().__init__(message, context=context)


class ApiTimeoutError(ApiTransportError):
    """An attempt exceeded its deadline and was abandoned."""


class ApiResponseError(ApiError):
    """The server answered with a non-success status."""

    def __init__(
        self,
        message: str,
        *,
        status: int,
        data: Any = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            status=status,
            code=extract_error_code(data),
            data=data,
            context=context,
        )


class ApiClientError(ApiResponseError):
    """HTTP 4xx from the check-in API."""


class ApiServerError(ApiResponseError):
    """HTTP 5xx from the check-in API."""


class ApiDecodeError(ApiError):
    """A success response whose body was not valid JSON."""


def response_error(
    status: int, data: Any, *, context: Optional[str] = None
) -> ApiResponseError:
    """Build the structured error for a received non-success response."""
    message = extract_error_message(data) or "Request failed"
    cls = ApiServerError if status >= 500 else ApiClientError
    return cls(message, status=status, data=data, context=context)


def extract_error_message(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        value = payload.get("error")
        if isinstance(value, str) and value:
            return value
    return None


def extract_error_code(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        for key in ("code", "error_code"):
            value = payload.get(key)
            if value is None:
                continue
            if isinstance(value, str):
                return value
            return str(value)
    return None


__all__ = [
    "ApiClientError",
    "ApiDecodeError",
    "ApiError",
    "ApiResponseError",
    "ApiServerError",
    "ApiTimeoutError",
    "ApiTransportError",
    "extract_error_code",
    "extract_error_message",
    "response_error",
]
