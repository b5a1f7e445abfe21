"""Error vocabulary for the check-in REST API.

Route handlers, the validation helpers and the not-found route raise these
types; ``rest_api.error_handlers.normalize_error`` is the only place that turns
them (or anything else) into an HTTP response.
"""

from typing import Any, Optional

from pydantic import BaseModel


class ServerError(Exception):
    """Intentionally raised API failure with a stable machine-readable code.

    Parameters
    ----------
    message : str
        Human-readable text sent to the client as ``error``.
    status_code : int
        HTTP status in ``[400, 599]``.
    code : str
        Stable token such as ``STUDENT_NOT_FOUND``.
    details : Any, optional
        Structured payload echoed to the client when present.
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        code: str,
        details: Optional[Any] = None,
    ) -> None:
        if not 400 <= int(status_code) <= 599:
            raise ValueError(f"status_code must be in [400, 599], got {status_code}")
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code
        self.details = details
        self.is_operational = True

    def __repr__(self) -> str:
        return f"ServerError({self.status_code}, {self.code!r}, {self.message!r})"


class ValidationFailure(Exception):
    """Failure tagged as validation-kind by an upstream validator."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PayloadParseError(Exception):
    """Request body could not be decoded as JSON.

    Raised by the body reader at the point of detection so the normalizer
    never has to guess from an exception's shape.
    """


class WireErrorResponse(BaseModel):
    """The only JSON shape returned for a failed request."""

    success: bool = False
    error: str
    code: str
    details: Optional[Any] = None

    def to_wire(self) -> dict:
        return self.model_dump(exclude_none=True)
