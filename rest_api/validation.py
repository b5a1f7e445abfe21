"""Request body reading, sanitizing and validation for check-in routes.

Routes call :func:`read_json_body`, then :func:`sanitize_body` and
:func:`validate_body` with one of :data:`SCHEMAS`. Validation stops at the first
violation and raises a ``ServerError`` carrying a single-field message.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Sequence, Union

from fastapi import Request

from .errors import PayloadParseError, ServerError

CustomCheck = Callable[[Any], Union[bool, str]]

_TYPE_CHECKS: Dict[str, Callable[[Any], bool]] = {
    "string": lambda v: isinstance(v, str),
    "number": lambda v: isinstance(v, (int, float)) and not isinstance(v, bool),
    "boolean": lambda v: isinstance(v, bool),
    "object": lambda v: isinstance(v, dict),
    "array": lambda v: isinstance(v, list),
}


@dataclass(frozen=True)
class FieldRule:
    """Constraints for one body field.

    Attributes
    ----------
    type : str
        One of ``string``, ``number``, ``boolean``, ``object``, ``array``.
    required : bool
        Missing, ``None`` and ``""`` are rejected when set.
    enum : Sequence, optional
        Allowed values.
    min_length, max_length : int, optional
        Length bounds for strings.
    pattern : str, optional
        Regular expression a string must match (``re.search``).
    custom : callable, optional
        Returns ``True`` when valid, or a message string / ``False`` otherwise.
    error_code, error_message : str, optional
        Override code/message for required, type, enum and blank violations.
    """

    type: str
    required: bool = False
    enum: Optional[Sequence[Any]] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    custom: Optional[CustomCheck] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def __post_init__(self) -> None:
        if self.type not in _TYPE_CHECKS:
            raise ValueError(f"Unsupported field type: {self.type}")


Schema = Mapping[str, FieldRule]


async def read_json_body(request: Request) -> Dict[str, Any]:
    """Decode the request body as a JSON object.

    An empty body decodes to ``{}``. Malformed JSON raises
    :class:`PayloadParseError`; a JSON value that is not an object raises
    ``ServerError(400, "INVALID_BODY")``.
    """
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    # Deeply nested input exhausts the decoder's recursion limit.
    except (ValueError, RecursionError) as exc:
        raise PayloadParseError(str(exc)) from exc
    if not isinstance(data, dict):
        raise ServerError("Request body must be a JSON object", 400, "INVALID_BODY")
    return data


def sanitize_body(body: Mapping[str, Any], fields: Iterable[str]) -> Dict[str, Any]:
    """Return a copy of ``body`` with the listed string fields trimmed."""
    cleaned = dict(body)
    for name in fields:
        value = cleaned.get(name)
        if isinstance(value, str):
            cleaned[name] = value.strip()
    return cleaned


def validate_body(body: Mapping[str, Any], schema: Schema) -> None:
    """Raise ``ServerError`` for the first field in ``schema`` that is invalid."""
    for name, rule in schema.items():
        value = body.get(name)

        if rule.required and (value is None or value == ""):
            _reject(rule, f"{name} is required")
        if value is None:
            continue

        if not _TYPE_CHECKS[rule.type](value):
            _reject(rule, f"{name} must be of type {rule.type}")

        if rule.enum is not None and value not in rule.enum:
            allowed = ", ".join(str(item) for item in rule.enum)
            _reject(rule, f"{name} must be one of: {allowed}")

        if rule.type == "string":
            if not value.strip():
                _reject(rule, f"{name} cannot be empty or whitespace only")
            if rule.min_length is not None and len(value) < rule.min_length:
                _fail(f"{name} must be at least {rule.min_length} characters")
            if rule.max_length is not None and len(value) > rule.max_length:
                _fail(f"{name} must be at most {rule.max_length} characters")
            if rule.pattern is not None and not re.search(rule.pattern, value):
                _fail(f"{name} has invalid format")

        if rule.custom is not None:
            result = rule.custom(value)
            if result is not True:
                _fail(result if isinstance(result, str) else f"{name} is invalid")


def _reject(rule: FieldRule, default_message: str) -> None:
    raise ServerError(
        rule.error_message or default_message,
        400,
        rule.error_code or "VALIDATION_ERROR",
    )


def _fail(message: str) -> None:
    raise ServerError(message, 400, "VALIDATION_ERROR")


_ITEM_TYPE = FieldRule(
    type="string",
    required=True,
    enum=("tshirt", "meal"),
    error_code="INVALID_ITEM_TYPE",
    error_message='Item type must be "tshirt" or "meal"',
)
_STUDENT_ID = FieldRule(
    type="string",
    required=True,
    min_length=1,
    error_code="MISSING_STUDENT_ID",
    error_message="Student ID is required",
)
_TOKEN = FieldRule(
    type="string",
    required=True,
    min_length=1,
    error_code="MISSING_TOKEN",
    error_message="Token is required",
)

SCHEMAS: Dict[str, Schema] = {
    "validate_student": {"studentId": _STUDENT_ID},
    "scan_token": {"token": _TOKEN},
    "record_claim": {"token": _TOKEN, "itemType": _ITEM_TYPE},
    "record_consent": {
        "studentId": _STUDENT_ID,
        "consented": FieldRule(
            type="boolean",
            required=True,
            error_code="MISSING_CONSENTED",
            error_message="Consented field is required",
        ),
    },
    "update_distribution_status": {
        "studentId": _STUDENT_ID,
        "itemType": _ITEM_TYPE,
        "collected": FieldRule(
            type="boolean",
            required=True,
            error_code="MISSING_COLLECTED",
            error_message="Collected field is required",
        ),
    },
}


async def parse_request(
    request: Request, schema_name: str, trim: Iterable[str] = ()
) -> Dict[str, Any]:
    """Read, sanitize and validate a request body against ``SCHEMAS[schema_name]``."""
    body = sanitize_body(await read_json_body(request), trim)
    validate_body(body, SCHEMAS[schema_name])
    return body
