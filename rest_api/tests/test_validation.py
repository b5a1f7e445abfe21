import asyncio

import pytest
from starlette.requests import Request

from rest_api.errors import PayloadParseError, ServerError
from rest_api.validation import (
    SCHEMAS,
    FieldRule,
    read_json_body,
    sanitize_body,
    validate_body,
)


def _request_with_body(body: bytes) -> Request:
    sent = {"done": False}

    async def receive():
        if sent["done"]:
            return {"type": "http.disconnect"}
        sent["done"] = True
        return {"type": "http.request", "body": body, "more_body": False}

    scope = {"type": "http", "method": "POST", "path": "/api/validate", "headers": []}
    return Request(scope, receive)


def _violation(body, schema) -> ServerError:
    with pytest.raises(ServerError) as excinfo:
        validate_body(body, schema)
    return excinfo.value


def test_sanitize_trims_listed_string_fields_only():
    body = {"studentId": "  6512345 ", "name": "  Ada ", "count": 3}

    cleaned = sanitize_body(body, ["studentId", "count", "missing"])

    assert cleaned == {"studentId": "6512345", "name": "  Ada ", "count": 3}
    assert body["studentId"] == "  6512345 "


def test_required_field_default_message():
    err = _violation({}, {"field": FieldRule(type="string", required=True)})

    assert err.message == "field is required"
    assert err.code == "VALIDATION_ERROR"
    assert err.status_code == 400


def test_min_length_message():
    err = _violation({"field": "ab"}, {"field": FieldRule(type="string", min_length=3)})

    assert err.message == "field must be at least 3 characters"
    assert err.code == "VALIDATION_ERROR"


def test_max_length_and_pattern_messages():
    rule = FieldRule(type="string", max_length=4, pattern=r"^\d+$")

    assert _violation({"f": "12345"}, {"f": rule}).message == "f must be at most 4 characters"
    assert _violation({"f": "12a"}, {"f": rule}).message == "f has invalid format"


def test_type_enum_and_blank_messages():
    assert (
        _violation({"n": "1"}, {"n": FieldRule(type="number")}).message
        == "n must be of type number"
    )
    assert (
        _violation({"n": True}, {"n": FieldRule(type="number")}).message
        == "n must be of type number"
    )
    assert (
        _violation({"c": "red"}, {"c": FieldRule(type="string", enum=("blue", "green"))}).message
        == "c must be one of: blue, green"
    )
    assert (
        _violation({"s": "   "}, {"s": FieldRule(type="string")}).message
        == "s cannot be empty or whitespace only"
    )


def test_custom_rule_message_and_fallback():
    def even(value):
        return value % 2 == 0 or "n must be even"

    assert _violation({"n": 3}, {"n": FieldRule(type="number", custom=even)}).message == "n must be even"
    assert (
        _violation({"n": 3}, {"n": FieldRule(type="number", custom=lambda v: False)}).message
        == "n is invalid"
    )


def test_optional_missing_field_is_skipped():
    validate_body({}, {"note": FieldRule(type="string", min_length=5)})


def test_only_first_violation_is_reported():
    schema = {
        "a": FieldRule(type="string", required=True),
        "b": FieldRule(type="string", required=True),
    }

    assert _violation({}, schema).message == "a is required"


def test_schema_overrides_code_and_message():
    err = _violation({"studentId": ""}, SCHEMAS["validate_student"])

    assert err.code == "MISSING_STUDENT_ID"
    assert err.message == "Student ID is required"


def test_claim_schema_rejects_unknown_item_type():
    err = _violation({"token": "abc", "itemType": "hoodie"}, SCHEMAS["record_claim"])

    assert err.code == "INVALID_ITEM_TYPE"
    assert err.message == 'Item type must be "tshirt" or "meal"'


def test_consent_schema_requires_boolean():
    err = _violation({"studentId": "6512345", "consented": "yes"}, SCHEMAS["record_consent"])

    assert err.code == "MISSING_CONSENTED"


def test_unknown_rule_type_is_rejected():
    with pytest.raises(ValueError):
        FieldRule(type="date")


def test_read_json_body_parses_object():
    assert asyncio.run(read_json_body(_request_with_body(b'{"token": "abc"}'))) == {"token": "abc"}


def test_read_json_body_empty_is_empty_object():
    assert asyncio.run(read_json_body(_request_with_body(b""))) == {}


def test_read_json_body_tags_parse_failures():
    with pytest.raises(PayloadParseError):
        asyncio.run(read_json_body(_request_with_body(b'{"token": ')))


def test_read_json_body_tags_deeply_nested_input():
    with pytest.raises(PayloadParseError):
        asyncio.run(read_json_body(_request_with_body(b"[" * 100000)))


def test_read_json_body_rejects_non_object():
    with pytest.raises(ServerError) as excinfo:
        asyncio.run(read_json_body(_request_with_body(b"[1, 2]")))

    assert excinfo.value.code == "INVALID_BODY"
