from __future__ import annotations

import json
from typing import Any, Dict, List, Sequence

import pytest
from requests import exceptions as req_exc

from checkin.adapters.api_errors import (
    ApiClientError,
    ApiDecodeError,
    ApiServerError,
    ApiTimeoutError,
    ApiTransportError,
)
from checkin.adapters.http_client import (
    JsonApiClient,
    RequestSpec,
    RetryExecutor,
    TimeoutGuard,
)
from checkin.config import ClientConfig


class _ResponseStub:
    def __init__(self, payload: Any, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class _SessionStub:
    """Replays a scripted sequence of responses or exceptions."""

    def __init__(self, outcomes: Sequence[Any]) -> None:
        self._outcomes = list(outcomes)
        self.calls: List[Dict[str, Any]] = []

    def request(self, method: str, url: str, **kwargs: Any) -> Any:
        self.calls.append({"method": method, "url": url, **kwargs})
        if not self._outcomes:
            raise RuntimeError("No stub outcome configured")
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class _SleepRecorder:
    def __init__(self) -> None:
        self.delays: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def _spec() -> RequestSpec:
    return RequestSpec(method="POST", url="http://api.test/api/validate", body="{}")


def _executor(session: _SessionStub, **cfg: Any):
    sleep = _SleepRecorder()
    config = ClientConfig(base_url="http://api.test", **cfg)
    executor = RetryExecutor(TimeoutGuard(session, config.request_timeout_s), config, sleep=sleep)
    return executor, sleep


# ---- TimeoutGuard ----

def test_guard_passes_deadline_to_session() -> None:
    session = _SessionStub([_ResponseStub({"ok": True})])
    guard = TimeoutGuard(session, timeout_s=10.0)

    guard.send(_spec())

    assert session.calls[0]["timeout"] == 10.0
    assert session.calls[0]["data"] == "{}"


def test_guard_honours_explicit_zero_deadline() -> None:
    session = _SessionStub([_ResponseStub({"ok": True}), _ResponseStub({"ok": True})])
    guard = TimeoutGuard(session, timeout_s=10.0)

    guard.send(_spec(), timeout_s=0)
    guard.send(_spec(), timeout_s=None)

    assert session.calls[0]["timeout"] == 0
    assert session.calls[1]["timeout"] == 10.0


def test_guard_maps_timeout_to_timeout_error() -> None:
    session = _SessionStub([req_exc.ReadTimeout("read timed out")])
    guard = TimeoutGuard(session, timeout_s=2.5)

    with pytest.raises(ApiTimeoutError) as excinfo:
        guard.send(_spec())

    assert "timeout" in str(excinfo.value).lower()
    assert excinfo.value.context == "POST http://api.test/api/validate"


def test_guard_maps_connect_timeout_to_timeout_error() -> None:
    session = _SessionStub([req_exc.ConnectTimeout("connect timed out")])

    with pytest.raises(ApiTimeoutError):
        TimeoutGuard(session).send(_spec())


def test_guard_maps_connection_error_to_transport_error() -> None:
    session = _SessionStub([req_exc.ConnectionError("connection reset by peer")])

    with pytest.raises(ApiTransportError) as excinfo:
        TimeoutGuard(session).send(_spec())

    assert not isinstance(excinfo.value, ApiTimeoutError)
    assert isinstance(excinfo.value.__cause__, req_exc.ConnectionError)


def test_guard_lets_other_failures_propagate() -> None:
    session = _SessionStub([req_exc.InvalidURL("bad url")])

    with pytest.raises(req_exc.InvalidURL):
        TimeoutGuard(session).send(_spec())


# ---- RetryExecutor ----

def test_success_returns_first_response_without_delay() -> None:
    response = _ResponseStub({"ok": True})
    executor, sleep = _executor(_SessionStub([response]))

    assert executor.execute(_spec()) is response
    assert sleep.delays == []


@pytest.mark.parametrize("failures", [1, 2, 3])
def test_transport_failures_then_success_uses_doubling_backoff(failures: int) -> None:
    outcomes: List[Any] = [req_exc.ConnectionError("reset")] * failures
    outcomes.append(_ResponseStub({"ok": True}))
    session = _SessionStub(outcomes)
    executor, sleep = _executor(session)

    executor.execute(_spec(), retries=3)

    assert len(session.calls) == failures + 1
    assert sleep.delays == [1.0, 2.0, 4.0][:failures]


def test_timeouts_are_retried_like_connection_failures() -> None:
    session = _SessionStub([req_exc.ReadTimeout("slow"), _ResponseStub({"ok": True})])
    executor, sleep = _executor(session)

    executor.execute(_spec())

    assert len(session.calls) == 2
    assert sleep.delays == [1.0]


def test_exhausted_budget_reraises_last_failure() -> None:
    session = _SessionStub([req_exc.ConnectionError(f"reset {i}") for i in range(4)])
    executor, sleep = _executor(session)

    with pytest.raises(ApiTransportError) as excinfo:
        executor.execute(_spec(), retries=3)

    assert len(session.calls) == 4
    assert sleep.delays == [1.0, 2.0, 4.0]
    assert "reset 3" in str(excinfo.value)


def test_zero_budget_means_single_attempt() -> None:
    session = _SessionStub([req_exc.ConnectionError("refused"), _ResponseStub({})])
    executor, sleep = _executor(session)

    with pytest.raises(ApiTransportError):
        executor.execute(_spec(), retries=0)

    assert len(session.calls) == 1
    assert sleep.delays == []


def test_default_budget_comes_from_config() -> None:
    session = _SessionStub([req_exc.ConnectionError("refused")] * 2)
    executor, sleep = _executor(session, max_retries=1, initial_backoff_s=0.5)

    with pytest.raises(ApiTransportError):
        executor.execute(_spec())

    assert len(session.calls) == 2
    assert sleep.delays == [0.5]


@pytest.mark.parametrize("status", [400, 404, 409, 500, 503])
def test_error_status_is_not_retried(status: int) -> None:
    response = _ResponseStub({"error": "nope"}, status_code=status)
    session = _SessionStub([response, _ResponseStub({"ok": True})])
    executor, sleep = _executor(session)

    assert executor.execute(_spec(), retries=3) is response
    assert len(session.calls) == 1
    assert sleep.delays == []


def test_non_transport_exception_is_not_retried() -> None:
    session = _SessionStub([ValueError("boom"), _ResponseStub({})])
    executor, sleep = _executor(session)

    with pytest.raises(ValueError):
        executor.execute(_spec())

    assert len(session.calls) == 1


def test_retry_state_is_per_call() -> None:
    session = _SessionStub(
        [
            req_exc.ConnectionError("reset"),
            _ResponseStub({"n": 1}),
            req_exc.ConnectionError("reset"),
            _ResponseStub({"n": 2}),
        ]
    )
    executor, sleep = _executor(session)

    executor.execute(_spec())
    executor.execute(_spec())

    assert sleep.delays == [1.0, 1.0]


# ---- JsonApiClient ----

def _client(outcomes: Sequence[Any], **cfg: Any):
    session = _SessionStub(outcomes)
    sleep = _SleepRecorder()
    client = JsonApiClient(
        ClientConfig(base_url="http://api.test", **cfg), session=session, sleep=sleep
    )
    return client, session, sleep


def test_post_builds_json_request() -> None:
    client, session, _ = _client([_ResponseStub({"success": True})])

    result = client.post("/api/validate", {"studentId": "6512345"})

    assert result == {"success": True}
    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == "http://api.test/api/validate"
    assert call["headers"]["Content-Type"] == "application/json"
    assert json.loads(call["data"]) == {"studentId": "6512345"}
    assert call["timeout"] == 10.0


def test_get_sends_no_body_and_shares_error_handling() -> None:
    client, session, _ = _client(
        [
            _ResponseStub({"success": True, "students": []}),
            _ResponseStub({"error": "Internal server error"}, status_code=500),
        ]
    )

    assert client.get("/api/students/all") == {"success": True, "students": []}
    with pytest.raises(ApiServerError):
        client.get("/api/students/all")

    call = session.calls[0]
    assert call["method"] == "GET"
    assert call["url"] == "http://api.test/api/students/all"
    assert call["data"] is None
    assert "Content-Type" not in call["headers"]



def test_post_404_raises_structured_error_after_single_call() -> None:
    body = {"error": "Not found"}
    client, session, sleep = _client([_ResponseStub(body, status_code=404)])

    with pytest.raises(ApiClientError) as excinfo:
        client.post("/api/validate", {"studentId": "x"})

    err = excinfo.value
    assert err.message == "Not found"
    assert str(err) == "Not found"
    assert err.status == 404
    assert err.data == body
    assert len(session.calls) == 1
    assert sleep.delays == []


def test_post_error_without_message_uses_default_text() -> None:
    client, _, _ = _client([_ResponseStub({"code": "X"}, status_code=500)])

    with pytest.raises(ApiServerError) as excinfo:
        client.post("/api/scan", {"token": "t"})

    assert excinfo.value.message == "Request failed"
    assert excinfo.value.code == "X"
    assert excinfo.value.status == 500


def test_post_error_with_unparseable_body_keeps_status() -> None:
    client, _, _ = _client([_ResponseStub(ValueError("not json"), status_code=502)])

    with pytest.raises(ApiServerError) as excinfo:
        client.post("/api/scan", {"token": "t"})

    assert excinfo.value.status == 502
    assert excinfo.value.data is None


def test_post_success_with_unparseable_body_raises_decode_error() -> None:
    client, _, _ = _client([_ResponseStub(ValueError("not json"))])

    with pytest.raises(ApiDecodeError):
        client.post("/api/scan", {"token": "t"})


def test_post_retries_connection_resets_then_returns_payload() -> None:
    client, session, sleep = _client(
        [
            req_exc.ConnectionError("connection reset"),
            req_exc.ConnectionError("connection reset"),
            _ResponseStub({"success": True, "token": "abc"}),
        ]
    )

    result = client.post("/api/validate", {"studentId": "6512345"})

    assert result == {"success": True, "token": "abc"}
    assert len(session.calls) == 3
    assert sleep.delays == [1.0, 2.0]


def test_post_does_not_retry_on_failure_body_content() -> None:
    client, session, _ = _client(
        [_ResponseStub({"success": False, "error": "retry me"}, status_code=200)]
    )

    assert client.post("/api/validate", {}) == {"success": False, "error": "retry me"}
    assert len(session.calls) == 1
