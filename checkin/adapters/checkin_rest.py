from __future__ import annotations

import time
from typing import Any, Callable, Dict, List, Optional

from checkin.config import ClientConfig
from checkin.domain.entities import (
    ClaimStatus,
    ScanResult,
    StudentProfile,
    StudentRow,
    ValidationResult,
)
from checkin.domain.ports import CheckInPort

from .api_errors import ApiDecodeError
from .http_client import JsonApiClient


class CheckInRestAdapter(CheckInPort):
    """REST adapter for the student form and the admin scan view."""

    def __init__(
        self,
        config: ClientConfig,
        *,
        session: Any = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = JsonApiClient(config, session=session, sleep=sleep)

    def validate_student(self, student_id: str) -> ValidationResult:
        data = self._post("/api/validate", {"studentId": student_id})
        token = data.get("token")
        if not isinstance(token, str) or not token:
            raise ApiDecodeError("validate: response is missing a token")
        return ValidationResult(
            student=StudentProfile.from_payload(self._obj(data, "student")),
            token=token,
        )

    def record_consent(self, student_id: str, consented: bool) -> None:
        self._post("/api/consent", {"studentId": student_id, "consented": consented})

    def scan_token(self, token: str) -> ScanResult:
        data = self._post("/api/scan", {"token": token})
        return ScanResult(
            student=StudentProfile.from_payload(self._obj(data, "student")),
            claims=ClaimStatus.from_payload(data.get("claims")),
        )

    def record_claim(self, token: str, item_type: str) -> ClaimStatus:
        data = self._post("/api/claim", {"token": token, "itemType": item_type})
        return ClaimStatus.from_payload(data.get("claims"))

    def set_distribution_status(
        self, student_id: str, item_type: str, collected: bool
    ) -> ClaimStatus:
        data = self._post(
            "/api/distribution-status",
            {"studentId": student_id, "itemType": item_type, "collected": collected},
        )
        return ClaimStatus.from_payload(data.get("claims"))

    def list_students(self) -> List[StudentRow]:
        data = self.client.get("/api/students/all")
        if not isinstance(data, dict) or not isinstance(data.get("students"), list):
            raise ApiDecodeError("/api/students/all: response is missing 'students'")
        return [
            StudentRow.from_payload(item)
            for item in data["students"]
            if isinstance(item, dict)
        ]

    # ---- helpers ----
    def _post(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        data = self.client.post(endpoint, payload)
        if not isinstance(data, dict):
            raise ApiDecodeError(f"{endpoint}: expected object response")
        return data

    @staticmethod
    def _obj(data: Dict[str, Any], key: str) -> Dict[str, Any]:
        value: Optional[Any] = data.get(key)
        if not isinstance(value, dict):
            raise ApiDecodeError(f"response is missing '{key}'")
        return value


__all__ = ["CheckInRestAdapter"]
