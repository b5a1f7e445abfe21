from __future__ import annotations

from typing import List, Protocol

from .entities import ClaimStatus, ScanResult, StudentRow, ValidationResult


class UseCaseError(Exception):
    """Base class for use case level errors (user-presentable)."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


# ---- Ports (Hexagonal boundaries) ----
class CheckInPort(Protocol):
    """Check-in operations against the event REST API."""

    def validate_student(self, student_id: str) -> ValidationResult: ...
    def record_consent(self, student_id: str, consented: bool) -> None: ...
    def scan_token(self, token: str) -> ScanResult: ...
    def record_claim(self, token: str, item_type: str) -> ClaimStatus: ...
    def set_distribution_status(
        self, student_id: str, item_type: str, collected: bool
    ) -> ClaimStatus: ...
    def list_students(self) -> List[StudentRow]: ...
