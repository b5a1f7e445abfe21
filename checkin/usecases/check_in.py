"""Check-in use cases shared by the student form and the admin scan view."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from checkin.domain.entities import (
    ITEM_TYPES,
    ClaimStatus,
    ScanResult,
    StudentId,
    StudentRow,
    ValidationResult,
)
from checkin.domain.ports import CheckInPort, UseCaseError
from checkin.usecases.error_mapping import map_api_error


@dataclass
class ValidateStudent:
    """Exchange a typed student ID for a profile and QR token."""

    port: CheckInPort

    def __call__(self, raw_student_id: str) -> ValidationResult:
        try:
            student_id = StudentId((raw_student_id or "").strip())
        except ValueError:
            raise UseCaseError("MISSING_STUDENT_ID", "Student ID is required") from None
        try:
            return self.port.validate_student(str(student_id))
        except Exception as exc:
            raise map_api_error(exc, default_code="VALIDATE_FAILED") from exc


@dataclass
class RecordConsent:
    port: CheckInPort

    def __call__(self, student_id: str, consented: bool) -> None:
        try:
            self.port.record_consent(student_id, consented)
        except Exception as exc:
            raise map_api_error(exc, default_code="CONSENT_FAILED") from exc


@dataclass
class ScanToken:
    """Resolve a scanned QR token into student and claim state."""

    port: CheckInPort

    def __call__(self, token: str) -> ScanResult:
        token = (token or "").strip()
        if not token:
            raise UseCaseError("MISSING_TOKEN", "Token is required")
        try:
            return self.port.scan_token(token)
        except Exception as exc:
            raise map_api_error(exc, default_code="SCAN_FAILED") from exc


@dataclass
class RecordClaim:
    port: CheckInPort

    def __call__(self, token: str, item_type: str) -> ClaimStatus:
        if item_type not in ITEM_TYPES:
            raise UseCaseError(
                "INVALID_ITEM_TYPE", 'Item type must be "tshirt" or "meal"'
            )
        try:
            return self.port.record_claim(token, item_type)
        except Exception as exc:
            raise map_api_error(exc, default_code="CLAIM_FAILED") from exc


@dataclass
class SetDistributionStatus:
    """Admin toggle for an item's collected flag."""

    port: CheckInPort

    def __call__(self, student_id: str, item_type: str, collected: bool) -> ClaimStatus:
        if item_type not in ITEM_TYPES:
            raise UseCaseError(
                "INVALID_ITEM_TYPE", 'Item type must be "tshirt" or "meal"'
            )
        try:
            return self.port.set_distribution_status(student_id, item_type, collected)
        except Exception as exc:
            raise map_api_error(exc, default_code="DISTRIBUTION_UPDATE_FAILED") from exc


@dataclass
class ListStudents:
    """Fetch the admin table of every student and their collection status."""

    port: CheckInPort

    def __call__(self) -> List[StudentRow]:
        try:
            return self.port.list_students()
        except Exception as exc:
            raise map_api_error(exc, default_code="LIST_STUDENTS_FAILED") from exc


__all__ = [
    "ListStudents",
    "RecordClaim",
    "RecordConsent",
    "ScanToken",
    "SetDistributionStatus",
    "ValidateStudent",
]
