from __future__ import annotations

"""Domain value objects returned by the check-in adapter and use cases."""

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

ITEM_TYPES = ("tshirt", "meal")


@dataclass(frozen=True)
class StudentId:
    """Student identifier as typed into the check-in form."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value.strip():
            raise ValueError("StudentId must be a non-empty string.")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Involvement:
    """One club/role pair the student is registered under."""

    club: str
    role: str = ""


@dataclass(frozen=True)
class StudentProfile:
    """Student details shown on the QR card and the admin scan view."""

    student_id: str
    name: str
    tshirt_size: Optional[str] = None
    meal_preference: Optional[str] = None
    involvements: List[Involvement] = field(default_factory=list)

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "StudentProfile":
        involvements = []
        for item in data.get("involvements") or []:
            if isinstance(item, Mapping) and item.get("club"):
                involvements.append(
                    Involvement(str(item["club"]), str(item.get("role") or ""))
                )
        return cls(
            student_id=str(data.get("studentId", "")),
            name=str(data.get("name", "")),
            tshirt_size=data.get("tshirtSize"),
            meal_preference=data.get("mealPreference"),
            involvements=involvements,
        )


@dataclass(frozen=True)
class ClaimStatus:
    """Which items a student has already collected."""

    tshirt_claimed: bool = False
    meal_claimed: bool = False

    @classmethod
    def from_payload(cls, data: Optional[Mapping[str, Any]]) -> "ClaimStatus":
        data = data or {}
        return cls(
            tshirt_claimed=bool(data.get("tshirtClaimed", False)),
            meal_claimed=bool(data.get("mealClaimed", False)),
        )


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a successful student-ID validation."""

    student: StudentProfile
    token: str


@dataclass(frozen=True)
class ScanResult:
    """Student and claim state resolved from a scanned QR token."""

    student: StudentProfile
    claims: ClaimStatus


@dataclass(frozen=True)
class StudentRow:
    """One line of the admin student table."""

    student_id: str
    name: str
    tshirt_size: str = ""
    meal_preference: str = ""
    shirt_collected: bool = False
    meal_collected: bool = False
    consented: bool = False
    organization_details: str = ""

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "StudentRow":
        return cls(
            student_id=str(data.get("studentId", "")),
            name=str(data.get("name", "")),
            tshirt_size=str(data.get("tshirtSize") or ""),
            meal_preference=str(data.get("mealPreference") or ""),
            shirt_collected=bool(data.get("shirtCollected", False)),
            meal_collected=bool(data.get("mealCollected", False)),
            consented=bool(data.get("consented", False)),
            organization_details=str(data.get("organizationDetails") or ""),
        )


__all__ = [
    "ITEM_TYPES",
    "ClaimStatus",
    "Involvement",
    "ScanResult",
    "StudentId",
    "StudentProfile",
    "StudentRow",
    "ValidationResult",
]
