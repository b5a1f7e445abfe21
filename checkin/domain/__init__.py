"""Domain package exports for check-in value objects and ports."""

from .entities import (
    ITEM_TYPES,
    ClaimStatus,
    Involvement,
    ScanResult,
    StudentId,
    StudentProfile,
    ValidationResult,
)
from .ports import CheckInPort, UseCaseError

__all__ = [
    "ITEM_TYPES",
    "CheckInPort",
    "ClaimStatus",
    "Involvement",
    "ScanResult",
    "StudentId",
    "StudentProfile",
    "UseCaseError",
    "ValidationResult",
]
