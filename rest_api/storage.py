"""In-memory check-in registry for the REST API.

This module holds students, issued QR tokens, consent flags and claim state.
`rest_api.app` uses it from the `/api/*` handlers. State is process-local and
guarded by one lock; the student roster can be seeded from a JSON file
(``STUDENTS_FILE``) at startup.
"""

import json
import pathlib
import re
import secrets
import threading
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

ITEM_TYPES = ("tshirt", "meal")
TOKEN_BYTES = 32
MAX_TOKEN_ATTEMPTS = 5

_CLUB_RE = re.compile(r"Club:\s*([^,]+)", re.IGNORECASE)
_ROLE_RE = re.compile(r"Involvement:\s*(.+)", re.IGNORECASE)


@dataclass
class StudentRecord:
    """One registered participant.

    Attributes
    ----------
    student_id : str
        Identifier typed into the check-in form.
    name : str
        Display name.
    tshirt_size, meal_preference : str
        Item preferences; may be empty.
    organization_details : str
        ``"Club: X, Involvement: Y"`` entries separated by ``;``.
    consented : bool
        Whether PDPA consent has been recorded.
    """

    student_id: str
    name: str
    tshirt_size: str = ""
    meal_preference: str = ""
    organization_details: str = ""
    consented: bool = False

    def public_view(self) -> Dict[str, Any]:
        return {
            "studentId": self.student_id,
            "name": self.name,
            "tshirtSize": self.tshirt_size,
            "mealPreference": self.meal_preference,
            "involvements": parse_organization_details(self.organization_details),
        }


@dataclass
class ClaimRecord:
    tshirt_claimed: bool = False
    meal_claimed: bool = False

    def to_payload(self) -> Dict[str, bool]:
        return {"tshirtClaimed": self.tshirt_claimed, "mealClaimed": self.meal_claimed}


@dataclass
class CheckInRegistry:
    """Thread-safe student/token/claim store."""

    students: Dict[str, StudentRecord] = field(default_factory=dict)
    tokens: Dict[str, str] = field(default_factory=dict)
    claims: Dict[str, ClaimRecord] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def add_student(self, record: StudentRecord) -> None:
        with self._lock:
            self.students[record.student_id] = record

    def find_student(self, student_id: str) -> Optional[StudentRecord]:
        with self._lock:
            return self.students.get(student_id)

    def issue_token(self, student_id: str) -> str:
        """Store and return a fresh 64-hex-character token for ``student_id``."""
        with self._lock:
            for _ in range(MAX_TOKEN_ATTEMPTS):
                token = secrets.token_hex(TOKEN_BYTES)
                if token not in self.tokens:
                    self.tokens[token] = student_id
                    return token
        raise RuntimeError("Failed to generate unique token after maximum attempts")

    def student_for_token(self, token: str) -> Optional[StudentRecord]:
        with self._lock:
            student_id = self.tokens.get(token)
            return self.students.get(student_id) if student_id else None

    def set_consent(self, student_id: str, consented: bool) -> bool:
        with self._lock:
            record = self.students.get(student_id)
            if record is None:
                return False
            record.consented = consented
            return True

    def claim_status(self, student_id: str) -> ClaimRecord:
        """Return a snapshot of the claim record, creating it on first access."""
        with self._lock:
            return replace(self.claims.setdefault(student_id, ClaimRecord()))

    def record_claim(self, student_id: str, item_type: str) -> bool:
        """Mark ``item_type`` collected; ``False`` if it already was."""
        attr = _claim_attr(item_type)
        with self._lock:
            record = self.claims.setdefault(student_id, ClaimRecord())
            if getattr(record, attr):
                return False
            setattr(record, attr, True)
            return True

    def set_collected(self, student_id: str, item_type: str, collected: bool) -> ClaimRecord:
        attr = _claim_attr(item_type)
        with self._lock:
            record = self.claims.setdefault(student_id, ClaimRecord())
            setattr(record, attr, collected)
            return replace(record)

    def list_students(self) -> List[Dict[str, Any]]:
        """Return every student with consent and collection flags, ordered by ID.

        Students with no claim record yet report both items as not collected.
        """
        with self._lock:
            rows = []
            for student_id in sorted(self.students):
                record = self.students[student_id]
                claims = self.claims.get(student_id) or ClaimRecord()
                rows.append(
                    {
                        "studentId": record.student_id,
                        "name": record.name,
                        "tshirtSize": record.tshirt_size,
                        "mealPreference": record.meal_preference,
                        "shirtCollected": claims.tshirt_claimed,
                        "mealCollected": claims.meal_claimed,
                        "consented": record.consented,
                        "organizationDetails": record.organization_details,
                    }
                )
            return rows


def parse_organization_details(details: Optional[str]) -> List[Dict[str, str]]:
    """Split ``"Club: A, Involvement: B; Club: C, Involvement: D"`` into dicts.

    Entries missing either part are dropped.
    """
    if not details or not details.strip():
        return []
    involvements = []
    for entry in (part.strip() for part in details.split(";")):
        if not entry:
            continue
        club = _CLUB_RE.search(entry)
        role = _ROLE_RE.search(entry)
        if club and role:
            involvements.append({"club": club.group(1).strip(), "role": role.group(1).strip()})
    return involvements


def load_students(path: pathlib.Path) -> List[StudentRecord]:
    """Read a JSON list of student objects.

    Parameters
    ----------
    path : pathlib.Path
        File containing ``[{"studentId": ..., "name": ..., ...}, ...]``.

    Returns
    -------
    list of StudentRecord
        Entries without a student ID or name are skipped.
    """
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected a JSON list of students")
    records = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        student_id = str(item.get("studentId") or "").strip()
        name = str(item.get("name") or "").strip()
        if not student_id or not name:
            continue
        records.append(
            StudentRecord(
                student_id=student_id,
                name=name,
                tshirt_size=str(item.get("tshirtSize") or ""),
                meal_preference=str(item.get("mealPreference") or ""),
                organization_details=str(item.get("organizationDetails") or ""),
            )
        )
    return records


def _claim_attr(item_type: str) -> str:
    if item_type not in ITEM_TYPES:
        raise ValueError(f"Unknown item type: {item_type}")
    return f"{item_type}_claimed"
