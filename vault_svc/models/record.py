"""
Domain model for medical records.
"""
import json
import sqlite3
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from core.datetime_utils import from_db_string

# Named file slots a record can hold, mapped to their RecordFiles attribute
ATTACHMENT_SLOTS: Dict[str, str] = {
    "labReport": "lab_report",
    "prescription": "prescription",
}

# Wire (camelCase) name for each Vitals attribute
VITALS_KEYS: Dict[str, str] = {
    "blood_pressure": "bloodPressure",
    "heart_rate": "heartRate",
    "blood_sugar": "bloodSugar",
    "weight": "weight",
    "height": "height",
}


@dataclass
class Vitals:
    """Structured vitals; every measurement is optional free text."""

    blood_pressure: Optional[str] = None
    heart_rate: Optional[str] = None
    blood_sugar: Optional[str] = None
    weight: Optional[str] = None
    height: Optional[str] = None

    def to_json(self) -> str:
        """Serialize to the camelCase JSON stored in the records table."""
        return json.dumps({VITALS_KEYS[key]: value for key, value in asdict(self).items()})

    @classmethod
    def from_json(cls, raw: Optional[str]) -> "Vitals":
        """Load vitals from the records table; an empty column yields empty vitals."""
        if not raw:
            return cls()
        data = json.loads(raw)
        return cls(**{attr: data.get(key) for attr, key in VITALS_KEYS.items()})


@dataclass
class RecordFiles:
    """References to the attachments held by a record ("" when the slot is empty)."""

    lab_report: str = ""
    prescription: str = ""

    def get(self, slot: str) -> str:
        return getattr(self, ATTACHMENT_SLOTS[slot])

    def set(self, slot: str, reference: str) -> None:
        setattr(self, ATTACHMENT_SLOTS[slot], reference)

    def references(self) -> List[str]:
        """All non-empty references, in slot order."""
        return [self.get(slot) for slot in ATTACHMENT_SLOTS if self.get(slot)]


@dataclass
class RecordFields:
    """
    Text fields submitted with a create or update request.

    None means the field was absent from the request; an empty string is an
    explicit value. `vitals` is the raw JSON text as submitted.
    """

    title: Optional[str] = None
    medical_history: Optional[str] = None
    doctor_notes: Optional[str] = None
    vitals: Optional[str] = None


@dataclass
class Record:
    """A single medical record owned by one user."""

    owner_id: str
    title: str
    medical_history: str = ""
    doctor_notes: str = ""
    vitals: Vitals = field(default_factory=Vitals)
    files: RecordFiles = field(default_factory=RecordFiles)
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Record":
        """Create a Record from a `records` table row."""
        return cls(
            id=row["id"],
            owner_id=row["owner_id"],
            title=row["title"],
            medical_history=row["medical_history"] or "",
            doctor_notes=row["doctor_notes"] or "",
            vitals=Vitals.from_json(row["vitals"]),
            files=RecordFiles(
                lab_report=row["lab_report"] or "",
                prescription=row["prescription"] or "",
            ),
            created_at=from_db_string(row["created_at"]),
            updated_at=from_db_string(row["updated_at"]),
        )
