"""
Pydantic schemas for medical record API operations.

JSON field names are camelCase on the wire (medicalHistory, labReport, ...).
"""
from dataclasses import asdict
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from core.datetime_utils import format_iso
from models.record import Record


class VitalsSchema(BaseModel):
    """Vitals sub-record. Also used to parse the JSON-encoded `vitals` form field."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
        json_schema_extra={
            "example": {"bloodPressure": "120/80", "heartRate": "72", "weight": "70kg"}
        },
    )

    blood_pressure: Optional[str] = Field(None, description="Blood pressure, e.g. '120/80'")
    heart_rate: Optional[str] = Field(None, description="Heart rate")
    blood_sugar: Optional[str] = Field(None, description="Blood sugar")
    weight: Optional[str] = Field(None, description="Weight")
    height: Optional[str] = Field(None, description="Height")


class RecordFilesSchema(BaseModel):
    """Attachment references; an empty string means the slot is empty."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    lab_report: str = Field("", description="Public path of the lab report", examples=["/uploads/records/1735725600000-9f2c4e1a7b3d5c60.pdf"])
    prescription: str = Field("", description="Public path of the prescription")


class RecordResponse(BaseModel):
    """Schema for a medical record returned by the API."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "0b9f6f8e2c1d4a7b9e3f5a6c8d0e1f2a",
                "owner": "5d2c7a1e9b3f4c6d8e0a1b2c3d4e5f60",
                "title": "Annual checkup",
                "medicalHistory": "Seasonal allergies",
                "doctorNotes": "Follow up in 6 months",
                "vitals": {"bloodPressure": "120/80", "heartRate": "72"},
                "files": {"labReport": "/uploads/records/1735725600000-9f2c4e1a7b3d5c60.pdf", "prescription": ""},
                "createdAt": "2025-01-01T10:00:00.000Z",
                "updatedAt": "2025-01-01T10:00:00.000Z",
            }
        },
    )

    id: str = Field(..., description="Record identifier")
    owner: str = Field(..., description="Identifier of the owning user")
    title: str = Field(..., description="Record title")
    medical_history: str = Field("", description="Free-text medical history")
    doctor_notes: str = Field("", description="Free-text doctor notes")
    vitals: VitalsSchema = Field(default_factory=VitalsSchema)
    files: RecordFilesSchema = Field(default_factory=RecordFilesSchema)
    created_at: str = Field(..., description="ISO 8601 UTC creation time")
    updated_at: str = Field(..., description="ISO 8601 UTC time of the last update")

    @classmethod
    def from_record(cls, record: Record) -> "RecordResponse":
        """Build the response body for a domain record."""
        return cls(
            id=record.id,
            owner=record.owner_id,
            title=record.title,
            medical_history=record.medical_history,
            doctor_notes=record.doctor_notes,
            vitals=VitalsSchema(**asdict(record.vitals)),
            files=RecordFilesSchema(
                lab_report=record.files.lab_report,
                prescription=record.files.prescription,
            ),
            created_at=format_iso(record.created_at),
            updated_at=format_iso(record.updated_at),
        )


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    message: str = Field(..., examples=["Record deleted successfully"])
