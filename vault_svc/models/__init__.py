"""
Domain models for HealthVault.

Plain dataclasses passed between repositories and services.
"""
from models.record import (
    ATTACHMENT_SLOTS,
    Record,
    RecordFields,
    RecordFiles,
    Vitals,
)
from models.upload import UploadedFile
from models.user import User

__all__ = [
    "ATTACHMENT_SLOTS",
    "Record",
    "RecordFields",
    "RecordFiles",
    "Vitals",
    "UploadedFile",
    "User",
]
