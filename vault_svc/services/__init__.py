"""
Service layer for business logic.

This module contains the record lifecycle, user account and attachment
storage services.
"""
from services.attachment_store import AttachmentStore
from services.record_service import RecordService
from services.user_service import UserService

__all__ = [
    "AttachmentStore",
    "RecordService",
    "UserService",
]
