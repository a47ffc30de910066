"""
Pydantic schemas for API request/response validation.

This module contains all Pydantic models used at API boundaries.
"""
from schemas.record import (
    MessageResponse,
    RecordFilesSchema,
    RecordResponse,
    VitalsSchema,
)
from schemas.user import (
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    UserEnvelope,
    UserResponse,
)

__all__ = [
    # Record schemas
    "MessageResponse",
    "RecordFilesSchema",
    "RecordResponse",
    "VitalsSchema",
    # User schemas
    "AuthResponse",
    "ChangePasswordRequest",
    "LoginRequest",
    "RegisterRequest",
    "UserEnvelope",
    "UserResponse",
]
