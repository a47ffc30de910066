"""
Pydantic schemas for authentication and user profile operations.
"""
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from core.datetime_utils import format_iso
from models.user import User

MIN_PASSWORD_LENGTH = 6


class RegisterRequest(BaseModel):
    """Schema for creating a new account."""

    name: str = Field(..., min_length=1, max_length=200, examples=["Jane Doe"])
    email: EmailStr = Field(..., examples=["jane@example.com"])
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=128)


class LoginRequest(BaseModel):
    """Schema for exchanging credentials for an access token."""

    email: EmailStr = Field(..., examples=["jane@example.com"])
    password: str = Field(..., min_length=1, max_length=128)


class ChangePasswordRequest(BaseModel):
    """Schema for changing the caller's password."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    old_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=128)


class UserResponse(BaseModel):
    """Public view of a user account; the password hash is never included."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    email: str
    profile_picture: str = Field("", description="Public path of the profile picture")
    created_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            profile_picture=user.profile_picture,
            created_at=format_iso(user.created_at),
        )


class UserEnvelope(BaseModel):
    """Response wrapping a single user."""

    user: UserResponse


class AuthResponse(BaseModel):
    """Access token plus the authenticated user."""

    token: str = Field(..., description="Bearer access token")
    user: UserResponse
