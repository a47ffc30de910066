"""
Users router - the caller's own account.

Endpoints:
    GET    /api/users/me               - profile
    PUT    /api/users/update           - name, email and profile picture (multipart)
    PUT    /api/users/change-password  - password change
    DELETE /api/users/delete           - delete account and all records
"""
import logging
from typing import Optional, Tuple

from fastapi import APIRouter, Depends

from api.forms import read_profile_form
from core.auth import get_current_user_id
from core.dependencies import get_user_service
from models.upload import UploadedFile
from schemas import ChangePasswordRequest, MessageResponse, UserEnvelope, UserResponse
from services import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("/me", response_model=UserEnvelope, summary="Get my profile")
async def get_me(
    user_id: str = Depends(get_current_user_id),
    user_service: UserService = Depends(get_user_service),
) -> UserEnvelope:
    return UserEnvelope(user=UserResponse.from_user(user_service.get_profile(user_id)))


@router.put(
    "/update",
    response_model=UserEnvelope,
    summary="Update my profile",
    responses={
        400: {"description": "Name or email missing, or bad picture upload"},
        409: {"description": "Email already in use"},
    },
)
async def update_me(
    user_id: str = Depends(get_current_user_id),
    form: Tuple[Optional[str], Optional[str], Optional[UploadedFile]] = Depends(read_profile_form),
    user_service: UserService = Depends(get_user_service),
) -> UserEnvelope:
    """
    Multipart form with **name**, **email** and an optional **profile** image.
    A new image replaces the previous profile picture.
    """
    name, email, picture = form
    user = user_service.update_profile(user_id, name, email, picture)
    return UserEnvelope(user=UserResponse.from_user(user))


@router.put(
    "/change-password",
    response_model=MessageResponse,
    summary="Change my password",
    responses={401: {"description": "Old password is incorrect"}},
)
async def change_password(
    body: ChangePasswordRequest,
    user_id: str = Depends(get_current_user_id),
    user_service: UserService = Depends(get_user_service),
) -> MessageResponse:
    user_service.change_password(user_id, body.old_password, body.new_password)
    return MessageResponse(message="Password updated successfully")


@router.delete("/delete", response_model=MessageResponse, summary="Delete my account")
async def delete_me(
    user_id: str = Depends(get_current_user_id),
    user_service: UserService = Depends(get_user_service),
) -> MessageResponse:
    """Deletes the account, its profile picture, and every record with its attachments."""
    user_service.delete_account(user_id)
    return MessageResponse(message="Account deleted successfully")
