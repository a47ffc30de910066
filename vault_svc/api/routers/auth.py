"""
Auth router - account registration and login.

Both endpoints return an access token together with the public user view.
"""
import logging

from fastapi import APIRouter, Depends

from core.dependencies import get_user_service
from schemas import AuthResponse, LoginRequest, RegisterRequest, UserResponse
from services import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=201,
    summary="Register a new account",
    responses={409: {"description": "Email already in use"}},
)
async def register(
    body: RegisterRequest,
    user_service: UserService = Depends(get_user_service),
) -> AuthResponse:
    token, user = user_service.register(body.name, body.email, body.password)
    return AuthResponse(token=token, user=UserResponse.from_user(user))


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Log in with email and password",
    responses={401: {"description": "Invalid email or password"}},
)
async def login(
    body: LoginRequest,
    user_service: UserService = Depends(get_user_service),
) -> AuthResponse:
    token, user = user_service.login(body.email, body.password)
    return AuthResponse(token=token, user=UserResponse.from_user(user))
