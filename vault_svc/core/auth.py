"""
Authentication dependency for HealthVault API.

Protected endpoints resolve the caller's user id from a Bearer access token.
"""
import logging
from typing import Optional

from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.dependencies import get_user_repository
from core.exceptions import UnauthenticatedError
from core.security import decode_access_token
from repositories import UserRepository

logger = logging.getLogger(__name__)

# Missing credentials are reported as UnauthenticatedError below
bearer_scheme = HTTPBearer(
    auto_error=False,
    description="Access token from /api/auth/login or /api/auth/register.",
)


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
    user_repository: UserRepository = Depends(get_user_repository),
) -> str:
    """
    Resolve the authenticated caller.

    Returns:
        str: The caller's user id.

    Raises:
        UnauthenticatedError: 401 if the token is missing, invalid, expired,
            or belongs to an account that has been deleted.
    """
    if credentials is None or not credentials.credentials:
        logger.warning("API request without bearer token")
        raise UnauthenticatedError()

    user_id = decode_access_token(credentials.credentials)
    if not user_repository.exists(user_id):
        logger.warning("Access token for unknown user", extra={"user_id": user_id})
        raise UnauthenticatedError("Account no longer exists")
    return user_id
