"""
Password hashing and access token utilities.

Passwords are hashed with bcrypt via passlib; access tokens are signed JWTs
whose `sub` claim carries the user id.
"""
import logging
from datetime import timedelta
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from core.config import settings
from core.datetime_utils import utc_now
from core.exceptions import UnauthenticatedError

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a plain text password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against a stored hash.

    Returns:
        bool: True if the password matches. A malformed hash never matches.
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        logger.warning("Stored password hash could not be parsed")
        return False


def create_access_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed access token for a user.

    Args:
        subject: The user id, stored in the `sub` claim.
        expires_delta: Token lifetime; defaults to HEALTHVAULT_JWT_EXPIRE_MINUTES.

    Returns:
        str: Encoded JWT.
    """
    issued_at = utc_now()
    expire = issued_at + (expires_delta or timedelta(minutes=settings.healthvault_jwt_expire_minutes))
    claims = {"sub": subject, "iat": issued_at, "exp": expire}
    return jwt.encode(
        claims, settings.healthvault_jwt_secret, algorithm=settings.healthvault_jwt_algorithm
    )


def decode_access_token(token: str) -> str:
    """
    Verify an access token and return its subject.

    Raises:
        UnauthenticatedError: If the token is malformed, forged, expired or
            has no subject.
    """
    try:
        payload = jwt.decode(
            token,
            settings.healthvault_jwt_secret,
            algorithms=[settings.healthvault_jwt_algorithm],
        )
    except JWTError as e:
        logger.info(f"Rejected access token: {e}")
        raise UnauthenticatedError("Invalid or expired token") from e

    subject = payload.get("sub")
    if not subject or not isinstance(subject, str):
        raise UnauthenticatedError("Invalid or expired token")
    return subject
