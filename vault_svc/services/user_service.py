"""
Service layer for user accounts.

Handles registration, login, profile updates, password changes and account
deletion. Deleting an account cascades to the user's records through
RecordService.
"""
import logging
from typing import Optional, Tuple

from core.exceptions import (
    DuplicateEmailError,
    HealthVaultError,
    InvalidCredentialsError,
    StorageError,
    UserNotFoundError,
    ValidationError,
)
from core.security import create_access_token, hash_password, verify_password
from models.upload import UploadedFile
from models.user import User
from repositories import UserRepository
from services.attachment_store import AttachmentStore
from services.record_service import RecordService

logger = logging.getLogger(__name__)

PROFILE_CATEGORY = "profile"


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService:
    """
    Service for user account operations.

    Use core.dependencies.get_user_service() in routers with Depends().
    """

    def __init__(
        self,
        user_repository: UserRepository,
        record_service: RecordService,
        attachment_store: AttachmentStore
    ):
        self._users = user_repository
        self._records = record_service
        self._store = attachment_store

    def register(self, name: str, email: str, password: str) -> Tuple[str, User]:
        """
        Create an account and issue an access token.

        Returns:
            Tuple[str, User]: (token, user)

        Raises:
            ValidationError: If the name is blank.
            DuplicateEmailError: If the email is already registered.
        """
        name = name.strip()
        if not name:
            raise ValidationError("Name is required", field="name")

        user = User(name=name, email=normalize_email(email), password_hash=hash_password(password))
        created = self._call(self._users.add, user, operation="register_user")
        if created is None:
            raise DuplicateEmailError(email=user.email)

        logger.info("User registered", extra={"user_id": created.id})
        return create_access_token(created.id), created

    def login(self, email: str, password: str) -> Tuple[str, User]:
        """
        Exchange credentials for an access token.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password (same error for both).
        """
        user = self._call(self._users.get_by_email, normalize_email(email), operation="login")
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login attempt")
            raise InvalidCredentialsError()

        logger.info("User logged in", extra={"user_id": user.id})
        return create_access_token(user.id), user

    def get_profile(self, user_id: str) -> User:
        """
        Raises:
            UserNotFoundError: If the account no longer exists.
        """
        user = self._call(self._users.get_by_id, user_id, operation="get_user")
        if user is None:
            raise UserNotFoundError(user_id=user_id)
        return user

    def update_profile(
        self,
        user_id: str,
        name: Optional[str],
        email: Optional[str],
        profile_picture: Optional[UploadedFile] = None
    ) -> User:
        """
        Update name and email, and optionally replace the profile picture.

        Both name and email are required. The previous picture is deleted
        best-effort before the new one is stored.

        Raises:
            ValidationError: Missing name/email or a bad picture upload.
            DuplicateEmailError: If the email belongs to another account.
            UserNotFoundError: If the account no longer exists.
        """
        if not name or not name.strip() or not email or not email.strip():
            raise ValidationError("Name and email are required")
        if profile_picture is not None:
            self._store.validate(PROFILE_CATEGORY, profile_picture)

        user = self.get_profile(user_id)
        user.name = name.strip()
        user.email = normalize_email(email)

        existing = self._call(self._users.get_by_email, user.email, operation="update_user")
        if existing is not None and existing.id != user.id:
            raise DuplicateEmailError(email=user.email)

        if profile_picture is not None:
            if user.profile_picture:
                self._discard_picture(user.profile_picture)
            user.profile_picture = self._store.store(PROFILE_CATEGORY, profile_picture)

        saved = self._call(self._users.save, user, operation="update_user")
        if saved is None:
            raise DuplicateEmailError(email=user.email)

        logger.info("User profile updated", extra={"user_id": user_id})
        return saved

    def change_password(self, user_id: str, old_password: str, new_password: str) -> None:
        """
        Raises:
            InvalidCredentialsError: If the old password does not match.
        """
        user = self.get_profile(user_id)
        if not verify_password(old_password, user.password_hash):
            raise InvalidCredentialsError("Old password is incorrect")

        user.password_hash = hash_password(new_password)
        self._call(self._users.save, user, operation="change_password")
        logger.info("Password changed", extra={"user_id": user_id})

    def delete_account(self, user_id: str) -> int:
        """
        Delete the account, its profile picture, and all its records.

        Returns:
            int: Number of records deleted with the account.
        """
        user = self.get_profile(user_id)

        deleted_records = self._records.delete_all_for_owner(user_id)
        if user.profile_picture:
            self._discard_picture(user.profile_picture)
        self._call(self._users.delete_by_id, user_id, operation="delete_user")

        logger.info(
            "User account deleted",
            extra={"user_id": user_id, "deleted_records": deleted_records}
        )
        return deleted_records

    def _discard_picture(self, reference: str) -> None:
        try:
            self._store.delete(reference)
        except StorageError as e:
            logger.warning(
                "Could not delete profile picture",
                extra={"reference": reference, "error": str(e)}
            )

    def _call(self, call, *args, operation: str):
        try:
            return call(*args)
        except HealthVaultError:
            raise
        except Exception as e:
            logger.error(f"Database error during {operation}: {e}", exc_info=True)
            raise StorageError(operation=operation) from e
