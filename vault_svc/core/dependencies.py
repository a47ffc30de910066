"""
FastAPI dependency injection for HealthVault API.

Architecture Flow:
    API Layer (Routers)
         ↓ Depends()
    Service Layer (RecordService, UserService)
         ↓ Injected
    Repository Layer / AttachmentStore
         ↓ Injected
    Database (SQLite) / upload directory

The Database and AttachmentStore are created once by the application lifespan
(main.py) and kept on app.state; everything above them is built per request.

Usage in Routers:
    from core.dependencies import get_record_service

    @router.get("/api/records")
    async def list_records(record_service: RecordService = Depends(get_record_service)):
        ...

Testing:
    app.dependency_overrides[get_database] = lambda: test_database
    app.dependency_overrides[get_attachment_store] = lambda: test_store
"""
import logging

from fastapi import Depends, Request

logger = logging.getLogger(__name__)


# =============================================================================
# SHARED RESOURCES
# =============================================================================

def get_database(request: Request) -> "Database":
    """The Database created at startup."""
    return request.app.state.database


def get_attachment_store(request: Request) -> "AttachmentStore":
    """The AttachmentStore created at startup."""
    return request.app.state.attachment_store


# =============================================================================
# REPOSITORY DEPENDENCIES
# =============================================================================

def get_record_repository(db: "Database" = Depends(get_database)) -> "RecordRepository":
    from repositories import RecordRepository

    return RecordRepository(db=db)


def get_user_repository(db: "Database" = Depends(get_database)) -> "UserRepository":
    from repositories import UserRepository

    return UserRepository(db=db)


# =============================================================================
# SERVICE DEPENDENCIES
# =============================================================================

def get_record_service(
    record_repository: "RecordRepository" = Depends(get_record_repository),
    attachment_store: "AttachmentStore" = Depends(get_attachment_store),
) -> "RecordService":
    """
    Get a RecordService with its repository and attachment store injected.

    Returns:
        RecordService: Service for the record lifecycle.
    """
    from services import RecordService

    return RecordService(record_repository=record_repository, attachment_store=attachment_store)


def get_user_service(
    user_repository: "UserRepository" = Depends(get_user_repository),
    record_service: "RecordService" = Depends(get_record_service),
    attachment_store: "AttachmentStore" = Depends(get_attachment_store),
) -> "UserService":
    """
    Get a UserService; account deletion cascades through the RecordService.

    Returns:
        UserService: Service for account operations.
    """
    from services import UserService

    return UserService(
        user_repository=user_repository,
        record_service=record_service,
        attachment_store=attachment_store,
    )


# =============================================================================
# DEPENDENCY OVERRIDE HELPERS (FOR TESTING)
# =============================================================================

class DependencyOverrides:
    """
    Context manager for temporarily overriding dependencies in tests.

    Usage:
        with DependencyOverrides(app) as overrides:
            overrides.set(get_attachment_store, lambda: failing_store)
            ...
        # Previous overrides restored on exit
    """

    def __init__(self, app):
        self.app = app
        self._original_overrides = {}

    def __enter__(self):
        self._original_overrides = self.app.dependency_overrides.copy()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.app.dependency_overrides = self._original_overrides

    def set(self, dependency, override):
        """Set a dependency override."""
        self.app.dependency_overrides[dependency] = override
