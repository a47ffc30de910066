"""
Shared pytest fixtures for HealthVault tests.

Key patterns:

1. Isolation: each test gets a fresh SQLite database and upload directory
2. DI Override: app.dependency_overrides injects the test Database and
   AttachmentStore; everything above them is built by the real providers
3. Real auth: API tests register users and send real Bearer tokens

Fixture Hierarchy:
    temp_db, attachment_store → repositories → services
    temp_db, attachment_store → test_app → client → auth_headers
"""
import os
import tempfile

import pytest
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from fastapi.testclient import TestClient

# Configuration is read at import time; this must happen before any config imports
TEST_JWT_SECRET = "test-jwt-secret-for-healthvault-tests-0123456789"
_TEST_ROOT = tempfile.mkdtemp(prefix="healthvault-tests-")
os.environ.setdefault("HEALTHVAULT_JWT_SECRET", TEST_JWT_SECRET)
os.environ.setdefault("HEALTHVAULT_DB_DIR", os.path.join(_TEST_ROOT, "data"))
os.environ.setdefault("HEALTHVAULT_UPLOAD_DIR", os.path.join(_TEST_ROOT, "uploads"))

from core import dependencies as deps
from core.exceptions import setup_exception_handlers
from core.middleware import LoggingMiddleware, get_metrics_collector
from repositories import Database, RecordRepository, UserRepository
from services import AttachmentStore, RecordService, UserService

TEST_MAX_UPLOAD_SIZE = 64 * 1024
TEST_PASSWORD = "s3cret-pass"


@pytest.fixture
def temp_db(tmp_path):
    """A fresh SQLite database in the test's temporary directory."""
    return Database(db_path=str(tmp_path / "test.db"))


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def attachment_store(upload_dir):
    """An AttachmentStore rooted in the test's temporary directory (64KB limit)."""
    return AttachmentStore(upload_dir=str(upload_dir), max_size=TEST_MAX_UPLOAD_SIZE)


@pytest.fixture
def record_repo(temp_db):
    return RecordRepository(db=temp_db)


@pytest.fixture
def user_repo(temp_db):
    return UserRepository(db=temp_db)


@pytest.fixture
def record_service(record_repo, attachment_store):
    return RecordService(record_repository=record_repo, attachment_store=attachment_store)


@pytest.fixture
def user_service(user_repo, record_service, attachment_store):
    return UserService(
        user_repository=user_repo,
        record_service=record_service,
        attachment_store=attachment_store,
    )


@pytest.fixture
def test_app(temp_db, attachment_store, upload_dir):
    """
    FastAPI app with the real routers, middleware and static mount, wired to
    the test database and upload directory.
    """
    from api.routers import auth_router, health_router, records_router, users_router

    app = FastAPI(title="HealthVault API Test")
    setup_exception_handlers(app)
    app.add_middleware(LoggingMiddleware)

    app.dependency_overrides[deps.get_database] = lambda: temp_db
    app.dependency_overrides[deps.get_attachment_store] = lambda: attachment_store

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(records_router)
    app.mount("/uploads", StaticFiles(directory=str(upload_dir)), name="uploads")

    get_metrics_collector().reset()
    yield app

    app.dependency_overrides.clear()


@pytest.fixture
def client(test_app):
    """Create a test client for the API."""
    return TestClient(test_app)


@pytest.fixture
def register_user(client):
    """Callable that registers a user through the API and returns (headers, user_json)."""

    def register(name="Jane Doe", email="jane@example.com", password=TEST_PASSWORD):
        response = client.post(
            "/api/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return {"Authorization": f"Bearer {body['token']}"}, body["user"]

    return register


@pytest.fixture
def auth_headers(register_user):
    """Bearer headers for a freshly registered user."""
    headers, _ = register_user()
    return headers


@pytest.fixture
def other_auth_headers(register_user):
    """Bearer headers for a second, unrelated user."""
    headers, _ = register_user(name="John Roe", email="john@example.com")
    return headers
