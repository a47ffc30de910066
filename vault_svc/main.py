"""
FastAPI application entry point for HealthVault API.

This module configures and creates the FastAPI application with:
- Structured JSON Logging with request_id propagation
- Exception Handling: Consistent error responses via setup_exception_handlers()
- CORS Middleware for the browser client
- Lifespan Management: Database and AttachmentStore construction
- Static serving of stored attachments under /uploads

Architecture Overview:
    ┌─────────────────────────────────────────────────────────────┐
    │                     FastAPI Application                      │
    ├─────────────────────────────────────────────────────────────┤
    │  Middleware Stack                                           │
    │    ├── LoggingMiddleware  - Request logging & metrics       │
    │    └── CORSMiddleware     - Cross-origin support            │
    ├─────────────────────────────────────────────────────────────┤
    │  Routers (api/routers/)                                     │
    │    ├── health.py     - /health, /ready, /metrics            │
    │    ├── auth.py       - register, login                      │
    │    ├── users.py      - profile, password, account deletion  │
    │    └── records.py    - record CRUD with attachments         │
    ├─────────────────────────────────────────────────────────────┤
    │  Services (services/)     ← Injected via Depends()          │
    │    ├── RecordService      - Record lifecycle                │
    │    ├── UserService        - Accounts                        │
    │    └── AttachmentStore    - Files on disk                   │
    ├─────────────────────────────────────────────────────────────┤
    │  Repositories (repositories/)   ← Injected into Services    │
    │    ├── RecordRepository                                     │
    │    └── UserRepository                                       │
    ├─────────────────────────────────────────────────────────────┤
    │  Database (SQLite)              ← app.state.database        │
    └─────────────────────────────────────────────────────────────┘
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
import uvicorn

from core.config import API_HOST, API_PORT, API_RELOAD, settings
from core.exceptions import setup_exception_handlers
from core.logging_config import setup_logging
from core.middleware import LoggingMiddleware
from repositories import Database
from services.attachment_store import UPLOAD_URL_PREFIX, AttachmentStore
from api.routers import auth_router, health_router, records_router, users_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
        - Configures structured logging
        - Creates the Database (schema + WAL) and the AttachmentStore
    """
    setup_logging()

    logger = logging.getLogger(__name__)
    logger.info("Starting HealthVault API...")

    app.state.database = Database(
        db_path=settings.database_path,
        busy_timeout=settings.healthvault_db_busy_timeout
    )
    app.state.attachment_store = AttachmentStore(
        upload_dir=settings.healthvault_upload_dir,
        max_size=settings.healthvault_upload_max_size
    )
    logger.info(
        "Storage initialized",
        extra={"db_path": app.state.database.db_path, "upload_dir": str(app.state.attachment_store.upload_dir)}
    )

    yield

    logger.info("HealthVault API shutting down...")


app = FastAPI(
    title="HealthVault API",
    description="Personal medical records with lab report and prescription attachments.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan
)

setup_exception_handlers(app)

# Middleware runs in reverse order of registration: LoggingMiddleware is outermost
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)
app.add_middleware(LoggingMiddleware)

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(records_router)

app.mount(
    UPLOAD_URL_PREFIX,
    StaticFiles(directory=settings.healthvault_upload_dir, check_dir=False),
    name="uploads"
)


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=API_HOST,
        port=API_PORT,
        reload=API_RELOAD
    )
