"""
Configuration module for HealthVault API service.
Uses Pydantic BaseSettings for validation - app fails fast if required config is missing.
"""
import logging
from pathlib import Path
from typing import List

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings with validation.
    Required fields will cause the app to fail fast if not provided.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database Configuration
    healthvault_db_dir: str = Field(default="data", description="Database directory")
    healthvault_db_file: str = Field(default="healthvault.db", description="Database filename")
    healthvault_db_busy_timeout: int = Field(default=5000, description="SQLite busy timeout in milliseconds")

    # API Configuration
    healthvault_host: str = Field(default="0.0.0.0", description="API host")
    healthvault_port: int = Field(default=5000, description="API port")
    healthvault_reload: bool = Field(default=False, description="Enable hot reload")
    healthvault_cors_origins: str = Field(default="*", description="Allowed CORS origins (comma-separated)")

    # Upload Configuration
    healthvault_upload_dir: str = Field(default="uploads", description="Attachment root directory")
    healthvault_upload_max_size: int = Field(default=10485760, description="Max upload size in bytes (10MB)")

    # Token Authentication Configuration
    healthvault_jwt_secret: str = Field(
        ...,  # Required - no default means fail fast if missing
        description="Secret used to sign access tokens",
        min_length=32,  # Enforce minimum key length for security
    )
    healthvault_jwt_algorithm: str = Field(default="HS256", description="Access token signing algorithm")
    healthvault_jwt_expire_minutes: int = Field(
        default=60 * 24 * 7,
        ge=1,
        description="Access token lifetime in minutes (7 days)",
    )

    @model_validator(mode="after")
    def validate_upload_limits(self) -> "Settings":
        """Warn about upload limits that will reject most real documents."""
        if self.healthvault_upload_max_size < 1024:
            logger.warning(
                "HEALTHVAULT_UPLOAD_MAX_SIZE is below 1KB - most attachments will be rejected"
            )
        return self

    @property
    def database_path(self) -> str:
        """Get the full database path."""
        return str(Path(self.healthvault_db_dir) / self.healthvault_db_file)

    @property
    def cors_origins_list(self) -> List[str]:
        """Get the allowed CORS origins as a list."""
        return [o.strip() for o in self.healthvault_cors_origins.split(",") if o.strip()]

    def ensure_directories(self) -> None:
        """Ensure required directories exist."""
        Path(self.healthvault_db_dir).mkdir(parents=True, exist_ok=True)
        Path(self.healthvault_upload_dir).mkdir(parents=True, exist_ok=True)


# Create global settings instance - fails fast if required config is missing
settings = Settings()

# Ensure directories exist on import
settings.ensure_directories()

# Backwards-compatible exports for existing code
DATABASE_PATH = settings.database_path
DATABASE_BUSY_TIMEOUT = settings.healthvault_db_busy_timeout

API_HOST = settings.healthvault_host
API_PORT = settings.healthvault_port
API_RELOAD = settings.healthvault_reload

UPLOAD_DIR = settings.healthvault_upload_dir
UPLOAD_MAX_SIZE = settings.healthvault_upload_max_size
