"""
Configuration for the HealthVault API client.
Uses Pydantic BaseSettings so values come from the environment or .env.
"""
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """HealthVault client settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    healthvault_api_url: str = Field(
        default="http://localhost:5000",
        description="Base URL of the HealthVault API"
    )
    healthvault_api_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Request timeout in seconds"
    )


settings = ClientSettings()

HEALTHVAULT_API_URL = settings.healthvault_api_url
HEALTHVAULT_API_TIMEOUT = settings.healthvault_api_timeout
