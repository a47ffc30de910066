"""
Async Python client for the HealthVault API.
"""
from healthvault_client.api_client import (
    HealthVaultAPIClient,
    HealthVaultAPIError,
    get_healthvault_client,
)

__all__ = ["HealthVaultAPIClient", "HealthVaultAPIError", "get_healthvault_client"]
