"""
API routers module.

This module contains all API route definitions organized by domain.
"""
from api.routers.auth import router as auth_router
from api.routers.health import router as health_router
from api.routers.records import router as records_router
from api.routers.users import router as users_router

__all__ = ["auth_router", "health_router", "records_router", "users_router"]
