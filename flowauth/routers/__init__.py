"""API routers."""

from flowauth.routers.auth import router as auth_router
from flowauth.routers.profile import router as profile_router

__all__ = ["auth_router", "profile_router"]
