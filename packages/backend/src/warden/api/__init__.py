"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Authorization for identity management is applied at the router
level (see users_router in auth.py). Health and the authenticate
endpoint itself are open.
"""

from fastapi import APIRouter

from warden.api.auth import router as auth_router
from warden.api.auth import users_router
from warden.api.health import router as health_router

api_router = APIRouter(prefix="/api/v1")

# Open routes — no token required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes — require a token granting `auth`
api_router.include_router(users_router, tags=["identities"])
