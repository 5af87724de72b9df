"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance with its own identity store, provider registry and token
service on app.state. Two apps never share identities or secrets.

Everything is wired in the factory rather than in the lifespan hook so
apps driven through httpx's ASGITransport (which skips lifespan) are
fully usable.
"""

import secrets
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from warden import __version__
from warden.api import api_router
from warden.auth.dependencies import BearerTokenMiddleware, Forbidden
from warden.auth.jwt import TokenService
from warden.auth.providers import build_registry
from warden.auth.results import State
from warden.auth.service import IdentityService
from warden.auth.store import IdentityStore
from warden.config import Settings
from warden.config import settings as default_settings
from warden.log import configure_logging
from warden.middleware.request_id import RequestIdMiddleware
from warden.middleware.security import SecurityHeadersMiddleware

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logging."""
    settings: Settings = app.state.settings
    configure_logging(settings.log_level, json_logs=settings.environment != "development")
    logger.info(
        "warden.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
        providers=app.state.registry.types(),
        identities=len(app.state.store),
    )
    yield
    logger.info("warden.shutdown")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    settings = settings or default_settings

    app = FastAPI(
        title="Warden",
        description="Identity registry and bearer-token service",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )

    # ── Core services ─────────────────────────────────────
    secret = settings.token_secret
    if secret is None:
        # Memory only: a restart invalidates every outstanding token.
        secret = secrets.token_urlsafe(32)
        logger.warning("warden.ephemeral_token_secret")

    store = IdentityStore()
    registry = build_registry(
        password_hash_rounds=settings.password_hash_rounds,
        extra_providers=settings.extra_providers,
    )
    tokens = TokenService(
        secret,
        algorithm=settings.token_algorithm,
        default_ttl=timedelta(minutes=settings.token_expire_minutes),
    )
    identities = IdentityService(store, registry, tokens)

    app.state.settings = settings
    app.state.store = store
    app.state.registry = registry
    app.state.tokens = tokens
    app.state.identities = identities

    if settings.admin_password:
        _seed_admin(identities, settings)

    # ── Middleware stack ──────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → BearerToken → handler
    app.add_middleware(BearerTokenMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    # ── Error handlers ────────────────────────────────────

    @app.exception_handler(Forbidden)
    async def handle_forbidden(_: Request, exc: Forbidden) -> Response:
        return Response(status_code=403)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"state": State.REQUEST_ERROR.value, "reason": "Malformed request body."},
        )

    app.include_router(api_router)

    return app


def _seed_admin(identities: IdentityService, settings: Settings) -> None:
    """Create the bootstrap identity that can manage all others."""
    r = identities.add_identity(
        {
            "name": settings.admin_name,
            "auth": {"type": "password", "password": settings.admin_password},
            "functions": settings.admin_functions,
        }
    )
    if not r.ok:
        raise RuntimeError(f"Cannot seed admin identity: {r.reason}")


# Default app instance (used by uvicorn: warden.main:app)
app = create_app()
