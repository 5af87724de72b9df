"""Bearer-token middleware and FastAPI authorization dependencies.

Learn: Authentication and authorization are split.
BearerTokenMiddleware runs on every request: if a valid bearer token is
present, its claims land on request.state.claims; otherwise the request
simply stays anonymous. Public endpoints ignore the claims, protected
ones add require_function(...) and get a bare 403 when the claims are
missing or lack the function.
"""

import re
from typing import Optional

import structlog
from fastapi import Depends, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from warden.auth.jwt import TokenClaims, TokenService
from warden.auth.service import IdentityService

logger = structlog.get_logger()

BEARER_PATTERN = re.compile(r"^bearer (?P<token>.+)$", re.IGNORECASE)


class Forbidden(Exception):
    """Raised by authorization guards; rendered as an empty 403."""

    def __init__(self, function: str):
        self.function = function
        super().__init__(f"Function '{function}' required")


class BearerTokenMiddleware(BaseHTTPMiddleware):
    """Attach verified token claims to request.state.claims (or None)."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request.state.claims = None

        header = request.headers.get("Authorization")
        if header:
            m = BEARER_PATTERN.match(header.strip())
            if m:
                tokens: TokenService = request.app.state.tokens
                claims = tokens.verify_token(m.group("token"))
                if claims:
                    request.state.claims = claims
                    structlog.contextvars.bind_contextvars(identity=claims.name)
                else:
                    logger.info("auth.token_rejected", path=request.url.path)

        return await call_next(request)


def get_claims(request: Request) -> Optional[TokenClaims]:
    """Claims attached by BearerTokenMiddleware, if any."""
    return getattr(request.state, "claims", None)


def require_function(function: str):
    """Dependency factory: the caller's token must grant `function`."""

    def _guard(claims: Optional[TokenClaims] = Depends(get_claims)) -> TokenClaims:
        if claims is None or not claims.has_function(function):
            logger.info(
                "auth.forbidden",
                function=function,
                identity=claims.name if claims else None,
            )
            raise Forbidden(function)
        return claims

    return _guard


def get_identity_service(request: Request) -> IdentityService:
    return request.app.state.identities
