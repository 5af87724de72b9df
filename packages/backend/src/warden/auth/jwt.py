"""JWT token creation and verification.

Learn: Tokens are stateless. A token carries the identity's name and a
snapshot of its functions taken at issuance; it stays valid with those
grants until `exp`, even if the identity changes or is removed in the
meantime. Verification never consults the identity store.

Expiry is checked against an injectable clock instead of PyJWT's own
`exp` handling, so the boundary is exact: valid while now < exp.
"""

import time
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Callable, Optional

import jwt

DEFAULT_TTL = timedelta(minutes=30)


@dataclass(frozen=True)
class TokenClaims:
    """Decoded token payload."""

    name: str
    functions: list[str] = field(default_factory=list)
    iat: int = 0
    exp: int = 0

    def has_function(self, function: str) -> bool:
        return function in self.functions


class TokenService:
    """Issues and verifies signed bearer tokens with one process-wide secret."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        default_ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], float] = time.time,
    ):
        self._secret = secret
        self.algorithm = algorithm
        self.default_ttl = default_ttl
        self._clock = clock

    def __repr__(self) -> str:
        return f"TokenService(algorithm={self.algorithm!r}, default_ttl={self.default_ttl!r})"

    def new_token(self, identity: Any, duration: Optional[timedelta] = None) -> str:
        """Create a token for an identity (anything with .name and .functions)."""
        now = round(self._clock())
        ttl = duration if duration is not None else self.default_ttl
        payload = {
            "name": identity.name,
            "functions": list(identity.functions or []),
            "iat": now,
            "exp": now + round(ttl.total_seconds()),
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify_token(self, token: str) -> Optional[TokenClaims]:
        """Verify and decode a token.

        Returns the claims on success, None on any failure — malformed,
        bad signature and expired all look the same to the caller.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={
                    "require": ["exp", "iat"],
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidTokenError:
            return None

        name = payload.get("name")
        functions = payload.get("functions", [])
        iat, exp = payload.get("iat"), payload.get("exp")
        if not isinstance(name, str) or not isinstance(functions, list):
            return None
        if not isinstance(iat, int) or not isinstance(exp, int):
            return None
        if self._clock() >= exp:
            return None

        return TokenClaims(
            name=name,
            functions=[str(f) for f in functions],
            iat=iat,
            exp=exp,
        )
