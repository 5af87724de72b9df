"""Password provider — bcrypt-hashed shared secrets.

Learn: Uses bcrypt for password hashing. bcrypt automatically handles
salting and is resistant to rainbow table attacks. The work factor
(rounds=12) takes ~100ms per hash on modern hardware; tests drop it to
4 through WARDEN_PASSWORD_HASH_ROUNDS.

Stored form: {"type": "password", "hash": "$2b$..."}
Supplied form: {"type": "password", "password": "..."}
"""

from typing import Any, Mapping

import bcrypt

from warden.auth.providers.base import AuthProvider
from warden.auth.results import Result


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password with bcrypt.

    Passwords are truncated to 72 bytes (bcrypt's limit).
    """
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its bcrypt hash."""
    try:
        pw_bytes = password.encode("utf-8")[:72]
        hash_bytes = password_hash.encode("utf-8")
        return bcrypt.checkpw(pw_bytes, hash_bytes)
    except (ValueError, TypeError):
        return False


class PasswordProvider(AuthProvider):
    """Authenticates identities with a bcrypt-hashed password."""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    @property
    def type(self) -> str:
        return "password"

    def validate(self, raw: Mapping[str, Any]) -> Result:
        password = raw.get("password")
        if not isinstance(password, str) or not password:
            return Result.request_error("No password specified.")
        return Result.success(clean_record={"type": self.type, "password": password})

    def commit(self, clean_record: Mapping[str, Any]) -> Result:
        password = clean_record.get("password")
        if not isinstance(password, str):
            return Result.failure("No password to commit.")
        return Result.success(
            commit_record={
                "type": self.type,
                "hash": hash_password(password, self.rounds),
            }
        )

    def authenticate(
        self, stored: Mapping[str, Any], supplied: Mapping[str, Any] | None
    ) -> Result:
        password = (supplied or {}).get("password")
        if not isinstance(password, str) or not password:
            return Result.request_error("No password specified.")

        password_hash = stored.get("hash")
        if not isinstance(password_hash, str) or not verify_password(password, password_hash):
            return Result.failed("Invalid credentials.")
        return Result.success()
