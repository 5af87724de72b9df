"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with WARDEN_ prefix.
No YAML files, no file-based config — just env vars (12-factor app style).

Learn: The token secret is optional. When it is unset the app factory
generates one per process and keeps it in memory only, so a restart
invalidates every outstanding token. Set WARDEN_TOKEN_SECRET if tokens
must survive restarts.
"""

from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All app configuration. Set via WARDEN_* env vars."""

    # Server
    environment: str = "development"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # Tokens
    token_secret: Optional[str] = Field(default=None, repr=False)
    token_algorithm: str = "HS256"
    token_expire_minutes: int = 30

    # Credential providers
    password_hash_rounds: int = 12
    extra_providers: list[str] = []  # "package.module:ProviderClass"

    # Function names grantable through the user endpoints
    valid_functions: list[str] = ["auth", "api"]

    # Bootstrap identity — seeded only when a password is configured
    admin_name: str = "admin"
    admin_password: Optional[str] = Field(default=None, repr=False)
    admin_functions: list[str] = ["auth", "api"]

    model_config = {"env_prefix": "WARDEN_"}

    @model_validator(mode="after")
    def validate_production_settings(self):
        """Refuse weak explicit secrets outside development."""
        if (
            self.environment != "development"
            and self.token_secret is not None
            and len(self.token_secret) < 32
        ):
            raise ValueError(
                "WARDEN_TOKEN_SECRET must be at least 32 characters in "
                "non-development environments. Generate one with: "
                'python -c "import secrets; print(secrets.token_urlsafe(32))"'
            )
        return self


# Singleton — the default for create_app()
settings = Settings()
