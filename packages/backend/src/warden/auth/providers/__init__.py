"""Provider registry — pluggable credential providers.

Learn: An identity's auth blob names its provider by type:
    identity.auth["type"] = "password"

The registry maps those type strings to provider instances:
    registry = ProviderRegistry()
    registry.register(PasswordProvider())
    provider = registry.get("password")

Unlike a module-level dict, each app builds its own registry at startup,
and register() checks the provider's shape right away — a provider
missing commit() is rejected at boot, not on the first signup.
"""

import importlib
from typing import Any, Iterable

from warden.auth.providers.base import AuthProvider
from warden.auth.providers.password import PasswordProvider

__all__ = [
    "AuthProvider",
    "PasswordProvider",
    "ProviderRegistrationError",
    "ProviderRegistry",
    "build_registry",
    "load_provider",
]

REQUIRED_METHODS = ("validate", "commit", "authenticate")


class ProviderRegistrationError(Exception):
    """Raised when a provider cannot be registered."""


class ProviderRegistry:
    """Typed mapping of provider type → provider instance."""

    def __init__(self, providers: Iterable[AuthProvider] = ()):
        self._providers: dict[str, AuthProvider] = {}
        for provider in providers:
            self.register(provider)

    def register(self, provider: AuthProvider) -> None:
        """Register a provider under its `type`.

        Raises ProviderRegistrationError if the type is missing or taken,
        or if any of validate/commit/authenticate is not callable.
        """
        provider_type = getattr(provider, "type", None)
        if not isinstance(provider_type, str) or not provider_type:
            raise ProviderRegistrationError(
                f"Provider {provider!r} does not declare a type"
            )

        missing = [
            m for m in REQUIRED_METHODS if not callable(getattr(provider, m, None))
        ]
        if missing:
            raise ProviderRegistrationError(
                f"Provider '{provider_type}' is missing: {', '.join(missing)}"
            )

        if provider_type in self._providers:
            raise ProviderRegistrationError(
                f"Provider type '{provider_type}' is already registered"
            )

        self._providers[provider_type] = provider

    def get(self, provider_type: str) -> AuthProvider | None:
        return self._providers.get(provider_type)

    def types(self) -> list[str]:
        """List registered provider types."""
        return sorted(self._providers.keys())

    def __contains__(self, provider_type: object) -> bool:
        return provider_type in self._providers


def load_provider(path: str, **kwargs: Any) -> AuthProvider:
    """Instantiate a provider from a "package.module:attr" path.

    `attr` may be a provider class or any factory returning a provider.
    Lets operators plug in out-of-tree providers via WARDEN_EXTRA_PROVIDERS.
    """
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise ProviderRegistrationError(
            f"Invalid provider path '{path}' (expected 'module:attr')"
        )
    try:
        module = importlib.import_module(module_name)
        factory = getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise ProviderRegistrationError(f"Cannot load provider '{path}': {e}") from e
    return factory(**kwargs)


def build_registry(
    password_hash_rounds: int = 12, extra_providers: Iterable[str] = ()
) -> ProviderRegistry:
    """Build the startup registry: built-in providers plus configured extras."""
    registry = ProviderRegistry([PasswordProvider(rounds=password_hash_rounds)])
    for path in extra_providers:
        registry.register(load_provider(path))
    return registry
