"""Provider registry and password provider tests."""

import pytest

from warden.auth.providers import (
    PasswordProvider,
    ProviderRegistrationError,
    ProviderRegistry,
    build_registry,
    load_provider,
)
from warden.auth.results import State


class NoCommit:
    type = "half"

    def validate(self, raw):
        pass

    def authenticate(self, stored, supplied):
        pass


class Untyped:
    def validate(self, raw):
        pass

    def commit(self, clean_record):
        pass

    def authenticate(self, stored, supplied):
        pass


# ═══════════════════════════════════════════════════════════
# Registry
# ═══════════════════════════════════════════════════════════


def test_build_registry_has_password():
    registry = build_registry(password_hash_rounds=4)
    assert registry.types() == ["password"]
    assert "password" in registry
    assert isinstance(registry.get("password"), PasswordProvider)


def test_missing_method_rejected_at_registration():
    with pytest.raises(ProviderRegistrationError, match="commit"):
        ProviderRegistry([NoCommit()])


def test_missing_type_rejected():
    with pytest.raises(ProviderRegistrationError, match="type"):
        ProviderRegistry().register(Untyped())


def test_duplicate_type_rejected():
    registry = ProviderRegistry([PasswordProvider(rounds=4)])
    with pytest.raises(ProviderRegistrationError, match="already registered"):
        registry.register(PasswordProvider(rounds=4))


def test_unknown_type_lookup():
    assert ProviderRegistry().get("password") is None


def test_load_provider_from_path():
    provider = load_provider("warden.auth.providers.password:PasswordProvider", rounds=4)
    assert provider.type == "password"
    assert provider.rounds == 4


@pytest.mark.parametrize(
    "path",
    ["no_colon_here", "warden.nope:Provider", "warden.auth.providers.password:Nope"],
)
def test_load_provider_bad_path(path):
    with pytest.raises(ProviderRegistrationError):
        load_provider(path)


# ═══════════════════════════════════════════════════════════
# Password provider
# ═══════════════════════════════════════════════════════════


@pytest.fixture()
def password():
    return PasswordProvider(rounds=4)


def test_validate_requires_password(password):
    assert password.validate({"type": "password"}).state is State.REQUEST_ERROR
    assert password.validate({"type": "password", "password": ""}).state is State.REQUEST_ERROR
    assert password.validate({"type": "password", "password": 5}).state is State.REQUEST_ERROR


def test_validate_keeps_only_needed_fields(password):
    r = password.validate({"type": "password", "password": "x", "salt": "mine"})
    assert r.payload["clean_record"] == {"type": "password", "password": "x"}


def test_commit_hashes(password):
    r = password.commit({"type": "password", "password": "x"})
    record = r.payload["commit_record"]
    assert set(record) == {"type", "hash"}
    assert record["hash"] != "x"


def test_authenticate(password):
    stored = password.commit({"type": "password", "password": "x"}).payload["commit_record"]
    assert password.authenticate(stored, {"type": "password", "password": "x"}).ok

    r = password.authenticate(stored, {"type": "password", "password": "y"})
    assert r.state is State.FAILED
    assert r.payload == {}


def test_authenticate_without_password(password):
    stored = password.commit({"type": "password", "password": "x"}).payload["commit_record"]
    assert password.authenticate(stored, None).state is State.REQUEST_ERROR


def test_authenticate_against_corrupt_record(password):
    r = password.authenticate({"type": "password", "hash": "not-bcrypt"}, {"password": "x"})
    assert r.state is State.FAILED
