"""Test fixtures — a fresh app (and identity store) per test.

Learn: create_app() builds its own store, registry and token service, so
every test gets an isolated registry with nothing to roll back. bcrypt
rounds are dropped to 4 to keep hashing fast.

The app is driven through httpx's ASGITransport, which skips lifespan;
create_app() wires everything up front, so that is fine.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from warden.auth.jwt import TokenService
from warden.auth.providers import build_registry
from warden.auth.service import IdentityService
from warden.auth.store import IdentityStore
from warden.config import Settings
from warden.main import create_app

ADMIN_PASSWORD = "Pa$$w0rd"
TEST_SECRET = "test-secret-0123456789-abcdefghijklmnop"


def make_settings(**overrides) -> Settings:
    values = {
        "token_secret": TEST_SECRET,
        "password_hash_rounds": 4,
        "admin_password": ADMIN_PASSWORD,
    }
    values.update(overrides)
    return Settings(**values)


# ─── Core objects (no HTTP) ─────────────────────────────


@pytest.fixture()
def store():
    return IdentityStore()


@pytest.fixture()
def registry():
    return build_registry(password_hash_rounds=4)


@pytest.fixture()
def tokens():
    return TokenService(TEST_SECRET)


@pytest.fixture()
def service(store, registry, tokens):
    return IdentityService(store, registry, tokens)


# ─── HTTP ───────────────────────────────────────────────


@pytest.fixture()
def app():
    return create_app(make_settings())


@pytest_asyncio.fixture()
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture()
async def admin_token(client):
    """Token for the seeded admin identity (functions: auth, api)."""
    r = await client.post(
        "/api/v1/auth",
        json={"name": "admin", "auth": {"type": "password", "password": ADMIN_PASSWORD}},
    )
    assert r.status_code == 200
    return r.json()["token"]


@pytest.fixture()
def admin_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}
