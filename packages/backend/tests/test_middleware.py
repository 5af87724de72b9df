"""Tests for middleware — security headers, request IDs, bearer parsing."""

import pytest
from fastapi import Depends

from warden.auth.dependencies import get_claims


@pytest.fixture()
def whoami_app(app):
    """App with an extra open route that echoes the attached claims."""

    @app.get("/whoami")
    async def whoami(claims=Depends(get_claims)):
        return {"name": claims.name if claims else None}

    return app


@pytest.mark.asyncio
async def test_security_headers_on_health(client):
    r = await client.get("/api/v1/health")
    assert r.status_code == 200
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"
    assert r.headers["Cache-Control"] == "no-store"
    assert "Strict-Transport-Security" not in r.headers


@pytest.mark.asyncio
async def test_request_id_generated(client):
    r1 = await client.get("/api/v1/health")
    r2 = await client.get("/api/v1/health")
    assert r1.headers["X-Request-ID"] != r2.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_propagated(client):
    r = await client.get("/api/v1/health", headers={"X-Request-ID": "trace-12345"})
    assert r.headers["X-Request-ID"] == "trace-12345"


@pytest.mark.asyncio
@pytest.mark.parametrize("scheme", ["Bearer", "bearer", "BEARER"])
async def test_bearer_scheme_case_insensitive(whoami_app, client, admin_token, scheme):
    r = await client.get("/whoami", headers={"Authorization": f"{scheme} {admin_token}"})
    assert r.json() == {"name": "admin"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "header",
    ["Basic YWRtaW46eA==", "Bearer", "Token abc", "Bearer not.a.jwt"],
)
async def test_unusable_header_leaves_request_anonymous(whoami_app, client, header):
    """Bad or missing tokens never reject at the middleware stage."""
    r = await client.get("/whoami", headers={"Authorization": header})
    assert r.status_code == 200
    assert r.json() == {"name": None}


@pytest.mark.asyncio
async def test_no_header_is_anonymous(whoami_app, client):
    r = await client.get("/whoami")
    assert r.json() == {"name": None}
