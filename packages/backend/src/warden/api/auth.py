"""Auth API — authentication and identity management.

Learn: Routes under /auth:
- POST   /auth              → credentials → bearer token (open)
- GET    /auth/user         → list identities
- POST   /auth/user         → add an identity
- GET    /auth/user/:name   → one identity
- PATCH  /auth/user/:name   → partial update (functions and/or auth)
- DELETE /auth/user/:name   → remove an identity

Everything under /auth/user requires a token granting the `auth` function.
Identities are addressed by name, their primary key; the opaque `id` is
informational only.

Handlers are plain `def` so FastAPI runs them on its thread pool —
bcrypt hashing would otherwise stall the event loop.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse, Response

from warden.auth.dependencies import get_identity_service, require_function
from warden.auth.results import Result, State
from warden.auth.service import IdentityService

router = APIRouter(prefix="/auth")
users_router = APIRouter(
    prefix="/auth/user",
    dependencies=[Depends(require_function("auth"))],
)


def _respond(r: Result, statuses: dict[State, int], default: int = 500) -> JSONResponse:
    """Render a Result; states missing from `statuses` are unexpected."""
    return JSONResponse(status_code=statuses.get(r.state, default), content=r.to_dict())


# ─── Authenticate ────────────────────────────────────────


@router.post("")
def authenticate(
    details: Any = Body(None),
    service: IdentityService = Depends(get_identity_service),
):
    """Exchange credentials for a bearer token."""
    r = service.authenticate(details)
    return _respond(
        r,
        {State.SUCCESS: 200, State.REQUEST_ERROR: 400, State.FAILED: 403},
    )


# ─── Identities ──────────────────────────────────────────


@users_router.get("")
def list_identities(service: IdentityService = Depends(get_identity_service)):
    """List identities (credentials never included)."""
    return service.list_identities()


@users_router.post("")
def add_identity(
    request: Request,
    details: Any = Body(None),
    service: IdentityService = Depends(get_identity_service),
):
    """Add an identity. Granted functions must be in WARDEN_VALID_FUNCTIONS."""
    if not details:
        return JSONResponse(
            status_code=400,
            content={"state": State.REQUEST_ERROR.value, "reason": "No user details provided."},
        )

    r = service.add_identity(
        details, valid_functions=request.app.state.settings.valid_functions
    )
    if r.ok:
        return Response(status_code=201)
    return _respond(r, {State.REQUEST_ERROR: 400})


@users_router.get("/{name}")
def get_identity(name: str, service: IdentityService = Depends(get_identity_service)):
    r = service.get_identity(name)
    return _respond(r, {State.SUCCESS: 200}, default=400)


@users_router.patch("/{name}")
def update_identity(
    name: str,
    request: Request,
    details: Any = Body(None),
    service: IdentityService = Depends(get_identity_service),
):
    """Partially update an identity; omitted fields are left as they are."""
    if not isinstance(details, dict):
        return JSONResponse(
            status_code=400,
            content={"state": State.REQUEST_ERROR.value, "reason": "No user details provided."},
        )

    r = service.set_identity(
        {**details, "name": name},
        valid_functions=request.app.state.settings.valid_functions,
    )
    return _respond(r, {State.SUCCESS: 200, State.REQUEST_ERROR: 400})


@users_router.delete("/{name}")
def remove_identity(name: str, service: IdentityService = Depends(get_identity_service)):
    r = service.remove_identity(name)
    return _respond(r, {State.SUCCESS: 200}, default=400)
