"""Warden CLI — run the server and manage identities over the HTTP API.

Usage:
    warden serve                                  # Run the API with uvicorn
    warden login admin                            # Authenticate → print a token
    warden users                                  # List identities
    warden add-user bob -f api                    # Add a password identity
    warden set-functions bob api auth             # Replace bob's functions
    warden set-password bob                       # Replace bob's password
    warden remove-user bob                        # Remove an identity

Admin commands need a token granting `auth`: pass --token or set WARDEN_TOKEN.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

from warden import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("WARDEN_API_URL", DEFAULT_API_URL).rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the Warden backend."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _fail(r: httpx.Response) -> None:
    """Print a failed API response and exit non-zero."""
    if r.status_code == 403 and not r.content:
        click.secho(
            "Forbidden: token missing, expired, or lacking the 'auth' function.",
            fg="red",
            err=True,
        )
        sys.exit(1)
    try:
        body = r.json()
    except ValueError:
        body = {"state": "unexpected", "reason": r.text}
    click.secho(
        f"Error ({r.status_code}) {body.get('state', '')}: {body.get('reason', '')}",
        fg="red",
        err=True,
    )
    sys.exit(1)


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


token_option = click.option(
    "--token",
    envvar="WARDEN_TOKEN",
    required=True,
    help="Bearer token granting 'auth' (or set WARDEN_TOKEN)",
)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="warden")
def main():
    """Warden — identity registry and bearer-token service."""


@main.command()
@click.option("--host", default=None, help="Bind address (default: WARDEN_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: WARDEN_PORT)")
def serve(host: Optional[str], port: Optional[int]):
    """Run the API server."""
    import uvicorn

    from warden.config import settings

    uvicorn.run(
        "warden.main:app",
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower(),
    )


# ---------------------------------------------------------------------------
# warden login
# ---------------------------------------------------------------------------


@main.command()
@click.argument("name")
@click.password_option("--password", confirmation_prompt=False)
def login(name: str, password: str):
    """Authenticate NAME with a password and print the bearer token."""
    _run(_login_impl(name, password))


async def _login_impl(name: str, password: str):
    async with _client() as c:
        r = await c.post(
            "/api/v1/auth",
            json={"name": name, "auth": {"type": "password", "password": password}},
        )
        if r.status_code != 200:
            _fail(r)
        click.echo(r.json()["token"])


# ---------------------------------------------------------------------------
# warden users
# ---------------------------------------------------------------------------


@main.command()
@token_option
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
def users(token: str, as_json: bool):
    """List identities."""
    _run(_users_impl(token, as_json))


async def _users_impl(token: str, as_json: bool):
    async with _client() as c:
        r = await c.get("/api/v1/auth/user", headers=_headers(token))
        if r.status_code != 200:
            _fail(r)
        identities = r.json()

        if as_json:
            click.echo(_pretty_json(identities))
            return
        if not identities:
            click.echo("No identities found.")
            return

        click.secho(f"Identities ({len(identities)}):", bold=True)
        for i in identities:
            functions = ", ".join(i["functions"]) or "—"
            click.echo(f"  {i['name']:24s}  {i['auth_type'] or '—':10s}  {functions}")


# ---------------------------------------------------------------------------
# warden add-user / set-functions / set-password / remove-user
# ---------------------------------------------------------------------------


@main.command("add-user")
@click.argument("name")
@click.option("--function", "-f", "functions", multiple=True, help="Function to grant (repeatable)")
@click.password_option("--password")
@token_option
def add_user(name: str, functions: tuple[str, ...], password: str, token: str):
    """Add a password-authenticated identity NAME."""
    _run(_add_user_impl(name, list(functions), password, token))


async def _add_user_impl(name: str, functions: list[str], password: str, token: str):
    async with _client() as c:
        r = await c.post(
            "/api/v1/auth/user",
            json={
                "name": name,
                "auth": {"type": "password", "password": password},
                "functions": functions,
            },
            headers=_headers(token),
        )
        if r.status_code != 201:
            _fail(r)
        click.secho(f"Identity '{name}' added", fg="green")


@main.command("set-functions")
@click.argument("name")
@click.argument("functions", nargs=-1)
@token_option
def set_functions(name: str, functions: tuple[str, ...], token: str):
    """Replace the functions granted to NAME (none given → revoke all)."""
    _run(_patch_impl(name, {"functions": list(functions)}, token))


@main.command("set-password")
@click.argument("name")
@click.password_option("--password")
@token_option
def set_password(name: str, password: str, token: str):
    """Replace the password of NAME."""
    _run(_patch_impl(name, {"auth": {"type": "password", "password": password}}, token))


async def _patch_impl(name: str, body: dict, token: str):
    async with _client() as c:
        r = await c.patch(f"/api/v1/auth/user/{name}", json=body, headers=_headers(token))
        if r.status_code != 200:
            _fail(r)
        identity = r.json()["identity"]
        click.secho(f"Identity '{name}' updated", fg="green")
        click.echo(f"  functions: {', '.join(identity['functions']) or '—'}")


@main.command("remove-user")
@click.argument("name")
@token_option
@click.confirmation_option(prompt="Remove this identity?")
def remove_user(name: str, token: str):
    """Remove identity NAME. Tokens already issued stay valid until they expire."""
    _run(_remove_user_impl(name, token))


async def _remove_user_impl(name: str, token: str):
    async with _client() as c:
        r = await c.delete(f"/api/v1/auth/user/{name}", headers=_headers(token))
        if r.status_code != 200:
            _fail(r)
        click.secho(f"Identity '{name}' removed", fg="green")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
