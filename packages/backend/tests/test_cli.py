"""CLI tests — commands run against an in-process app.

Learn: _client() is patched to return an httpx client bound to the test
app through ASGITransport, so commands exercise the real HTTP API
without a running server.
"""

import pytest
from click.testing import CliRunner
from httpx import ASGITransport, AsyncClient

from conftest import ADMIN_PASSWORD
from warden.cli import main as cli


@pytest.fixture()
def runner(app, monkeypatch):
    monkeypatch.setattr(
        cli,
        "_client",
        lambda: AsyncClient(transport=ASGITransport(app=app), base_url="http://test"),
    )
    monkeypatch.delenv("WARDEN_TOKEN", raising=False)
    return CliRunner()


@pytest.fixture()
def token(runner):
    result = runner.invoke(cli.main, ["login", "admin", "--password", ADMIN_PASSWORD])
    assert result.exit_code == 0, result.output
    # Request logs may precede the token on stdout
    return result.output.strip().splitlines()[-1]


def test_login_prints_token(runner, app, token):
    assert app.state.tokens.verify_token(token).name == "admin"


def test_login_wrong_password(runner):
    result = runner.invoke(cli.main, ["login", "admin", "--password", "nope"])
    assert result.exit_code == 1
    assert "failed" in result.output


def test_add_list_update_remove(runner, app, token):
    result = runner.invoke(
        cli.main,
        ["add-user", "bob", "-f", "api", "--password", "x", "--token", token],
    )
    assert result.exit_code == 0, result.output
    assert app.state.store.get("bob").functions == ["api"]

    result = runner.invoke(cli.main, ["users", "--token", token])
    assert result.exit_code == 0
    assert "bob" in result.output
    assert "admin" in result.output

    result = runner.invoke(
        cli.main, ["set-functions", "bob", "api", "auth", "--token", token]
    )
    assert result.exit_code == 0, result.output
    assert app.state.store.get("bob").functions == ["api", "auth"]

    result = runner.invoke(cli.main, ["remove-user", "bob", "--token", token, "--yes"])
    assert result.exit_code == 0, result.output
    assert "bob" not in app.state.store


def test_token_from_env(runner, token):
    result = runner.invoke(cli.main, ["users", "--json"], env={"WARDEN_TOKEN": token})
    assert result.exit_code == 0
    assert '"name": "admin"' in result.output


def test_forbidden_without_valid_token(runner):
    result = runner.invoke(cli.main, ["users", "--token", "garbage"])
    assert result.exit_code == 1
    assert "Forbidden" in result.output


def test_remove_unknown_user(runner, token):
    result = runner.invoke(cli.main, ["remove-user", "ghost", "--token", token, "--yes"])
    assert result.exit_code == 1
    assert "No such user." in result.output
