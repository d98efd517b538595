"""Growth Hub CLI — sign in and manage your records from a terminal.

Usage:
    ghub verify-code letmein                  # Check the registration code
    ghub signup me@example.com                # Create an account (prompts)
    ghub signin me@example.com                # Sign in (prompts for password)
    ghub whoami                               # Who is signed in
    ghub list workouts --limit 5              # Your records
    ghub list blog_posts                      # Public posts work signed out
    ghub add goals -f name=Run -f target=10   # Create a record
    ghub delete goals <id>                    # Delete one of your records
    ghub signout

The session is kept in GHUB_SESSION_FILE between runs. Every command
builds one SessionResolver; protected commands go through a RouteGuard
and refuse to run until the session is known to be signed in.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

import click
import httpx
import structlog

from ghub import __version__
from ghub.client.auth_client import HttpAuthClient, create_auth_client
from ghub.gateway.tables import TABLES, get_table
from ghub.session.guard import GuardView, RouteGuard
from ghub.session.resolver import NOT_CONFIGURED, SessionResolver
from ghub.session.state import Identity

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Offloads to a thread when a loop is already running (e.g. CliRunner
    invoked from inside an async test).
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
        return pool.submit(asyncio.run, coro).result()


def _fail(message: str):
    raise click.ClickException(message)


@asynccontextmanager
async def _session():
    """One resolver per command, resolved before the command body runs."""
    auth = create_auth_client()
    resolver = SessionResolver(auth)
    try:
        async with resolver:
            await resolver.wait_until_resolved()
            yield resolver, auth
    finally:
        if auth is not None:
            await auth.aclose()


async def _require_identity(resolver: SessionResolver) -> Identity:
    """Protected commands run behind a RouteGuard."""
    guard = RouteGuard(
        resolver,
        navigate=lambda path: click.secho(
            "Not signed in. Run `ghub signin EMAIL` first.", fg="yellow", err=True
        ),
        sign_in_path="signin",
    )
    result = await guard.guard(lambda identity: identity)
    if result.view is not GuardView.CONTENT:
        raise click.exceptions.Exit(1)
    return result.content


async def _call(auth: Optional[HttpAuthClient], method: str, path: str, **kwargs) -> httpx.Response:
    if auth is None:
        _fail(NOT_CONFIGURED)
    try:
        r = await auth.request(method, path, **kwargs)
    except httpx.HTTPError as e:
        _fail(f"Could not reach the backend: {e}")
    if r.status_code >= 400:
        try:
            body = r.json()
            detail = body.get("detail") or body.get("error") or r.text
        except (ValueError, AttributeError):
            detail = r.text
        _fail(f"{detail} ({r.status_code})")
    return r


def _parse_fields(fields: tuple[str, ...]) -> dict:
    """-f key=value pairs; values are JSON when they parse as JSON."""
    values = {}
    for field in fields:
        key, sep, raw = field.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {field!r}", param_hint="--field")
        try:
            values[key] = json.loads(raw)
        except ValueError:
            values[key] = raw
    return values


def _print_rows(rows: list[dict], max_columns: int = 6):
    """Print rows as a plain table, skipping owner and timestamp noise."""
    if not rows:
        click.echo("(none)")
        return
    hidden = {"user_id", "created_at", "updated_at"}
    keys = [k for k in rows[0] if k not in hidden][:max_columns]
    widths = {k: 36 if k == "id" else 18 for k in keys}
    header = "  ".join(k.ljust(widths[k]) for k in keys)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        click.echo("  ".join(str(row.get(k, "—"))[: widths[k]].ljust(widths[k]) for k in keys))


def _table_choice():
    return click.Choice(sorted(TABLES))


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="ghub")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logs on stderr")
def cli(verbose: bool):
    """Growth Hub — personal wellness tracker."""
    # stdout is for command output only
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if verbose else logging.WARNING
        ),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
    )


# ---------------------------------------------------------------------------
# Account
# ---------------------------------------------------------------------------


@cli.command("verify-code")
@click.argument("code")
def verify_code(code: str):
    """Check the registration code before signing up."""
    _run(_verify_code_impl(code))


async def _verify_code_impl(code: str) -> None:
    async with _session() as (_, auth):
        await _check_code(auth, code)
    click.secho("Code accepted.", fg="green")


async def _check_code(auth: Optional[HttpAuthClient], code: str) -> None:
    r = await _call(auth, "POST", "/api/verify-code", json={"code": code})
    if not r.json().get("valid"):
        _fail("Invalid secret code")


@cli.command()
@click.argument("email")
@click.option("--code", prompt="Registration code", help="Shared registration code")
@click.password_option()
def signup(email: str, code: str, password: str):
    """Create an account. Does not sign you in."""
    _run(_signup_impl(email, code, password))


async def _signup_impl(email: str, code: str, password: str) -> None:
    async with _session() as (resolver, auth):
        if auth is not None:
            await _check_code(auth, code)
        result = await resolver.sign_up(email, password)
    if not result.ok:
        _fail(result.error.message)
    click.secho(f"Account created for {result.value.email}.", fg="green")
    click.echo("Sign in with: ghub signin EMAIL")


@cli.command()
@click.argument("email")
@click.option("--password", prompt=True, hide_input=True)
def signin(email: str, password: str):
    """Sign in and keep the session for later commands."""
    _run(_signin_impl(email, password))


async def _signin_impl(email: str, password: str) -> None:
    async with _session() as (resolver, _):
        result = await resolver.sign_in(email, password)
    if not result.ok:
        _fail(result.error.message)
    click.secho(f"Signed in as {result.value.email}", fg="green")


@cli.command()
def signout():
    """Sign out and forget the stored session."""
    _run(_signout_impl())


async def _signout_impl() -> None:
    async with _session() as (resolver, _):
        result = await resolver.sign_out()
    if not result.ok:
        _fail(result.error.message)
    click.echo("Signed out.")


@cli.command()
def whoami():
    """Show the signed-in user."""
    _run(_whoami_impl())


async def _whoami_impl() -> None:
    async with _session() as (resolver, _):
        identity = await _require_identity(resolver)
    click.echo(f"{identity.email} ({identity.id})")
    if identity.created_at:
        click.echo(f"Member since {identity.created_at:%Y-%m-%d}")


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@cli.command("list")
@click.argument("table", type=_table_choice())
@click.option("--limit", "-n", type=int, default=20, show_default=True)
@click.option("--filter", "-f", "filters", multiple=True, help="column=value equality filter")
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
def list_records(table: str, limit: int, filters: tuple[str, ...], as_json: bool):
    """List records. Public tables are readable signed out."""
    _run(_list_impl(table, limit, filters, as_json))


async def _list_impl(table: str, limit: int, filters: tuple[str, ...], as_json: bool) -> None:
    params = {k: str(v) for k, v in _parse_fields(filters).items()}
    params["limit"] = str(limit)
    async with _session() as (resolver, auth):
        if not get_table(table).shareable:
            await _require_identity(resolver)
        r = await _call(auth, "GET", f"/rest/v1/{table}", params=params)
    rows = r.json()
    if as_json:
        click.echo(json.dumps(rows, indent=2, default=str))
    else:
        _print_rows(rows)


@cli.command()
@click.argument("table", type=_table_choice())
@click.option("--field", "-f", "fields", multiple=True, help="column=value (JSON values allowed)")
def add(table: str, fields: tuple[str, ...]):
    """Create a record you own."""
    values = _parse_fields(fields)
    _run(_add_impl(table, values))


async def _add_impl(table: str, values: dict) -> None:
    async with _session() as (resolver, auth):
        await _require_identity(resolver)
        r = await _call(auth, "POST", f"/rest/v1/{table}", json=values)
    row = r.json()
    click.secho(f"Created {table} {row['id']}", fg="green")


@cli.command()
@click.argument("table", type=_table_choice())
@click.argument("record_id")
def delete(table: str, record_id: str):
    """Delete one of your records."""
    _run(_delete_impl(table, record_id))


async def _delete_impl(table: str, record_id: str) -> None:
    async with _session() as (resolver, auth):
        await _require_identity(resolver)
        await _call(auth, "DELETE", f"/rest/v1/{table}/{record_id}")
    click.echo(f"Deleted {table} {record_id}")


if __name__ == "__main__":
    cli()
