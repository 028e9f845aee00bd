"""Command line interface for the Catalog API."""
from __future__ import annotations

import json
from typing import List, Optional

import httpx
import typer

from .client import caller_headers, create_client


DEFAULT_API_BASE = "http://localhost:8000"

app = typer.Typer(help="Interact with the media catalog service.")
season_app = typer.Typer(help="Inspect seasons.")
app.add_typer(season_app, name="season")


def _api_base_option() -> typer.Option:
    return typer.Option(
        DEFAULT_API_BASE,
        "--api-base",
        help="Base URL for the Catalog API service.",
        show_default=True,
        envvar="CATALOG_API_BASE",
    )


def _uid_option() -> typer.Option:
    return typer.Option(
        "cli",
        "--uid",
        help="Caller uid forwarded to the API.",
        envvar="CATALOG_CALLER_UID",
    )


def _scope_option() -> typer.Option:
    return typer.Option(
        None,
        "--scope",
        help="Caller role; repeat to pass several.",
        envvar="CATALOG_CALLER_SCOPES",
    )


def _echo_response(response: httpx.Response) -> None:
    if response.is_error:
        detail = response.json().get("detail") if response.content else response.reason_phrase
        typer.echo(f"Request failed ({response.status_code}): {detail}", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(response.json(), indent=2, ensure_ascii=False))


@app.command()
def health(api_base: str = _api_base_option()) -> None:
    """Call the /health endpoint and pretty-print the response."""

    with create_client(api_base) as client:
        response = client.get("/health")
        _echo_response(response)


@app.command()
def collections(
    uid: str = _uid_option(),
    scope: Optional[List[str]] = _scope_option(),
    api_base: str = _api_base_option(),
) -> None:
    """List the collections visible to the given role set."""

    with create_client(api_base) as client:
        response = client.get("/collections", headers=caller_headers(uid, scope))
        _echo_response(response)


@season_app.command("show")
def show_season(
    season_id: str = typer.Argument(..., help="Season identifier."),
    uid: str = _uid_option(),
    scope: Optional[List[str]] = _scope_option(),
    api_base: str = _api_base_option(),
) -> None:
    """Display a season with its episodes, sources and subtitles."""

    with create_client(api_base) as client:
        response = client.get(f"/season/{season_id}", headers=caller_headers(uid, scope))
        _echo_response(response)


@app.command()
def repair(
    uid: str = _uid_option(),
    scope: Optional[List[str]] = _scope_option(),
    api_base: str = _api_base_option(),
) -> None:
    """Prune dangling ids and recompute every season's language sets."""

    with create_client(api_base) as client:
        response = client.post("/maintenance/repair", headers=caller_headers(uid, scope))
        _echo_response(response)


def main() -> None:
    """Execute the Typer application."""

    app()
