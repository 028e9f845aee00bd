"""Tests for the Typer-based catalog CLI."""
from __future__ import annotations

import importlib
import json
import sys
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient
from typer.testing import CliRunner

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from backend.catalog_api import create_app  # noqa: E402
from backend.catalog_api.schemas import EntityKind  # noqa: E402
from backend.catalog_api.settings import CatalogSettings  # noqa: E402
from backend.catalog_cli import client as client_module  # noqa: E402
from backend.catalog_cli.client import caller_headers  # noqa: E402

cli_app_module = importlib.import_module("backend.catalog_cli.app")
cli_app = cli_app_module.app

OWNER = {"X-Caller-Uid": "u1"}


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def cli_client(tmp_path: Path) -> TestClient:
    """Provide a TestClient and patch the CLI HTTP client factory."""

    db_path = tmp_path / "catalog.db"
    settings = CatalogSettings(database_url=f"sqlite:///{db_path}")
    app = create_app(settings=settings)
    test_client = TestClient(app)

    original_factory = client_module.create_client
    original_app_factory = cli_app_module.create_client

    def _factory(base_url: str, *, timeout: float = 10.0, transport: Any = None):  # type: ignore[override]
        return test_client

    client_module.create_client = _factory  # type: ignore[assignment]
    cli_app_module.create_client = _factory  # type: ignore[assignment]

    yield test_client

    client_module.create_client = original_factory  # type: ignore[assignment]
    cli_app_module.create_client = original_app_factory  # type: ignore[assignment]


def _seed_season(cli_client: TestClient, visibility: str = "public") -> dict[str, str]:
    cli_client.put("/file", json={"id": "f1", "name": "ep1.mkv"}, headers=OWNER)
    collection = cli_client.put(
        "/collection", json={"name": "Example Show", "visibility": visibility}, headers=OWNER
    ).json()
    season = cli_client.put(
        "/season", json={"collection_id": collection["id"], "index": 0}, headers=OWNER
    ).json()
    episode = cli_client.put(
        "/episode", json={"season_id": season["id"], "index": 0, "name": "Pilot"}, headers=OWNER
    ).json()
    cli_client.put(
        "/source",
        json={"episode_id": episode["id"], "language": "ja_JP", "key": "f1"},
        headers=OWNER,
    )
    return {"collection": collection["id"], "season": season["id"], "episode": episode["id"]}


def test_cli_health_command_outputs_status(runner: CliRunner, cli_client: TestClient) -> None:
    """The health command should display OK status."""

    result = runner.invoke(cli_app, ["health"])

    assert result.exit_code == 0
    assert "\"status\": \"ok\"" in result.output


def test_cli_collections_respects_scopes(runner: CliRunner, cli_client: TestClient) -> None:
    _seed_season(cli_client, visibility="unlisted")

    anonymous = runner.invoke(cli_app, ["collections", "--uid", "viewer"])
    assert anonymous.exit_code == 0
    assert json.loads(anonymous.output) == []

    restricted = runner.invoke(cli_app, ["collections", "--uid", "viewer", "--scope", "restricted"])
    assert restricted.exit_code == 0
    payload = json.loads(restricted.output)
    assert [item["name"] for item in payload] == ["Example Show"]


def test_cli_season_show_prints_tree(runner: CliRunner, cli_client: TestClient) -> None:
    ids = _seed_season(cli_client)

    result = runner.invoke(cli_app, ["season", "show", ids["season"]])

    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["languages"] == ["ja_JP"]
    assert payload["episodes"][0]["name"] == "Pilot"
    assert payload["episodes"][0]["sources"][0]["key"] == "f1"


def test_cli_season_show_reports_missing_season(runner: CliRunner, cli_client: TestClient) -> None:
    result = runner.invoke(cli_app, ["season", "show", "ghost"])

    assert result.exit_code == 1
    assert "404" in result.output


def test_cli_repair_requires_admin_scope(runner: CliRunner, cli_client: TestClient) -> None:
    ids = _seed_season(cli_client)
    store = cli_client.app.state.app_state.store
    store.patch_field(EntityKind.season, ids["season"], "languages", [])

    denied = runner.invoke(cli_app, ["repair", "--uid", "u1"])
    assert denied.exit_code == 1
    assert "403" in denied.output

    result = runner.invoke(cli_app, ["repair", "--uid", "root", "--scope", "admin"])

    assert result.exit_code == 0
    report = json.loads(result.output)
    assert report["seasons"] == [ids["season"]]
    assert report["pruned"] == []
    season = cli_client.get(f"/season/{ids['season']}", headers=OWNER).json()
    assert season["languages"] == ["ja_JP"]


def test_caller_headers_join_scopes() -> None:
    assert caller_headers("u1") == {"X-Caller-Uid": "u1"}
    assert caller_headers("u1", ["restricted", " admin ", ""]) == {
        "X-Caller-Uid": "u1",
        "X-Caller-Scopes": "restricted,admin",
    }
