"""HTTP tests for the Catalog API application factory."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from backend.catalog_api import create_app  # noqa: E402
from backend.catalog_api.schemas import EntityKind, SeasonTreeModel  # noqa: E402
from backend.catalog_api.settings import CatalogSettings  # noqa: E402

OWNER = {"X-Caller-Uid": "u1", "X-Caller-Scopes": "user"}
STRANGER = {"X-Caller-Uid": "u2", "X-Caller-Scopes": "user"}
ADMIN = {"X-Caller-Uid": "root", "X-Caller-Scopes": "user,admin"}


@pytest.fixture()
def client(tmp_path: Path) -> TestClient:
    """Provide a test client backed by an isolated SQLite database."""

    db_path = tmp_path / "catalog.db"
    settings = CatalogSettings(database_url=f"sqlite:///{db_path}")
    app = create_app(settings=settings)
    return TestClient(app)


def _seed(client: TestClient, visibility: str = "private") -> dict[str, str]:
    """Create file f1 and a collection -> season -> episode chain owned by u1."""

    assert client.put("/file", json={"id": "f1", "name": "ep1.mkv"}, headers=OWNER).status_code == 200
    collection = client.put(
        "/collection", json={"name": "Show", "visibility": visibility}, headers=OWNER
    ).json()
    season = client.put(
        "/season", json={"collection_id": collection["id"], "index": 0}, headers=OWNER
    ).json()
    episode = client.put(
        "/episode", json={"season_id": season["id"], "index": 0, "name": "Pilot"}, headers=OWNER
    ).json()
    return {"collection": collection["id"], "season": season["id"], "episode": episode["id"]}


def test_health_endpoint_reports_ok_status(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": "0.1.0"}


def test_requests_without_caller_are_rejected(client: TestClient) -> None:
    assert client.get("/collections").status_code == 401
    assert client.get("/collections", headers={"X-Caller-Uid": "u1", "X-Caller-Scopes": "root"}).status_code == 400


def test_source_lifecycle_updates_season_languages(client: TestClient) -> None:
    """Creating and deleting through HTTP keeps the season aggregates in step."""

    ids = _seed(client)

    created = client.put(
        "/source",
        json={"episode_id": ids["episode"], "language": "en_EN", "key": "f1", "subtitles": "de_DE"},
        headers=OWNER,
    )
    assert created.status_code == 200
    source = created.json()
    assert source["season_id"] == ids["season"]

    season = SeasonTreeModel.model_validate(client.get(f"/season/{ids['season']}", headers=OWNER).json())
    assert [language.value for language in season.languages] == ["en_EN"]
    assert [language.value for language in season.subtitles] == ["de_DE"]
    assert season.episodes[0].sources[0].id == source["id"]

    assert client.delete(f"/episode/{ids['episode']}", headers=OWNER).status_code == 204

    season = client.get(f"/season/{ids['season']}", headers=OWNER).json()
    assert season["episodes"] == []
    assert season["languages"] == []
    assert season["subtitles"] == []
    assert client.get(f"/source/{source['id']}", headers=OWNER).status_code == 404


def test_subtitle_endpoints_refresh_season_subtitles(client: TestClient) -> None:
    ids = _seed(client)

    subtitle = client.put(
        "/subtitle",
        json={"episode_id": ids["episode"], "language": "ja_JP", "key": "f1"},
        headers=OWNER,
    ).json()
    assert client.get(f"/season/{ids['season']}", headers=OWNER).json()["subtitles"] == ["ja_JP"]

    patch = client.patch(f"/subtitle/{subtitle['id']}", json={"language": "zh_CN"}, headers=OWNER)
    assert patch.status_code == 204
    assert client.get(f"/season/{ids['season']}", headers=OWNER).json()["subtitles"] == ["zh_CN"]

    assert client.delete(f"/subtitle/{subtitle['id']}", headers=OWNER).status_code == 204
    assert client.get(f"/season/{ids['season']}", headers=OWNER).json()["subtitles"] == []


def test_only_owner_may_mutate_or_read_private_collection(client: TestClient) -> None:
    ids = _seed(client)

    assert client.get(f"/collection/{ids['collection']}", headers=STRANGER).status_code == 403
    assert client.get(f"/season/{ids['season']}", headers=STRANGER).status_code == 403
    assert (
        client.patch(f"/episode/{ids['episode']}", json={"name": "Hijacked"}, headers=STRANGER).status_code
        == 403
    )
    assert client.delete(f"/collection/{ids['collection']}", headers=STRANGER).status_code == 403

    episode = client.get(f"/episode/{ids['episode']}", headers=OWNER).json()
    assert episode["name"] == "Pilot"


def test_public_collection_is_readable_but_not_writable_by_others(client: TestClient) -> None:
    ids = _seed(client, visibility="public")

    assert client.get(f"/collection/{ids['collection']}", headers=STRANGER).status_code == 200
    response = client.put(
        "/season", json={"collection_id": ids["collection"], "index": 1}, headers=STRANGER
    )
    assert response.status_code == 403


def test_source_key_must_be_owned_by_caller(client: TestClient) -> None:
    ids = _seed(client)
    client.put("/file", json={"id": "f2", "name": "other.mkv"}, headers=STRANGER)

    response = client.put(
        "/source",
        json={"episode_id": ids["episode"], "language": "en_EN", "key": "f2"},
        headers=OWNER,
    )

    assert response.status_code == 403


def test_invalid_payloads_are_rejected(client: TestClient) -> None:
    ids = _seed(client)

    bad_language = client.put(
        "/source",
        json={"episode_id": ids["episode"], "language": "fr_FR", "key": "f1"},
        headers=OWNER,
    )
    assert bad_language.status_code == 422

    back_reference = client.patch(
        f"/episode/{ids['episode']}", json={"season_id": "elsewhere"}, headers=OWNER
    )
    assert back_reference.status_code == 422

    empty_patch = client.patch(f"/episode/{ids['episode']}", json={}, headers=OWNER)
    assert empty_patch.status_code == 422

    cleared = client.patch(f"/collection/{ids['collection']}", json={"name": None}, headers=OWNER)
    assert cleared.status_code == 422


def test_missing_entities_return_not_found(client: TestClient) -> None:
    ids = _seed(client)

    assert client.get("/season/ghost", headers=OWNER).status_code == 404
    assert client.delete("/episode/ghost", headers=OWNER).status_code == 404
    assert client.put("/episode", json={"season_id": "ghost", "index": 0, "name": "x"}, headers=OWNER).status_code == 404
    assert client.get(f"/episode/{ids['episode']}?season_id=other", headers=OWNER).status_code == 404


def test_collection_delete_cascades(client: TestClient) -> None:
    ids = _seed(client)
    client.put(
        "/source",
        json={"episode_id": ids["episode"], "language": "en_EN", "key": "f1"},
        headers=OWNER,
    )

    assert client.delete(f"/collection/{ids['collection']}", headers=OWNER).status_code == 204

    assert client.get(f"/collection/{ids['collection']}", headers=OWNER).status_code == 404
    store = client.app.state.app_state.store
    for kind in (EntityKind.season, EntityKind.episode, EntityKind.source):
        assert store.scan(kind) == []
    assert client.get("/file/f1", headers=OWNER).status_code == 200


def test_collections_listing_filters_by_scope(client: TestClient) -> None:
    for visibility in ("public", "unlisted", "private"):
        client.put("/collection", json={"name": visibility, "visibility": visibility}, headers=OWNER)

    def names(headers: dict[str, str]) -> set[str]:
        response = client.get("/collections", headers=headers)
        assert response.status_code == 200
        return {item["name"] for item in response.json()}

    assert names({"X-Caller-Uid": "u3"}) == {"public"}
    assert names({"X-Caller-Uid": "u3", "X-Caller-Scopes": "restricted"}) == {"public", "unlisted"}
    assert names(ADMIN) == {"public", "unlisted", "private"}


def test_collection_thumbnail_can_be_cleared(client: TestClient) -> None:
    client.put("/file", json={"id": "thumb", "name": "cover.png", "private": False}, headers=OWNER)
    collection = client.put(
        "/collection",
        json={"name": "Show", "visibility": "public", "thumbnail": "thumb"},
        headers=OWNER,
    ).json()
    assert collection["thumbnail"] == "thumb"

    response = client.patch(f"/collection/{collection['id']}", json={"thumbnail": None}, headers=OWNER)

    assert response.status_code == 204
    assert client.get(f"/collection/{collection['id']}", headers=OWNER).json()["thumbnail"] is None


def test_profile_upsert_ignores_requested_scopes(client: TestClient) -> None:
    assert client.get("/profile", headers=OWNER).status_code == 404

    response = client.put(
        "/profile", json={"username": "alice", "scopes": ["admin"]}, headers=OWNER
    )

    assert response.status_code == 200
    assert response.json()["scopes"] == ["user"]
    assert client.get("/profile", headers=OWNER).json()["username"] == "alice"


def test_file_privacy_and_ownership(client: TestClient) -> None:
    client.put("/file", json={"id": "f1", "name": "secret.mkv"}, headers=OWNER)

    assert client.get("/file/f1", headers=STRANGER).status_code == 403
    assert client.patch("/file/f1", json={"private": False}, headers=STRANGER).status_code == 403
    assert client.patch("/file/f1", json={"private": False}, headers=OWNER).status_code == 204
    assert client.get("/file/f1", headers=STRANGER).json()["private"] is False
    assert client.delete("/file/f1", headers=OWNER).status_code == 204
    assert client.get("/file/f1", headers=OWNER).status_code == 404


def test_repair_requires_admin_and_reports_pruned_ids(client: TestClient) -> None:
    ids = _seed(client)
    store = client.app.state.app_state.store
    store.patch_field(EntityKind.season, ids["season"], "episodes", [ids["episode"], "ghost"])

    assert client.post("/maintenance/repair", headers=OWNER).status_code == 403

    response = client.post("/maintenance/repair", headers=ADMIN)

    assert response.status_code == 200
    report = response.json()
    assert report["seasons"] == [ids["season"]]
    assert report["pruned"] == [f"season:{ids['season']}:ghost"]
    assert client.get(f"/season/{ids['season']}", headers=OWNER).json()["episodes"][0]["id"] == ids["episode"]


def test_file_id_cannot_be_claimed_twice(client: TestClient) -> None:
    assert client.put("/file", json={"id": "f1", "name": "ep1.mkv"}, headers=OWNER).status_code == 200

    response = client.put(
        "/file", json={"id": "f1", "name": "stolen.mkv", "private": False}, headers=STRANGER
    )

    assert response.status_code == 409
    stored = client.get("/file/f1", headers=OWNER).json()
    assert stored["owner"] == "u1"
    assert stored["name"] == "ep1.mkv"
    assert stored["private"] is True
    assert stored["creation_date"]
