"""
Song Library - HTTP API Tests

Exercises the FastAPI routes in song_library/routes/api.py through
TestClient, with the app wired to a temporary database and a fake music
info provider.  Validates:
- Request/response JSON shapes for every songs endpoint
- Domain errors mapped onto status codes (400, 404, 502, 500)
- Query and path parameter defaults and validation, including integers
  SQLite cannot store
- Startup with an injected service
"""

import pytest
from fastapi.testclient import TestClient

from song_library.database import SqliteSongRepository
from song_library.errors import DependencyError
from song_library.main import create_app
from song_library.services.song_service import SongService
from tests.conftest import SAMPLE_INFO, SAMPLE_LYRICS, FakeMusicInfoClient, add_song

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def client(service) -> TestClient:
    """TestClient over an app using the shared test SongService."""
    return TestClient(create_app(song_service=service))


# ===========================================================================
# Health
# ===========================================================================


class TestHealth:
    def test_reports_version(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] in {"ok", "degraded"}
        assert "version" in body


# ===========================================================================
# POST /api/songs
# ===========================================================================


class TestCreateSong:
    def test_created(self, client):
        resp = client.post("/api/songs", json={"group": "Muse", "song": "Hysteria"})
        assert resp.status_code == 201
        song_id = resp.json()["id"]

        song = client.get(f"/api/songs/{song_id}").json()["song"]
        assert song["group"] == "Muse"
        assert song["song"] == "Hysteria"
        assert song["releaseDate"] == SAMPLE_INFO.release_date
        assert song["link"] == SAMPLE_INFO.link
        assert song["createdAt"] == song["updatedAt"]

    @pytest.mark.parametrize(
        "body",
        [{}, {"group": "Muse"}, {"song": "Hysteria"}, {"group": " ", "song": "x"}],
    )
    def test_missing_fields_rejected(self, client, music_client, body):
        resp = client.post("/api/songs", json=body)
        assert resp.status_code == 400
        assert "error" in resp.json()
        assert music_client.calls == []

    def test_provider_failure_is_bad_gateway(self, repo, db_path):
        service = SongService(
            repo, FakeMusicInfoClient(error=DependencyError("expected 200, got 500"))
        )
        client = TestClient(create_app(song_service=service))

        resp = client.post("/api/songs", json={"group": "Muse", "song": "Hysteria"})

        assert resp.status_code == 502
        assert "expected 200" in resp.json()["error"]
        assert client.get("/api/songs").json()["total"] == 0

    def test_storage_failure_is_opaque_500(self, tmp_path, music_client):
        service = SongService(SqliteSongRepository(tmp_path / "bare.db"), music_client)
        client = TestClient(create_app(song_service=service))

        resp = client.post("/api/songs", json={"group": "Muse", "song": "Hysteria"})

        assert resp.status_code == 500
        assert resp.json() == {"error": "internal storage error"}


# ===========================================================================
# GET /api/songs
# ===========================================================================


class TestListSongs:
    @pytest.fixture
    def seeded(self, repo):
        return [
            add_song(repo, "Pink Floyd", "Money"),
            add_song(repo, "Muse", "Hysteria"),
            add_song(repo, "Pink Floyd", "Time"),
        ]

    def test_defaults(self, client, seeded):
        body = client.get("/api/songs").json()
        assert body["limit"] == 10
        assert body["offset"] == 0
        assert body["total"] == 3
        assert [s["id"] for s in body["songs"]] == sorted(seeded, reverse=True)

    def test_group_filter(self, client, seeded):
        body = client.get("/api/songs", params={"group": "floyd"}).json()
        assert body["total"] == 2
        assert {s["song"] for s in body["songs"]} == {"Money", "Time"}

    def test_group_and_title_filter(self, client, seeded):
        body = client.get("/api/songs", params={"group": "floyd", "title": "TIME"}).json()
        assert [s["id"] for s in body["songs"]] == [seeded[2]]

    def test_window(self, client, seeded):
        body = client.get("/api/songs", params={"limit": 1, "offset": 1}).json()
        assert [s["id"] for s in body["songs"]] == [seeded[1]]
        assert body["total"] == 3

    def test_negative_limit_rejected(self, client):
        assert client.get("/api/songs", params={"limit": -1}).status_code == 422

    def test_non_numeric_offset_rejected(self, client):
        assert client.get("/api/songs", params={"offset": "abc"}).status_code == 422

    @pytest.mark.parametrize("param", ["limit", "offset"])
    def test_value_beyond_sqlite_integer_rejected(self, client, param):
        resp = client.get("/api/songs", params={param: 2**63})
        assert resp.status_code == 422

    def test_largest_sqlite_integer_accepted(self, client, seeded):
        resp = client.get("/api/songs", params={"limit": 2**63 - 1})
        assert resp.status_code == 200
        assert len(resp.json()["songs"]) == 3


# ===========================================================================
# GET /api/songs/{id}
# ===========================================================================


class TestGetSong:
    def test_found(self, client, repo):
        song_id = add_song(repo, "Muse", "Hysteria", text=SAMPLE_LYRICS)
        resp = client.get(f"/api/songs/{song_id}")
        assert resp.status_code == 200
        song = resp.json()["song"]
        assert song["id"] == song_id
        assert song["text"] == SAMPLE_LYRICS

    def test_not_found(self, client):
        resp = client.get("/api/songs/123")
        assert resp.status_code == 404
        assert "not found" in resp.json()["error"]

    def test_bad_id(self, client):
        assert client.get("/api/songs/abc").status_code == 422

    @pytest.mark.parametrize("song_id", ["99999999999999999999", "-99999999999999999999"])
    def test_id_beyond_sqlite_integer_rejected(self, client, song_id):
        assert client.get(f"/api/songs/{song_id}").status_code == 422
        assert client.delete(f"/api/songs/{song_id}").status_code == 422
        assert client.put(f"/api/songs/{song_id}", json={"song": "x"}).status_code == 422
        assert client.get(f"/api/songs/{song_id}/lyrics").status_code == 422


# ===========================================================================
# PUT /api/songs/{id}
# ===========================================================================


class TestUpdateSong:
    def test_partial_update(self, client, repo):
        song_id = add_song(repo, "Muse", "Hysteria", link="https://old")
        resp = client.put(f"/api/songs/{song_id}", json={"releaseDate": "2003"})
        assert resp.status_code == 200

        song = client.get(f"/api/songs/{song_id}").json()["song"]
        assert song["releaseDate"] == "2003"
        assert song["song"] == "Hysteria"
        assert song["link"] == "https://old"
        assert song["updatedAt"] > song["createdAt"]

    def test_all_fields(self, client, repo):
        song_id = add_song(repo, "Muse", "Hysteria")
        body = {
            "group": "MUSE",
            "song": "Hysteria (Live)",
            "releaseDate": "2004",
            "link": "https://new",
            "text": "a\n\nb",
        }
        client.put(f"/api/songs/{song_id}", json=body)

        song = client.get(f"/api/songs/{song_id}").json()["song"]
        assert {k: song[k] for k in body} == body

    def test_not_found(self, client):
        resp = client.put("/api/songs/55", json={"song": "Ghost"})
        assert resp.status_code == 404


# ===========================================================================
# DELETE /api/songs/{id}
# ===========================================================================


class TestDeleteSong:
    def test_deleted(self, client, repo):
        song_id = add_song(repo, "Muse", "Hysteria")
        resp = client.delete(f"/api/songs/{song_id}")
        assert resp.status_code == 204
        assert client.get(f"/api/songs/{song_id}").status_code == 404

    def test_not_found(self, client):
        assert client.delete("/api/songs/9").status_code == 404


# ===========================================================================
# GET /api/songs/{id}/lyrics
# ===========================================================================


class TestLyrics:
    @pytest.fixture
    def song_id(self, repo) -> int:
        return add_song(repo, "Test", "Three Verses", text=SAMPLE_LYRICS)

    def test_defaults_to_first_verse(self, client, song_id):
        body = client.get(f"/api/songs/{song_id}/lyrics").json()
        assert body == {"lyrics": ["verse one"], "total": 3, "page": 1, "pageSize": 1}

    def test_page_size_alias(self, client, song_id):
        body = client.get(
            f"/api/songs/{song_id}/lyrics", params={"page": 2, "pageSize": 2}
        ).json()
        assert body["lyrics"] == ["verse three"]
        assert body["total"] == 3

    def test_out_of_range_page(self, client, song_id):
        resp = client.get(f"/api/songs/{song_id}/lyrics", params={"page": 10})
        assert resp.status_code == 200
        assert resp.json()["lyrics"] == []
        assert resp.json()["total"] == 3

    def test_values_below_one_clamped(self, client, song_id):
        body = client.get(
            f"/api/songs/{song_id}/lyrics", params={"page": 0, "pageSize": -3}
        ).json()
        assert body["lyrics"] == ["verse one"]
        assert body["page"] == 1
        assert body["pageSize"] == 1

    def test_not_found(self, client):
        assert client.get("/api/songs/31/lyrics").status_code == 404


# ===========================================================================
# Startup
# ===========================================================================


class TestStartup:
    def test_injected_service_skips_storage_bootstrap(self, service, monkeypatch):
        calls = []
        monkeypatch.setattr("song_library.main.init_db", lambda *a: calls.append(a))
        monkeypatch.setattr(
            "song_library.main.ensure_directories", lambda: calls.append(())
        )
        app = create_app(song_service=service)

        with TestClient(app) as client:
            assert client.get("/api/songs").status_code == 200

        assert calls == []
        assert app.state.song_service is service
