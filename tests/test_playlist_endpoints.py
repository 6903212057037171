"""Tests for /playlists endpoints, including ZIP export."""
import io
import zipfile
from urllib.parse import unquote

import pytest
from fastapi.testclient import TestClient

from tests.conftest import make_track


@pytest.fixture
def library(seed_tracks):
    return seed_tracks([
        make_track("A", "Muse", "Starlight"),
        make_track("B", "Radiohead", "Creep"),
        make_track("C", "AC/DC", "T.N.T."),
        make_track("D", "Björk", "Army of Me"),
    ])


def _create(client: TestClient, headers, name: str = "Road Trip", track_ids=None) -> dict:
    response = client.post("/playlists", json={"name": name}, headers=headers)
    assert response.status_code == 201
    playlist = response.json()["data"]
    if track_ids:
        added = client.post(f"/playlists/{playlist['id']}/tracks", json={"trackIds": track_ids}, headers=headers)
        assert added.status_code == 200
        playlist = added.json()["data"]
    return playlist


def test_create_and_list(client: TestClient, auth_headers, library) -> None:
    created = _create(client, auth_headers(), "  Road Trip  ")
    assert created["name"] == "Road Trip"
    assert created["trackIds"] == []

    _create(client, auth_headers("bob"), "Bob's")
    body = client.get("/playlists", headers=auth_headers()).json()
    assert [p["name"] for p in body["data"]] == ["Road Trip"]
    assert body["data"][0]["trackCount"] == 0


def test_create_duplicate_name(client: TestClient, auth_headers, library) -> None:
    _create(client, auth_headers(), "Road Trip")
    response = client.post("/playlists", json={"name": "ROAD TRIP"}, headers=auth_headers())
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "DUPLICATE_PLAYLIST"


def test_create_requires_name(client: TestClient, auth_headers, library) -> None:
    response = client.post("/playlists", json={"name": "   "}, headers=auth_headers())
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_add_tracks_is_ordered_union(client: TestClient, auth_headers, library) -> None:
    playlist = _create(client, auth_headers(), track_ids=["A", "B"])
    response = client.post(
        f"/playlists/{playlist['id']}/tracks", json={"trackIds": ["B", "C", "A", "D"]}, headers=auth_headers()
    )
    assert response.json()["data"]["trackIds"] == ["A", "B", "C", "D"]
    assert response.json()["data"]["trackCount"] == 4


def test_add_single_track(client: TestClient, auth_headers, library) -> None:
    playlist = _create(client, auth_headers())
    response = client.post(f"/playlists/{playlist['id']}/tracks", json={"trackId": "C"}, headers=auth_headers())
    assert response.json()["data"]["trackIds"] == ["C"]

    unknown = client.post(f"/playlists/{playlist['id']}/tracks", json={"trackId": "Z"}, headers=auth_headers())
    assert unknown.status_code == 404
    assert unknown.json()["error"]["code"] == "TRACK_NOT_FOUND"


def test_add_tracks_rejects_unknown_ids(client: TestClient, auth_headers, library) -> None:
    playlist = _create(client, auth_headers())
    response = client.post(
        f"/playlists/{playlist['id']}/tracks", json={"trackIds": ["A", "Z"]}, headers=auth_headers()
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_TRACKS"


def test_add_tracks_requires_an_id(client: TestClient, auth_headers, library) -> None:
    playlist = _create(client, auth_headers())
    response = client.post(f"/playlists/{playlist['id']}/tracks", json={}, headers=auth_headers())
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


def test_get_playlist_paginates_tracks(client: TestClient, auth_headers, library) -> None:
    playlist = _create(client, auth_headers(), track_ids=["D", "C", "B", "A"])
    response = client.get(
        f"/playlists/{playlist['id']}", params={"trackPage": 2, "trackLimit": 3}, headers=auth_headers()
    )
    body = response.json()
    assert body["data"]["trackCount"] == 4
    assert [t["id"] for t in body["data"]["tracks"]] == ["A"]
    assert body["trackPagination"]["totalPages"] == 2


def test_read_path_distinguishes_forbidden_from_missing(client: TestClient, auth_headers, library) -> None:
    """Reading another user's playlist is 403, a missing one is 404."""
    playlist = _create(client, auth_headers("bob"), "Bob's")

    forbidden = client.get(f"/playlists/{playlist['id']}", headers=auth_headers())
    missing = client.get("/playlists/does-not-exist", headers=auth_headers())

    assert forbidden.status_code == 403
    assert forbidden.json()["error"]["code"] == "FORBIDDEN"
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "PLAYLIST_NOT_FOUND"


def test_mutations_on_foreign_playlist_are_not_found(client: TestClient, auth_headers, library) -> None:
    """Mutating endpoints answer 404 for another user's playlist and change nothing."""
    playlist = _create(client, auth_headers("bob"), "Bob's", track_ids=["A"])
    pid = playlist["id"]
    headers = auth_headers()

    responses = [
        client.put(f"/playlists/{pid}", json={"name": "Mine now"}, headers=headers),
        client.delete(f"/playlists/{pid}", headers=headers),
        client.post(f"/playlists/{pid}/tracks", json={"trackId": "B"}, headers=headers),
        client.delete(f"/playlists/{pid}/tracks/A", headers=headers),
    ]

    assert [r.status_code for r in responses] == [404, 404, 404, 404]
    stored = client.get(f"/playlists/{pid}", headers=auth_headers("bob")).json()["data"]
    assert stored["name"] == "Bob's"
    assert [t["id"] for t in stored["tracks"]] == ["A"]


def test_update_reorders_and_renames(client: TestClient, auth_headers, library) -> None:
    playlist = _create(client, auth_headers(), track_ids=["A", "B", "C"])
    response = client.put(
        f"/playlists/{playlist['id']}",
        json={"name": "Renamed", "trackIds": ["C", "A", "C", "B"]},
        headers=auth_headers(),
    )
    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Renamed"
    assert response.json()["data"]["trackIds"] == ["C", "A", "B"]


def test_update_validates_tracks_and_name(client: TestClient, auth_headers, library) -> None:
    _create(client, auth_headers(), "Taken")
    playlist = _create(client, auth_headers(), "Mine")

    invalid = client.put(f"/playlists/{playlist['id']}", json={"trackIds": ["Z"]}, headers=auth_headers())
    duplicate = client.put(f"/playlists/{playlist['id']}", json={"name": "taken"}, headers=auth_headers())

    assert invalid.status_code == 400
    assert invalid.json()["error"]["code"] == "INVALID_TRACKS"
    assert duplicate.status_code == 409


def test_remove_track_and_delete(client: TestClient, auth_headers, library) -> None:
    playlist = _create(client, auth_headers(), track_ids=["A", "B"])
    removed = client.delete(f"/playlists/{playlist['id']}/tracks/A", headers=auth_headers())
    assert removed.json()["data"]["trackIds"] == ["B"]

    assert client.delete(f"/playlists/{playlist['id']}", headers=auth_headers()).status_code == 200
    assert client.get(f"/playlists/{playlist['id']}", headers=auth_headers()).status_code == 404


def test_download_zip_in_playlist_order(client: TestClient, auth_headers, library, settings) -> None:
    """Entries are numbered in playlist order; missing files are skipped without a gap."""
    playlist = _create(client, auth_headers(), "Road: Trip", track_ids=["C", "A", "B", "D"])
    (settings.SONGS_DIR / "A.mp3").unlink()

    response = client.get(f"/playlists/{playlist['id']}/download", headers=auth_headers())

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/zip"
    disposition = response.headers["content-disposition"]
    assert unquote(disposition.split('filename="')[1].rstrip('"')) == "Road- Trip.zip"
    with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
        assert archive.namelist() == [
            "01 - AC-DC - T.N.T..mp3",
            "02 - Radiohead - Creep.mp3",
            "03 - Björk - Army of Me.mp3",
        ]


def test_download_empty_playlist(client: TestClient, auth_headers, library) -> None:
    playlist = _create(client, auth_headers())
    response = client.get(f"/playlists/{playlist['id']}/download", headers=auth_headers())
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "EMPTY_PLAYLIST"


def test_download_foreign_playlist_is_forbidden(client: TestClient, auth_headers, library) -> None:
    playlist = _create(client, auth_headers("bob"), "Bob's", track_ids=["A"])
    response = client.get(f"/playlists/{playlist['id']}/download", headers=auth_headers())
    assert response.status_code == 403
