"""Tests for /tracks endpoints, including Range streaming."""
import unicodedata
from urllib.parse import unquote

import pytest
from fastapi.testclient import TestClient

from tests.conftest import make_track

AUDIO = bytes(range(250)) * 4  # 1000 bytes


@pytest.fixture
def library(seed_tracks):
    return seed_tracks([
        make_track("t1", "Muse", "Starlight", album="Black Holes and Revelations", thumbnail_path="t1.jpg"),
        make_track("t2", "Radiohead", "Creep"),
        make_track("ghost", "Nobody", "Missing File", file_path=None),
    ], audio=AUDIO)


def test_list_tracks(client: TestClient, auth_headers, library) -> None:
    response = client.get("/tracks", params={"search": "muse"}, headers=auth_headers())
    assert response.status_code == 200
    body = response.json()
    assert [t["id"] for t in body["data"]] == ["t1"]
    assert body["data"][0]["trackName"] == "Starlight"
    assert body["pagination"]["total"] == 1


def test_list_tracks_invalid_paging_uses_defaults(client: TestClient, auth_headers, library) -> None:
    response = client.get("/tracks", params={"page": "x", "limit": "-1"}, headers=auth_headers())
    assert response.status_code == 200
    assert response.json()["pagination"]["limit"] == 20


def test_get_track_includes_file_size(client: TestClient, auth_headers, library) -> None:
    assert client.get("/tracks/t1", headers=auth_headers()).json()["data"]["fileSize"] == 1000
    assert client.get("/tracks/ghost", headers=auth_headers()).json()["data"]["fileSize"] is None


def test_get_unknown_track(client: TestClient, auth_headers, library) -> None:
    response = client.get("/tracks/nope", headers=auth_headers())
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "TRACK_NOT_FOUND"


def test_stream_full_file(client: TestClient, auth_headers, library) -> None:
    response = client.get("/tracks/t1/stream", headers=auth_headers())
    assert response.status_code == 200
    assert response.content == AUDIO
    assert response.headers["content-length"] == "1000"
    assert response.headers["accept-ranges"] == "bytes"
    assert response.headers["content-type"] == "audio/mpeg"


def test_stream_partial_range(client: TestClient, auth_headers, library) -> None:
    headers = {**auth_headers(), "Range": "bytes=900-999"}
    response = client.get("/tracks/t1/stream", headers=headers)
    assert response.status_code == 206
    assert response.headers["content-range"] == "bytes 900-999/1000"
    assert response.headers["content-length"] == "100"
    assert response.content == AUDIO[900:1000]


def test_stream_open_ended_range(client: TestClient, auth_headers, library) -> None:
    headers = {**auth_headers(), "Range": "bytes=10-"}
    response = client.get("/tracks/t1/stream", headers=headers)
    assert response.status_code == 206
    assert response.content == AUDIO[10:]


def test_stream_range_past_end(client: TestClient, auth_headers, library) -> None:
    headers = {**auth_headers(), "Range": "bytes=0-1023"}
    response = client.get("/tracks/t1/stream", headers=headers)
    assert response.status_code == 416
    assert response.headers["content-range"] == "bytes */1000"
    assert response.json()["error"]["code"] == "RANGE_NOT_SATISFIABLE"


def test_stream_track_without_file(client: TestClient, auth_headers, library) -> None:
    response = client.get("/tracks/ghost/stream", headers=auth_headers())
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "FILE_NOT_FOUND"


def test_stream_file_missing_on_disk(client: TestClient, auth_headers, library, settings) -> None:
    (settings.SONGS_DIR / "t2.mp3").unlink()
    response = client.get("/tracks/t2/stream", headers=auth_headers())
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "FILE_NOT_FOUND"


def test_stream_resolves_decomposed_name(client: TestClient, auth_headers, seed_tracks, settings) -> None:
    """Metadata in NFC still streams a file stored in NFD."""
    seed_tracks([make_track("c1", "Édith", "Café", file_path=unicodedata.normalize("NFC", "café.m4a"))])
    nfc_file = settings.SONGS_DIR / unicodedata.normalize("NFC", "café.m4a")
    nfc_file.rename(settings.SONGS_DIR / unicodedata.normalize("NFD", "café.m4a"))

    response = client.get("/tracks/c1/stream", headers=auth_headers())

    assert response.status_code == 200
    assert response.headers["content-type"] == "audio/mp4"


def test_download_track(client: TestClient, auth_headers, library) -> None:
    headers = {**auth_headers(), "Range": "bytes=0-9"}
    response = client.get("/tracks/t1/download", headers=headers)
    assert response.status_code == 200
    assert response.content == AUDIO
    disposition = response.headers["content-disposition"]
    assert disposition.startswith("attachment;")
    assert unquote(disposition.split('filename="')[1].rstrip('"')) == "Muse - Starlight.mp3"


def test_thumbnail(client: TestClient, auth_headers, library, settings) -> None:
    (settings.THUMBNAILS_DIR / "t1.jpg").write_bytes(b"\xff\xd8jpeg")
    response = client.get("/tracks/t1/thumbnail", headers=auth_headers())
    assert response.status_code == 200
    assert response.content == b"\xff\xd8jpeg"

    missing = client.get("/tracks/t2/thumbnail", headers=auth_headers())
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "THUMBNAIL_NOT_FOUND"
