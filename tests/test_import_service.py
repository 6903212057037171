"""Tests for playlist export ingestion."""
import json
import threading
import unicodedata
from pathlib import Path

import pytest

from musicvault.services import import_service
from musicvault.services.import_service import ImportService, normalize_source_track


def _write_playlist(root: Path, username: str, name: str, rows) -> None:
    user_dir = root / username
    user_dir.mkdir(parents=True, exist_ok=True)
    (user_dir / f"{name}.json").write_text(json.dumps(rows), encoding="utf-8")


ROWS = [
    {"track_name": "Starlight", "artist": "Muse", "album": "Black Holes and Revelations",
     "duration_ms": "240000", "url": "https://www.youtube.com/watch?v=abc123",
     "local_path": "C:\\music\\Muse - Starlight.m4a"},
    {"track_name": "Creep", "artist": "Radiohead", "local_path": "/srv/songs/Creep.mp3",
     "thumbnail_path": "/srv/thumbs/creep.jpg"},
    {"track_name": "starlight", "artist": "MUSE"},
    {"artist": "No Name"},
]


@pytest.fixture
def importer(user_service, track_service, playlist_service) -> ImportService:
    return ImportService(user_service, track_service, playlist_service)


def test_normalize_source_track() -> None:
    track = normalize_source_track(ROWS[0])
    assert track.track_name == "Starlight"
    assert track.file_path == "Muse - Starlight.m4a"
    assert track.thumbnail_path == "abc123.jpg"
    assert track.duration_ms == 240000
    assert track.source_url == "https://www.youtube.com/watch?v=abc123"


def test_normalize_source_track_paths_are_nfc() -> None:
    decomposed = unicodedata.normalize("NFD", "/songs/café.m4a")
    track = normalize_source_track({"track_name": "Café", "artist": "X", "local_path": decomposed})
    assert track.file_path == unicodedata.normalize("NFC", "café.m4a")


def test_normalize_source_track_requires_name_and_artist() -> None:
    assert normalize_source_track({"artist": "Muse"}) is None
    assert normalize_source_track({"track_name": "Starlight", "artist": ""}) is None


def test_normalize_source_track_bad_duration() -> None:
    track = normalize_source_track({"track_name": "A", "artist": "B", "duration_ms": "n/a"})
    assert track.duration_ms is None


async def test_import_directory(importer: ImportService, tmp_path: Path) -> None:
    await importer.users.create_users([("alice", "pw")])
    root = tmp_path / "exports"
    _write_playlist(root, "alice", "Road Trip", ROWS)
    _write_playlist(root, "ghost", "Nobody", ROWS)
    (root / "alice" / "Broken.json").write_text("{oops", encoding="utf-8")

    summary = await importer.import_directory(root)

    assert summary.new_tracks == 2
    assert summary.duplicate_tracks == 1
    assert summary.skipped_rows == 1
    assert summary.new_playlists == 1
    assert summary.skipped_files == 1
    assert summary.skipped_users == 1

    alice = await importer.users.get_user_by_username("alice")
    playlist = await importer.playlists.find_by_owner_and_name(alice.id, "Road Trip")
    tracks = await importer.tracks.find_by_ids(playlist.track_ids)
    assert [t.track_name for t in tracks] == ["Starlight", "Creep"]


async def test_reimport_is_idempotent(importer: ImportService, tmp_path: Path) -> None:
    """Running the same import twice adds no tracks and keeps playlist order."""
    await importer.users.create_users([("alice", "pw")])
    root = tmp_path / "exports"
    _write_playlist(root, "alice", "Road Trip", ROWS)

    await importer.import_directory(root)
    alice = await importer.users.get_user_by_username("alice")
    before = await importer.playlists.find_by_owner_and_name(alice.id, "Road Trip")

    summary = await importer.import_directory(root)
    after = await importer.playlists.find_by_owner_and_name(alice.id, "Road Trip")

    assert summary.new_tracks == 0
    assert summary.updated_playlists == 1
    assert after.track_ids == before.track_ids
    assert len(await importer.tracks.get_all()) == 2


async def test_import_missing_directory(importer: ImportService, tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        await importer.import_directory(tmp_path / "nope")


async def test_playlist_files_are_read_off_the_event_loop(importer: ImportService, tmp_path: Path, monkeypatch) -> None:
    """Export files are read and parsed in a worker thread."""
    threads = []
    original = import_service.load_rows

    def recording_load_rows(path: Path):
        threads.append(threading.current_thread())
        return original(path)

    monkeypatch.setattr(import_service, "load_rows", recording_load_rows)
    await importer.users.create_users([("alice", "pw")])
    root = tmp_path / "exports"
    _write_playlist(root, "alice", "Road Trip", ROWS)

    summary = await importer.import_directory(root)

    assert summary.new_playlists == 1
    assert len(threads) == 1
    assert threads[0] is not threading.main_thread()
