"""Shared fixtures: isolated data directories, app instance, seeded users."""
import json
from pathlib import Path
from typing import Callable, Dict, Iterable, List

import pytest
from fastapi.testclient import TestClient

from musicvault.config import Settings
from musicvault.core.security import TokenService, get_password_hash
from musicvault.db.models import Track, User
from musicvault.main import create_app
from musicvault.services.blocklist_service import BlocklistService, get_blocklist_service
from musicvault.services.playlist_service import PlaylistService, get_playlist_service
from musicvault.services.track_service import TrackService, get_track_service
from musicvault.services.user_service import UserService, get_user_service

PASSWORD = "correct horse"


def write_documents(path: Path, documents: Iterable) -> None:
    """Write a document file directly, bypassing the store"""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps([d.dump() for d in documents]), encoding="utf-8")


def make_track(track_id: str, artist: str = "Muse", name: str = "Starlight", **fields) -> Track:
    fields.setdefault("file_path", f"{track_id}.mp3")
    return Track(id=track_id, artist=artist, track_name=name, **fields)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    data = Settings(
        DATA_DIR=tmp_path / "data",
        SONGS_DIR=tmp_path / "songs",
        THUMBNAILS_DIR=tmp_path / "thumbnails",
        PLAYLISTS_DIR=tmp_path / "playlists",
        JWT_ACCESS_SECRET="test-access-secret-with-enough-length",
        JWT_REFRESH_SECRET="test-refresh-secret-with-enough-length",
        LOGIN_RATE_LIMIT_MAX=5,
        BLOCKLIST_CLEANUP_INTERVAL_SECONDS=3600,
    )
    for directory in (data.DATA_DIR, data.SONGS_DIR, data.THUMBNAILS_DIR, data.PLAYLISTS_DIR):
        directory.mkdir(parents=True)
    return data


@pytest.fixture
def app(settings: Settings):
    return create_app(settings)


@pytest.fixture
def client(app) -> TestClient:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def users(settings: Settings) -> Dict[str, User]:
    """alice and bob, both with PASSWORD"""
    password_hash = get_password_hash(PASSWORD)
    seeded = {
        name: User(id=f"user-{name}", username=name, password_hash=password_hash)
        for name in ("alice", "bob")
    }
    write_documents(settings.users_file, seeded.values())
    return seeded


@pytest.fixture
def auth_headers(settings: Settings, users: Dict[str, User]) -> Callable[[str], Dict[str, str]]:
    tokens = TokenService(settings)

    def _headers(username: str = "alice") -> Dict[str, str]:
        user = users[username]
        return {"Authorization": f"Bearer {tokens.create_access_token(user.id, user.username)}"}

    return _headers


@pytest.fixture
def seed_tracks(settings: Settings) -> Callable[[List[Track]], List[Track]]:
    """Write track metadata and a matching audio file for each track"""

    def _seed(tracks: List[Track], audio: bytes = b"\x00" * 1000) -> List[Track]:
        write_documents(settings.tracks_file, tracks)
        for track in tracks:
            if track.file_path:
                (settings.SONGS_DIR / track.file_path).write_bytes(audio)
        return tracks

    return _seed


@pytest.fixture
def track_service(settings: Settings) -> TrackService:
    return get_track_service(settings)


@pytest.fixture
def playlist_service(settings: Settings) -> PlaylistService:
    return get_playlist_service(settings)


@pytest.fixture
def user_service(settings: Settings) -> UserService:
    return get_user_service(settings)


@pytest.fixture
def blocklist_service(settings: Settings) -> BlocklistService:
    return get_blocklist_service(settings)
