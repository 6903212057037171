# ============================================================================
# FILE: musicvault/services/import_service.py
# ============================================================================
"""
Bulk ingestion of exported playlists.

Source layout is ``<playlists_dir>/<username>/<Playlist Name>.json``; each
file is a JSON array of rows produced by the downloader::

    {"track_name": "...", "artist": "...", "album": "...",
     "release_date": "2024-01-01", "duration_ms": "180000",
     "url": "https://www.youtube.com/watch?v=...", "local_path": "x.m4a",
     "thumbnail_path": "thumbs/x.jpg"}
"""
import json
import logging
import unicodedata
import uuid
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs, urlparse

import anyio

from musicvault.db.models.track import Track
from musicvault.services.playlist_service import PlaylistService
from musicvault.services.track_service import TrackService
from musicvault.services.user_service import UserService

logger = logging.getLogger(__name__)


@dataclass
class ImportSummary:
    new_tracks: int = 0
    duplicate_tracks: int = 0
    skipped_rows: int = 0
    new_playlists: int = 0
    updated_playlists: int = 0
    skipped_files: int = 0
    skipped_users: int = 0


def _basename(value: str) -> str:
    # Source paths may come from Windows or POSIX machines
    name = PurePath(value.replace("\\", "/")).name
    return unicodedata.normalize("NFC", name)


def _thumbnail_from_url(url: str) -> Optional[str]:
    try:
        video_ids = parse_qs(urlparse(url).query).get("v")
    except ValueError:
        return None
    return f"{video_ids[0]}.jpg" if video_ids else None


def _parse_duration(value: Any) -> Optional[int]:
    try:
        duration = int(value)
    except (TypeError, ValueError):
        return None
    return duration or None


def load_rows(playlist_file: Path) -> Any:
    return json.loads(playlist_file.read_text(encoding="utf-8"))


def normalize_source_track(row: Dict[str, Any]) -> Optional[Track]:
    """Convert one exported row into a Track; None when name or artist is missing"""
    track_name = row.get("track_name")
    artist = row.get("artist")
    if not track_name or not artist:
        return None

    url = row.get("url") or None
    if row.get("thumbnail_path"):
        thumbnail_path = _basename(row["thumbnail_path"])
    elif url:
        thumbnail_path = _thumbnail_from_url(url)
    else:
        thumbnail_path = None

    return Track(
        id=str(uuid.uuid4()),
        track_name=track_name,
        artist=artist,
        album=row.get("album") or None,
        release_date=row.get("release_date") or None,
        duration_ms=_parse_duration(row.get("duration_ms")),
        source_url=url,
        file_path=_basename(row["local_path"]) if row.get("local_path") else None,
        thumbnail_path=thumbnail_path,
    )


class ImportService:
    """Imports per-user playlist exports into the track and playlist documents"""

    def __init__(self, users: UserService, tracks: TrackService, playlists: PlaylistService):
        self.users = users
        self.tracks = tracks
        self.playlists = playlists

    async def import_directory(self, playlists_dir: Path) -> ImportSummary:
        playlists_dir = Path(playlists_dir)
        if not playlists_dir.is_dir():
            raise FileNotFoundError(f"Playlists directory not found: {playlists_dir}")

        users = {u.username: u for u in await self.users.get_all()}
        summary = ImportSummary()

        for user_dir in sorted(p for p in playlists_dir.iterdir() if p.is_dir()):
            user = users.get(user_dir.name)
            if user is None:
                logger.warning(f"Skipping directory {user_dir.name!r}: no matching user")
                summary.skipped_users += 1
                continue

            logger.info(f"Processing playlists for user: {user.username}")
            for playlist_file in sorted(user_dir.glob("*.json")):
                await self.import_playlist_file(user.id, playlist_file, summary)

        logger.info(
            f"Import complete: {summary.new_tracks} new tracks, "
            f"{summary.duplicate_tracks} duplicates, {summary.new_playlists} new playlists, "
            f"{summary.updated_playlists} updated playlists"
        )
        return summary

    async def import_playlist_file(self, user_id: str, playlist_file: Path, summary: ImportSummary) -> None:
        name = playlist_file.stem
        try:
            rows = await anyio.to_thread.run_sync(load_rows, playlist_file)
        except (OSError, ValueError) as e:
            logger.warning(f"Error reading {playlist_file.name}: {e}")
            summary.skipped_files += 1
            return
        if not isinstance(rows, list):
            logger.warning(f"{playlist_file.name} is not an array")
            summary.skipped_files += 1
            return

        candidates: List[Track] = []
        for row in rows:
            track = normalize_source_track(row) if isinstance(row, dict) else None
            if track is None:
                summary.skipped_rows += 1
                continue
            candidates.append(track)

        stored = await self.tracks.add_many(candidates)
        for candidate, track in zip(candidates, stored):
            if track.id == candidate.id:
                summary.new_tracks += 1
            else:
                summary.duplicate_tracks += 1

        playlist, created, added = await self.playlists.merge_import(user_id, name, [t.id for t in stored])
        if created:
            summary.new_playlists += 1
            logger.info(f"Created playlist {name!r} with {len(playlist.track_ids)} tracks")
        else:
            summary.updated_playlists += 1
            logger.info(f"Updated playlist {name!r} (added {added} new tracks)")
