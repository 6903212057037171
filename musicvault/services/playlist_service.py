# ============================================================================
# FILE: musicvault/services/playlist_service.py
# ============================================================================
import uuid
from typing import Iterable, List, Optional, Tuple

from musicvault.config import Settings
from musicvault.core.pagination import Pagination, paginate
from musicvault.db.models.base import utcnow
from musicvault.db.models.playlist import Playlist
from musicvault.db.store import JsonDocumentStore, get_store
import logging

logger = logging.getLogger(__name__)


class DuplicatePlaylistError(Exception):
    """Owner already has a playlist with this name (case-insensitive)"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Playlist already exists: {name}")


def _unique(track_ids: Iterable[str]) -> List[str]:
    """Drop repeated ids, first occurrence wins"""
    return list(dict.fromkeys(track_ids))


def _same_name(a: str, b: str) -> bool:
    return a.casefold() == b.casefold()


def _find_owned(playlists: List[Playlist], playlist_id: str, user_id: str) -> Optional[Playlist]:
    return next((p for p in playlists if p.id == playlist_id and p.owned_by(user_id)), None)


def _name_taken(playlists: List[Playlist], user_id: str, name: str, exclude_id: Optional[str] = None) -> bool:
    return any(
        p.owned_by(user_id) and _same_name(p.name, name) and p.id != exclude_id
        for p in playlists
    )


class PlaylistService:
    """
    Playlist repository over the playlists document.

    Every mutation takes the caller's user_id and treats a playlist owned
    by someone else exactly like a missing one (returns None/False), so the
    ownership check cannot be skipped by a caller.
    """

    def __init__(self, store: JsonDocumentStore[Playlist]):
        self.store = store

    async def find_by_id(self, playlist_id: str) -> Optional[Playlist]:
        playlists = await self.store.load_all()
        return next((p for p in playlists if p.id == playlist_id), None)

    async def get_by_owner(self, user_id: str, page: int = 1, limit: int = 20) -> Tuple[List[Playlist], Pagination]:
        playlists = [p for p in await self.store.load_all() if p.owned_by(user_id)]
        return paginate(playlists, page, limit)

    async def find_by_owner_and_name(self, user_id: str, name: str) -> Optional[Playlist]:
        playlists = await self.store.load_all()
        return next((p for p in playlists if p.owned_by(user_id) and _same_name(p.name, name)), None)

    async def create(self, user_id: str, name: str, track_ids: Optional[List[str]] = None) -> Playlist:
        """Create a playlist; raises DuplicatePlaylistError on a name clash"""
        async with self.store.transaction() as txn:
            if _name_taken(txn.documents, user_id, name):
                raise DuplicatePlaylistError(name)
            now = utcnow()
            playlist = Playlist(
                id=str(uuid.uuid4()),
                user_id=user_id,
                name=name,
                track_ids=_unique(track_ids or []),
                created_at=now,
                updated_at=now,
            )
            txn.documents.append(playlist)
            txn.mark_dirty()
        logger.info(f"Playlist created: {playlist.id} for user {user_id}")
        return playlist

    async def update(
        self,
        playlist_id: str,
        user_id: str,
        name: Optional[str] = None,
        track_ids: Optional[List[str]] = None,
    ) -> Optional[Playlist]:
        """Rename and/or reorder; repeated ids in track_ids are collapsed"""
        async with self.store.transaction() as txn:
            playlist = _find_owned(txn.documents, playlist_id, user_id)
            if playlist is None:
                return None
            if name is not None:
                if _name_taken(txn.documents, user_id, name, exclude_id=playlist.id):
                    raise DuplicatePlaylistError(name)
                playlist.name = name
            if track_ids is not None:
                playlist.track_ids = _unique(track_ids)
            playlist.updated_at = utcnow()
            txn.mark_dirty()
        logger.info(f"Playlist updated: {playlist_id}")
        return playlist

    async def remove(self, playlist_id: str, user_id: str) -> bool:
        async with self.store.transaction() as txn:
            playlist = _find_owned(txn.documents, playlist_id, user_id)
            if playlist is None:
                return False
            txn.documents.remove(playlist)
            txn.mark_dirty()
        logger.info(f"Playlist deleted: {playlist_id}")
        return True

    async def add_track(self, playlist_id: str, user_id: str, track_id: str) -> Optional[Playlist]:
        return await self.add_tracks(playlist_id, user_id, [track_id])

    async def add_tracks(self, playlist_id: str, user_id: str, track_ids: Iterable[str]) -> Optional[Playlist]:
        """
        Append ids not already present, in the given order.

        Existing entries never move. updatedAt changes (and the file is
        written) only when at least one id was actually appended.
        """
        async with self.store.transaction() as txn:
            playlist = _find_owned(txn.documents, playlist_id, user_id)
            if playlist is None:
                return None
            added = _append_missing(playlist, track_ids)
            if added:
                playlist.updated_at = utcnow()
                txn.mark_dirty()
        if added:
            logger.info(f"Added {added} track(s) to playlist {playlist_id}")
        return playlist

    async def remove_track(self, playlist_id: str, user_id: str, track_id: str) -> Optional[Playlist]:
        """Filter track_id out; updatedAt is bumped even if it was absent"""
        async with self.store.transaction() as txn:
            playlist = _find_owned(txn.documents, playlist_id, user_id)
            if playlist is None:
                return None
            playlist.track_ids = [t for t in playlist.track_ids if t != track_id]
            playlist.updated_at = utcnow()
            txn.mark_dirty()
        logger.info(f"Track removed from playlist {playlist_id}: {track_id}")
        return playlist

    async def merge_import(self, user_id: str, name: str, track_ids: Iterable[str]) -> Tuple[Playlist, bool, int]:
        """
        Merge an imported playlist into the owner's library.

        An existing playlist with the same (case-insensitive) name keeps its
        order and gets the missing ids appended in source order; otherwise a
        new playlist is created with the source ids, first occurrence wins.
        Returns (playlist, created, number_of_ids_added).
        """
        source_ids = _unique(track_ids)
        async with self.store.transaction() as txn:
            existing = next(
                (p for p in txn.documents if p.owned_by(user_id) and _same_name(p.name, name)),
                None,
            )
            now = utcnow()
            if existing is not None:
                added = _append_missing(existing, source_ids)
                if added:
                    existing.updated_at = now
                    txn.mark_dirty()
                return existing, False, added

            playlist = Playlist(
                id=str(uuid.uuid4()),
                user_id=user_id,
                name=name,
                track_ids=source_ids,
                created_at=now,
                updated_at=now,
            )
            txn.documents.append(playlist)
            txn.mark_dirty()
            return playlist, True, len(source_ids)


def _append_missing(playlist: Playlist, track_ids: Iterable[str]) -> int:
    present = set(playlist.track_ids)
    appended = []
    for track_id in track_ids:
        if track_id not in present:
            present.add(track_id)
            appended.append(track_id)
    if appended:
        playlist.track_ids = playlist.track_ids + appended
    return len(appended)


def get_playlist_service(settings: Settings) -> PlaylistService:
    return PlaylistService(get_store(settings.playlists_file, Playlist))
