# ============================================================================
# FILE: musicvault/services/track_service.py
# ============================================================================
from typing import Dict, Iterable, List, Optional, Tuple

from musicvault.config import Settings
from musicvault.core.pagination import MAX_LIMIT, Pagination, paginate
from musicvault.db.models.track import Track, track_key
from musicvault.db.store import JsonDocumentStore, get_store
import logging

logger = logging.getLogger(__name__)

SORT_NEWEST = "newest"


class TrackService:
    """Track repository over the tracks document"""

    def __init__(self, store: JsonDocumentStore[Track], max_limit: int = MAX_LIMIT):
        self.store = store
        self.max_limit = max_limit

    async def get_all(self) -> List[Track]:
        return await self.store.load_all()

    async def find_by_id(self, track_id: str) -> Optional[Track]:
        tracks = await self.store.load_all()
        return next((t for t in tracks if t.id == track_id), None)

    async def find_by_ids(self, track_ids: Iterable[str]) -> List[Track]:
        """Tracks in the order of track_ids; unknown ids are skipped"""
        by_id = {t.id: t for t in await self.store.load_all()}
        return [by_id[track_id] for track_id in track_ids if track_id in by_id]

    async def find_by_artist_and_name(self, artist: str, track_name: str) -> Optional[Track]:
        key = track_key(artist, track_name)
        tracks = await self.store.load_all()
        return next((t for t in tracks if t.dedup_key == key), None)

    async def search(
        self,
        query: str = "",
        page: int = 1,
        limit: int = 20,
        sort: Optional[str] = None,
    ) -> Tuple[List[Track], Pagination]:
        """
        Case-insensitive substring search across trackName, artist and album.

        Default order is insertion order; sort="newest" orders by createdAt
        descending.
        """
        tracks = await self.store.load_all()

        if query:
            needle = query.casefold()
            tracks = [
                t for t in tracks
                if needle in t.track_name.casefold()
                or needle in t.artist.casefold()
                or (t.album is not None and needle in t.album.casefold())
            ]

        if sort == SORT_NEWEST:
            tracks = sorted(tracks, key=lambda t: t.created_at, reverse=True)

        return paginate(tracks, page, min(limit, self.max_limit))

    async def add(self, track: Track) -> Track:
        """Store track unless its (artist, trackName) already exists; returns the stored track"""
        return (await self.add_many([track]))[0]

    async def add_many(self, new_tracks: Iterable[Track]) -> List[Track]:
        """
        Ingest tracks in one load/save cycle.

        Each element resolves to the already-stored track with the same
        dedup key (including one added earlier in this batch) or is appended.
        Nothing is written when every element was a duplicate.
        """
        results = []
        async with self.store.transaction() as txn:
            index: Dict[tuple, Track] = {t.dedup_key: t for t in txn.documents}
            for track in new_tracks:
                existing = index.get(track.dedup_key)
                if existing is not None:
                    results.append(existing)
                    continue
                txn.documents.append(track)
                index[track.dedup_key] = track
                txn.mark_dirty()
                results.append(track)
        return results


def get_track_service(settings: Settings) -> TrackService:
    return TrackService(get_store(settings.tracks_file, Track), max_limit=settings.MAX_PAGE_LIMIT)
