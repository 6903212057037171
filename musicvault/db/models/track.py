# ============================================================================
# FILE: musicvault/db/models/track.py
# ============================================================================
from datetime import datetime
from typing import Optional

from pydantic import Field

from musicvault.db.models.base import Document, utcnow


class Track(Document):
    """Track metadata; filePath is relative to the songs root"""

    id: str
    track_name: str
    artist: str
    album: Optional[str] = None
    release_date: Optional[str] = None
    duration_ms: Optional[int] = None
    source_url: Optional[str] = None
    file_path: Optional[str] = None
    thumbnail_path: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def dedup_key(self):
        return track_key(self.artist, self.track_name)


def track_key(artist: str, track_name: str):
    """Case-insensitive (artist, trackName) identity used for dedup"""
    return artist.casefold(), track_name.casefold()
