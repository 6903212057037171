# ============================================================================
# FILE: musicvault/db/models/playlist.py
# ============================================================================
from datetime import datetime
from typing import List

from pydantic import Field

from musicvault.db.models.base import Document, utcnow


class Playlist(Document):
    """User-owned playlist; trackIds order is the playback order"""

    id: str
    user_id: str
    name: str
    track_ids: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def owned_by(self, user_id: str) -> bool:
        return self.user_id == user_id
