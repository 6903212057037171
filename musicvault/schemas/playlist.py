# ============================================================================
# FILE: musicvault/schemas/playlist.py
# ============================================================================
from typing import List, Optional

from pydantic import ConfigDict, Field

from musicvault.schemas.base import CamelModel


class PlaylistCreate(CamelModel):
    """Schema for creating a playlist"""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=100)


class PlaylistUpdate(CamelModel):
    """Schema for renaming or reordering a playlist"""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    track_ids: Optional[List[str]] = None


class PlaylistTracksAdd(CamelModel):
    """Schema for adding one track (trackId) or several (trackIds)"""
    track_id: Optional[str] = None
    track_ids: Optional[List[str]] = None
