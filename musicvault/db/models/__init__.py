# ============================================================================
# FILE: musicvault/db/models/__init__.py
# ============================================================================
from musicvault.db.models.blocklist import BlocklistEntry
from musicvault.db.models.playlist import Playlist
from musicvault.db.models.track import Track
from musicvault.db.models.user import User

__all__ = ["BlocklistEntry", "Playlist", "Track", "User"]
