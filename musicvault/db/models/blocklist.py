# ============================================================================
# FILE: musicvault/db/models/blocklist.py
# ============================================================================
import time

from pydantic import Field

from musicvault.db.models.base import Document


def now_ms() -> int:
    return int(time.time() * 1000)


class BlocklistEntry(Document):
    """Revoked refresh token; times are Unix epoch milliseconds"""

    token_id: str
    expires_at: int
    blocked_at: int = Field(default_factory=now_ms)
