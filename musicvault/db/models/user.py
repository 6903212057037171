# ============================================================================
# FILE: musicvault/db/models/user.py
# ============================================================================
from datetime import datetime

from pydantic import Field

from musicvault.db.models.base import Document, utcnow


class User(Document):
    """User account; seeded out-of-band and read-only at runtime"""

    id: str
    username: str
    password_hash: str
    created_at: datetime = Field(default_factory=utcnow)
