# ============================================================================
# FILE: musicvault/services/blocklist_service.py
# ============================================================================
from typing import Optional

from musicvault.config import Settings
from musicvault.db.models.blocklist import BlocklistEntry, now_ms
from musicvault.db.store import JsonDocumentStore, get_store
import logging

logger = logging.getLogger(__name__)


class BlocklistService:
    """Revoked refresh tokens, keyed by their jti claim"""

    def __init__(self, store: JsonDocumentStore[BlocklistEntry]):
        self.store = store

    async def add(self, token_id: str, expires_at: int) -> BlocklistEntry:
        """Block token_id until expires_at (epoch milliseconds)"""
        entry = BlocklistEntry(token_id=token_id, expires_at=expires_at)
        async with self.store.transaction() as txn:
            txn.documents.append(entry)
            txn.mark_dirty()
        return entry

    async def is_blocklisted(self, token_id: str) -> bool:
        entries = await self.store.load_all()
        return any(e.token_id == token_id for e in entries)

    async def cleanup_expired(self, now: Optional[int] = None) -> int:
        """Drop entries whose token has already expired; returns how many were removed"""
        now = now_ms() if now is None else now
        async with self.store.transaction() as txn:
            kept = [e for e in txn.documents if e.expires_at > now]
            removed = len(txn.documents) - len(kept)
            if removed:
                txn.documents[:] = kept
                txn.mark_dirty()
        if removed:
            logger.info(f"Cleaned {removed} expired entries from token blocklist")
        return removed


def get_blocklist_service(settings: Settings) -> BlocklistService:
    return BlocklistService(get_store(settings.blocklist_file, BlocklistEntry))
