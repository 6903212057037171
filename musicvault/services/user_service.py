# ============================================================================
# FILE: musicvault/services/user_service.py
# ============================================================================
import uuid
from typing import Iterable, List, Optional, Tuple

import anyio

from musicvault.config import Settings
from musicvault.core.security import get_password_hash, verify_password
from musicvault.db.models.user import User
from musicvault.db.store import JsonDocumentStore, get_store
import logging

logger = logging.getLogger(__name__)


class UserService:
    """Service layer for user operations"""

    def __init__(self, store: JsonDocumentStore[User]):
        self.store = store

    async def get_all(self) -> List[User]:
        return await self.store.load_all()

    async def get_user_by_username(self, username: str) -> Optional[User]:
        users = await self.store.load_all()
        return next((u for u in users if u.username == username), None)

    async def get_user_by_id(self, user_id: str) -> Optional[User]:
        users = await self.store.load_all()
        return next((u for u in users if u.id == user_id), None)

    async def authenticate_user(self, username: str, password: str) -> Optional[User]:
        """Authenticate user with username and password"""
        user = await self.get_user_by_username(username)
        if not user:
            return None
        # bcrypt runs in a worker thread
        if not await anyio.to_thread.run_sync(verify_password, password, user.password_hash):
            return None
        return user

    async def create_users(self, credentials: Iterable[Tuple[str, str]]) -> Tuple[List[User], List[str]]:
        """
        Seed accounts from (username, password) pairs in one save.

        Returns (created users, skipped usernames that already existed).
        """
        pairs = list(credentials)
        hashes = [await anyio.to_thread.run_sync(get_password_hash, password) for _, password in pairs]

        created, skipped = [], []
        async with self.store.transaction() as txn:
            taken = {u.username for u in txn.documents}
            for (username, _), password_hash in zip(pairs, hashes):
                if username in taken:
                    skipped.append(username)
                    continue
                user = User(id=str(uuid.uuid4()), username=username, password_hash=password_hash)
                txn.documents.append(user)
                taken.add(username)
                created.append(user)
            if created:
                txn.mark_dirty()

        for user in created:
            logger.info(f"User created: {user.username}")
        return created, skipped


def get_user_service(settings: Settings) -> UserService:
    return UserService(get_store(settings.users_file, User))
