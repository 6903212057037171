# ============================================================================
# FILE: musicvault/scripts/seed_users.py
# ============================================================================
"""
Seed user accounts.

Usage:
    python -m musicvault.scripts.seed_users --file users.json

users.json is an array of {"username": "...", "password": "..."}. Passwords
are hashed with bcrypt; usernames that already exist are left untouched.
"""
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from musicvault.config import settings
from musicvault.core.logging import setup_logging
from musicvault.services.user_service import get_user_service

logger = logging.getLogger(__name__)


def load_credentials(path: Path) -> List[Tuple[str, str]]:
    entries = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(entries, list):
        raise ValueError(f"{path} must contain a JSON array")
    credentials = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise ValueError(f"Expected an object, got {entry!r}")
        username = (entry.get("username") or "").strip()
        password = entry.get("password") or ""
        if not username or not password:
            raise ValueError(f"Every entry needs a username and a password: {entry!r}")
        credentials.append((username, password))
    return credentials


async def seed(path: Path) -> int:
    credentials = load_credentials(path)
    created, skipped = await get_user_service(settings).create_users(credentials)
    for username in skipped:
        logger.warning(f"User already exists, skipped: {username}")
    print(f"Created {len(created)} user(s), skipped {len(skipped)}; saved to {settings.users_file}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Seed user accounts")
    parser.add_argument("--file", type=Path, required=True, help="JSON array of {username, password}")
    args = parser.parse_args(argv)

    setup_logging()
    try:
        return asyncio.run(seed(args.file))
    except (OSError, ValueError) as e:
        logger.error(f"Seeding failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
