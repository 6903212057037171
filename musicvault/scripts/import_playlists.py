# ============================================================================
# FILE: musicvault/scripts/import_playlists.py
# ============================================================================
"""
Import exported playlists into the library.

Usage:
    python -m musicvault.scripts.import_playlists [--dir PLAYLISTS_DIR]

Scans <dir>/<username>/*.json; see musicvault.services.import_service for the
row format and merge rules.
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from musicvault.config import settings
from musicvault.core.logging import setup_logging
from musicvault.services.import_service import ImportService, ImportSummary
from musicvault.services.playlist_service import get_playlist_service
from musicvault.services.track_service import get_track_service
from musicvault.services.user_service import get_user_service

logger = logging.getLogger(__name__)


async def run_import(playlists_dir: Path) -> ImportSummary:
    service = ImportService(
        get_user_service(settings),
        get_track_service(settings),
        get_playlist_service(settings),
    )
    if not await service.users.get_all():
        raise RuntimeError("No users found. Run seed_users first.")
    return await service.import_directory(playlists_dir)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Import playlists from JSON exports")
    parser.add_argument("--dir", type=Path, default=settings.PLAYLISTS_DIR, help="Playlists root directory")
    args = parser.parse_args(argv)

    setup_logging()
    try:
        summary = asyncio.run(run_import(args.dir))
    except (FileNotFoundError, RuntimeError) as e:
        logger.error(str(e))
        return 1

    print("Import summary:")
    print(f"  Tracks: {summary.new_tracks} new, {summary.duplicate_tracks} duplicates skipped, "
          f"{summary.skipped_rows} invalid rows")
    print(f"  Playlists: {summary.new_playlists} new, {summary.updated_playlists} updated, "
          f"{summary.skipped_files} unreadable files")
    return 0


if __name__ == "__main__":
    sys.exit(main())
