# ============================================================================
# FILE: musicvault/scripts/normalize_file_paths.py
# ============================================================================
"""
Normalize every track filePath, and the file on disk, to NFC.

Some filesystems store accented names decomposed (NFD) while the metadata
is composed (NFC); after copying a library between machines the two can
disagree. Streaming copes with either form, this script makes them agree.

Usage:
    python -m musicvault.scripts.normalize_file_paths            # dry run
    python -m musicvault.scripts.normalize_file_paths --execute  # apply
"""
import argparse
import asyncio
import logging
import os
import sys
import unicodedata
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from musicvault.config import settings
from musicvault.core.logging import setup_logging
from musicvault.db.models.track import Track
from musicvault.db.store import get_store

logger = logging.getLogger(__name__)


@dataclass
class NormalizeReport:
    paths_normalized: int = 0
    files_renamed: int = 0
    files_missing: int = 0
    total_tracks: int = 0


async def normalize(songs_dir: Path, tracks_file: Path, execute: bool) -> NormalizeReport:
    report = NormalizeReport()
    store = get_store(tracks_file, Track)

    async with store.transaction() as txn:
        report.total_tracks = len(txn.documents)
        for track in txn.documents:
            if not track.file_path:
                continue
            normalized = unicodedata.normalize("NFC", track.file_path)
            if normalized == track.file_path:
                continue

            report.paths_normalized += 1
            logger.info(f"JSON: {track.file_path!r} -> {normalized!r}")
            current = songs_dir / track.file_path
            target = songs_dir / normalized

            if current.exists() and current != target:
                if execute:
                    os.replace(current, target)
                logger.info(f"DISK: renamed {current.name!r} to NFC")
                report.files_renamed += 1
            elif not target.exists():
                logger.warning(f"File not found on disk: {track.file_path!r}")
                report.files_missing += 1

            if execute:
                track.file_path = normalized
                txn.mark_dirty()

    return report


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Normalize track file paths to NFC")
    parser.add_argument("--execute", action="store_true", help="Apply changes (default is a dry run)")
    args = parser.parse_args(argv)

    setup_logging()
    report = asyncio.run(normalize(settings.SONGS_DIR, settings.tracks_file, args.execute))

    print(f"JSON paths normalized: {report.paths_normalized}")
    print(f"Files renamed on disk: {report.files_renamed}")
    print(f"Files not found:       {report.files_missing}")
    print(f"Total tracks:          {report.total_tracks}")
    if not args.execute:
        print("Dry run only. Run with --execute to apply changes.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
