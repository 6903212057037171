# ============================================================================
# FILE: musicvault/core/paths.py
# ============================================================================
"""
Resolve track files on disk despite Unicode normalization drift.

Metadata is usually recorded in NFC (composed characters) while some
filesystems hand back names in NFD (decomposed), so the same accented name
can exist on disk in either form. Lookups are never cached: the filesystem
is the source of truth and can be repaired out-of-band.
"""
import logging
import unicodedata
from pathlib import Path
from typing import Iterator, Optional, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _candidates(relative_path: str) -> Iterator[str]:
    seen = set()
    for candidate in (
        relative_path,
        unicodedata.normalize("NFC", relative_path),
        unicodedata.normalize("NFD", relative_path),
    ):
        if candidate not in seen:
            seen.add(candidate)
            yield candidate


def _within(root: Path, path: Path) -> bool:
    try:
        return path.resolve().is_relative_to(root.resolve())
    except OSError:
        return False


def resolve_track_path(root_dir: PathLike, relative_path: Optional[str]) -> Optional[Path]:
    """
    Find the real file for relative_path under root_dir.

    Tries the path as given, then its NFC form, then its NFD form, and
    returns the first one that exists as a regular file inside root_dir.
    Returns None when nothing matches; absence is not an error.
    """
    if not relative_path:
        return None

    root = Path(root_dir)
    for candidate in _candidates(relative_path):
        path = root / candidate
        if path.is_file():
            if not _within(root, path):
                logger.warning(f"Refusing path outside {root}: {relative_path!r}")
                return None
            return path
    return None


def file_size(root_dir: PathLike, relative_path: Optional[str]) -> Optional[int]:
    """Size in bytes of the resolved file, or None when it does not resolve"""
    path = resolve_track_path(root_dir, relative_path)
    if path is None:
        return None
    try:
        return path.stat().st_size
    except OSError:
        return None
