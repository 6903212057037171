# ============================================================================
# FILE: musicvault/core/archive.py
# ============================================================================
import contextlib
import logging
import os
import tempfile
import zipfile
from pathlib import Path
from typing import Iterable, NamedTuple

logger = logging.getLogger(__name__)

COMPRESSION_LEVEL = 5


class ArchiveEntry(NamedTuple):
    source: Path
    name: str


def build_zip(entries: Iterable[ArchiveEntry]) -> Path:
    """
    Write entries into a temporary ZIP file and return its path.

    The caller owns the returned file and must delete it.
    """
    fd, tmp_name = tempfile.mkstemp(prefix="playlist-", suffix=".zip")
    os.close(fd)
    try:
        with zipfile.ZipFile(tmp_name, "w", compression=zipfile.ZIP_DEFLATED,
                             compresslevel=COMPRESSION_LEVEL) as archive:
            for entry in entries:
                archive.write(entry.source, arcname=entry.name)
    except Exception:
        remove_file(Path(tmp_name))
        raise
    return Path(tmp_name)


def remove_file(path: Path) -> None:
    with contextlib.suppress(FileNotFoundError):
        os.unlink(path)
