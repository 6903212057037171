# ============================================================================
# FILE: musicvault/core/sanitize.py
# ============================================================================
import re
from urllib.parse import quote

INVALID_FILENAME_CHARS = re.compile(r'[/\\?%*:|"<>]')


def replace_invalid_chars(name: str, replacement: str = "-") -> str:
    """Replace characters that are invalid in filenames (not stripped)"""
    return INVALID_FILENAME_CHARS.sub(replacement, name)


def track_display_filename(artist: str, track_name: str, extension: str) -> str:
    """Download name for a single track: 'Artist - Track.ext'"""
    return replace_invalid_chars(f"{artist} - {track_name}{extension}")


def archive_entry_name(number: int, artist: str, track_name: str, extension: str) -> str:
    """ZIP entry name keeping playlist order: '01 - Artist - Track.ext'"""
    return replace_invalid_chars(f"{number:02d} - {artist} - {track_name}{extension}")


def archive_filename(playlist_name: str) -> str:
    return replace_invalid_chars(f"{playlist_name}.zip")


def content_disposition(filename: str) -> str:
    """Attachment header value; the name is percent-encoded to stay ASCII"""
    return f'attachment; filename="{quote(filename, safe="")}"'
