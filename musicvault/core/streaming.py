# ============================================================================
# FILE: musicvault/core/streaming.py
# ============================================================================
"""
Byte-exact file streaming with single-range HTTP support.

Only ``bytes=<start>-<end>`` is understood. When several ranges are sent
comma-separated, only the first is honored.
"""
import logging
import mimetypes
import re
from pathlib import Path
from typing import AsyncIterator, Dict, NamedTuple, Optional

import anyio
from fastapi.responses import StreamingResponse

logger = logging.getLogger(__name__)

DEFAULT_AUDIO_MIME_TYPE = "audio/mpeg"
DEFAULT_CHUNK_SIZE = 64 * 1024

# ASCII digits only; "bytes=-N" suffix ranges are rejected
RANGE_SPEC = re.compile(r"(\d+)\s*-\s*(\d*)", re.ASCII)

AUDIO_MIME_TYPES: Dict[str, str] = {
    ".mp3": "audio/mpeg",
    ".m4a": "audio/mp4",
    ".mp4": "audio/mp4",
    ".aac": "audio/aac",
    ".opus": "audio/opus",
    ".ogg": "audio/ogg",
    ".webm": "audio/webm",
    ".flac": "audio/flac",
    ".wav": "audio/wav",
}


class ByteRange(NamedTuple):
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    def content_range(self, file_size: int) -> str:
        return f"bytes {self.start}-{self.end}/{file_size}"


class RangeNotSatisfiable(Exception):
    """Range header cannot be served for this file"""

    def __init__(self, header: str, file_size: int):
        self.header = header
        self.file_size = file_size
        super().__init__(f"Range {header!r} not satisfiable for {file_size} bytes")


def parse_range_header(header: str, file_size: int) -> ByteRange:
    """
    Parse ``bytes=<start>-<end>`` against file_size.

    end defaults to the last byte. Raises RangeNotSatisfiable when the
    header is malformed, start >= file_size, end >= file_size, or
    start > end.
    """
    unit, _, spec = header.strip().partition("=")
    if unit.strip().lower() != "bytes" or not spec:
        raise RangeNotSatisfiable(header, file_size)

    match = RANGE_SPEC.fullmatch(spec.split(",")[0].strip())
    if match is None:
        raise RangeNotSatisfiable(header, file_size)

    start = int(match.group(1))
    end = int(match.group(2)) if match.group(2) else file_size - 1
    if start >= file_size or end >= file_size or start > end:
        raise RangeNotSatisfiable(header, file_size)
    return ByteRange(start, end)


def guess_audio_mime_type(path: Path) -> str:
    mime = AUDIO_MIME_TYPES.get(path.suffix.lower())
    if mime:
        return mime
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or DEFAULT_AUDIO_MIME_TYPE


async def iter_file(path: Path, start: int = 0, length: Optional[int] = None,
                    chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[bytes]:
    """
    Yield exactly `length` bytes of path starting at `start`.

    The handle is closed on every exit: completion, error, or cancellation
    when the client disconnects.
    """
    remaining = length
    try:
        async with await anyio.open_file(path, "rb") as f:
            if start:
                await f.seek(start)
            while remaining is None or remaining > 0:
                size = chunk_size if remaining is None else min(chunk_size, remaining)
                chunk = await f.read(size)
                if not chunk:
                    break
                if remaining is not None:
                    remaining -= len(chunk)
                yield chunk
    except anyio.get_cancelled_exc_class():
        logger.info(f"Client disconnected while streaming {path.name}")
        raise
    except OSError:
        # Headers are already on the wire; the connection is aborted instead
        logger.exception(f"Error reading {path.name} mid-stream")
        raise


def stream_file_response(
    path: Path,
    range_header: Optional[str],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    max_age: int = 86400,
) -> StreamingResponse:
    """
    Full (200) or partial (206) response for path.

    Raises RangeNotSatisfiable before any header is sent.
    """
    file_size = path.stat().st_size
    headers = {
        "Accept-Ranges": "bytes",
        "Cache-Control": f"public, max-age={max_age}",
    }
    media_type = guess_audio_mime_type(path)

    if range_header:
        byte_range = parse_range_header(range_header, file_size)
        headers["Content-Range"] = byte_range.content_range(file_size)
        headers["Content-Length"] = str(byte_range.length)
        return StreamingResponse(
            iter_file(path, byte_range.start, byte_range.length, chunk_size),
            status_code=206,
            media_type=media_type,
            headers=headers,
        )

    headers["Content-Length"] = str(file_size)
    return StreamingResponse(
        iter_file(path, 0, file_size, chunk_size),
        status_code=200,
        media_type=media_type,
        headers=headers,
    )


def download_file_response(
    path: Path,
    content_disposition: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    max_age: int = 86400,
) -> StreamingResponse:
    """Full-file attachment response; any Range header is ignored"""
    file_size = path.stat().st_size
    return StreamingResponse(
        iter_file(path, 0, file_size, chunk_size),
        status_code=200,
        media_type=guess_audio_mime_type(path),
        headers={
            "Content-Length": str(file_size),
            "Content-Disposition": content_disposition,
            "Cache-Control": f"public, max-age={max_age}",
        },
    )
