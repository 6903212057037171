# ============================================================================
# FILE: musicvault/api/v1/endpoints/tracks.py
# ============================================================================
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, status
from fastapi.responses import FileResponse

from musicvault.api.dependencies import require_current_user, track_service
from musicvault.config import Settings, get_settings
from musicvault.core.exceptions import ApiError, ErrorCode
from musicvault.core.pagination import paginated_response, parse_pagination_params
from musicvault.core.paths import file_size, resolve_track_path
from musicvault.core.sanitize import content_disposition, track_display_filename
from musicvault.core.streaming import (
    RangeNotSatisfiable,
    download_file_response,
    stream_file_response,
)
from musicvault.db.models.track import Track
from musicvault.services.track_service import TrackService
import logging

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(require_current_user)])


async def _get_track(track_id: str, tracks: TrackService) -> Track:
    track = await tracks.find_by_id(track_id)
    if not track:
        logger.warning(f"Track not found: {track_id}")
        raise ApiError(status.HTTP_404_NOT_FOUND, ErrorCode.TRACK_NOT_FOUND, "Track not found")
    return track


def _resolve_audio(track: Track, settings: Settings) -> Path:
    """Real on-disk file for a track (checked on every request, never cached)"""
    if not track.file_path:
        logger.warning(f"Track {track.id} has no audio file")
        raise ApiError(status.HTTP_404_NOT_FOUND, ErrorCode.FILE_NOT_FOUND, "Audio file not available")

    path = resolve_track_path(settings.SONGS_DIR, track.file_path)
    if path is None:
        logger.warning(f"File not found for track {track.id}: {track.file_path!r}")
        raise ApiError(status.HTTP_404_NOT_FOUND, ErrorCode.FILE_NOT_FOUND, "Audio file not found on server")
    return path


@router.get("")
async def list_tracks(
    page: Optional[str] = Query(None, description="Page number (1-indexed)"),
    limit: Optional[str] = Query(None, description="Items per page"),
    search: str = Query("", description="Substring matched against track, artist and album"),
    sort: Optional[str] = Query(None, description="'newest' orders by creation date"),
    tracks: TrackService = Depends(track_service),
    settings: Settings = Depends(get_settings),
):
    """
    List tracks with pagination and optional search
    """
    page_number, page_limit = parse_pagination_params(
        page, limit, settings.DEFAULT_PAGE_LIMIT, settings.MAX_PAGE_LIMIT
    )
    data, pagination = await tracks.search(search, page_number, page_limit, sort)
    return paginated_response([t.dump() for t in data], pagination)


@router.get("/{track_id}")
async def get_track(
    track_id: str,
    tracks: TrackService = Depends(track_service),
    settings: Settings = Depends(get_settings),
):
    """
    Get single track metadata, including its file size when the file resolves
    """
    track = await _get_track(track_id, tracks)
    data = track.dump()
    data["fileSize"] = file_size(settings.SONGS_DIR, track.file_path)
    return {"success": True, "data": data}


@router.get("/{track_id}/stream")
async def stream_track(
    track_id: str,
    range_header: Optional[str] = Header(None, alias="Range"),
    tracks: TrackService = Depends(track_service),
    settings: Settings = Depends(get_settings),
):
    """
    Stream the audio file with Range support for seeking
    Returns 200 for the full file, 206 for a single byte range
    """
    track = await _get_track(track_id, tracks)
    path = _resolve_audio(track, settings)

    try:
        return stream_file_response(
            path,
            range_header,
            chunk_size=settings.STREAM_CHUNK_SIZE,
            max_age=settings.CACHE_MAX_AGE_SECONDS,
        )
    except RangeNotSatisfiable as e:
        raise ApiError(
            status.HTTP_416_REQUESTED_RANGE_NOT_SATISFIABLE,
            ErrorCode.RANGE_NOT_SATISFIABLE,
            "Requested range not satisfiable",
            headers={"Content-Range": f"bytes */{e.file_size}"},
        )


@router.get("/{track_id}/download")
async def download_track(
    track_id: str,
    tracks: TrackService = Depends(track_service),
    settings: Settings = Depends(get_settings),
):
    """
    Download the full audio file as an attachment
    """
    track = await _get_track(track_id, tracks)
    path = _resolve_audio(track, settings)
    filename = track_display_filename(track.artist, track.track_name, Path(track.file_path).suffix)
    return download_file_response(
        path,
        content_disposition(filename),
        chunk_size=settings.STREAM_CHUNK_SIZE,
        max_age=settings.CACHE_MAX_AGE_SECONDS,
    )


@router.get("/{track_id}/thumbnail")
async def get_thumbnail(
    track_id: str,
    tracks: TrackService = Depends(track_service),
    settings: Settings = Depends(get_settings),
):
    """
    Serve the track's thumbnail image
    """
    track = await _get_track(track_id, tracks)
    path = resolve_track_path(settings.THUMBNAILS_DIR, track.thumbnail_path)
    if path is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, ErrorCode.THUMBNAIL_NOT_FOUND, "Thumbnail not found")
    return FileResponse(path, headers={"Cache-Control": f"public, max-age={settings.CACHE_MAX_AGE_SECONDS}"})
