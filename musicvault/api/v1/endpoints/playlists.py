# ============================================================================
# FILE: musicvault/api/v1/endpoints/playlists.py
# ============================================================================
from pathlib import Path
from typing import List, Optional

import anyio
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import FileResponse
from starlette.background import BackgroundTask

from musicvault.api.dependencies import playlist_service, require_current_user, track_service
from musicvault.config import Settings, get_settings
from musicvault.core.archive import ArchiveEntry, build_zip, remove_file
from musicvault.core.exceptions import ApiError, ErrorCode
from musicvault.core.pagination import paginate, paginated_response, parse_pagination_params
from musicvault.core.paths import resolve_track_path
from musicvault.core.sanitize import archive_entry_name, archive_filename, content_disposition
from musicvault.db.models.playlist import Playlist
from musicvault.schemas.playlist import PlaylistCreate, PlaylistTracksAdd, PlaylistUpdate
from musicvault.schemas.user import CurrentUser
from musicvault.services.playlist_service import DuplicatePlaylistError, PlaylistService
from musicvault.services.track_service import TrackService
import logging

logger = logging.getLogger(__name__)
router = APIRouter()

DEFAULT_TRACK_LIMIT = 50
MAX_TRACK_LIMIT = 100


def _not_found() -> ApiError:
    return ApiError(status.HTTP_404_NOT_FOUND, ErrorCode.PLAYLIST_NOT_FOUND, "Playlist not found or access denied")


def _duplicate() -> ApiError:
    return ApiError(status.HTTP_409_CONFLICT, ErrorCode.DUPLICATE_PLAYLIST, "A playlist with this name already exists")


def _with_count(playlist: Playlist) -> dict:
    data = playlist.dump()
    data["trackCount"] = len(playlist.track_ids)
    return data


async def _get_readable(playlist_id: str, user: CurrentUser, playlists: PlaylistService) -> Playlist:
    """
    Read path: distinguishes a missing playlist (404) from one owned by
    someone else (403), unlike the mutating endpoints which answer 404 for both.
    """
    playlist = await playlists.find_by_id(playlist_id)
    if not playlist:
        raise ApiError(status.HTTP_404_NOT_FOUND, ErrorCode.PLAYLIST_NOT_FOUND, "Playlist not found")
    if not playlist.owned_by(user.id):
        raise ApiError(status.HTTP_403_FORBIDDEN, ErrorCode.FORBIDDEN, "You do not have access to this playlist")
    return playlist


async def _require_tracks(track_ids: List[str], tracks: TrackService) -> None:
    unique_ids = set(track_ids)
    found = await tracks.find_by_ids(unique_ids)
    if len(found) != len(unique_ids):
        raise ApiError(status.HTTP_400_BAD_REQUEST, ErrorCode.INVALID_TRACKS, "One or more tracks not found")


@router.get("")
async def get_my_playlists(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    current_user: CurrentUser = Depends(require_current_user),
    playlists: PlaylistService = Depends(playlist_service),
    settings: Settings = Depends(get_settings),
):
    """
    List the current user's playlists with pagination
    """
    page_number, page_limit = parse_pagination_params(
        page, limit, settings.DEFAULT_PAGE_LIMIT, settings.MAX_PAGE_LIMIT
    )
    data, pagination = await playlists.get_by_owner(current_user.id, page_number, page_limit)
    return paginated_response([_with_count(p) for p in data], pagination)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_playlist(
    playlist_data: PlaylistCreate,
    current_user: CurrentUser = Depends(require_current_user),
    playlists: PlaylistService = Depends(playlist_service),
):
    """
    Create a new, empty playlist
    """
    try:
        playlist = await playlists.create(current_user.id, playlist_data.name)
    except DuplicatePlaylistError:
        raise _duplicate()
    return {"success": True, "data": playlist.dump()}


@router.get("/{playlist_id}")
async def get_playlist(
    playlist_id: str,
    track_page: Optional[str] = Query(None, alias="trackPage"),
    track_limit: Optional[str] = Query(None, alias="trackLimit"),
    current_user: CurrentUser = Depends(require_current_user),
    playlists: PlaylistService = Depends(playlist_service),
    tracks: TrackService = Depends(track_service),
):
    """
    Get playlist details with its tracks paginated
    """
    playlist = await _get_readable(playlist_id, current_user, playlists)
    page_number, page_limit = parse_pagination_params(
        track_page, track_limit, DEFAULT_TRACK_LIMIT, MAX_TRACK_LIMIT
    )
    playlist_tracks, track_pagination = paginate(
        await tracks.find_by_ids(playlist.track_ids), page_number, page_limit
    )
    stored = playlist.dump()
    return {
        "success": True,
        "data": {
            "id": playlist.id,
            "name": playlist.name,
            "trackCount": len(playlist.track_ids),
            "createdAt": stored["createdAt"],
            "updatedAt": stored["updatedAt"],
            "tracks": [t.dump() for t in playlist_tracks],
        },
        "trackPagination": track_pagination.model_dump(by_alias=True),
    }


@router.put("/{playlist_id}")
async def update_playlist(
    playlist_id: str,
    update_data: PlaylistUpdate,
    current_user: CurrentUser = Depends(require_current_user),
    playlists: PlaylistService = Depends(playlist_service),
    tracks: TrackService = Depends(track_service),
):
    """
    Rename a playlist and/or replace its track order
    """
    if update_data.track_ids is not None:
        await _require_tracks(update_data.track_ids, tracks)

    try:
        playlist = await playlists.update(
            playlist_id, current_user.id, name=update_data.name, track_ids=update_data.track_ids
        )
    except DuplicatePlaylistError:
        raise _duplicate()
    if not playlist:
        raise _not_found()
    return {"success": True, "data": playlist.dump()}


@router.delete("/{playlist_id}")
async def delete_playlist(
    playlist_id: str,
    current_user: CurrentUser = Depends(require_current_user),
    playlists: PlaylistService = Depends(playlist_service),
):
    """
    Delete a playlist
    """
    if not await playlists.remove(playlist_id, current_user.id):
        raise _not_found()
    return {"success": True, "data": {"message": "Playlist deleted successfully"}}


@router.post("/{playlist_id}/tracks")
async def add_tracks_to_playlist(
    playlist_id: str,
    body: PlaylistTracksAdd,
    current_user: CurrentUser = Depends(require_current_user),
    playlists: PlaylistService = Depends(playlist_service),
    tracks: TrackService = Depends(track_service),
):
    """
    Add one track (trackId) or several (trackIds); ids already present are ignored
    """
    if body.track_ids:
        await _require_tracks(body.track_ids, tracks)
        playlist = await playlists.add_tracks(playlist_id, current_user.id, body.track_ids)
    elif body.track_id:
        if not await tracks.find_by_id(body.track_id):
            raise ApiError(status.HTTP_404_NOT_FOUND, ErrorCode.TRACK_NOT_FOUND, "Track not found")
        playlist = await playlists.add_track(playlist_id, current_user.id, body.track_id)
    else:
        raise ApiError(status.HTTP_400_BAD_REQUEST, ErrorCode.VALIDATION_ERROR, "Provide trackId or trackIds")

    if not playlist:
        raise _not_found()
    return {"success": True, "data": _with_count(playlist)}


@router.delete("/{playlist_id}/tracks/{track_id}")
async def remove_track_from_playlist(
    playlist_id: str,
    track_id: str,
    current_user: CurrentUser = Depends(require_current_user),
    playlists: PlaylistService = Depends(playlist_service),
):
    """
    Remove a track from a playlist
    """
    playlist = await playlists.remove_track(playlist_id, current_user.id, track_id)
    if not playlist:
        raise _not_found()
    return {"success": True, "data": _with_count(playlist)}


@router.get("/{playlist_id}/download")
async def download_playlist(
    playlist_id: str,
    current_user: CurrentUser = Depends(require_current_user),
    playlists: PlaylistService = Depends(playlist_service),
    tracks: TrackService = Depends(track_service),
    settings: Settings = Depends(get_settings),
):
    """
    Download every resolvable track of the playlist as a ZIP, in playlist order
    """
    playlist = await _get_readable(playlist_id, current_user, playlists)
    playlist_tracks = await tracks.find_by_ids(playlist.track_ids)
    if not playlist_tracks:
        raise ApiError(status.HTTP_400_BAD_REQUEST, ErrorCode.EMPTY_PLAYLIST, "Playlist has no tracks to download")

    entries = []
    for track in playlist_tracks:
        path = resolve_track_path(settings.SONGS_DIR, track.file_path)
        if path is None:
            logger.warning(f"Skipping track {track.id} in playlist {playlist.id}: file not found")
            continue
        name = archive_entry_name(len(entries) + 1, track.artist, track.track_name, Path(track.file_path).suffix)
        entries.append(ArchiveEntry(path, name))

    # Built completely before any header is sent so failures still get a JSON error
    zip_path = await anyio.to_thread.run_sync(build_zip, entries)
    logger.info(f"Playlist {playlist.id} archived with {len(entries)} of {len(playlist_tracks)} tracks")
    return FileResponse(
        zip_path,
        media_type="application/zip",
        headers={"Content-Disposition": content_disposition(archive_filename(playlist.name))},
        background=BackgroundTask(remove_file, zip_path),
    )
