# ============================================================================
# FILE: musicvault/api/dependencies.py
# ============================================================================
from typing import Optional

from fastapi import Depends, status
from fastapi.security import OAuth2PasswordBearer

from musicvault.config import Settings, get_settings
from musicvault.core.exceptions import ApiError, ErrorCode
from musicvault.core.security import (
    TokenExpiredError,
    TokenMalformedError,
    TokenError,
    TokenService,
)
from musicvault.schemas.user import CurrentUser
from musicvault.services.blocklist_service import BlocklistService, get_blocklist_service
from musicvault.services.playlist_service import PlaylistService, get_playlist_service
from musicvault.services.track_service import TrackService, get_track_service
from musicvault.services.user_service import UserService, get_user_service

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)

BEARER_HEADERS = {"WWW-Authenticate": "Bearer"}


def token_service(settings: Settings = Depends(get_settings)) -> TokenService:
    return TokenService(settings)


def track_service(settings: Settings = Depends(get_settings)) -> TrackService:
    return get_track_service(settings)


def playlist_service(settings: Settings = Depends(get_settings)) -> PlaylistService:
    return get_playlist_service(settings)


def user_service(settings: Settings = Depends(get_settings)) -> UserService:
    return get_user_service(settings)


def blocklist_service(settings: Settings = Depends(get_settings)) -> BlocklistService:
    return get_blocklist_service(settings)


def require_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    tokens: TokenService = Depends(token_service),
) -> CurrentUser:
    """
    Require a valid access token (raises 401 with a specific code otherwise)
    Use this dependency for protected endpoints
    """
    if not token:
        raise ApiError(
            status.HTTP_401_UNAUTHORIZED,
            ErrorCode.TOKEN_MISSING,
            "Access token is required",
            headers=BEARER_HEADERS,
        )

    try:
        payload = tokens.decode_access_token(token)
    except TokenExpiredError:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, ErrorCode.TOKEN_EXPIRED,
                       "Access token has expired", headers=BEARER_HEADERS)
    except TokenMalformedError:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, ErrorCode.TOKEN_MALFORMED,
                       "Access token is malformed", headers=BEARER_HEADERS)
    except TokenError:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, ErrorCode.TOKEN_INVALID,
                       "Invalid access token", headers=BEARER_HEADERS)

    return CurrentUser(id=payload["sub"], username=payload.get("username", ""))
