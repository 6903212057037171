# ============================================================================
# FILE: musicvault/api/v1/endpoints/auth.py
# ============================================================================
from fastapi import APIRouter, Depends, status

from musicvault.api.dependencies import (
    blocklist_service,
    require_current_user,
    token_service,
    user_service,
)
from musicvault.core.exceptions import ApiError, ErrorCode
from musicvault.core.security import TokenError, TokenExpiredError, TokenService, TokenTypeError
from musicvault.schemas.user import CurrentUser, LoginRequest, RefreshRequest, UserResponse
from musicvault.services.blocklist_service import BlocklistService
from musicvault.services.user_service import UserService
import logging

logger = logging.getLogger(__name__)
router = APIRouter()


def _public_user(user) -> dict:
    return UserResponse.model_validate(user).model_dump(mode="json", by_alias=True)


@router.post("/login")
async def login(
    credentials: LoginRequest,
    users: UserService = Depends(user_service),
    tokens: TokenService = Depends(token_service),
):
    """
    Login with username and password
    Returns an access token and a refresh token
    """
    user = await users.authenticate_user(credentials.username, credentials.password)
    if not user:
        raise ApiError(
            status.HTTP_401_UNAUTHORIZED,
            ErrorCode.INVALID_CREDENTIALS,
            "Invalid username or password",
        )

    access_token, refresh_token = tokens.create_token_pair(user.id, user.username)
    logger.info(f"User logged in: {user.username}")
    return {
        "success": True,
        "data": {
            "user": _public_user(user),
            "accessToken": access_token,
            "refreshToken": refresh_token,
        },
    }


@router.post("/refresh")
async def refresh(
    body: RefreshRequest,
    users: UserService = Depends(user_service),
    tokens: TokenService = Depends(token_service),
    blocklist: BlocklistService = Depends(blocklist_service),
):
    """
    Exchange a valid refresh token for a new access token
    """
    try:
        payload = tokens.decode_refresh_token(body.refresh_token)
    except TokenExpiredError:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, ErrorCode.REFRESH_TOKEN_EXPIRED,
                       "Refresh token has expired. Please login again.")
    except TokenTypeError:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, ErrorCode.INVALID_TOKEN_TYPE, "Invalid token type")
    except TokenError:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, ErrorCode.REFRESH_TOKEN_INVALID, "Invalid refresh token")

    token_id = payload.get("jti")
    if not token_id or await blocklist.is_blocklisted(token_id):
        raise ApiError(status.HTTP_401_UNAUTHORIZED, ErrorCode.REFRESH_TOKEN_REVOKED,
                       "Refresh token has been revoked. Please login again.")

    user = await users.get_user_by_id(payload["sub"])
    if not user:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, ErrorCode.USER_NOT_FOUND, "User no longer exists")

    return {
        "success": True,
        "data": {"accessToken": tokens.create_access_token(user.id, user.username)},
    }


@router.post("/logout")
async def logout(
    body: RefreshRequest,
    tokens: TokenService = Depends(token_service),
    blocklist: BlocklistService = Depends(blocklist_service),
):
    """
    Revoke the refresh token
    An invalid or expired token still counts as logged out
    """
    try:
        payload = tokens.decode_refresh_token(body.refresh_token)
    except TokenError:
        payload = None

    if payload and payload.get("jti"):
        await blocklist.add(payload["jti"], int(payload["exp"]) * 1000)
        logger.info(f"Refresh token revoked for user {payload['sub']}")

    return {"success": True, "data": {"message": "Logged out successfully"}}


@router.get("/me")
async def get_current_user_info(
    current_user: CurrentUser = Depends(require_current_user),
    users: UserService = Depends(user_service),
):
    """
    Get current user information
    Requires authentication
    """
    user = await users.get_user_by_id(current_user.id)
    if not user:
        raise ApiError(status.HTTP_404_NOT_FOUND, ErrorCode.USER_NOT_FOUND, "User not found")
    return {"success": True, "data": {"user": _public_user(user)}}
