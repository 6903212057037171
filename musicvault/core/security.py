# ============================================================================
# FILE: musicvault/core/security.py
# ============================================================================
"""Password hashing and JWT access/refresh token handling."""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Tuple

import bcrypt
import jwt

from musicvault.config import Settings

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def get_password_hash(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


class TokenError(Exception):
    """Base exception for token validation"""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class TokenExpiredError(TokenError):
    """Token has expired."""


class TokenMalformedError(TokenError):
    """Token could not be decoded at all."""


class TokenInvalidError(TokenError):
    """Token is well-formed but fails validation (signature, claims)."""


class TokenTypeError(TokenInvalidError):
    """Token is valid but of the wrong type (access vs refresh)."""


class TokenService:
    """
    Issues and validates JWTs.

    Access and refresh tokens are signed with separate secrets. Refresh
    tokens carry a unique ``jti`` so they can be revoked through the
    blocklist.
    """

    def __init__(self, settings: Settings):
        self._access_secret = settings.JWT_ACCESS_SECRET
        self._refresh_secret = settings.JWT_REFRESH_SECRET
        self._algorithm = settings.JWT_ALGORITHM
        self._access_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        self._refresh_expires = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)

    def create_access_token(self, user_id: str, username: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "username": username,
            "type": ACCESS_TOKEN_TYPE,
            "iat": now,
            "exp": now + self._access_expires,
        }
        return jwt.encode(payload, self._access_secret, algorithm=self._algorithm)

    def create_refresh_token(self, user_id: str, username: str) -> Tuple[str, str]:
        """Returns (token, jti)"""
        now = datetime.now(timezone.utc)
        token_id = str(uuid.uuid4())
        payload = {
            "sub": user_id,
            "username": username,
            "type": REFRESH_TOKEN_TYPE,
            "jti": token_id,
            "iat": now,
            "exp": now + self._refresh_expires,
        }
        return jwt.encode(payload, self._refresh_secret, algorithm=self._algorithm), token_id

    def create_token_pair(self, user_id: str, username: str) -> Tuple[str, str]:
        """Returns (access_token, refresh_token)"""
        refresh_token, _ = self.create_refresh_token(user_id, username)
        return self.create_access_token(user_id, username), refresh_token

    def decode_access_token(self, token: str) -> Dict[str, Any]:
        payload = self._decode(token, self._access_secret)
        if payload.get("type") != ACCESS_TOKEN_TYPE:
            raise TokenTypeError("Token is not an access token")
        return payload

    def decode_refresh_token(self, token: str) -> Dict[str, Any]:
        payload = self._decode(token, self._refresh_secret)
        if payload.get("type") != REFRESH_TOKEN_TYPE:
            raise TokenTypeError("Token is not a refresh token")
        return payload

    def _decode(self, token: str, secret: str) -> Dict[str, Any]:
        try:
            payload = jwt.decode(token, secret, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError("Token has expired") from exc
        except jwt.DecodeError as exc:
            if isinstance(exc, jwt.InvalidSignatureError):
                raise TokenInvalidError("Token signature is invalid") from exc
            raise TokenMalformedError("Token is malformed") from exc
        except jwt.InvalidTokenError as exc:
            raise TokenInvalidError(f"Invalid token: {exc}") from exc

        if "sub" not in payload:
            raise TokenInvalidError("Token missing 'sub' claim")
        return payload
