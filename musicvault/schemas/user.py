# ============================================================================
# FILE: musicvault/schemas/user.py
# ============================================================================
from datetime import datetime

from pydantic import ConfigDict, Field

from musicvault.schemas.base import CamelModel


class LoginRequest(CamelModel):
    """Schema for user login"""
    model_config = ConfigDict(str_strip_whitespace=True)

    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class RefreshRequest(CamelModel):
    """Schema for exchanging or revoking a refresh token"""
    refresh_token: str = Field(min_length=1)


class UserResponse(CamelModel):
    """Schema for user response (never includes the password hash)"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    created_at: datetime


class CurrentUser(CamelModel):
    """Identity taken from a verified access token"""
    id: str
    username: str
