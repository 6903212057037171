# ============================================================================
# FILE: musicvault/config.py
# ============================================================================
from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration using Pydantic BaseSettings"""

    # App settings
    APP_NAME: str = "Music Vault"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # Storage (one JSON array file per resource under DATA_DIR)
    DATA_DIR: Path = Path("./data")
    SONGS_DIR: Path = Path("./songs")
    THUMBNAILS_DIR: Path = Path("./thumbnails")
    PLAYLISTS_DIR: Path = Path("./playlists")

    # Security
    JWT_ACCESS_SECRET: str = "change-this-access-secret-in-production"
    JWT_REFRESH_SECRET: str = "change-this-refresh-secret-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 365

    # Login rate limiting
    LOGIN_RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    LOGIN_RATE_LIMIT_MAX: int = 5

    # Pagination
    DEFAULT_PAGE_LIMIT: int = 20
    MAX_PAGE_LIMIT: int = 1000

    # Streaming
    STREAM_CHUNK_SIZE: int = 64 * 1024
    CACHE_MAX_AGE_SECONDS: int = 86400

    # Token blocklist sweep
    BLOCKLIST_CLEANUP_INTERVAL_SECONDS: int = 3600

    # CORS
    CORS_ORIGINS: List[str] = ["*"]

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def tracks_file(self) -> Path:
        return self.DATA_DIR / "tracks.json"

    @property
    def playlists_file(self) -> Path:
        return self.DATA_DIR / "playlists.json"

    @property
    def users_file(self) -> Path:
        return self.DATA_DIR / "users.json"

    @property
    def blocklist_file(self) -> Path:
        return self.DATA_DIR / "tokenBlocklist.json"


settings = Settings()


def get_settings() -> Settings:
    """Dependency returning the active settings (overridable in tests)"""
    return settings
