# ============================================================================
# FILE: musicvault/main.py
# ============================================================================
import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from musicvault.api.v1.router import api_router
from musicvault.config import Settings, get_settings, settings as default_settings
from musicvault.core.exceptions import register_exception_handlers
from musicvault.core.logging import setup_logging
from musicvault.core.middleware import LoginRateLimitMiddleware
from musicvault.services.blocklist_service import get_blocklist_service

logger = logging.getLogger(__name__)


async def _sweep_blocklist(app_settings: Settings) -> None:
    """Remove expired blocklist entries now and then on every interval"""
    blocklist = get_blocklist_service(app_settings)
    while True:
        try:
            await blocklist.cleanup_expired()
        except Exception:
            logger.exception("Token blocklist cleanup failed")
        await asyncio.sleep(app_settings.BLOCKLIST_CLEANUP_INTERVAL_SECONDS)


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Build the application; tests pass their own settings"""
    app_settings = app_settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Music Vault API")
        sweeper = asyncio.create_task(_sweep_blocklist(app_settings))
        try:
            yield
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
            logger.info("Shutting down Music Vault API")

    app = FastAPI(
        title=app_settings.APP_NAME,
        description="Personal music library: tracks, streaming and playlists",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.dependency_overrides[get_settings] = lambda: app_settings

    app.add_middleware(
        LoginRateLimitMiddleware,
        max_attempts=app_settings.LOGIN_RATE_LIMIT_MAX,
        window_seconds=app_settings.LOGIN_RATE_LIMIT_WINDOW_SECONDS,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "Range"],
        expose_headers=["Content-Range", "Accept-Ranges", "Content-Length", "Content-Disposition"],
    )

    register_exception_handlers(app, debug=app_settings.DEBUG)
    app.include_router(api_router)

    @app.get("/health")
    async def health_check():
        return {
            "success": True,
            "data": {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()},
        }

    return app


setup_logging()
app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run("musicvault.main:app", host=default_settings.HOST, port=default_settings.PORT)
