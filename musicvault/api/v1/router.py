# ============================================================================
# FILE: musicvault/api/v1/router.py
# ============================================================================
from fastapi import APIRouter
from musicvault.api.v1.endpoints import auth, playlists, tracks

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(tracks.router, prefix="/tracks", tags=["tracks"])
api_router.include_router(playlists.router, prefix="/playlists", tags=["playlists"])
