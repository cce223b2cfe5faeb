"""Service banner and health check."""

from datetime import datetime, timezone

from fastapi import APIRouter, Request

from version import __version__

router = APIRouter()

ENDPOINTS = [
    "POST /search - Search YouTube videos",
    "POST /audio/{videoId} - Resolve the best audio-only URL",
    "GET /stream/{videoId} - Stream audio",
    "GET|POST /folders, PUT|DELETE /folders/{id} - Manage folders",
    "GET|POST /favorites, DELETE /favorites/{videoId}, PUT /favorites/{videoId}/move - Manage favorites",
    "GET /health - Health check",
]


@router.get("/")
async def index():
    return {"message": "TubeRelay API", "version": __version__, "endpoints": ENDPOINTS}


@router.get("/health")
async def health(request: Request):
    store = getattr(request.app.state, "library_store", None)
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": "ok" if store is not None and store.ping() else "unavailable",
    }
