"""FastAPI application: route table, error translation, state wiring."""

import logging

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from errors import BadRequest, GatewayError, InternalError
from version import __version__
from web.access import AccessGate
from web.middleware import RequestLogMiddleware, SecurityHeadersMiddleware
from web.routers.audio import router as audio_router
from web.routers.favorites import router as favorites_router
from web.routers.folders import router as folders_router
from web.routers.health import router as health_router
from web.routers.search import router as search_router
from web.shared import limiter, API_PREFIX
from youtube.extractor import AudioResolver
from youtube.search_api import YouTubeSearchClient
from youtube.streamer import AudioStreamer

logger = logging.getLogger(__name__)

ROUTERS = (health_router, search_router, audio_router, folders_router, favorites_router)

_HTTP_STATUS_CODES = {404: "not_found", 405: "method_not_allowed"}


def _error_response(exc: GatewayError) -> JSONResponse:
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


def register_routes(app: FastAPI) -> None:
    """Mount every router at its bare path and under the versioned prefix."""
    for router in ROUTERS:
        app.include_router(router)
        app.include_router(router, prefix=API_PREFIX, include_in_schema=False)


def register_exception_handlers(app: FastAPI) -> None:
    """Translate every failure into a JSON error body at the request boundary."""

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        fields = [".".join(str(p) for p in err.get("loc", ())) for err in exc.errors()]
        return _error_response(BadRequest("Invalid request", fields=fields))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        code = _HTTP_STATUS_CODES.get(exc.status_code, "http_error")
        return JSONResponse({"error": code, "message": str(exc.detail)}, status_code=exc.status_code)

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return JSONResponse(
            {"error": "rate_limited", "message": "Too many requests, try again shortly"},
            status_code=429,
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error_response(InternalError("Internal server error"))


def install_middleware(app: FastAPI, cors_origins: list[str]) -> None:
    """Add middleware (last added = first executed)."""
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins or ["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "Range"],
        expose_headers=["Content-Range", "Accept-Ranges"],
    )
    app.add_middleware(RequestLogMiddleware)


def configure_state(state, *, config, library_store, http_client: httpx.AsyncClient,
                    audio_resolver=None) -> None:
    """Wire shared services onto app.state. Called by main.py and tests."""
    yt = config.youtube
    resolver = audio_resolver or AudioResolver()
    state.auth_config = config.auth
    state.youtube_config = yt
    state.library_store = library_store
    state.http_client = http_client
    state.access_gate = AccessGate(config.auth.access_token, yt.api_key)
    state.search_client = YouTubeSearchClient(http_client, timeout=yt.http_timeout)
    state.audio_resolver = resolver
    state.audio_streamer = AudioStreamer(
        http_client, resolver, timeout=yt.http_timeout, chunk_size=yt.stream_chunk_size,
    )


def build_app() -> FastAPI:
    """Fresh app with routes and error handlers; middleware and state come later."""
    new_app = FastAPI(title="TubeRelay", version=__version__)
    new_app.state.limiter = limiter
    register_routes(new_app)
    register_exception_handlers(new_app)
    return new_app


app = build_app()
