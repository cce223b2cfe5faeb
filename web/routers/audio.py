"""Audio routes: resolve the best audio-only URL, or stream the bytes through."""

import logging
from typing import Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import StreamingResponse
from starlette.requests import ClientDisconnect
from starlette.types import Receive, Scope, Send

from web.deps import get_access_gate, get_audio_resolver, get_audio_streamer, get_auth_config
from web.helpers import AudioRequest, require_video_id, stream_path
from web.shared import limiter, AUDIO_LIMIT, STREAM_LIMIT
from youtube.streamer import AudioStream

logger = logging.getLogger(__name__)

router = APIRouter()


class AudioStreamResponse(StreamingResponse):
    """StreamingResponse that releases the upstream audio connection however it ends.

    Depending on the ASGI server, a client disconnect either cancels the body
    iterator or surfaces here as ClientDisconnect with the iterator left
    suspended; the upstream response is closed in both cases.
    """

    def __init__(self, stream: AudioStream):
        super().__init__(stream.iter_bytes(), status_code=stream.status_code, headers=stream.headers)
        self.audio_stream = stream

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        except ClientDisconnect:
            logger.info("Client disconnected from stream of %s", self.audio_stream.resolution.video_id)
        finally:
            await self.audio_stream.aclose()


async def _resolve(request: Request, video_id: str, token: Optional[str]) -> dict:
    get_access_gate(request).check(token)
    require_video_id(video_id)
    resolution = await get_audio_resolver(request).resolve_audio(video_id)
    result = resolution.to_dict()
    needs_token = get_auth_config(request).stream_requires_token
    result["streamUrl"] = stream_path(video_id, token if needs_token else None)
    return result


@router.post("/audio/{video_id}")
@limiter.limit(AUDIO_LIMIT)
async def resolve_audio_url(request: Request, video_id: str, body: Optional[AudioRequest] = None):
    """Resolve the direct URL of the best audio-only format."""
    return await _resolve(request, video_id, body.access_token if body else None)


@router.get("/download/{token}/{video_id}")
@limiter.limit(AUDIO_LIMIT)
async def resolve_audio_url_legacy(request: Request, token: str, video_id: str):
    """Older frontends put the token in the path."""
    return await _resolve(request, video_id, token)


@router.get("/stream/{video_id}")
@limiter.limit(STREAM_LIMIT)
async def stream_audio(
    request: Request,
    video_id: str,
    token: Optional[str] = Query(None),
    legacy_hash: Optional[str] = Query(None, alias="hash"),
):
    """Pipe the best audio-only format to the client, honouring Range."""
    if get_auth_config(request).stream_requires_token:
        get_access_gate(request).check(token or legacy_hash)
    require_video_id(video_id)

    stream = await get_audio_streamer(request).open(video_id, request.headers.get("range"))
    return AudioStreamResponse(stream)
