"""Audio byte-stream proxy.

Media URLs handed out by YouTube are bound to the server's IP, so the audio is
piped through. The upstream response is opened before any byte goes to the
client: failures up to that point still become JSON errors. Afterwards the
body iterator owns the upstream response and always closes it, whether the
transfer finishes, the upstream read fails, or the client goes away and
Starlette cancels the iterator.
"""

import logging
from typing import AsyncIterator, Optional

import httpx

from errors import UpstreamError
from youtube.extractor import AudioResolution, AudioResolverProtocol

logger = logging.getLogger(__name__)

_DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    ),
    "Accept": "*/*",
    "Accept-Language": "en-US,en;q=0.9",
}

# Upstream response headers passed through to the client verbatim
_PASSTHROUGH_HEADERS = ("content-range",)


class AudioStream:
    """An open upstream audio response plus the headers to send downstream."""

    def __init__(self, resolution: AudioResolution, upstream: httpx.Response,
                 chunk_size: int = 65536):
        self.resolution = resolution
        self.upstream = upstream
        self.chunk_size = chunk_size
        self.status_code = 206 if upstream.status_code == 206 else 200
        # No Content-Length: a short upstream body must end a chunked
        # response cleanly instead of violating a declared length.
        self.headers = {
            "Content-Type": resolution.mime_type,
            "Accept-Ranges": "bytes",
            "Cache-Control": "no-cache",
        }
        for name in _PASSTHROUGH_HEADERS:
            if name in upstream.headers:
                self.headers[name.title()] = upstream.headers[name]

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        video_id = self.resolution.video_id
        sent = 0
        try:
            async for chunk in self.upstream.aiter_bytes(chunk_size=self.chunk_size):
                sent += len(chunk)
                yield chunk
        except httpx.HTTPError as e:
            # Headers are already out; ending the body is all that is left.
            logger.warning("Upstream read error for %s after %d bytes: %s", video_id, sent, e)
        finally:
            await self.aclose()
            logger.debug("Closed upstream stream for %s after %d bytes", video_id, sent)

    async def aclose(self) -> None:
        await self.upstream.aclose()


class AudioStreamer:
    """Resolves the best audio format and opens it as a streamed upstream request."""

    def __init__(self, http_client: httpx.AsyncClient, resolver: AudioResolverProtocol,
                 timeout: float = 10.0, chunk_size: int = 65536):
        self._http = http_client
        self._resolver = resolver
        self._timeout = timeout
        self._chunk_size = chunk_size

    async def open(self, video_id: str, range_header: Optional[str] = None) -> AudioStream:
        resolution = await self._resolver.resolve_audio(video_id)

        headers = dict(_DEFAULT_HEADERS)
        headers.update(resolution.http_headers)
        if range_header:
            headers["Range"] = range_header

        request = self._http.build_request(
            "GET", resolution.playable_url, headers=headers, timeout=self._timeout,
        )
        try:
            upstream = await self._http.send(request, stream=True)
        except httpx.TimeoutException as e:
            logger.error("Audio host timed out for %s", video_id)
            raise UpstreamError("Audio host timed out", timeout=True, videoId=video_id) from e
        except httpx.HTTPError as e:
            logger.error("Audio host request failed for %s: %s", video_id, e)
            raise UpstreamError(f"Streaming failed: {e}", videoId=video_id) from e

        if upstream.status_code >= 400:
            await upstream.aclose()
            logger.error("Audio host returned %s for %s", upstream.status_code, video_id)
            raise UpstreamError(
                f"Audio host returned {upstream.status_code}",
                upstream_status=upstream.status_code, videoId=video_id,
            )

        logger.info("Streaming %s (%s, range=%s)", video_id, resolution.mime_type, range_header or "-")
        return AudioStream(resolution, upstream, chunk_size=self._chunk_size)
