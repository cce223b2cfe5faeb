from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Optional, Protocol, runtime_checkable

import yt_dlp
from yt_dlp.utils import DownloadError

from errors import NotFound, UpstreamError, VideoUnavailable

logger = logging.getLogger(__name__)

VIDEO_ID_RE = re.compile(r'^[a-zA-Z0-9_-]{11}$')

# Container extension -> Content-Type for audio-only formats
_AUDIO_MIME_TYPES = {
    "m4a": "audio/mp4",
    "mp4": "audio/mp4",
    "webm": "audio/webm",
    "weba": "audio/webm",
    "opus": "audio/ogg",
    "ogg": "audio/ogg",
    "mp3": "audio/mpeg",
    "aac": "audio/aac",
}
DEFAULT_AUDIO_MIME = "audio/mpeg"

# yt-dlp error fragments meaning the video itself cannot be served
_UNAVAILABLE_MARKERS = (
    "video unavailable",
    "private video",
    "has been removed",
    "no longer available",
    "available in your country",
    "geo restricted",
    "blocked it in your country",
    "this video does not exist",
    "is not a valid url",
    "incomplete youtube id",
)


@dataclass
class AudioResolution:
    """Best audio-only format of one video, resolved per request."""
    video_id: str
    playable_url: str
    title: str
    duration_seconds: Optional[int]
    mime_type: str
    bitrate: Optional[float]
    format_id: Optional[str] = None
    http_headers: dict = field(default_factory=dict, repr=False)

    def to_dict(self) -> dict:
        """Client-facing shape. Upstream request headers stay server-side."""
        return {
            "videoId": self.video_id,
            "playableUrl": self.playable_url,
            "title": self.title,
            "durationSeconds": self.duration_seconds,
            "mimeType": self.mime_type,
            "bitrate": self.bitrate,
            "formatId": self.format_id,
        }


def is_audio_only(fmt: dict) -> bool:
    """True for formats carrying an audio track and no video track."""
    if not fmt.get("url"):
        return False
    if fmt.get("resolution") == "audio only":
        return True
    acodec = fmt.get("acodec")
    return fmt.get("vcodec") == "none" and bool(acodec) and acodec != "none"


def audio_bitrate(fmt: dict) -> Optional[float]:
    """Numeric audio bitrate in kbps, or None when the format reports none."""
    for key in ("abr", "tbr"):
        value = fmt.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
            return float(value)
    return None


def select_best_audio(formats: list[dict]) -> Optional[dict]:
    """Highest-bitrate audio-only format; first encountered wins ties.

    Falls back to the first audio-only format when none reports a bitrate.
    """
    candidates = [f for f in formats or [] if isinstance(f, dict) and is_audio_only(f)]
    if not candidates:
        return None
    best = None
    best_rate = None
    for fmt in candidates:
        rate = audio_bitrate(fmt)
        if rate is not None and (best_rate is None or rate > best_rate):
            best, best_rate = fmt, rate
    return best or candidates[0]


def audio_mime_type(fmt: dict) -> str:
    ext = fmt.get("audio_ext")
    if not ext or ext == "none":
        ext = fmt.get("ext")
    return _AUDIO_MIME_TYPES.get((ext or "").lower(), DEFAULT_AUDIO_MIME)


def build_resolution(video_id: str, info: dict) -> AudioResolution:
    """Turn yt-dlp info into an AudioResolution; NotFound without audio-only formats."""
    best = select_best_audio(info.get("formats") or [])
    if best is None:
        raise NotFound(f"No audio stream found for {video_id}", videoId=video_id)
    duration = info.get("duration")
    return AudioResolution(
        video_id=video_id,
        playable_url=best["url"],
        title=info.get("title") or "Unknown",
        duration_seconds=int(duration) if duration else None,
        mime_type=audio_mime_type(best),
        bitrate=audio_bitrate(best),
        format_id=best.get("format_id"),
        http_headers=dict(best.get("http_headers") or {}),
    )


def classify_extraction_error(video_id: str, exc: Exception) -> Exception:
    """Map a yt-dlp failure onto VideoUnavailable or UpstreamError."""
    message = str(exc)
    lowered = message.lower()
    if any(marker in lowered for marker in _UNAVAILABLE_MARKERS):
        return VideoUnavailable(f"Video {video_id} is unavailable", videoId=video_id)
    return UpstreamError(f"Failed to get video info: {message}", videoId=video_id)


_YDL_TIMEOUT = 30  # default; overridden by configure_timeout()


def configure_timeout(seconds: int):
    """Set yt-dlp timeout from config."""
    global _YDL_TIMEOUT
    _YDL_TIMEOUT = seconds


def _ydl_opts() -> dict:
    """Common yt-dlp options - no download, just metadata and format list."""
    return {
        'quiet': True,
        'no_warnings': True,
        'extract_flat': False,
        'skip_download': True,
        'noplaylist': True,
        'ignore_no_formats_error': True,
        'socket_timeout': _YDL_TIMEOUT,
    }


def _extract_info(video_id: str) -> Optional[dict]:
    """Blocking yt-dlp extraction; runs in a worker thread."""
    with yt_dlp.YoutubeDL(_ydl_opts()) as ydl:
        return ydl.extract_info(f"https://www.youtube.com/watch?v={video_id}", download=False)


async def resolve_audio(video_id: str) -> AudioResolution:
    """Resolve the best audio-only format for a video."""
    try:
        # Caps the response time only; the worker thread runs on, bounded by socket_timeout
        info = await asyncio.wait_for(asyncio.to_thread(_extract_info, video_id), timeout=_YDL_TIMEOUT)
    except asyncio.TimeoutError:
        logger.error(f"Audio resolution timed out for {video_id}")
        raise UpstreamError(f"Timed out resolving {video_id}", timeout=True, videoId=video_id)
    except DownloadError as e:
        logger.warning(f"Extraction failed for {video_id}: {e}")
        raise classify_extraction_error(video_id, e) from e
    except Exception as e:
        logger.error(f"Unexpected extraction failure for {video_id}: {e}")
        raise UpstreamError(f"Failed to get video info: {e}", videoId=video_id) from e

    if not info:
        raise VideoUnavailable(f"Video {video_id} is unavailable", videoId=video_id)

    resolution = build_resolution(video_id, info)
    logger.info(
        "Resolved audio for %s: format=%s bitrate=%s mime=%s",
        video_id, resolution.format_id, resolution.bitrate, resolution.mime_type,
    )
    return resolution


# ---------------------------------------------------------------------------
# Class wrapper + Protocol for dependency injection / mocking
# ---------------------------------------------------------------------------

@runtime_checkable
class AudioResolverProtocol(Protocol):
    """Protocol for audio resolution: use for type hints and test mocks."""

    async def resolve_audio(self, video_id: str) -> AudioResolution: ...


class AudioResolver:
    """Concrete implementation wrapping yt-dlp, satisfies AudioResolverProtocol.

    Timeout is configured globally via configure_timeout().
    """

    async def resolve_audio(self, video_id: str) -> AudioResolution:
        return await resolve_audio(video_id)
