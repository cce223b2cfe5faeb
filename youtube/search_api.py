"""YouTube Data API v3 search client.

One ``search.list`` call per request; results are projected onto VideoSummary
in upstream order and the page tokens are passed through untouched. The API key
is supplied by the access gate and never leaves the server.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

import httpx

from errors import BadRequest, UpstreamError

logger = logging.getLogger(__name__)

SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"
MAX_RESULTS = 10


@dataclass
class VideoSummary:
    id: str
    title: str
    channel_name: str
    thumbnail_url: Optional[str]
    published_at: Optional[str]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "channelName": self.channel_name,
            "thumbnailUrl": self.thumbnail_url,
            "publishedAt": self.published_at,
        }


@dataclass
class SearchPage:
    videos: list[VideoSummary] = field(default_factory=list)
    next_cursor: Optional[str] = None
    prev_cursor: Optional[str] = None
    total_results: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "videos": [v.to_dict() for v in self.videos],
            "nextCursor": self.next_cursor,
            "prevCursor": self.prev_cursor,
            "totalResults": self.total_results,
        }


def pick_thumbnail(thumbnails: Optional[dict]) -> Optional[str]:
    """Prefer the medium-resolution thumbnail, fall back to default."""
    thumbnails = thumbnails if isinstance(thumbnails, dict) else {}
    for size in ("medium", "default"):
        variant = thumbnails.get(size)
        if isinstance(variant, dict) and variant.get("url"):
            return variant["url"]
    return None


def normalize_search_item(item: dict) -> VideoSummary:
    """Project one upstream search item onto VideoSummary.

    Raises UpstreamError for items that are not video results.
    """
    if not isinstance(item, dict):
        raise UpstreamError("Malformed search item in upstream response")
    item_id = item.get("id")
    video_id = item_id.get("videoId") if isinstance(item_id, dict) else None
    if not video_id:
        raise UpstreamError("Search item without a videoId in upstream response")
    snippet = item.get("snippet") if isinstance(item.get("snippet"), dict) else {}
    return VideoSummary(
        id=video_id,
        title=snippet.get("title", ""),
        channel_name=snippet.get("channelTitle", ""),
        thumbnail_url=pick_thumbnail(snippet.get("thumbnails")),
        published_at=snippet.get("publishedAt"),
    )


def normalize_search_response(data) -> SearchPage:
    """Turn a decoded ``search.list`` body into a SearchPage."""
    if not isinstance(data, dict):
        raise UpstreamError("Malformed upstream search response")
    items = data.get("items", [])
    if not isinstance(items, list):
        raise UpstreamError("Upstream search response has no item list")
    page_info = data.get("pageInfo") if isinstance(data.get("pageInfo"), dict) else {}
    return SearchPage(
        videos=[normalize_search_item(item) for item in items],
        next_cursor=data.get("nextPageToken"),
        prev_cursor=data.get("prevPageToken"),
        total_results=page_info.get("totalResults"),
    )


def _upstream_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return f"YouTube API error ({resp.status_code})"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    return f"YouTube API error ({resp.status_code})"


class YouTubeSearchClient:
    """Thin async client over ``search.list`` using a shared httpx.AsyncClient."""

    def __init__(self, http_client: httpx.AsyncClient, timeout: float = 10.0,
                 search_url: str = SEARCH_URL):
        self._http = http_client
        self._timeout = timeout
        self._search_url = search_url

    async def search(self, query: str, api_key: str,
                     page_cursor: Optional[str] = None) -> SearchPage:
        query = (query or "").strip()
        if not query:
            raise BadRequest("Query is required")

        params = {
            "part": "snippet",
            "type": "video",
            "q": query,
            "maxResults": MAX_RESULTS,
            "key": api_key,
        }
        if page_cursor:
            params["pageToken"] = page_cursor

        try:
            resp = await self._http.get(self._search_url, params=params, timeout=self._timeout)
        except httpx.TimeoutException as e:
            logger.error("YouTube search timed out for %r", query)
            raise UpstreamError("YouTube API request timed out", timeout=True) from e
        except httpx.HTTPError as e:
            logger.error("YouTube search request failed for %r: %s", query, e)
            raise UpstreamError(f"YouTube API request failed: {e}") from e

        if resp.status_code >= 400:
            message = _upstream_message(resp)
            logger.error("YouTube API error %s for %r: %s", resp.status_code, query, message)
            raise UpstreamError(message, upstream_status=resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamError("YouTube API returned a non-JSON body") from e

        page = normalize_search_response(data)
        logger.info("Search for %r returned %d videos", query, len(page.videos))
        return page

