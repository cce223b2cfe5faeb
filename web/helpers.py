"""Shared request models and helper functions used across web routers."""

from typing import Optional
from urllib.parse import quote

from pydantic import AliasChoices, BaseModel, Field

from errors import BadRequest
from youtube.extractor import VIDEO_ID_RE

# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------
# Older clients send pageToken / md5Hash / id / thumbnail; both spellings work.


class SearchRequest(BaseModel):
    query: Optional[str] = None
    page_cursor: Optional[str] = Field(
        None, validation_alias=AliasChoices("pageCursor", "pageToken", "page_cursor"))
    access_token: Optional[str] = Field(
        None, validation_alias=AliasChoices("accessToken", "md5Hash", "access_token"))


class AudioRequest(BaseModel):
    access_token: Optional[str] = Field(
        None, validation_alias=AliasChoices("accessToken", "md5Hash", "access_token"))


class FolderRequest(BaseModel):
    name: Optional[str] = None


class FavoriteRequest(BaseModel):
    video_id: Optional[str] = Field(None, validation_alias=AliasChoices("videoId", "id", "video_id"))
    title: Optional[str] = None
    channel: Optional[str] = None
    thumbnail_url: Optional[str] = Field(
        None, validation_alias=AliasChoices("thumbnailUrl", "thumbnail", "thumbnail_url"))
    folder_id: Optional[int] = Field(None, validation_alias=AliasChoices("folderId", "folder_id"))


class MoveFavoriteRequest(BaseModel):
    """folderId is required but may be null, meaning "no folder"."""
    folder_id: Optional[int] = Field(..., validation_alias=AliasChoices("folderId", "folder_id"))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def require_video_id(video_id: str) -> str:
    """Reject anything that is not an 11-character YouTube video ID."""
    if not video_id or not VIDEO_ID_RE.match(video_id):
        raise BadRequest("Invalid YouTube video ID", received=video_id)
    return video_id


def require_query(query: Optional[str]) -> str:
    query = (query or "").strip()
    if not query:
        raise BadRequest("Query is required")
    return query


def stream_path(video_id: str, token: Optional[str] = None) -> str:
    """Relative URL of the streaming endpoint for a video."""
    path = f"/stream/{video_id}"
    if token:
        path += f"?token={quote(token, safe='')}"
    return path
