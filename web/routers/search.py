"""Search routes: token-gated proxy to the YouTube Data API."""

from typing import Optional

from fastapi import APIRouter, Query, Request

from web.deps import get_access_gate, get_search_client
from web.helpers import SearchRequest, require_query
from web.shared import limiter, SEARCH_LIMIT

router = APIRouter()


async def _run_search(request: Request, query: Optional[str], token: Optional[str],
                      page_cursor: Optional[str]) -> dict:
    query = require_query(query)
    api_key = get_access_gate(request).authorize(token)
    page = await get_search_client(request).search(query, api_key, page_cursor=page_cursor)
    return page.to_dict()


@router.post("/search")
@limiter.limit(SEARCH_LIMIT)
async def search_videos(request: Request, body: SearchRequest):
    """Search videos: {query, pageCursor?, accessToken} -> {videos, nextCursor, prevCursor}."""
    return await _run_search(request, body.query, body.access_token, body.page_cursor)


@router.get("/search/{token}")
@limiter.limit(SEARCH_LIMIT)
async def search_videos_legacy(
    request: Request,
    token: str,
    q: str = Query(""),
    page_token: Optional[str] = Query(None, alias="pageToken"),
):
    """Older frontends put the token in the path and the query in ?q=."""
    return await _run_search(request, q, token, page_token)
