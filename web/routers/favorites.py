"""Favorite routes: list, upsert, remove, move between folders."""

from typing import Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from data.library_store import favorite_to_api
from web.deps import get_library_store
from web.helpers import FavoriteRequest, MoveFavoriteRequest

router = APIRouter()


@router.get("/favorites")
async def list_favorites(
    request: Request,
    folder_id: Optional[int] = Query(None, alias="folderId"),
    unassigned: bool = False,
):
    """All favorites, newest first; filter with ?folderId= or ?unassigned=true."""
    store = get_library_store(request)
    rows = store.list_favorites(folder_id=folder_id, unassigned=unassigned)
    return [favorite_to_api(r) for r in rows]


@router.post("/favorites")
async def add_favorite(request: Request, body: FavoriteRequest):
    """Add a favorite (201) or refresh an existing one in place (200)."""
    favorite, created = get_library_store(request).upsert_favorite(
        video_id=body.video_id,
        title=body.title,
        channel=body.channel,
        thumbnail_url=body.thumbnail_url,
        folder_id=body.folder_id,
    )
    return JSONResponse(
        {"favorite": favorite_to_api(favorite), "created": created},
        status_code=201 if created else 200,
    )


@router.delete("/favorites/{video_id}")
async def remove_favorite(request: Request, video_id: str):
    removed = get_library_store(request).remove_favorite(video_id)
    return {"deleted": favorite_to_api(removed)}


@router.put("/favorites/{video_id}/move")
async def move_favorite(request: Request, video_id: str, body: MoveFavoriteRequest):
    """Move a favorite to another folder, or out of any folder with folderId=null."""
    moved = get_library_store(request).move_favorite(video_id, body.folder_id)
    return favorite_to_api(moved)
