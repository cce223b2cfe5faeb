"""Folder routes: list, create, rename, delete (favorites are detached, not deleted)."""

from fastapi import APIRouter, Request

from data.library_store import folder_to_api
from errors import NotFound
from web.deps import get_library_store
from web.helpers import FolderRequest

router = APIRouter()


@router.get("/folders")
async def list_folders(request: Request):
    store = get_library_store(request)
    return [folder_to_api(f) for f in store.list_folders()]


@router.get("/folders/{folder_id}")
async def get_folder(request: Request, folder_id: int):
    folder = get_library_store(request).get_folder(folder_id)
    if not folder:
        raise NotFound(f"Folder {folder_id} not found", folderId=folder_id)
    return folder_to_api(folder)


@router.post("/folders", status_code=201)
async def create_folder(request: Request, body: FolderRequest):
    """Create a folder; 409 if the name exists in any letter case."""
    return folder_to_api(get_library_store(request).create_folder(body.name))


@router.put("/folders/{folder_id}")
async def rename_folder(request: Request, folder_id: int, body: FolderRequest):
    return folder_to_api(get_library_store(request).rename_folder(folder_id, body.name))


@router.delete("/folders/{folder_id}")
async def delete_folder(request: Request, folder_id: int):
    detached = get_library_store(request).delete_folder(folder_id)
    return {"deleted": folder_id, "detachedFavorites": detached}
