"""
Word group routes
Handles group CRUD, JSON import and the per-group image list
"""
from contextlib import contextmanager
from typing import Any, Dict, List

from fastapi import APIRouter, Body, HTTPException
from loguru import logger

from api.dependencies import Groups
from models.errors import ImageIndexError, VocabError
from models.vocab_models import AddImageRequest, GroupCreate, GroupUpdate

router = APIRouter(prefix="/api/groups", tags=["Groups"])


@contextmanager
def guard(failure_message: str):
    """Let 4xx domain errors through; log anything else and answer 500 with a generic message"""
    try:
        yield
    except VocabError as e:
        if e.status_code < 500:
            raise
        logger.opt(exception=e).error(f"{failure_message}: {e.message}")
        raise HTTPException(status_code=500, detail=failure_message) from e
    except Exception as e:
        logger.opt(exception=e).error(f"{failure_message}: {e}")
        raise HTTPException(status_code=500, detail=failure_message) from e


@router.get("")
async def list_groups(groups: Groups) -> List[Dict[str, Any]]:
    """Get all groups, newest first"""
    with guard("Failed to fetch groups"):
        return [g.to_document() for g in groups.list_groups()]


@router.post("/import", status_code=201)
async def import_group(groups: Groups, payload: Any = Body(None)) -> Dict[str, Any]:
    """
    Create a group from a word list

    - **title**: group title (required)
    - **words**: list of partial words; padded with blank words to a full group
    """
    with guard("Failed to import group"):
        return groups.import_group(payload).to_document()


@router.get("/{group_id}")
async def get_group(group_id: str, groups: Groups) -> Dict[str, Any]:
    with guard("Failed to fetch group"):
        return groups.get_group(group_id).to_document()


@router.post("", status_code=201)
async def create_group(payload: GroupCreate, groups: Groups) -> Dict[str, Any]:
    """Create a group; missing fields get defaults and a data URI imageUrl is stored as a file"""
    with guard("Failed to create group"):
        return groups.create_group(payload).to_document()


@router.put("/{group_id}")
async def update_group(group_id: str, payload: GroupUpdate, groups: Groups) -> Dict[str, Any]:
    """Merge the whitelisted fields of the body over the stored group; the id always comes from the path"""
    with guard("Failed to update group"):
        return groups.update_group(group_id, payload).to_document()


@router.delete("/{group_id}")
async def delete_group(group_id: str, groups: Groups) -> Dict[str, Any]:
    with guard("Failed to delete group"):
        groups.delete_group(group_id)
        return {"success": True}


@router.post("/{group_id}/images", status_code=201)
async def add_group_image(group_id: str, payload: AddImageRequest, groups: Groups) -> Dict[str, Any]:
    """Append one image (sent as a data URI) to the group's image list"""
    with guard("Failed to add image"):
        return groups.add_image(group_id, payload).to_document()


@router.delete("/{group_id}/images/{index}")
async def delete_group_image(group_id: str, index: str, groups: Groups) -> Dict[str, Any]:
    with guard("Failed to delete image"):
        try:
            position = int(index)
        except ValueError:
            groups.get_group(group_id)
            raise ImageIndexError()
        return groups.remove_image(group_id, position).to_document()
