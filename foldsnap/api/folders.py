"""Folder API: tree, CRUD, and media assignment.

Single router for all folder operations. Delegates to FolderService (deep
module). Every route requires the media-management capability.
"""

import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Body

from .deps import Folders, MediaManager
from ..exceptions import MediaIdsRequiredError, NameRequiredError
from ..schemas.folder import (
    FolderCreate,
    FolderResponse,
    FolderTreeResponse,
    FolderUpdate,
    MediaIdsRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/folders", tags=["folders"])


def parse_media_ids(raw: Any) -> List[int]:
    """Keep the positive integers from a client-supplied ``media_ids`` value."""
    if not isinstance(raw, list):
        return []

    ids: List[int] = []
    for value in raw:
        if isinstance(value, bool):
            continue
        try:
            media_id = int(str(value).strip())
        except ValueError:
            continue
        if media_id > 0:
            ids.append(media_id)
    return ids


def _media_ids_from(body: Optional[MediaIdsRequest]) -> List[int]:
    ids = parse_media_ids(body.media_ids if body else None)
    if not ids:
        raise MediaIdsRequiredError()
    return ids


# -- Tree -----------------------------------------------------------------

@router.get("", response_model=FolderTreeResponse)
def get_folders(service: Folders, auth: MediaManager):
    """Full folder tree with root (unassigned) stats."""
    return {
        "folders": [node.to_dict() for node in service.get_tree()],
        "root_media_count": service.get_root_media_count(),
        "root_total_size": service.get_root_total_size(),
    }


# -- Folder CRUD ----------------------------------------------------------

@router.post("", response_model=FolderResponse, status_code=201)
def create_folder(data: FolderCreate, service: Folders, auth: MediaManager):
    if not data.name.strip():
        raise NameRequiredError()

    folder = service.create(
        data.name,
        parent_id=data.parent_id,
        color=data.color.strip(),
        position=data.position,
    )
    return folder.to_dict()


@router.put("/{folder_id}", response_model=FolderResponse)
def update_folder(folder_id: int, data: FolderUpdate, service: Folders, auth: MediaManager):
    folder = service.update(
        folder_id,
        name=data.name or "",
        parent_id=data.parent_id,
        color=(data.color or "").strip(),
        position=data.position,
    )
    return folder.to_dict()


@router.delete("/{folder_id}")
def delete_folder(folder_id: int, service: Folders, auth: MediaManager):
    service.delete(folder_id)
    return {"deleted": True}


# -- Media assignment -----------------------------------------------------

@router.post("/{folder_id}/media")
def assign_media(
    folder_id: int,
    service: Folders,
    auth: MediaManager,
    body: Optional[MediaIdsRequest] = Body(None),
):
    """Move media into the folder. Any unknown id rejects the whole batch."""
    service.assign_media(folder_id, _media_ids_from(body))
    return {"assigned": True}


@router.delete("/{folder_id}/media")
def remove_media(
    folder_id: int,
    service: Folders,
    auth: MediaManager,
    body: Optional[MediaIdsRequest] = Body(None),
):
    """Unlink media from the folder. Ids not in the folder are ignored."""
    service.remove_media(folder_id, _media_ids_from(body))
    return {"removed": True}
