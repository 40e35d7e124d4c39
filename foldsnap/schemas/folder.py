"""Folder and tree schemas."""

from pydantic import BaseModel, field_validator
from typing import Any, List, Optional


class FolderCreate(BaseModel):
    """Schema for creating a folder. Name rules are applied by the service."""
    name: str = ""
    parent_id: int = 0
    color: str = ""
    position: int = 0

    @field_validator('parent_id', 'position')
    @classmethod
    def non_negative(cls, v: int) -> int:
        return max(0, v)


class FolderUpdate(BaseModel):
    """Schema for updating a folder.

    Omitted / null ``parent_id`` and ``position`` leave them unchanged; so do
    empty ``name`` and ``color``.
    """
    name: Optional[str] = ""
    parent_id: Optional[int] = None
    color: Optional[str] = ""
    position: Optional[int] = None

    @field_validator('parent_id', 'position')
    @classmethod
    def negative_means_unchanged(cls, v: Optional[int]) -> Optional[int]:
        # Older clients send -1 for "leave as is".
        if v is not None and v < 0:
            return None
        return v


class FolderResponse(BaseModel):
    """A folder with direct and recursive stats."""
    id: int
    name: str
    parent_id: int
    color: str = ""
    position: int = 0
    direct_media_count: int = 0
    total_media_count: int = 0
    direct_size: int = 0
    total_size: int = 0
    children: List['FolderResponse'] = []


class FolderTreeResponse(BaseModel):
    """Full folder forest plus unassigned-bucket stats."""
    folders: List[FolderResponse]
    root_media_count: int
    root_total_size: int


class MediaIdsRequest(BaseModel):
    """Body of the assign / remove endpoints.

    Entries are coerced leniently by the route; anything that is not a
    positive integer is dropped.
    """
    media_ids: Optional[Any] = None
