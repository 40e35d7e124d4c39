"""Pydantic schemas for API validation."""

from .folder import (
    FolderCreate,
    FolderUpdate,
    FolderResponse,
    FolderTreeResponse,
    MediaIdsRequest,
)
from .media import MediaItemResponse, MediaListResponse

__all__ = [
    "FolderCreate",
    "FolderUpdate",
    "FolderResponse",
    "FolderTreeResponse",
    "MediaIdsRequest",
    "MediaItemResponse",
    "MediaListResponse",
]
