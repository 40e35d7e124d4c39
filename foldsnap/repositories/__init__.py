"""Data access repositories."""

from .base import BaseRepository
from .folder_store import FolderStore
from .media_repository import MediaRepository

__all__ = [
    "BaseRepository",
    "FolderStore",
    "MediaRepository",
]
