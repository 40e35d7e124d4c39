"""Database models."""

from .folder import Folder, FolderMeta, ROOT_FOLDER_ID, FOLDER_NAME_MAX_LENGTH
from .media import MediaItem, MediaFolderLink

__all__ = [
    "Folder", "FolderMeta", "ROOT_FOLDER_ID", "FOLDER_NAME_MAX_LENGTH",
    "MediaItem", "MediaFolderLink",
]
