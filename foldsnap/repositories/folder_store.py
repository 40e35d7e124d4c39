"""Data access for folder rows and their metadata."""

from typing import Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from .base import BaseRepository
from ..exceptions import FolderNotFoundError
from ..models.folder import Folder, FolderMeta, ROOT_FOLDER_ID
from ..models.media import MediaFolderLink

LIKE_ESCAPE = "\\"


def escape_like(value: str) -> str:
    """Escape LIKE metacharacters so *value* only matches itself."""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


class FolderStore(BaseRepository[Folder]):
    """CRUD for folders and folder_meta.

    Bulk readers (``meta_for``, ``direct_media_counts``, ``parent_map``) each
    issue a single query regardless of how many folders exist.
    """

    model_class = Folder
    not_found_error = FolderNotFoundError

    def __init__(self, db: Session):
        super().__init__(db)

    # --- Folders ---

    def create(self, name: str, parent_id: int = ROOT_FOLDER_ID) -> Folder:
        folder = Folder(name=name, parent_id=parent_id)
        self.db.add(folder)
        self.db.flush()
        self.db.refresh(folder)
        return folder

    def list_all(self) -> List[Folder]:
        return self.db.query(Folder).order_by(Folder.id).all()

    def children_of(self, folder_id: int) -> List[Folder]:
        return (
            self.db.query(Folder)
            .filter(Folder.parent_id == folder_id)
            .order_by(Folder.id)
            .all()
        )

    def update(
        self,
        folder: Folder,
        name: Optional[str] = None,
        parent_id: Optional[int] = None,
    ) -> Folder:
        if name is not None:
            folder.name = name
        if parent_id is not None:
            folder.parent_id = parent_id
        self.db.flush()
        return folder

    def delete(self, folder: Folder) -> None:
        """Delete a folder row.

        Media links and metadata go with it (ON DELETE CASCADE, mirrored here
        so backends without FK enforcement behave the same). Direct children
        are lifted to the root.
        """
        self.db.query(MediaFolderLink).filter(
            MediaFolderLink.folder_id == folder.id
        ).delete(synchronize_session=False)
        self.db.query(FolderMeta).filter(
            FolderMeta.folder_id == folder.id
        ).delete(synchronize_session=False)
        self.db.query(Folder).filter(Folder.parent_id == folder.id).update(
            {Folder.parent_id: ROOT_FOLDER_ID}, synchronize_session=False
        )
        self.db.delete(folder)
        self.db.flush()

    def count(self) -> int:
        return self.db.query(func.count(Folder.id)).scalar() or 0

    def parent_map(self) -> Dict[int, int]:
        """Map every folder id to its parent id."""
        return {
            folder_id: parent_id
            for folder_id, parent_id in self.db.query(Folder.id, Folder.parent_id).all()
        }

    def sibling_name_matches(
        self, name: str, parent_id: int, exclude_id: int = 0
    ) -> List[str]:
        """Names under *parent_id* equal to *name* or shaped like ``name (…)``.

        Comparison is case-insensitive. Only candidates that could collide are
        fetched, never the whole sibling set.
        """
        lowered = name.lower()
        numbered = escape_like(lowered) + " (%)"
        name_col = func.lower(Folder.name)

        query = self.db.query(Folder.name).filter(
            Folder.parent_id == parent_id,
            or_(name_col == lowered, name_col.like(numbered, escape=LIKE_ESCAPE)),
        )
        if exclude_id:
            query = query.filter(Folder.id != exclude_id)
        return [row[0] for row in query.all()]

    # --- Metadata ---

    def set_meta(self, folder_id: int, key: str, value: str) -> None:
        meta = (
            self.db.query(FolderMeta)
            .filter(FolderMeta.folder_id == folder_id, FolderMeta.meta_key == key)
            .first()
        )
        if meta is None:
            self.db.add(FolderMeta(folder_id=folder_id, meta_key=key, meta_value=value))
        else:
            meta.meta_value = value
        self.db.flush()

    def meta_for(self, folder_ids: List[int]) -> Dict[int, Dict[str, str]]:
        """Metadata for many folders: ``{folder_id: {key: value}}``."""
        if not folder_ids:
            return {}
        rows = (
            self.db.query(FolderMeta.folder_id, FolderMeta.meta_key, FolderMeta.meta_value)
            .filter(FolderMeta.folder_id.in_(folder_ids))
            .all()
        )
        result: Dict[int, Dict[str, str]] = {}
        for folder_id, key, value in rows:
            result.setdefault(folder_id, {})[key] = value
        return result

    # --- Relation counts ---

    def direct_media_counts(self) -> Dict[int, int]:
        """Number of media items linked to each folder (folders with none are absent)."""
        rows = (
            self.db.query(MediaFolderLink.folder_id, func.count(MediaFolderLink.media_id))
            .group_by(MediaFolderLink.folder_id)
            .all()
        )
        return {folder_id: count for folder_id, count in rows}

    def direct_media_count(self, folder_id: int) -> int:
        return (
            self.db.query(func.count(MediaFolderLink.media_id))
            .filter(MediaFolderLink.folder_id == folder_id)
            .scalar()
            or 0
        )
