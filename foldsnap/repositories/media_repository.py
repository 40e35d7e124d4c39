"""Data access for media items and their folder links."""

from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from .base import BaseRepository
from ..exceptions import InvalidMediaIdError
from ..models.media import MediaItem, MediaFolderLink

# Page query result: (items on the page, total matching items)
MediaPage = Tuple[List[MediaItem], int]


class MediaRepository(BaseRepository[MediaItem]):
    """Existence checks, metadata reads and folder links for media items."""

    model_class = MediaItem
    not_found_error = InvalidMediaIdError

    def __init__(self, db: Session):
        super().__init__(db)

    def get_by_id(self, entity_id: int) -> MediaItem:
        item = self.get_by_id_optional(entity_id)
        if item is None:
            raise InvalidMediaIdError([entity_id])
        return item

    def create(
        self,
        title: str = "",
        filename: str = "",
        mime_type: str = "",
        url: str = "",
        thumbnail_url: str = "",
        attachment_metadata: Optional[Dict[str, Any]] = None,
    ) -> MediaItem:
        item = MediaItem(
            title=title,
            filename=filename,
            mime_type=mime_type,
            url=url,
            thumbnail_url=thumbnail_url,
            attachment_metadata=attachment_metadata,
        )
        self.db.add(item)
        self.db.flush()
        self.db.refresh(item)
        return item

    def existing_ids(self, media_ids: Iterable[int]) -> Set[int]:
        """Subset of *media_ids* that refer to media items, in one query."""
        ids = set(media_ids)
        if not ids:
            return set()
        rows = self.db.query(MediaItem.id).filter(MediaItem.id.in_(ids)).all()
        return {row[0] for row in rows}

    # --- Folder links ---

    def folder_of(self, media_id: int) -> Optional[int]:
        link = self.db.get(MediaFolderLink, media_id)
        return link.folder_id if link else None

    def assign(self, folder_id: int, media_ids: List[int]) -> None:
        """Link every id to *folder_id*, replacing any previous folder."""
        existing = {
            link.media_id: link
            for link in self.db.query(MediaFolderLink)
            .filter(MediaFolderLink.media_id.in_(media_ids))
            .all()
        }
        for media_id in media_ids:
            link = existing.get(media_id)
            if link is None:
                link = MediaFolderLink(media_id=media_id, folder_id=folder_id)
                self.db.add(link)
                existing[media_id] = link
            else:
                link.folder_id = folder_id
        self.db.flush()

    def remove(self, folder_id: int, media_ids: List[int]) -> int:
        """Unlink the ids from *folder_id*. Ids linked elsewhere are untouched."""
        removed = (
            self.db.query(MediaFolderLink)
            .filter(
                MediaFolderLink.folder_id == folder_id,
                MediaFolderLink.media_id.in_(media_ids),
            )
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return removed

    # --- Unassigned bucket ---

    def _unassigned_query(self, *columns):
        return (
            self.db.query(*columns)
            .select_from(MediaItem)
            .outerjoin(MediaFolderLink, MediaFolderLink.media_id == MediaItem.id)
            .filter(MediaFolderLink.media_id.is_(None))
        )

    def count_unassigned(self) -> int:
        return self._unassigned_query(func.count(MediaItem.id)).scalar() or 0

    def unassigned_attachment_metadata(self) -> List[Any]:
        """Metadata blobs of every item with no folder link."""
        return [row[0] for row in self._unassigned_query(MediaItem.attachment_metadata).all()]

    def folder_attachment_metadata(self) -> List[Tuple[int, Any]]:
        """``(folder_id, metadata blob)`` for every linked item, in one join."""
        return (
            self.db.query(MediaFolderLink.folder_id, MediaItem.attachment_metadata)
            .join(MediaItem, MediaItem.id == MediaFolderLink.media_id)
            .all()
        )

    # --- Listing ---

    def list_page(self, folder_id: int, page: int, per_page: int) -> MediaPage:
        """One page of items in *folder_id* (0 = unassigned), newest first."""
        if folder_id == 0:
            query = self._unassigned_query(MediaItem)
        else:
            query = (
                self.db.query(MediaItem)
                .join(MediaFolderLink, MediaFolderLink.media_id == MediaItem.id)
                .filter(MediaFolderLink.folder_id == folder_id)
            )

        total = query.count()
        items = (
            query.order_by(MediaItem.created_at.desc(), MediaItem.id.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
            .all()
        )
        return items, total
