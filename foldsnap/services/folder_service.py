"""Deep module for all folder operations: CRUD, reparenting, media assignment and tree reads.

Composes the folder store, the naming policy and the size aggregator. Every
public mutation validates all of its input before the first write, commits
once, and invalidates the aggregate cache. Callers never see a half-applied
operation.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from .folder_tree import FolderNode, build_tree
from .naming_policy import NamingPolicy
from .size_aggregator import SizeAggregator, extract_file_size
from ..core.config import settings
from ..exceptions import (
    CircularParentError,
    InvalidColorError,
    InvalidMediaIdError,
    MediaIdsRequiredError,
    ParentNotFoundError,
)
from ..models.folder import Folder, FolderMeta, ROOT_FOLDER_ID
from ..models.media import MediaItem
from ..repositories.folder_store import FolderStore
from ..repositories.media_repository import MediaRepository

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")

logger = logging.getLogger(__name__)


def validate_hex_color(color: str) -> str:
    """Return *color* unchanged if it is ``#rgb`` or ``#rrggbb``."""
    if not _HEX_COLOR.match(color):
        raise InvalidColorError(color)
    return color


@dataclass
class MediaListing:
    """One page of media items for a folder or the unassigned bucket."""

    items: List[MediaItem]
    total: int
    total_pages: int
    page: int
    per_page: int


class FolderService:
    """All folder operations behind a simple interface.

    Public methods:
        get_tree              -- folder forest with direct and total stats
        get_all               -- flat list of folders
        get_by_id             -- lookup by id (None if missing)
        create                -- sanitized, sibling-unique folder
        update                -- rename / reparent / recolor / reposition
        delete                -- remove folder; media fall back to unassigned
        assign_media          -- all-or-nothing move of media into a folder
        remove_media          -- idempotent unlink of media from a folder
        get_root_media_count  -- items in no folder
        get_root_total_size   -- bytes in no folder
        list_media            -- paginated items of a folder (0 = unassigned)
    """

    def __init__(
        self,
        db: Session,
        store: FolderStore,
        media_repo: MediaRepository,
        naming: NamingPolicy,
        aggregator: SizeAggregator,
    ):
        self.db = db
        self.store = store
        self.media_repo = media_repo
        self.naming = naming
        self.aggregator = aggregator

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_all(self) -> List[FolderNode]:
        """Every folder as a flat list of snapshots, direct stats filled in."""
        folders = self.store.list_all()
        meta = self.store.meta_for([f.id for f in folders])
        counts = self.store.direct_media_counts()
        sizes = self.aggregator.compute_folder_direct_sizes()

        return [
            FolderNode.from_row(
                folder,
                meta=meta.get(folder.id),
                media_count=counts.get(folder.id, 0),
                direct_size=sizes.get(folder.id, 0),
            )
            for folder in folders
        ]

    def get_tree(self) -> List[FolderNode]:
        return build_tree(self.get_all())

    def get_by_id(self, folder_id: int) -> Optional[FolderNode]:
        folder = self.store.get_by_id_optional(folder_id)
        if folder is None:
            return None
        return self._snapshot(folder)

    def get_root_media_count(self) -> int:
        return self.aggregator.unassigned_media_count()

    def get_root_total_size(self) -> int:
        return self.aggregator.compute_unassigned_total_size()

    def list_media(
        self, folder_id: int, page: int = 1, per_page: Optional[int] = None
    ) -> MediaListing:
        """Page through a folder's media, newest first.

        ``folder_id=0`` lists unassigned items. An unknown folder yields an
        empty page rather than an error.
        """
        page = max(1, page)
        if per_page is None:
            per_page = settings.media_per_page_default
        per_page = max(1, min(settings.media_per_page_max, per_page))

        items, total = self.media_repo.list_page(folder_id, page, per_page)
        return MediaListing(
            items=items,
            total=total,
            total_pages=math.ceil(total / per_page) if total else 0,
            page=page,
            per_page=per_page,
        )

    # ------------------------------------------------------------------
    # Folder mutations
    # ------------------------------------------------------------------

    def create(
        self,
        name: str,
        parent_id: int = ROOT_FOLDER_ID,
        color: str = "",
        position: int = 0,
    ) -> FolderNode:
        """Create a folder under *parent_id* (0 = root).

        A name already used by a sibling gets a ``(N)`` suffix instead of
        failing.
        """
        name = self.naming.sanitize(name)
        if parent_id != ROOT_FOLDER_ID and not self.store.exists(parent_id):
            raise ParentNotFoundError(parent_id)
        name = self.naming.ensure_unique(name, parent_id)
        if color:
            validate_hex_color(color)

        folder = self.store.create(name, parent_id)
        if color:
            self.store.set_meta(folder.id, FolderMeta.META_COLOR, color)
        if position != 0:
            self.store.set_meta(folder.id, FolderMeta.META_POSITION, str(position))

        self.db.commit()
        self.aggregator.invalidate()
        logger.info(
            "Folder created",
            extra={"folder_id": folder.id, "parent_id": parent_id, "folder_name": name},
        )
        return self._snapshot(self.store.get_by_id(folder.id))

    def update(
        self,
        folder_id: int,
        name: str = "",
        parent_id: Optional[int] = None,
        color: str = "",
        position: Optional[int] = None,
    ) -> FolderNode:
        """Change any subset of name, parent, color and position.

        ``None`` (parent_id, position) and ``""`` (name, color) leave the field
        as it is; there is no way to clear a name or color here.
        """
        folder = self.store.get_by_id(folder_id)

        if parent_id is not None and parent_id != ROOT_FOLDER_ID:
            if not self.store.exists(parent_id):
                raise ParentNotFoundError(parent_id)
            if self._would_create_cycle(folder_id, parent_id):
                raise CircularParentError(folder_id, parent_id)

        # A move is checked against the new siblings even without a rename.
        effective_parent = parent_id if parent_id is not None else folder.parent_id
        moving = effective_parent != folder.parent_id
        new_name = None
        if name or moving:
            candidate = self.naming.sanitize(name) if name else folder.name
            new_name = self.naming.ensure_unique(
                candidate, effective_parent, exclude_id=folder_id
            )
        renamed = new_name is not None and new_name != folder.name

        if color:
            validate_hex_color(color)

        self.store.update(folder, name=new_name, parent_id=parent_id)
        if color:
            self.store.set_meta(folder_id, FolderMeta.META_COLOR, color)
        if position is not None:
            self.store.set_meta(folder_id, FolderMeta.META_POSITION, str(position))

        self.db.commit()
        self.aggregator.invalidate()
        logger.info(
            "Folder updated",
            extra={
                "folder_id": folder_id,
                "renamed": renamed,
                "parent_id": parent_id,
            },
        )
        return self._snapshot(self.store.get_by_id(folder_id))

    def delete(self, folder_id: int) -> bool:
        """Delete a folder.

        Its media links go with it, so those items return to the unassigned
        bucket. Direct children become root-level folders; a child whose name
        is already taken at the root gets a ``(N)`` suffix.
        """
        folder = self.store.get_by_id(folder_id)
        children = self.store.children_of(folder_id)
        self.store.delete(folder)

        # Every child is at the root now, so each check sees all of them.
        renamed = 0
        for child in children:
            unique = self.naming.ensure_unique(child.name, ROOT_FOLDER_ID, exclude_id=child.id)
            if unique != child.name:
                self.store.update(child, name=unique)
                renamed += 1

        self.db.commit()
        self.aggregator.invalidate()
        logger.info(
            "Folder deleted",
            extra={
                "folder_id": folder_id,
                "children_lifted": len(children),
                "children_renamed": renamed,
            },
        )
        return True

    # ------------------------------------------------------------------
    # Media assignment
    # ------------------------------------------------------------------

    def assign_media(self, folder_id: int, media_ids: List[int]) -> None:
        """Move media items into a folder, replacing any previous folder.

        All ids are checked in one query first; if any is invalid nothing
        is assigned.
        """
        self.store.get_by_id(folder_id)
        ids = self._require_media_ids(media_ids)

        invalid = [i for i in ids if i <= 0]
        if not invalid:
            known = self.media_repo.existing_ids(ids)
            invalid = [i for i in ids if i not in known]
        if invalid:
            raise InvalidMediaIdError(invalid)

        self.media_repo.assign(folder_id, ids)
        self.db.commit()
        self.aggregator.invalidate()
        logger.info(
            "Media assigned",
            extra={"folder_id": folder_id, "media_count": len(ids)},
        )

    def remove_media(self, folder_id: int, media_ids: List[int]) -> None:
        """Unlink media items from a folder.

        Unlike ``assign_media`` this never rejects individual ids: an id that
        is unknown or not in this folder is simply skipped.
        """
        self.store.get_by_id(folder_id)
        ids = self._require_media_ids(media_ids)

        removed = self.media_repo.remove(folder_id, ids)
        self.db.commit()
        self.aggregator.invalidate()
        logger.info(
            "Media removed",
            extra={"folder_id": folder_id, "media_count": len(ids), "removed": removed},
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _snapshot(self, folder: Folder) -> FolderNode:
        meta = self.store.meta_for([folder.id]).get(folder.id)
        sizes = self.aggregator.compute_folder_direct_sizes()
        return FolderNode.from_row(
            folder,
            meta=meta,
            media_count=self.store.direct_media_count(folder.id),
            direct_size=sizes.get(folder.id, 0),
        )

    def _would_create_cycle(self, folder_id: int, new_parent_id: int) -> bool:
        """True if *new_parent_id* is *folder_id* or lies in its subtree."""
        parents: Dict[int, int] = self.store.parent_map()
        current = new_parent_id
        seen = set()
        while current != ROOT_FOLDER_ID and current not in seen:
            if current == folder_id:
                return True
            seen.add(current)
            current = parents.get(current, ROOT_FOLDER_ID)
        return False

    @staticmethod
    def _require_media_ids(media_ids: Optional[List[int]]) -> List[int]:
        if not media_ids:
            raise MediaIdsRequiredError()
        return list(dict.fromkeys(media_ids))

    @staticmethod
    def media_file_size(item: MediaItem) -> int:
        return extract_file_size(item.attachment_metadata)
