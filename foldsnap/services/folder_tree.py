"""Folder snapshots and assembly of the folder forest."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..models.folder import Folder, FolderMeta, ROOT_FOLDER_ID


@dataclass
class FolderNode:
    """Read-only snapshot of a folder plus its assembled children.

    ``children`` is only populated by ``build_tree``. Totals are recomputed
    on every call; a tree is built per request and discarded.
    """

    id: int
    name: str
    parent_id: int = ROOT_FOLDER_ID
    color: str = ""
    position: int = 0
    direct_media_count: int = 0
    direct_size: int = 0
    children: List["FolderNode"] = field(default_factory=list)

    @classmethod
    def from_row(
        cls,
        folder: Folder,
        meta: Optional[Dict[str, str]] = None,
        media_count: int = 0,
        direct_size: int = 0,
    ) -> "FolderNode":
        meta = meta or {}
        return cls(
            id=folder.id,
            name=folder.name,
            parent_id=folder.parent_id or ROOT_FOLDER_ID,
            color=meta.get(FolderMeta.META_COLOR, ""),
            position=_parse_position(meta.get(FolderMeta.META_POSITION)),
            direct_media_count=media_count,
            direct_size=direct_size,
        )

    def add_child(self, child: "FolderNode") -> None:
        self.children.append(child)

    def total_media_count(self) -> int:
        return self.direct_media_count + sum(c.total_media_count() for c in self.children)

    def total_size(self) -> int:
        return self.direct_size + sum(c.total_size() for c in self.children)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "parent_id": self.parent_id,
            "color": self.color,
            "position": self.position,
            "direct_media_count": self.direct_media_count,
            "total_media_count": self.total_media_count(),
            "direct_size": self.direct_size,
            "total_size": self.total_size(),
            "children": [child.to_dict() for child in self.children],
        }


def _parse_position(raw: Optional[str]) -> int:
    if raw is None:
        return 0
    try:
        return int(raw)
    except (TypeError, ValueError):
        return 0


def build_tree(folders: List[FolderNode]) -> List[FolderNode]:
    """Assemble a flat list into root nodes with children attached.

    Siblings are ordered by position; ``sorted`` is stable, so equal
    positions keep the input order. A folder whose parent is the root
    sentinel or is missing from *folders* becomes a root.
    """
    ordered = sorted(folders, key=lambda f: f.position)
    by_id = {folder.id: folder for folder in ordered}

    roots: List[FolderNode] = []
    for folder in ordered:
        parent = by_id.get(folder.parent_id) if folder.parent_id != ROOT_FOLDER_ID else None
        if parent is None or parent is folder:
            roots.append(folder)
        else:
            parent.add_child(folder)
    return roots
