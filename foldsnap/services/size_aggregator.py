"""Per-folder byte-size and media-count aggregates.

Sizes come from one bulk join over folder links and media metadata, summed
in memory, then cached until the next folder or media mutation calls
``invalidate()``. Cost is one query per cache miss, however many folders exist.
"""

import logging
from typing import Any, Dict, Iterable

from .cache import Cache
from ..repositories.media_repository import MediaRepository

CACHE_FOLDER_SIZES = "folder_sizes"
CACHE_ROOT_TOTAL_SIZE = "root_total_size"

logger = logging.getLogger(__name__)


def extract_file_size(metadata: Any) -> int:
    """Byte size recorded in an attachment metadata blob, or 0.

    The blob is opaque: anything that is not a mapping with a numeric
    ``filesize`` counts as zero.
    """
    if not isinstance(metadata, dict):
        return 0
    value = metadata.get("filesize")
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        try:
            return int(float(value.strip()))
        except ValueError:
            return 0
    return 0


def sum_file_sizes(blobs: Iterable[Any]) -> int:
    return sum(extract_file_size(blob) for blob in blobs)


class SizeAggregator:
    """Direct size per folder and totals for the unassigned bucket."""

    def __init__(self, media_repo: MediaRepository, cache: Cache):
        self.media_repo = media_repo
        self.cache = cache

    def compute_folder_direct_sizes(self) -> Dict[int, int]:
        """Map folder id to the summed size of items assigned directly to it."""
        cached = self.cache.get(CACHE_FOLDER_SIZES)
        if isinstance(cached, dict):
            # JSON round-trips turn integer keys into strings.
            return {int(folder_id): int(size) for folder_id, size in cached.items()}

        logger.debug("Folder size cache miss")
        size_map: Dict[int, int] = {}
        for folder_id, metadata in self.media_repo.folder_attachment_metadata():
            size_map[folder_id] = size_map.get(folder_id, 0) + extract_file_size(metadata)

        self.cache.set(CACHE_FOLDER_SIZES, {str(k): v for k, v in size_map.items()})
        return size_map

    def compute_unassigned_total_size(self) -> int:
        cached = self.cache.get(CACHE_ROOT_TOTAL_SIZE)
        if isinstance(cached, int):
            return cached

        logger.debug("Root size cache miss")
        total = sum_file_sizes(self.media_repo.unassigned_attachment_metadata())
        self.cache.set(CACHE_ROOT_TOTAL_SIZE, total)
        return total

    def unassigned_media_count(self) -> int:
        return self.media_repo.count_unassigned()

    def invalidate(self) -> None:
        self.cache.delete(CACHE_FOLDER_SIZES, CACHE_ROOT_TOTAL_SIZE)
