"""Business logic services."""

from .cache import Cache, MemoryCache, RedisCache, build_cache
from .folder_service import FolderService
from .folder_tree import FolderNode, build_tree
from .naming_policy import NamingPolicy, sanitize_name
from .size_aggregator import SizeAggregator

__all__ = [
    "Cache",
    "MemoryCache",
    "RedisCache",
    "build_cache",
    "FolderService",
    "FolderNode",
    "build_tree",
    "NamingPolicy",
    "sanitize_name",
    "SizeAggregator",
]
