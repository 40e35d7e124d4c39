"""API dependencies for injection.

Wires the folder service for one request: the session is per request, the
cache is the single instance built at startup and kept on ``app.state``.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_media_manager
from ..database import get_db
from ..repositories.folder_store import FolderStore
from ..repositories.media_repository import MediaRepository
from ..services.cache import Cache
from ..services.folder_service import FolderService
from ..services.naming_policy import NamingPolicy
from ..services.size_aggregator import SizeAggregator


def get_cache(request: Request) -> Cache:
    """Dependency returning the process-wide cache."""
    return request.app.state.cache


def build_folder_service(db: Session, cache: Cache) -> FolderService:
    """Assemble a FolderService and its collaborators around one session."""
    store = FolderStore(db)
    media_repo = MediaRepository(db)
    return FolderService(
        db,
        store=store,
        media_repo=media_repo,
        naming=NamingPolicy(store),
        aggregator=SizeAggregator(media_repo, cache),
    )


def get_folder_service(
    db: Session = Depends(get_db),
    cache: Cache = Depends(get_cache),
) -> FolderService:
    return build_folder_service(db, cache)


# Type aliases for cleaner dependency injection
Folders = Annotated[FolderService, Depends(get_folder_service)]
MediaManager = Annotated[AuthContext, Depends(require_media_manager)]
