"""Media listing API for the folder browser."""

from typing import Optional

from fastapi import APIRouter, Query, Response

from .deps import Folders, MediaManager
from ..exceptions import FolderIdRequiredError
from ..schemas.media import MediaListResponse

router = APIRouter(prefix="/api/media", tags=["media"])


def _to_int(raw: Optional[str], default: int = 0) -> int:
    if raw is None or not raw.strip():
        return default
    try:
        return abs(int(raw.strip()))
    except ValueError:
        return default


@router.get("", response_model=MediaListResponse)
def list_media(
    response: Response,
    service: Folders,
    auth: MediaManager,
    folder_id: Optional[str] = Query(None, description="Folder id, 0 for unassigned media"),
    page: Optional[str] = Query(None),
    per_page: Optional[str] = Query(None),
):
    """Paginated media of one folder, newest first."""
    if folder_id is None:
        raise FolderIdRequiredError()

    parsed_per_page = _to_int(per_page) if per_page and per_page.strip() else None
    listing = service.list_media(
        _to_int(folder_id),
        page=_to_int(page, default=1),
        per_page=parsed_per_page,
    )

    response.headers["X-Total"] = str(listing.total)
    response.headers["X-Total-Pages"] = str(listing.total_pages)

    return {
        "media": [
            {
                "id": item.id,
                "title": item.title,
                "filename": item.filename,
                "thumbnail_url": item.thumbnail_url,
                "url": item.url,
                "file_size": service.media_file_size(item),
                "mime_type": item.mime_type,
                "date": item.created_at,
            }
            for item in listing.items
        ],
        "total": listing.total,
        "total_pages": listing.total_pages,
    }
