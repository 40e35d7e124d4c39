"""Media listing schemas."""

from datetime import datetime
from pydantic import BaseModel
from typing import List, Optional


class MediaItemResponse(BaseModel):
    """A media item as shown in the folder browser."""
    id: int
    title: str
    filename: str
    thumbnail_url: str
    url: str
    file_size: int
    mime_type: str
    date: Optional[datetime] = None


class MediaListResponse(BaseModel):
    media: List[MediaItemResponse]
    total: int
    total_pages: int
