"""Media library models owned by the host CMS, plus the folder relation."""

from sqlalchemy import Column, ForeignKey, Integer, String, Text, DateTime, JSON
from sqlalchemy.sql import func
from ..database import Base


class MediaItem(Base):
    """An uploaded attachment."""

    __tablename__ = "media_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False, default="")
    filename = Column(String(255), nullable=False, default="")
    mime_type = Column(String(100), nullable=False, default="")
    url = Column(Text, nullable=False, default="")
    thumbnail_url = Column(Text, nullable=False, default="")

    # Opaque blob written by the host; may or may not carry a numeric "filesize".
    attachment_metadata = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)


class MediaFolderLink(Base):
    """Assignment of a media item to a folder.

    media_id is the primary key, so an item belongs to at most one folder.
    Rows disappear with either side via ON DELETE CASCADE.
    """

    __tablename__ = "media_folder_links"

    media_id = Column(Integer, ForeignKey("media_items.id", ondelete="CASCADE"), primary_key=True)
    folder_id = Column(Integer, ForeignKey("folders.id", ondelete="CASCADE"), nullable=False, index=True)
