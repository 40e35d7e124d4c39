"""Folder model and its per-folder key/value metadata."""

from sqlalchemy import Column, ForeignKey, Index, Integer, String, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base

ROOT_FOLDER_ID = 0

# Upper bound on folder names, in code points.
FOLDER_NAME_MAX_LENGTH = 200


class Folder(Base):
    """A node in the folder hierarchy."""

    __tablename__ = "folders"
    __table_args__ = (
        Index("ix_folders_parent_id", "parent_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Sanitized names stop at FOLDER_NAME_MAX_LENGTH; the column leaves room
    # for a " (N)" collision suffix on top of that.
    name = Column(String(255), nullable=False)

    # Not a foreign key: 0 is the root sentinel and never a row.
    parent_id = Column(Integer, nullable=False, default=ROOT_FOLDER_ID)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    meta = relationship(
        "FolderMeta",
        back_populates="folder",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Folder(id={self.id}, name='{self.name}', parent_id={self.parent_id})>"


class FolderMeta(Base):
    """Display metadata for a folder (color, position)."""

    __tablename__ = "folder_meta"
    __table_args__ = (
        UniqueConstraint("folder_id", "meta_key", name="uq_folder_meta_key"),
    )

    META_COLOR = "color"
    META_POSITION = "position"

    id = Column(Integer, primary_key=True, autoincrement=True)
    folder_id = Column(Integer, ForeignKey("folders.id", ondelete="CASCADE"), nullable=False, index=True)
    meta_key = Column(String(64), nullable=False)
    meta_value = Column(String(255), nullable=False, default="")

    folder = relationship("Folder", back_populates="meta")
