"""Folder model."""

import uuid

from sqlalchemy import Column, Index, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


def new_id() -> str:
    return str(uuid.uuid4())


class Folder(Base):
    """A folder in the shared tree.

    A folder's canonical path ("a/b/") is never stored; it is derived by
    walking ``parent_id`` links (see ``services.paths.full_path_of``).
    Deleting a folder row cascades to child folders and files at the
    database level.
    """

    __tablename__ = "folders"
    __table_args__ = (
        Index("ix_folders_parent_id", "parent_id"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    parent_id = Column(String(36), ForeignKey("folders.id", ondelete="CASCADE"), nullable=True)
    owner_id = Column(String(50), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Soft delete (NULL = live, timestamp = in recycle bin)
    deleted_at = Column(DateTime(timezone=True), nullable=True, default=None)

    files = relationship("StoredFile", back_populates="folder", passive_deletes=True)


# Sibling names are unique among live folders. coalesce() makes two root-level
# folders with the same name collide as well, since NULL parent ids never do.
Index(
    "uq_folders_live_sibling",
    func.coalesce(Folder.parent_id, ""),
    Folder.name,
    unique=True,
    sqlite_where=Folder.deleted_at.is_(None),
    postgresql_where=Folder.deleted_at.is_(None),
)
