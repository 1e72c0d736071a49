"""File model."""

from sqlalchemy import Column, Index, String, BigInteger, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base
from .folder import new_id

# Content type recorded when nothing better is known (e.g. files discovered by sync).
DEFAULT_CONTENT_TYPE = "application/octet-stream"


class StoredFile(Base):
    """Metadata for one object in the bucket.

    ``storage_key`` binds the row to its object: at creation time it equals
    the folder's canonical path followed by ``name`` (just ``name`` at root).
    """

    __tablename__ = "files"
    __table_args__ = (
        Index("ix_files_folder_id", "folder_id"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    size = Column(BigInteger, nullable=False, default=0)
    content_type = Column(String(255), nullable=False, default=DEFAULT_CONTENT_TYPE)
    storage_key = Column(Text, nullable=False)
    owner_id = Column(String(50), nullable=False)
    folder_id = Column(String(36), ForeignKey("folders.id", ondelete="CASCADE"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Soft delete (NULL = live, timestamp = in recycle bin)
    deleted_at = Column(DateTime(timezone=True), nullable=True, default=None)

    folder = relationship("Folder", back_populates="files")


Index(
    "uq_files_live_storage_key",
    StoredFile.storage_key,
    unique=True,
    sqlite_where=StoredFile.deleted_at.is_(None),
    postgresql_where=StoredFile.deleted_at.is_(None),
)
