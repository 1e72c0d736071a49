"""Upload and download of files through presigned URLs.

Browsers move the bytes straight to and from the bucket. The API signs
URLs and records metadata once an upload has finished.
"""

import logging
from typing import Optional

import sqlalchemy.exc
from sqlalchemy.orm import Session

from ..core.config import settings
from ..exceptions import DatabaseError, FileConflictError, ValidationError
from ..models import StoredFile, DEFAULT_CONTENT_TYPE
from ..repositories.file_repository import FileRepository
from . import audit_service
from .folder_resolver import FolderResolver
from .paths import is_folder_marker, is_valid_name, normalize_folder_path, split_key, storage_key_for

logger = logging.getLogger(__name__)


class FileService:
    """Presigned transfers and file registration."""

    def __init__(self, db: Session, store):
        self.db = db
        self.store = store
        self.file_repo = FileRepository(db)

    def request_upload(self, filename: str, content_type: str, folder_path: Optional[str]) -> tuple[str, str]:
        """Sign a PUT for ``<folder_path><filename>``. Returns ``(url, key)``."""
        if not is_valid_name(filename):
            raise ValidationError("Filename must be a single non-empty path segment", field="filename")
        try:
            prefix = normalize_folder_path(folder_path)
        except ValueError as e:
            raise ValidationError(str(e), field="folder_path") from e

        key = storage_key_for(prefix, filename)
        url = self.store.presigned_upload_url(
            key, content_type or DEFAULT_CONTENT_TYPE, settings.upload_url_expiry_seconds
        )
        return url, key

    def register_upload(
        self,
        storage_key: str,
        size: int,
        content_type: str,
        owner_id: str,
    ) -> StoredFile:
        """Record an uploaded object, creating its folder chain as needed.

        Re-registering a key that is already tracked (an overwrite) updates
        size and content type in place.
        """
        if is_folder_marker(storage_key):
            raise ValidationError("Storage key names a folder, not a file", field="storage_key")
        try:
            parent_segments, filename = split_key(storage_key)
        except ValueError as e:
            raise ValidationError(str(e), field="storage_key") from e

        existing = self.file_repo.get_live_by_storage_key(storage_key)
        if existing is not None:
            existing.size = size
            existing.content_type = content_type or DEFAULT_CONTENT_TYPE
            self.db.commit()
            return existing

        folder_id = FolderResolver(self.db, owner_id).resolve(parent_segments)
        record = self.file_repo.add(
            name=filename,
            storage_key=storage_key,
            owner_id=owner_id,
            folder_id=folder_id,
            size=size,
            content_type=content_type,
        )
        file_id = record.id
        try:
            self.db.commit()
        except sqlalchemy.exc.IntegrityError as e:
            self.db.rollback()
            raise FileConflictError(storage_key) from e
        except sqlalchemy.exc.SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseError("Failed to record uploaded file", e) from e

        audit_service.log(
            self.db, user_id=owner_id, action="upload", resource_type="file",
            resource_id=file_id, details={"key": storage_key, "size": size},
        )
        return self.file_repo.get_by_id(file_id)

    def download_url(self, file_id: str, inline: bool = False) -> str:
        """Presigned GET for a live file; ``inline`` for previews."""
        record = self.file_repo.get_by_id(file_id)
        return self.store.presigned_download_url(
            record.storage_key, record.name, inline, settings.download_url_expiry_seconds
        )
