"""Repository for file database operations."""

from typing import Dict, List, Optional

from ..exceptions import FileRecordNotFoundError
from ..models import StoredFile, DEFAULT_CONTENT_TYPE
from ..models.folder import new_id
from .base import BaseRepository


class FileRepository(BaseRepository[StoredFile]):
    """Data access layer for file records."""

    model_class = StoredFile
    not_found_error = FileRecordNotFoundError

    def live_ids_by_storage_key(self) -> Dict[str, str]:
        """Map ``storage_key -> id`` for every live file, in one query."""
        rows = (
            self.db.query(StoredFile.storage_key, StoredFile.id)
            .filter(StoredFile.deleted_at.is_(None))
            .all()
        )
        return {key: file_id for key, file_id in rows}

    def get_live_by_storage_key(self, storage_key: str) -> Optional[StoredFile]:
        return self._base_query().filter(StoredFile.storage_key == storage_key).first()

    def list_live_in_folder(self, folder_id: Optional[str]) -> List[StoredFile]:
        query = self._base_query()
        if folder_id is None:
            query = query.filter(StoredFile.folder_id.is_(None))
        else:
            query = query.filter(StoredFile.folder_id == folder_id)
        return query.order_by(StoredFile.name).all()

    def add(
        self,
        name: str,
        storage_key: str,
        owner_id: str,
        folder_id: Optional[str],
        size: int = 0,
        content_type: str = DEFAULT_CONTENT_TYPE,
    ) -> StoredFile:
        """Stage a new live file row. Caller commits."""
        record = StoredFile(
            id=new_id(),
            name=name,
            size=size,
            content_type=content_type or DEFAULT_CONTENT_TYPE,
            storage_key=storage_key,
            owner_id=owner_id,
            folder_id=folder_id,
        )
        self.db.add(record)
        return record

    def other_live_with_storage_key(self, storage_key: str, exclude_id: str) -> Optional[StoredFile]:
        return (
            self._base_query()
            .filter(StoredFile.storage_key == storage_key, StoredFile.id != exclude_id)
            .first()
        )

    def list_live_with_key_prefix(self, prefix: str) -> List[StoredFile]:
        # startswith() escapes LIKE wildcards such as "_" in folder names.
        return (
            self._base_query()
            .filter(StoredFile.storage_key.startswith(prefix, autoescape=True))
            .all()
        )
