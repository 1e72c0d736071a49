"""Recycle bin: soft-delete, restore, listing and retention purge."""

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import sqlalchemy.exc
from sqlalchemy.orm import Session

from ..core.config import settings
from ..exceptions import (
    DatabaseError,
    FileConflictError,
    FileRecordNotFoundError,
    FolderConflictError,
    FolderNotFoundError,
    VaultException,
)
from ..repositories.file_repository import FileRepository
from ..repositories.folder_repository import FolderRepository
from ..schemas.sync import TrashItem
from . import audit_service
from .purge_service import PurgeService

logger = logging.getLogger(__name__)


class TrashService:
    """Moves items in and out of the recycle bin.

    Trashing only stamps ``deleted_at``; objects stay in the bucket until
    the item is purged, either explicitly or by ``purge_expired``.
    """

    def __init__(self, db: Session):
        self.db = db
        self.folder_repo = FolderRepository(db)
        self.file_repo = FileRepository(db)

    def trash_folder(self, folder_id: str, user_id: Optional[str] = None) -> None:
        folder = self.folder_repo.get_by_id(folder_id)
        self.folder_repo.soft_delete(folder)
        self._commit("trash folder")
        audit_service.log(self.db, user_id, "trash", "folder", folder_id)

    def trash_file(self, file_id: str, user_id: Optional[str] = None) -> None:
        record = self.file_repo.get_by_id(file_id)
        self.file_repo.soft_delete(record)
        self._commit("trash file")
        audit_service.log(self.db, user_id, "trash", "file", file_id)

    def restore_folder(self, folder_id: str, user_id: Optional[str] = None) -> None:
        """Raises FolderConflictError when a live sibling now holds the name."""
        folder = self.folder_repo.get_by_id_including_deleted(folder_id)
        if folder is None:
            raise FolderNotFoundError(folder_id)
        name, parent_id = folder.name, folder.parent_id
        self.folder_repo.restore(folder)
        try:
            self.db.commit()
        except sqlalchemy.exc.IntegrityError as e:
            self.db.rollback()
            raise FolderConflictError(name, parent_id) from e
        audit_service.log(self.db, user_id, "restore", "folder", folder_id)

    def restore_file(self, file_id: str, user_id: Optional[str] = None) -> None:
        """Raises FileConflictError when a live file now tracks the same key."""
        record = self.file_repo.get_by_id_including_deleted(file_id)
        if record is None:
            raise FileRecordNotFoundError(file_id)
        storage_key = record.storage_key
        self.file_repo.restore(record)
        try:
            self.db.commit()
        except sqlalchemy.exc.IntegrityError as e:
            self.db.rollback()
            raise FileConflictError(storage_key) from e
        audit_service.log(self.db, user_id, "restore", "file", file_id)

    def list_trash(self) -> List[TrashItem]:
        """Trashed folders and files together, most recently deleted first."""
        items = [
            TrashItem(id=f.id, name=f.name, type="folder", deleted_at=f.deleted_at)
            for f in self.folder_repo.list_deleted()
        ]
        items.extend(
            TrashItem(id=f.id, name=f.name, type="file", size=f.size, deleted_at=f.deleted_at)
            for f in self.file_repo.list_deleted()
        )
        items.sort(key=lambda item: item.deleted_at, reverse=True)
        return items

    def purge_expired(self, store, days: Optional[int] = None) -> int:
        """Permanently delete items trashed more than *days* ago.

        Folders go first so their contained files vanish with them. A failing
        item is logged and left for the next run. A retention of zero days
        keeps the recycle bin forever. Returns the number purged.
        """
        days = settings.trash_retention_days if days is None else days
        if days <= 0:
            return 0
        cutoff = datetime.now(timezone.utc) - timedelta(days=days)
        purger = PurgeService(self.db, store)

        expired = [("folder", f.id) for f in self.folder_repo.list_deleted_before(cutoff)]
        expired.extend(("file", f.id) for f in self.file_repo.list_deleted_before(cutoff))

        purged = 0
        for item_type, item_id in expired:
            try:
                if purger.purge(item_id, item_type).found:
                    purged += 1
            except VaultException as e:
                logger.warning(
                    "Expired %s %s not purged: %s", item_type, item_id, e.message,
                    extra={"error_code": e.error_code.value},
                )
        if purged:
            logger.info("Purged %d expired recycle-bin items", purged)
        return purged

    def _commit(self, operation: str) -> None:
        try:
            self.db.commit()
        except sqlalchemy.exc.SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseError(f"Failed to {operation}", e) from e
