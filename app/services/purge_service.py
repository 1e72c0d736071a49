"""Permanent deletion of a file or folder: objects first, metadata second.

The object store is cleared before the metadata row is removed, so a
failure can only ever leave a row pointing at objects that still exist
(retryable), never objects with no row pointing at them. Deletes are
idempotent on both sides: purging a missing row, or re-listing a prefix
whose objects are already partly gone, succeeds.
"""

import logging
from dataclasses import dataclass
from typing import Collection, Dict, List, Optional, Sequence, Set, Tuple

import sqlalchemy.exc
from sqlalchemy.orm import Session

from ..core.config import settings
from ..exceptions import DatabaseError, StorageError, ValidationError
from ..models import Folder
from ..repositories.file_repository import FileRepository
from ..repositories.folder_repository import FolderRepository
from . import audit_service
from .paths import full_path_of

logger = logging.getLogger(__name__)

ITEM_TYPES = ("file", "folder")


@dataclass(frozen=True)
class PurgeResult:
    item_id: str
    item_type: str
    found: bool
    objects_deleted: int = 0


class PurgeService:
    """Irreversibly removes items, typically from the recycle bin."""

    def __init__(self, db: Session, store, max_depth: Optional[int] = None):
        self.db = db
        self.store = store
        self.max_depth = max_depth or settings.folder_path_max_depth
        self.file_repo = FileRepository(db)
        self.folder_repo = FolderRepository(db)

    def purge(self, item_id: str, item_type: str, user_id: Optional[str] = None) -> PurgeResult:
        """Delete the item's object(s), then its metadata row.

        Raises:
            ValidationError: Unknown *item_type*.
            StorageError: Objects could not be deleted; metadata is untouched.
            DatabaseError: Objects are gone but the row could not be removed.
        """
        if item_type == "file":
            result = self._purge_file(item_id)
        elif item_type == "folder":
            result = self._purge_folder(item_id)
        else:
            raise ValidationError(f"Unknown item type: {item_type}", field="type")

        if result.found:
            audit_service.log(
                self.db,
                user_id=user_id,
                action="purge",
                resource_type=item_type,
                resource_id=item_id,
                details={"objects_deleted": result.objects_deleted},
            )
        return result

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _purge_file(self, file_id: str) -> PurgeResult:
        record = self.file_repo.get_by_id_including_deleted(file_id)
        if record is None:
            return PurgeResult(item_id=file_id, item_type="file", found=False)

        storage_key = record.storage_key
        # A live row re-created for the same key (by sync or a re-upload) owns the object now.
        kept = self.file_repo.other_live_with_storage_key(storage_key, exclude_id=file_id) is not None
        if not kept:
            self.store.delete_object(storage_key)
        self._delete_row(self.file_repo, file_id)

        logger.info(
            "File purged",
            extra={"file_id": file_id, "key": storage_key, "object_kept": kept},
        )
        return PurgeResult(
            item_id=file_id, item_type="file", found=True, objects_deleted=0 if kept else 1,
        )

    def _purge_folder(self, folder_id: str) -> PurgeResult:
        folder = self.folder_repo.get_by_id_including_deleted(folder_id)
        if folder is None:
            return PurgeResult(item_id=folder_id, item_type="folder", found=False)

        folders = self.folder_repo.list_all()
        by_id = {f.id: f for f in folders}
        prefix = full_path_of(folder.id, by_id, self.max_depth)
        if not prefix:
            raise StorageError(f"Cannot derive a storage prefix for folder {folder_id}")

        claimed_prefixes, claimed_keys = self._live_claims_under(prefix, folder_id, folders, by_id)
        deleted = self._delete_prefix(prefix, claimed_prefixes, claimed_keys)
        # Child folders and files go with it by cascade.
        self._delete_row(self.folder_repo, folder_id)

        logger.info(
            "Folder purged",
            extra={
                "folder_id": folder_id,
                "prefix": prefix,
                "objects_deleted": deleted,
                "live_prefixes_kept": len(claimed_prefixes),
                "live_keys_kept": len(claimed_keys),
            },
        )
        return PurgeResult(item_id=folder_id, item_type="folder", found=True, objects_deleted=deleted)

    def _live_claims_under(
        self,
        prefix: str,
        folder_id: str,
        folders: List[Folder],
        by_id: Dict[str, Folder],
    ) -> Tuple[List[str], Set[str]]:
        """Paths and keys under *prefix* that live records outside the purged subtree track.

        A trashed folder and a live folder created later with the same name
        share one prefix in the bucket; the live one keeps its objects.
        """
        subtree = _subtree_ids(folder_id, folders)

        prefixes = []
        for other in folders:
            if other.id in subtree or other.deleted_at is not None:
                continue
            path = full_path_of(other.id, by_id, self.max_depth)
            if path and path.startswith(prefix):
                prefixes.append(path)

        keys = {
            record.storage_key
            for record in self.file_repo.list_live_with_key_prefix(prefix)
            if record.folder_id not in subtree
        }
        return prefixes, keys

    def _delete_prefix(
        self,
        prefix: str,
        claimed_prefixes: Sequence[str] = (),
        claimed_keys: Collection[str] = frozenset(),
    ) -> int:
        """Delete every object under *prefix*, one listing page at a time.

        Each round lists from the start of the prefix again: whatever the
        previous round deleted no longer shows up, so the listing advances
        without continuation tokens. Once a claimed key has been skipped it
        would show up again, so from then on the listing follows tokens.
        An empty prefix is not an error.
        """
        total = 0
        token = None
        stepping = False
        for _ in range(self.store.max_list_pages):
            page = self.store.list_page(
                prefix=prefix, max_keys=self.store.delete_batch_size, continuation_token=token,
            )
            keys = [
                obj.key for obj in page.objects
                if obj.key not in claimed_keys
                and not any(obj.key.startswith(p) for p in claimed_prefixes)
            ]
            if keys:
                total += self.store.delete_objects_batch(keys)
            if not page.is_truncated:
                return total
            stepping = stepping or len(keys) < len(page.objects)
            token = page.next_token if stepping else None
        raise StorageError(f"Gave up deleting under '{prefix}' after {self.store.max_list_pages} rounds")

    def _delete_row(self, repo, entity_id: str) -> None:
        try:
            repo.hard_delete_ids([entity_id])
            self.db.commit()
        except sqlalchemy.exc.SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseError("Failed to delete metadata record", e) from e


def _subtree_ids(root_id: str, folders: List[Folder]) -> Set[str]:
    """*root_id* plus every folder below it, live or trashed."""
    children: Dict[str, List[str]] = {}
    for folder in folders:
        if folder.parent_id is not None:
            children.setdefault(folder.parent_id, []).append(folder.id)

    found = {root_id}
    pending = [root_id]
    while pending:
        for child_id in children.get(pending.pop(), ()):
            if child_id not in found:
                found.add(child_id)
                pending.append(child_id)
    return found
