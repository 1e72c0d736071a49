"""Reconciliation between the bucket and the folder/file metadata ("sync").

One pass, nothing persisted between passes:

    ListObjects -> BuildPathSets -> ReconcileFolders&Files -> PruneOrphans -> Done

The bucket listing is the ground truth. Folder structure is inferred from
key prefixes; missing folders and files are created; live metadata whose
object (or implied folder path) is gone is hard-deleted. Pruning never
touches the bucket, and soft-deleted rows are left to the recycle bin.

Re-running is safe: a second pass over an unchanged bucket creates and
deletes nothing. An interrupted pass leaves whatever it already created,
and the next pass finishes the job.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

import sqlalchemy.exc
from sqlalchemy.orm import Session

from ..core.config import settings
from ..exceptions import DatabaseError, VaultException
from ..repositories.file_repository import FileRepository
from ..repositories.folder_repository import FolderRepository
from ..storage.object_store import ObjectRecord
from . import audit_service
from .folder_resolver import FolderResolver
from .paths import ancestor_paths_of, full_path_of, is_folder_marker, segments_of, split_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncFailure:
    """One object the pass could not reconcile."""
    key: str
    error: str


@dataclass
class SyncReport:
    """Outcome of a pass. ``added`` counts only successfully created files."""
    added: int = 0
    folders_created: int = 0
    removed_files: int = 0
    removed_folders: int = 0
    unresolved_folders: int = 0
    failures: List[SyncFailure] = field(default_factory=list)


def build_path_sets(objects: Iterable[ObjectRecord]) -> Tuple[Set[str], Set[str]]:
    """Return ``(live_keys, live_folder_paths)`` for an inventory.

    ``live_folder_paths`` holds every folder implied by a key prefix plus
    every explicit folder marker, so it is prefix-closed: a folder with no
    marker object still counts as existing while anything lives under it.
    """
    live_keys: Set[str] = set()
    live_folder_paths: Set[str] = set()
    for obj in objects:
        live_keys.add(obj.key)
        live_folder_paths.update(ancestor_paths_of(obj.key))
        if is_folder_marker(obj.key) and segments_of(obj.key):
            live_folder_paths.add(obj.key)
    return live_keys, live_folder_paths


class SyncService:
    """Runs reconciliation passes against one bucket."""

    def __init__(self, db: Session, store, max_depth: Optional[int] = None):
        self.db = db
        self.store = store
        self.max_depth = max_depth or settings.folder_path_max_depth
        self.file_repo = FileRepository(db)
        self.folder_repo = FolderRepository(db)

    def run(self, owner_id: str) -> SyncReport:
        """Reconcile metadata with the bucket on behalf of *owner_id*.

        Raises:
            StorageError: The bucket could not be listed. Nothing was changed.
            DatabaseError: Metadata could not be loaded or pruned.
        """
        # ListObjects: fails closed before any mutation.
        objects = self.store.list_objects()

        # BuildPathSets
        live_keys, live_folder_paths = build_path_sets(objects)

        # ReconcileFolders&Files
        try:
            tracked = self.file_repo.live_ids_by_storage_key()
            resolver = FolderResolver(self.db, owner_id, cache={})
            resolver.preload()
        except sqlalchemy.exc.SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseError("Failed to load metadata for sync", e) from e

        report = SyncReport()
        # Only rows that existed before this pass are pruning candidates.
        snapshot = dict(tracked)

        for obj in objects:
            self._reconcile_object(obj, tracked, resolver, owner_id, report)
        report.folders_created = len(resolver.created_ids)

        # PruneOrphans
        self._prune(snapshot, live_keys, live_folder_paths, report)

        logger.info(
            "Sync complete",
            extra={
                "objects": len(objects),
                "added": report.added,
                "folders_created": report.folders_created,
                "removed_files": report.removed_files,
                "removed_folders": report.removed_folders,
                "failures": len(report.failures),
            },
        )
        audit_service.log(
            self.db,
            user_id=owner_id,
            action="sync",
            resource_type="bucket",
            resource_id=getattr(self.store, "bucket", None),
            details={
                "added": report.added,
                "removed_files": report.removed_files,
                "removed_folders": report.removed_folders,
                "failures": len(report.failures),
            },
        )
        return report

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _reconcile_object(
        self,
        obj: ObjectRecord,
        tracked: Dict[str, str],
        resolver: FolderResolver,
        owner_id: str,
        report: SyncReport,
    ) -> None:
        """Make sure one object is represented in metadata. Never raises."""
        try:
            if is_folder_marker(obj.key):
                resolver.resolve(segments_of(obj.key))
                return

            if obj.key in tracked:
                return

            parent_segments, filename = split_key(obj.key)
            folder_id = resolver.resolve(parent_segments)
            record = self.file_repo.add(
                name=filename,
                storage_key=obj.key,
                owner_id=owner_id,
                folder_id=folder_id,
                size=obj.size,
            )
            file_id = record.id
            self.db.commit()
            tracked[obj.key] = file_id
            report.added += 1
        except (VaultException, sqlalchemy.exc.SQLAlchemyError, ValueError) as e:
            self.db.rollback()
            message = e.message if isinstance(e, VaultException) else str(e)
            report.failures.append(SyncFailure(key=obj.key, error=message))
            logger.warning("Sync could not reconcile object", extra={"key": obj.key, "error": message})

    def _prune(
        self,
        snapshot: Dict[str, str],
        live_keys: Set[str],
        live_folder_paths: Set[str],
        report: SyncReport,
    ) -> None:
        try:
            orphan_files = [file_id for key, file_id in snapshot.items() if key not in live_keys]
            report.removed_files = self.file_repo.hard_delete_ids(orphan_files)
            self.db.commit()
            if orphan_files:
                logger.info("Pruned orphaned files", extra={"count": report.removed_files})

            # Paths are derived over every row, trashed ones included, since
            # a live folder may sit under a trashed parent.
            folders = self.folder_repo.list_all()
            by_id = {folder.id: folder for folder in folders}
            orphan_folders: List[str] = []
            for folder in folders:
                if folder.deleted_at is not None:
                    continue
                path = full_path_of(folder.id, by_id, self.max_depth)
                if path is None:
                    report.unresolved_folders += 1
                    logger.warning("Skipping folder with unresolvable path", extra={"folder_id": folder.id})
                    continue
                if path not in live_folder_paths:
                    orphan_folders.append(folder.id)

            # Descendants of a pruned folder go by cascade, so order is irrelevant.
            report.removed_folders = self.folder_repo.hard_delete_ids(orphan_folders)
            self.db.commit()
            if orphan_folders:
                logger.info("Pruned orphaned folders", extra={"count": report.removed_folders})
        except sqlalchemy.exc.SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseError("Failed to prune orphaned metadata", e) from e
