"""Folder operations for the file manager: create and browse.

Recycle-bin moves live in ``trash_service``; irreversible deletion in
``purge_service``.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import sqlalchemy.exc
from sqlalchemy.orm import Session

from ..core.config import settings
from ..exceptions import DatabaseError, FolderConflictError, ValidationError, VaultException
from ..models import Folder, StoredFile
from ..repositories.file_repository import FileRepository
from ..repositories.folder_repository import FolderRepository
from . import audit_service
from .paths import full_path_of, is_valid_name

logger = logging.getLogger(__name__)


@dataclass
class FolderContents:
    folder: Optional[Folder]
    path: str
    folders: List[Folder]
    files: List[StoredFile]


class FolderService:
    """Folder operations behind a narrow interface.

    Public methods:
        create_folder -- metadata row plus ``<path>/`` marker object
        list_contents -- live subfolders and files of a folder or root
        path_of       -- canonical path of a folder
    """

    def __init__(self, db: Session, store=None):
        self.db = db
        self.store = store
        self.folder_repo = FolderRepository(db)
        self.file_repo = FileRepository(db)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def create_folder(self, name: str, parent_id: Optional[str], owner_id: str) -> tuple[Folder, str]:
        """Create a live folder and its marker object. Returns ``(folder, marker_key)``.

        If the marker cannot be written the row is removed again, so the
        next sync pass does not prune a folder the user just saw created.

        Raises:
            FolderNotFoundError: *parent_id* is not a live folder.
            FolderConflictError: A live sibling already has this name.
        """
        if not is_valid_name(name):
            raise ValidationError("Folder name must be a single non-empty path segment", field="name")

        parent_path = ""
        if parent_id is not None:
            parent = self.folder_repo.get_by_id(parent_id)
            parent_path = self.path_of(parent)

        result = self.folder_repo.insert_live(name, parent_id, owner_id)
        if not result.created:
            raise FolderConflictError(name, parent_id)

        marker_key = f"{parent_path}{name}/"
        try:
            self.store.put_object(marker_key)
        except VaultException:
            self.folder_repo.hard_delete_ids([result.folder_id])
            self.db.commit()
            raise

        audit_service.log(
            self.db, user_id=owner_id, action="create", resource_type="folder",
            resource_id=result.folder_id, details={"key": marker_key},
        )
        return self.folder_repo.get_by_id(result.folder_id), marker_key

    def list_contents(self, folder_id: Optional[str] = None) -> FolderContents:
        """Live subfolders and files directly inside a folder (root when None)."""
        folder = None
        path = ""
        if folder_id is not None:
            folder = self.folder_repo.get_by_id(folder_id)
            path = self.path_of(folder)

        return FolderContents(
            folder=folder,
            path=path,
            folders=self.folder_repo.list_live_children(folder_id),
            files=self.file_repo.list_live_in_folder(folder_id),
        )

    def path_of(self, folder: Folder) -> str:
        """Canonical ``a/b/`` path of *folder*.

        Raises:
            ValidationError: The parent chain is broken, cyclic or too deep.
        """
        try:
            by_id = {f.id: f for f in self.folder_repo.list_all()}
        except sqlalchemy.exc.SQLAlchemyError as e:
            raise DatabaseError("Failed to load folders", e) from e

        path = full_path_of(folder.id, by_id, settings.folder_path_max_depth)
        if path is None:
            raise ValidationError(f"Folder {folder.id} has an unresolvable path")
        return path
