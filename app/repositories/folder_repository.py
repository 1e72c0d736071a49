"""Repository for folder database operations."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

import sqlalchemy.exc

from ..exceptions import FolderNotFoundError
from ..models import Folder
from ..models.folder import new_id
from .base import BaseRepository

logger = logging.getLogger(__name__)


class InsertOutcome(str, Enum):
    CREATED = "created"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class FolderInsert:
    """Result of ``FolderRepository.insert_live``.

    ``folder_id`` is set only when ``outcome`` is CREATED. A CONFLICT means
    the insert violated a constraint (normally the live-sibling unique
    index because a concurrent writer created the same folder first) and
    the caller should re-read.
    """
    outcome: InsertOutcome
    folder_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def created(self) -> bool:
        return self.outcome == InsertOutcome.CREATED


class FolderRepository(BaseRepository[Folder]):
    """Data access layer for folders."""

    model_class = Folder
    not_found_error = FolderNotFoundError

    def list_all(self) -> List[Folder]:
        """Live and soft-deleted folders; used for path derivation."""
        return self.db.query(Folder).all()

    def find_live_child(self, parent_id: Optional[str], name: str) -> Optional[Folder]:
        query = self._base_query().filter(Folder.name == name)
        if parent_id is None:
            query = query.filter(Folder.parent_id.is_(None))
        else:
            query = query.filter(Folder.parent_id == parent_id)
        return query.first()

    def list_live_children(self, parent_id: Optional[str]) -> List[Folder]:
        query = self._base_query()
        if parent_id is None:
            query = query.filter(Folder.parent_id.is_(None))
        else:
            query = query.filter(Folder.parent_id == parent_id)
        return query.order_by(Folder.name).all()

    def insert_live(self, name: str, parent_id: Optional[str], owner_id: str) -> FolderInsert:
        """Insert and commit one live folder row.

        The commit is immediate so a losing concurrent insert fails here,
        on its own, and rolling it back discards nothing else.
        """
        folder = Folder(id=new_id(), name=name, parent_id=parent_id, owner_id=owner_id)
        self.db.add(folder)
        try:
            self.db.commit()
        except sqlalchemy.exc.IntegrityError as e:
            self.db.rollback()
            logger.info(
                "Folder insert lost to an existing row",
                extra={"folder_name": name, "parent_id": parent_id},
            )
            return FolderInsert(outcome=InsertOutcome.CONFLICT, error=str(e.orig))
        return FolderInsert(outcome=InsertOutcome.CREATED, folder_id=folder.id)
