"""Base repository with shared get-by-ID and soft-delete patterns.

Subclasses specify model_class and not_found_error. Every model handled
here carries a ``deleted_at`` column: default queries see only live rows,
the ``*_including_deleted`` variants see the recycle bin too.
"""

from datetime import datetime, timezone
from typing import TypeVar, Generic, Iterable, List, Optional, Type
from sqlalchemy.orm import Session, Query

from ..database import Base
from ..exceptions import VaultException

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Shared repository logic for soft-deletable SQLAlchemy models.

    Class variables to set in subclasses:
        model_class:     The SQLAlchemy model (e.g., Folder)
        not_found_error: Exception class to raise from get_by_id
    """

    model_class: Type[ModelT]
    not_found_error: Type[VaultException]

    def __init__(self, db: Session):
        self.db = db

    def _base_query(self) -> Query:
        """Live rows only."""
        return self.db.query(self.model_class).filter(self.model_class.deleted_at.is_(None))

    def get_by_id(self, entity_id: str) -> ModelT:
        """Get a live entity by primary key. Raises not_found_error if missing."""
        entity = self.get_by_id_optional(entity_id)
        if not entity:
            raise self.not_found_error(entity_id)
        return entity

    def get_by_id_optional(self, entity_id: str) -> Optional[ModelT]:
        """Get a live entity by primary key, or None."""
        return self._base_query().filter(self.model_class.id == entity_id).first()

    def get_by_id_including_deleted(self, entity_id: str) -> Optional[ModelT]:
        return self.db.query(self.model_class).filter(self.model_class.id == entity_id).first()

    def list_live(self) -> List[ModelT]:
        return self._base_query().all()

    def list_deleted(self) -> List[ModelT]:
        """Recycle-bin contents, most recently deleted first."""
        return (
            self.db.query(self.model_class)
            .filter(self.model_class.deleted_at.isnot(None))
            .order_by(self.model_class.deleted_at.desc())
            .all()
        )

    def list_deleted_before(self, cutoff: datetime) -> List[ModelT]:
        return (
            self.db.query(self.model_class)
            .filter(self.model_class.deleted_at.isnot(None))
            .filter(self.model_class.deleted_at < cutoff)
            .all()
        )

    def soft_delete(self, entity: ModelT) -> None:
        """Move to the recycle bin. Idempotent."""
        if entity.deleted_at is None:
            entity.deleted_at = datetime.now(timezone.utc)

    def restore(self, entity: ModelT) -> None:
        """Take out of the recycle bin. Idempotent."""
        entity.deleted_at = None

    def hard_delete_ids(self, entity_ids: Iterable[str]) -> int:
        """Delete rows by id with a single DELETE; the database applies cascades.

        Does not commit. Returns the number of rows removed directly
        (cascaded rows are not counted).
        """
        ids = list(entity_ids)
        if not ids:
            return 0
        return (
            self.db.query(self.model_class)
            .filter(self.model_class.id.in_(ids))
            .delete(synchronize_session=False)
        )
