"""Find-or-create folder chains from path segments.

A ``FolderResolver`` turns ``["a", "b"]`` into the id of folder ``b`` under
folder ``a`` under root, creating whatever is missing. Lookups go through a
``FolderCache`` keyed by ``(parent_id, name)`` (``parent_id`` is ``None``
at root). The cache is owned by the caller and lives for one invocation;
the database stays authoritative.

There is no lock around folder creation. The unique index on live
``(parent_id, name)`` decides races: the losing insert comes back as a
CONFLICT result and the resolver re-reads the winner's row once.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from ..exceptions import FolderConflictError
from ..repositories.folder_repository import FolderRepository

logger = logging.getLogger(__name__)

FolderCache = Dict[Tuple[Optional[str], str], str]


class FolderResolver:
    """Resolve segment chains to folder ids, creating missing folders.

    Folders created here are owned by *owner_id*, the account on whose
    behalf the caller runs.
    """

    def __init__(self, db: Session, owner_id: str, cache: Optional[FolderCache] = None):
        self.folder_repo = FolderRepository(db)
        self.owner_id = owner_id
        self.cache: FolderCache = cache if cache is not None else {}
        self.created_ids: List[str] = []
        self._preloaded = False

    def preload(self) -> int:
        """Fill the cache with every live folder in one query.

        After this, cache misses go straight to insert; without it, each
        miss is checked against the database first.
        """
        folders = self.folder_repo.list_live()
        for folder in folders:
            self.cache.setdefault((folder.parent_id, folder.name), folder.id)
        self._preloaded = True
        return len(folders)

    def resolve(self, segments: Sequence[str]) -> Optional[str]:
        """Return the id of the folder at *segments*; ``None`` means root.

        Idempotent: resolving the same chain again returns the same id.

        Raises:
            FolderConflictError: An insert failed and no winning row exists
                to fall back to (e.g. the parent vanished mid-run).
        """
        parent_id: Optional[str] = None
        for name in segments:
            parent_id = self._resolve_child(parent_id, name)
        return parent_id

    def _resolve_child(self, parent_id: Optional[str], name: str) -> str:
        key = (parent_id, name)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        if not self._preloaded:
            existing = self.folder_repo.find_live_child(parent_id, name)
            if existing is not None:
                self.cache[key] = existing.id
                return existing.id

        result = self.folder_repo.insert_live(name, parent_id, self.owner_id)
        if result.created:
            folder_id = result.folder_id
            self.created_ids.append(folder_id)
            logger.debug("Folder created", extra={"folder_id": folder_id, "folder_name": name, "parent_id": parent_id})
        else:
            winner = self.folder_repo.find_live_child(parent_id, name)
            if winner is None:
                raise FolderConflictError(name, parent_id)
            folder_id = winner.id

        self.cache[key] = folder_id
        return folder_id
