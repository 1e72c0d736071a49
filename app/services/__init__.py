"""Business logic services."""

from .file_service import FileService
from .folder_service import FolderService
from .purge_service import PurgeService
from .sync_service import SyncService
from .trash_service import TrashService

__all__ = ["FileService", "FolderService", "PurgeService", "SyncService", "TrashService"]
