"""Data access repositories."""

from .base import BaseRepository
from .file_repository import FileRepository
from .folder_repository import FolderInsert, FolderRepository, InsertOutcome

__all__ = [
    "BaseRepository",
    "FileRepository",
    "FolderInsert",
    "FolderRepository",
    "InsertOutcome",
]
