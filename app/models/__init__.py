"""Database models."""

from .folder import Folder
from .file import StoredFile, DEFAULT_CONTENT_TYPE
from .user import User, AuditLog

__all__ = ["Folder", "StoredFile", "DEFAULT_CONTENT_TYPE", "User", "AuditLog"]
