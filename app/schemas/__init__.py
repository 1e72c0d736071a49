"""Pydantic schemas for API validation."""

from .file import (
    FileResponse,
    FileRegister,
    UploadUrlRequest,
    UploadUrlResponse,
    DownloadUrlResponse,
)
from .folder import (
    FolderCreate,
    FolderResponse,
    FolderCreateResponse,
    FolderContentsResponse,
)
from .sync import SyncResponse, PurgeRequest, PurgeResponse, TrashItem

__all__ = [
    "FileResponse",
    "FileRegister",
    "UploadUrlRequest",
    "UploadUrlResponse",
    "DownloadUrlResponse",
    "FolderCreate",
    "FolderResponse",
    "FolderCreateResponse",
    "FolderContentsResponse",
    "SyncResponse",
    "PurgeRequest",
    "PurgeResponse",
    "TrashItem",
]
