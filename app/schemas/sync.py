"""Schemas for reconciliation, permanent deletion and the recycle bin."""

from pydantic import BaseModel
from datetime import datetime
from typing import Literal, Optional


class SyncResponse(BaseModel):
    """Summary of one reconciliation pass. Per-item failures are log-only."""
    message: str = "Sync complete"
    added: int
    removed_files: int = 0
    removed_folders: int = 0


class PurgeRequest(BaseModel):
    id: str
    type: Literal["file", "folder"]


class PurgeResponse(BaseModel):
    success: bool = True


class TrashItem(BaseModel):
    """One entry in the recycle bin."""
    id: str
    name: str
    type: Literal["file", "folder"]
    size: Optional[int] = None
    deleted_at: datetime
