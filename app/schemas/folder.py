"""Folder schemas."""

from pydantic import BaseModel, field_validator
from datetime import datetime
from typing import Optional, List

from .file import FileResponse


class FolderCreate(BaseModel):
    """Schema for creating a folder under a parent (None = root)."""
    name: str
    parent_id: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Folder name cannot be empty")
        if '/' in v:
            raise ValueError("Folder name cannot contain '/'")
        return v


class FolderResponse(BaseModel):
    """Schema for folder response."""
    id: str
    name: str
    parent_id: Optional[str] = None
    owner_id: str
    created_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FolderCreateResponse(BaseModel):
    """Created folder plus the marker object written for it."""
    folder: FolderResponse
    storage_key: str


class FolderContentsResponse(BaseModel):
    """Live children of one folder (``folder`` is None for root)."""
    folder: Optional[FolderResponse] = None
    path: str
    folders: List[FolderResponse]
    files: List[FileResponse]
