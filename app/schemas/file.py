"""File schemas."""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional


class FileResponse(BaseModel):
    """Schema for file response."""
    id: str
    name: str
    size: int
    content_type: str
    storage_key: str
    owner_id: str
    folder_id: Optional[str] = None
    created_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UploadUrlRequest(BaseModel):
    """Ask for a presigned PUT URL for a file in a folder path ("" = root)."""
    filename: str
    content_type: str = "application/octet-stream"
    folder_path: Optional[str] = None

    @field_validator('filename')
    @classmethod
    def validate_filename(cls, v: str) -> str:
        v = v.strip()
        if not v or '/' in v:
            raise ValueError("Filename must be a single non-empty path segment")
        return v


class UploadUrlResponse(BaseModel):
    url: str
    key: str


class FileRegister(BaseModel):
    """Record an object that the client has finished uploading."""
    storage_key: str
    size: int = Field(default=0, ge=0)
    content_type: str = "application/octet-stream"


class DownloadUrlResponse(BaseModel):
    url: str
