"""File API: presigned upload and download, registration, trash and restore."""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_auth
from ..database import get_db
from ..schemas.file import (
    DownloadUrlResponse,
    FileRegister,
    FileResponse,
    UploadUrlRequest,
    UploadUrlResponse,
)
from ..services.file_service import FileService
from ..services.trash_service import TrashService
from ..storage import get_object_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/files", tags=["files"])


@router.post("/upload-url", response_model=UploadUrlResponse)
def request_upload_url(
    data: UploadUrlRequest,
    db: Session = Depends(get_db),
    store=Depends(get_object_store),
    auth: AuthContext = Depends(require_auth),
):
    """Presigned PUT URL; the client uploads directly to the bucket."""
    url, key = FileService(db, store).request_upload(data.filename, data.content_type, data.folder_path)
    return UploadUrlResponse(url=url, key=key)


@router.post("", response_model=FileResponse, status_code=201)
def register_file(
    data: FileRegister,
    db: Session = Depends(get_db),
    store=Depends(get_object_store),
    auth: AuthContext = Depends(require_auth),
):
    """Record a finished upload."""
    return FileService(db, store).register_upload(
        data.storage_key, data.size, data.content_type, owner_id=auth.user_id
    )


@router.get("/{file_id}/download", response_model=DownloadUrlResponse)
def download_file(
    file_id: str,
    inline: bool = Query(False, description="Render in the browser instead of saving"),
    db: Session = Depends(get_db),
    store=Depends(get_object_store),
    auth: AuthContext = Depends(require_auth),
):
    return DownloadUrlResponse(url=FileService(db, store).download_url(file_id, inline=inline))


@router.delete("/{file_id}", status_code=204)
def trash_file(
    file_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Move a file to the recycle bin."""
    TrashService(db).trash_file(file_id, user_id=auth.user_id)


@router.post("/{file_id}/restore", status_code=204)
def restore_file(
    file_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    TrashService(db).restore_file(file_id, user_id=auth.user_id)
