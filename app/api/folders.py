"""Folder API: create, browse, trash and restore.

Delegates to FolderService and TrashService.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_auth
from ..database import get_db
from ..schemas.file import FileResponse
from ..schemas.folder import (
    FolderContentsResponse,
    FolderCreate,
    FolderCreateResponse,
    FolderResponse,
)
from ..services.folder_service import FolderService
from ..services.trash_service import TrashService
from ..storage import get_object_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/folders", tags=["folders"])


@router.post("", response_model=FolderCreateResponse, status_code=201)
def create_folder(
    data: FolderCreate,
    db: Session = Depends(get_db),
    store=Depends(get_object_store),
    auth: AuthContext = Depends(require_auth),
):
    """Create a folder and write its marker object to the bucket."""
    folder, key = FolderService(db, store).create_folder(data.name, data.parent_id, auth.user_id)
    return FolderCreateResponse(folder=FolderResponse.model_validate(folder), storage_key=key)


@router.get("/contents", response_model=FolderContentsResponse)
def list_folder_contents(
    folder_id: Optional[str] = Query(None, description="Folder to list; omit for root"),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    contents = FolderService(db).list_contents(folder_id)
    return FolderContentsResponse(
        folder=FolderResponse.model_validate(contents.folder) if contents.folder else None,
        path=contents.path,
        folders=[FolderResponse.model_validate(f) for f in contents.folders],
        files=[FileResponse.model_validate(f) for f in contents.files],
    )


@router.delete("/{folder_id}", status_code=204)
def trash_folder(
    folder_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Move a folder to the recycle bin."""
    TrashService(db).trash_folder(folder_id, user_id=auth.user_id)


@router.post("/{folder_id}/restore", status_code=204)
def restore_folder(
    folder_id: str,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    TrashService(db).restore_folder(folder_id, user_id=auth.user_id)
