"""Bucket reconciliation and permanent deletion endpoints.

Thin handlers; SyncService and PurgeService do the work.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_admin, require_auth
from ..database import get_db
from ..schemas.sync import PurgeRequest, PurgeResponse, SyncResponse
from ..services.purge_service import PurgeService
from ..services.sync_service import SyncService
from ..storage import get_object_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["sync"])


@router.post("/sync", response_model=SyncResponse)
def sync_bucket(
    db: Session = Depends(get_db),
    store=Depends(get_object_store),
    auth: AuthContext = Depends(require_auth),
):
    """Bring folder and file metadata in line with the bucket contents."""
    report = SyncService(db, store).run(owner_id=auth.user_id)
    return SyncResponse(
        added=report.added,
        removed_files=report.removed_files,
        removed_folders=report.removed_folders,
    )


@router.post("/delete-permanent", response_model=PurgeResponse)
def delete_permanent(
    data: PurgeRequest,
    db: Session = Depends(get_db),
    store=Depends(get_object_store),
    auth: AuthContext = Depends(require_admin),
):
    """Irreversibly delete a file or folder, objects before metadata."""
    PurgeService(db, store).purge(data.id, data.type, user_id=auth.user_id)
    return PurgeResponse()
