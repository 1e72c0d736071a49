"""Recycle-bin listing."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_auth
from ..database import get_db
from ..schemas.sync import TrashItem
from ..services.trash_service import TrashService

router = APIRouter(prefix="/api/trash", tags=["trash"])


@router.get("", response_model=List[TrashItem])
def list_trash(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Trashed folders and files, most recently deleted first."""
    return TrashService(db).list_trash()
