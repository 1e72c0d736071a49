"""Append-only audit trail of state-changing file-manager operations.

Recorded actions: ``sync``, ``purge``, ``trash``, ``restore``, ``create``
and ``upload``. Writing an entry must never break the operation it
describes, so both functions here swallow database errors after logging
and rolling back.

    audit_service.log(db, "u-1", "purge", "folder", "f-123", {"objects_deleted": 4})
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import sqlalchemy.exc
from sqlalchemy.orm import Session

from ..models.user import AuditLog

logger = logging.getLogger(__name__)


def log(
    db: Session,
    user_id: Optional[str],
    action: str,
    resource_type: str,
    resource_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    """Commit one audit entry. *details* is stored as a JSON string."""
    db.add(AuditLog(
        user_id=user_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        details=json.dumps(details) if details else None,
    ))
    try:
        db.commit()
    except sqlalchemy.exc.SQLAlchemyError as e:
        db.rollback()
        logger.warning(
            "Audit entry not recorded: %s", e,
            extra={"action": action, "resource_type": resource_type, "resource_id": resource_id},
        )


def purge_old_entries(db: Session, days: int) -> int:
    """Drop entries older than *days*; ``days <= 0`` keeps everything. Returns rows removed."""
    if days <= 0:
        return 0

    cutoff = datetime.now(timezone.utc) - timedelta(days=days)
    try:
        removed = (
            db.query(AuditLog)
            .filter(AuditLog.created_at < cutoff)
            .delete(synchronize_session=False)
        )
        db.commit()
    except sqlalchemy.exc.SQLAlchemyError as e:
        db.rollback()
        logger.warning("Audit retention purge failed: %s", e)
        return 0
    return removed
