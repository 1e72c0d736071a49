"""Tests for audit log writes and retention."""

from datetime import datetime, timedelta, timezone

from app.models.user import AuditLog
from app.services import audit_service


class TestAuditLog:

    def test_log_stores_details_as_json(self, db):
        audit_service.log(db, "u1", "purge", "folder", "f-1", {"objects_deleted": 3})
        entry = db.query(AuditLog).one()
        assert entry.action == "purge"
        assert entry.details == '{"objects_deleted": 3}'

    def test_purge_old_entries(self, db):
        audit_service.log(db, "u1", "sync", "bucket")
        old = AuditLog(
            user_id="u1", action="sync", resource_type="bucket",
            created_at=datetime.now(timezone.utc) - timedelta(days=400),
        )
        db.add(old)
        db.commit()

        assert audit_service.purge_old_entries(db, days=365) == 1
        assert db.query(AuditLog).count() == 1

    def test_zero_days_keeps_everything(self, db):
        audit_service.log(db, "u1", "sync", "bucket")
        assert audit_service.purge_old_entries(db, days=0) == 0
