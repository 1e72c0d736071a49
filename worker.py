"""
Scheduled worker that keeps metadata in line with the bucket.

Runs a sync pass every SYNC_INTERVAL seconds, so objects written by other
tools (CLI uploads, lifecycle rules) show up without anyone pressing
"sync". Once a day it also purges recycle-bin items older than
TRASH_RETENTION_DAYS.

Usage:
    python worker.py
"""

import logging
import os
import sys
import time
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError

# Add app to path
sys.path.insert(0, os.path.dirname(__file__))

from app.core.config import settings
from app.database import SessionLocal
from app.exceptions import VaultException
from app.services.sync_service import SyncService
from app.services.trash_service import TrashService
from app.storage import get_object_store

SYNC_INTERVAL = settings.sync_interval
SYNC_OWNER_ID = settings.sync_owner_id
TRASH_PURGE_INTERVAL = settings.trash_purge_interval

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s"
)
logger = logging.getLogger("worker")


def run_sync_pass(store) -> bool:
    """Run one reconciliation pass. Returns False if the pass aborted."""
    db = SessionLocal()
    try:
        report = SyncService(db, store).run(owner_id=SYNC_OWNER_ID)
        if report.failures:
            logger.warning(f"Sync pass finished with {len(report.failures)} failed object(s)")
        return True
    except VaultException as e:
        logger.error(f"Sync pass aborted: {e.message}")
        return False
    finally:
        db.close()


def purge_expired_trash(store) -> int:
    db = SessionLocal()
    try:
        return TrashService(db).purge_expired(store)
    except SQLAlchemyError as e:
        logger.error(f"Trash purge failed: {e}")
        return 0
    finally:
        db.close()


def main() -> None:
    """Sync on a fixed interval; purge expired trash once per TRASH_PURGE_INTERVAL."""
    logger.info(f"Worker started, syncing every {SYNC_INTERVAL}s as owner {SYNC_OWNER_ID}")
    store = get_object_store()

    purge_expired_trash(store)
    last_purge = datetime.now(timezone.utc)

    while True:
        try:
            run_sync_pass(store)

            now = datetime.now(timezone.utc)
            if (now - last_purge).total_seconds() >= TRASH_PURGE_INTERVAL:
                purge_expired_trash(store)
                last_purge = now

            time.sleep(SYNC_INTERVAL)
        except KeyboardInterrupt:
            logger.info("Worker shutting down")
            break


if __name__ == "__main__":
    main()
