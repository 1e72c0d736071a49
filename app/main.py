"""FileVault API application: wiring, startup checks, health endpoints."""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import func, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models
from .database import engine, Base, get_db, SessionLocal, DATABASE_URL
from .api import sync_router, folders_router, files_router, trash_router
from .core.config import settings, ConfigurationError, Environment
from .core.logging_config import setup_logging
from .middleware.exception_handler import vault_exception_handler
from .middleware.request_context import RequestContextMiddleware
from .exceptions import VaultException
from .services import TrashService
from .services import audit_service
from .storage import get_object_store

setup_logging(log_level=settings.log_level, log_format=settings.log_format)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"
_DB_LABEL = make_url(DATABASE_URL).render_as_string(hide_password=True)


def _check_database() -> None:
    """Exit the process with a readable message if the metadata DB is unreachable."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        hint = (
            "Check that the directory exists and is writable."
            if DATABASE_URL.startswith("sqlite")
            else "Check that the server is up and DATABASE_URL credentials are correct."
        )
        logger.critical(f"Cannot reach metadata database {_DB_LABEL}. {hint}\n  Error: {e}")
        raise SystemExit(1) from e
    logger.info(f"Metadata database reachable: {_DB_LABEL}")


_check_database()

# Creates missing tables and partial unique indexes; existing tables are left as they are.
Base.metadata.create_all(bind=engine)


def _purge_expired_trash() -> None:
    if settings.trash_retention_days <= 0 or not settings.aws_bucket_name:
        return
    db = SessionLocal()
    try:
        purged = TrashService(db).purge_expired(get_object_store())
        if purged:
            logger.info(f"Startup: purged {purged} recycle-bin items past retention")
    except (VaultException, SQLAlchemyError) as e:
        logger.warning(f"Startup trash purge skipped: {e}")
    finally:
        db.close()


def _purge_audit_log() -> None:
    db = SessionLocal()
    try:
        removed = audit_service.purge_old_entries(db, days=settings.audit_retention_days)
        if removed:
            logger.info(f"Startup: removed {removed} audit entries older than {settings.audit_retention_days} days")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Environment: {settings.environment.value}")
    try:
        settings.validate_production_config()
    except ConfigurationError as e:
        logger.critical(f"STARTUP BLOCKED: {e}")
        raise SystemExit(1) from e

    if settings.environment == Environment.DEVELOPMENT:
        for problem in settings.insecure_settings():
            logger.warning(f"SECURITY: {problem}")

    _purge_expired_trash()
    _purge_audit_log()

    yield


app = FastAPI(
    title="FileVault API",
    description=(
        "REST API for a cloud file manager backed by an S3 bucket. "
        "Folders and files are tracked as metadata rows; `POST /api/sync` "
        "reconciles them against the bucket contents.\n\n"
        "**Authentication:** When `AUTH_ENABLED=true`, every `/api` endpoint requires a "
        "`Bearer` token in the `Authorization` header, and permanent deletion requires "
        "an admin account."
    ),
    version=API_VERSION,
    lifespan=lifespan,
)

# CORS is added last so it wraps the request-context middleware.
app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
)

app.add_exception_handler(VaultException, vault_exception_handler)

for router in (sync_router, folders_router, files_router, trash_router):
    app.include_router(router)

logger.info(
    "FileVault API ready | env=%s | db=%s | bucket=%s | auth=%s",
    settings.environment.value,
    make_url(DATABASE_URL).get_backend_name(),
    settings.aws_bucket_name or "-",
    "on" if settings.auth_enabled else "off",
)


@app.get("/")
def root():
    return {"name": "FileVault API", "version": API_VERSION, "status": "running"}


_started = time.monotonic()


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """Database status, uptime and live file count.

    Never raises; a database failure is reported as ``degraded`` so load
    balancers can still probe without receiving 5xx.
    """
    try:
        file_count = (
            db.query(func.count(models.StoredFile.id))
            .filter(models.StoredFile.deleted_at.is_(None))
            .scalar()
        ) or 0
        db_ok = True
    except SQLAlchemyError:
        logger.exception("Health check query failed")
        file_count, db_ok = 0, False

    return {
        "status": "healthy" if db_ok else "degraded",
        "db": "ok" if db_ok else "error",
        "uptime_seconds": round(time.monotonic() - _started),
        "version": API_VERSION,
        "file_count": file_count,
    }
