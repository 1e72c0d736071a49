"""Shared test fixtures for the FileVault backend test suite.

Tests run against an in-memory SQLite database (one shared connection via
StaticPool) and an in-memory object store standing in for the S3 bucket.
Each test starts from empty tables and an empty bucket.
"""

import os

# Force auth off and use the test database before any app imports.
os.environ["DATABASE_URL"] = os.environ.get("TEST_DATABASE_URL", "sqlite://")
os.environ["AUTH_ENABLED"] = "false"
os.environ["LOG_FORMAT"] = "text"
os.environ["TRASH_RETENTION_DAYS"] = "0"

from typing import Dict, List, Optional, Set

import pytest
from fastapi.testclient import TestClient

from app.database import Base, get_db, engine, SessionLocal
from app.main import app
from app.core.token_factory import create_token
from app.core.config import settings
from app.exceptions import StorageError
from app.models import Folder, StoredFile
from app.models.folder import new_id
from app.models.user import User
from app.storage import ObjectPage, ObjectRecord, get_object_store


class InMemoryObjectStore:
    """Bucket double with the same interface as ``S3ObjectStore``.

    Listing is lexicographic and continuation tokens are the last key
    returned, like S3's StartAfter. Failures can be injected per operation.
    """

    def __init__(self, bucket: str = "test-bucket", delete_batch_size: int = 1000, max_list_pages: int = 100):
        self.bucket = bucket
        self.delete_batch_size = delete_batch_size
        self.max_list_pages = max_list_pages
        self.objects: Dict[str, int] = {}
        self.fail_list = False
        self.fail_put = False
        self.fail_delete_keys: Set[str] = set()
        self.batch_calls: List[List[str]] = []
        self.deleted: List[str] = []

    def add(self, *keys: str, size: int = 0) -> None:
        for key in keys:
            self.objects[key] = size

    def list_page(self, prefix: str = "", max_keys: int = 1000, continuation_token: Optional[str] = None) -> ObjectPage:
        if self.fail_list:
            raise StorageError("Injected listing failure")
        keys = sorted(k for k in self.objects if k.startswith(prefix))
        if continuation_token is not None:
            keys = [k for k in keys if k > continuation_token]
        page_keys = keys[:max_keys]
        truncated = len(keys) > max_keys
        return ObjectPage(
            objects=[ObjectRecord(key=k, size=self.objects[k]) for k in page_keys],
            is_truncated=truncated,
            next_token=page_keys[-1] if truncated else None,
        )

    def list_objects(self, prefix: str = "") -> List[ObjectRecord]:
        records: List[ObjectRecord] = []
        token = None
        for _ in range(self.max_list_pages):
            page = self.list_page(prefix, continuation_token=token)
            records.extend(page.objects)
            if not page.is_truncated:
                return records
            token = page.next_token
        raise StorageError("Too many pages")

    def delete_object(self, key: str) -> None:
        if key in self.fail_delete_keys:
            raise StorageError(f"Injected delete failure for {key}", key=key)
        self.objects.pop(key, None)
        self.deleted.append(key)

    def delete_objects_batch(self, keys: List[str]) -> int:
        self.batch_calls.append(list(keys))
        failing = [k for k in keys if k in self.fail_delete_keys]
        if failing:
            raise StorageError("Injected batch delete failure", key=failing[0])
        for key in keys:
            self.objects.pop(key, None)
            self.deleted.append(key)
        return len(keys)

    def put_object(self, key: str, body: bytes = b"", content_type: Optional[str] = None) -> None:
        if self.fail_put:
            raise StorageError(f"Injected put failure for {key}", key=key)
        self.objects[key] = len(body)

    def presigned_upload_url(self, key: str, content_type: str, expires_in: int) -> str:
        return f"https://{self.bucket}.example/{key}?op=put&expires={expires_in}"

    def presigned_download_url(self, key: str, filename: str, inline: bool, expires_in: int) -> str:
        disposition = "inline" if inline else "attachment"
        return f"https://{self.bucket}.example/{key}?op=get&disposition={disposition}&expires={expires_in}"


@pytest.fixture(autouse=True)
def _clean_tables():
    """Recreate all tables before each test for isolation."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def store():
    return InMemoryObjectStore()


@pytest.fixture()
def client(db, store):
    """TestClient with the DB session and object store overridden."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_object_store] = lambda: store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def enable_auth(monkeypatch):
    monkeypatch.setattr(settings, "auth_enabled", True)


@pytest.fixture()
def make_user(db):
    def _make(user_id: str = "test-user", role: str = "user", is_active: bool = True) -> dict:
        db.add(User(user_id=user_id, display_name=user_id, role=role, is_active=is_active))
        db.commit()
        token = create_token(subject=user_id, role=role, secret=settings.jwt_secret_key)
        return {"Authorization": f"Bearer {token}"}
    return _make


@pytest.fixture()
def auth_headers(make_user) -> dict:
    """Bearer headers for an approved admin account."""
    return make_user("test-admin", role="admin")


def make_folder(db, name: str, parent_id: Optional[str] = None, owner_id: str = "tester", deleted: bool = False) -> Folder:
    """Insert a folder row directly, bypassing services."""
    from datetime import datetime, timezone

    folder = Folder(
        id=new_id(), name=name, parent_id=parent_id, owner_id=owner_id,
        deleted_at=datetime.now(timezone.utc) if deleted else None,
    )
    db.add(folder)
    db.commit()
    return folder


def make_file(db, storage_key: str, folder_id: Optional[str] = None, owner_id: str = "tester", size: int = 0) -> StoredFile:
    record = StoredFile(
        id=new_id(),
        name=storage_key.rstrip("/").rsplit("/", 1)[-1],
        size=size,
        storage_key=storage_key,
        owner_id=owner_id,
        folder_id=folder_id,
    )
    db.add(record)
    db.commit()
    return record
