"""Tests for find-or-create folder chains."""

import pytest

from app.exceptions import FolderConflictError
from app.models import Folder
from app.repositories.folder_repository import FolderRepository, InsertOutcome
from app.services.folder_resolver import FolderResolver
from tests.conftest import make_folder


class TestResolve:

    def test_empty_segments_is_root(self, db):
        assert FolderResolver(db, "u1").resolve([]) is None

    def test_creates_missing_chain(self, db):
        resolver = FolderResolver(db, "u1")
        leaf_id = resolver.resolve(["a", "b"])

        leaf = db.get(Folder, leaf_id)
        parent = db.get(Folder, leaf.parent_id)
        assert (parent.name, leaf.name) == ("a", "b")
        assert parent.parent_id is None
        assert leaf.owner_id == "u1"
        assert len(resolver.created_ids) == 2

    def test_resolving_twice_returns_same_id(self, db):
        resolver = FolderResolver(db, "u1")
        first = resolver.resolve(["a", "b"])
        assert resolver.resolve(["a", "b"]) == first
        assert db.query(Folder).count() == 2

    def test_reuses_existing_folders(self, db):
        docs = make_folder(db, "Docs")
        resolver = FolderResolver(db, "u1")
        assert resolver.resolve(["Docs"]) == docs.id
        assert resolver.created_ids == []

    def test_preload_fills_cache(self, db):
        docs = make_folder(db, "Docs")
        make_folder(db, "Old", deleted=True)
        cache = {}
        resolver = FolderResolver(db, "u1", cache=cache)

        assert resolver.preload() == 1
        assert cache == {(None, "Docs"): docs.id}

    def test_trashed_folder_is_not_reused(self, db):
        trashed = make_folder(db, "Old", deleted=True)
        folder_id = FolderResolver(db, "u1").resolve(["Old"])
        assert folder_id != trashed.id


class TestConcurrentCreation:

    def test_insert_conflict_rereads_winner(self, db):
        # Preloaded before the competing row exists, so the cache is stale.
        resolver = FolderResolver(db, "u1", cache={})
        resolver.preload()
        winner = make_folder(db, "Docs", owner_id="u2")

        assert resolver.resolve(["Docs"]) == winner.id
        assert resolver.created_ids == []
        assert db.query(Folder).filter(Folder.name == "Docs").count() == 1

    def test_repository_reports_conflict(self, db):
        repo = FolderRepository(db)
        assert repo.insert_live("Docs", None, "u1").outcome == InsertOutcome.CREATED
        result = repo.insert_live("Docs", None, "u2")
        assert result.outcome == InsertOutcome.CONFLICT
        assert result.folder_id is None

    def test_same_name_allowed_under_different_parents(self, db):
        repo = FolderRepository(db)
        a = repo.insert_live("a", None, "u1")
        b = repo.insert_live("b", None, "u1")
        assert repo.insert_live("x", a.folder_id, "u1").created
        assert repo.insert_live("x", b.folder_id, "u1").created

    def test_conflict_without_winner_raises(self, db, monkeypatch):
        resolver = FolderResolver(db, "u1", cache={})
        resolver.preload()
        make_folder(db, "Docs")
        monkeypatch.setattr(resolver.folder_repo, "find_live_child", lambda parent_id, name: None)

        with pytest.raises(FolderConflictError):
            resolver.resolve(["Docs"])
