"""
Tests for the SQLite JobStore.

Covers path resolution, schema bootstrap, reads, partial updates and error
mapping.
"""

import os
import sqlite3
from pathlib import Path
from unittest.mock import patch

import pytest

from conftest import insert_job, read_row
from db.job_store import get_job_store
from db.sqlite_store import SqliteJobStore, resolve_db_path
from models.errors import ErrorCode, ToolError


class TestResolveDbPath:
    """Database path resolution."""

    def test_explicit_absolute_path(self):
        assert resolve_db_path("/tmp/x/jobflow.db") == Path("/tmp/x/jobflow.db")

    def test_relative_path_is_repo_relative(self):
        path = resolve_db_path("data/other.db")
        assert path.is_absolute()
        assert path.parts[-2:] == ("data", "other.db")

    def test_env_override(self):
        with patch.dict(os.environ, {"JOBFLOW_DB": "/srv/jobs.db"}, clear=True):
            assert resolve_db_path() == Path("/srv/jobs.db")

    def test_root_env(self):
        with patch.dict(os.environ, {"JOBFLOW_ROOT": "/opt/jobflow"}, clear=True):
            assert resolve_db_path() == Path("/opt/jobflow/data/jobflow.db")

    def test_default(self):
        with patch.dict(os.environ, {}, clear=True):
            path = resolve_db_path()
            assert path.name == "jobflow.db"
            assert path.parent.name == "data"


class TestBootstrap:
    """Schema creation."""

    def test_creates_parent_directories_and_tables(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "jobflow.db"
        SqliteJobStore(str(path)).bootstrap()

        conn = sqlite3.connect(str(path))
        try:
            tables = {
                row[0]
                for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
            }
        finally:
            conn.close()

        assert {"jobs", "job_action_instances", "actions", "action_media"} <= tables

    def test_idempotent(self, db_path):
        SqliteJobStore(str(db_path)).bootstrap()
        SqliteJobStore(str(db_path)).bootstrap()


class TestReads:
    """Fetching jobs and actions."""

    def test_fetch_job_with_actions(self, db_path, store):
        job_id, ids = insert_job(
            db_path,
            name="Filter swap",
            strict_sequence=1,
            actions=[("B", 2, "pending"), ("A", 1, "completed")],
        )

        job = store.fetch_job(job_id)

        assert job.id == job_id
        assert job.name == "Filter swap"
        assert job.strict_sequence is True
        assert [a.id for a in job.actions] == [ids[1], ids[0]]
        assert all(a.job_id == job_id for a in job.actions)

    def test_ties_ordered_by_id(self, db_path, store):
        job_id, ids = insert_job(db_path, actions=[("X", 1, "pending"), ("Y", 1, "pending")])
        assert [a.id for a in store.fetch_actions(job_id)] == ids

    def test_fetch_job_not_found(self, store):
        with pytest.raises(ToolError) as exc_info:
            store.fetch_job("77")
        assert exc_info.value.code == ErrorCode.NOT_FOUND

    def test_fetch_jobs_attaches_actions_per_job(self, db_path, store):
        first, first_ids = insert_job(db_path, actions=[("A", 1, "pending")])
        second, _ = insert_job(db_path)

        jobs = {job.id: job for job in store.fetch_jobs()}

        assert [a.id for a in jobs[first].actions] == first_ids
        assert jobs[second].actions == []

    def test_fetch_jobs_by_assignee(self, db_path, store):
        insert_job(db_path, name="a", assigned_to="u1")
        insert_job(db_path, name="b", assigned_to="u2")

        assert [job.name for job in store.fetch_jobs(assigned_to="u2")] == ["b"]

    def test_fetch_actions_of_unknown_job(self, store):
        assert store.fetch_actions("123") == []

    def test_missing_database(self, tmp_path):
        store = SqliteJobStore(str(tmp_path / "missing.db"))
        with pytest.raises(ToolError) as exc_info:
            store.fetch_jobs()
        assert exc_info.value.code == ErrorCode.DB_NOT_FOUND
        assert str(tmp_path) not in exc_info.value.message


class TestUpdates:
    """Partial updates."""

    def test_absent_keys_unchanged_none_clears(self, db_path, store):
        job_id, ids = insert_job(db_path, actions=[("A", 1, "pending")])
        store.update_action(ids[0], {"notes": "keep me", "completed_at": "2024-01-01T00:00:00Z"})

        store.update_action(ids[0], {"completed_at": None})

        row = read_row(db_path, "job_action_instances", ids[0])
        assert row["notes"] == "keep me"
        assert row["completed_at"] is None
        assert row["status"] == "pending"

    def test_update_job(self, db_path, store):
        job_id, _ = insert_job(db_path)
        store.update_job(job_id, {"status": "completed", "completed_at": "2024-01-01T00:00:00Z"})

        row = read_row(db_path, "jobs", job_id)
        assert row["status"] == "completed"
        assert row["completed_at"] == "2024-01-01T00:00:00Z"

    def test_unknown_field_rejected(self, db_path, store):
        job_id, ids = insert_job(db_path, actions=[("A", 1, "pending")])

        with pytest.raises(ToolError) as exc_info:
            store.update_action(ids[0], {"name": "renamed"})

        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR
        assert "name" in exc_info.value.message

    def test_job_notes_not_writable(self, db_path, store):
        job_id, _ = insert_job(db_path)
        with pytest.raises(ToolError):
            store.update_job(job_id, {"notes": "x"})

    def test_update_missing_row(self, store):
        with pytest.raises(ToolError) as exc_info:
            store.update_action("9999", {"status": "completed"})
        assert exc_info.value.code == ErrorCode.NOT_FOUND

    def test_empty_payload_is_noop(self, store):
        store.update_action("9999", {})


class TestMedia:
    """Media lookup by action name."""

    def test_no_names(self, store):
        assert store.fetch_media_for_actions([]) == {}

    def test_groups_by_name(self, db_path, store):
        conn = sqlite3.connect(str(db_path))
        try:
            template_id = conn.execute("INSERT INTO actions (name) VALUES ('Drain')").lastrowid
            conn.execute(
                "INSERT INTO action_media (action_id, media_url, media_type) VALUES (?, ?, ?)",
                (template_id, "https://cdn.example.com/a.jpg", "image/jpeg"),
            )
            conn.commit()
        finally:
            conn.close()

        media = store.fetch_media_for_actions(["Drain", "Drain", "Refill"])

        assert list(media) == ["Drain"]
        assert media["Drain"][0].media_url == "https://cdn.example.com/a.jpg"
        assert media["Drain"][0].action_id == str(template_id)


class TestGetJobStore:
    """Store selection from configuration."""

    def test_sqlite_backend(self, tmp_path):
        with patch.dict(
            os.environ, {"JOBFLOW_STORE": "sqlite", "JOBFLOW_DB": str(tmp_path / "j.db")}, clear=True
        ):
            from config import Config

            store = get_job_store(Config())

        assert isinstance(store, SqliteJobStore)
        assert store.resolved_path == tmp_path / "j.db"

    def test_rest_backend_requires_credentials(self):
        with patch.dict(os.environ, {"JOBFLOW_STORE": "rest"}, clear=True):
            from config import Config

            with pytest.raises(ToolError) as exc_info:
                get_job_store(Config())

        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR

    def test_unknown_backend(self):
        with patch.dict(os.environ, {"JOBFLOW_STORE": "mongo"}, clear=True):
            from config import Config

            with pytest.raises(ToolError):
                get_job_store(Config())
