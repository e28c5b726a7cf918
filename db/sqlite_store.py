"""
SQLite implementation of the JobStore contract.

Every call opens its own connection and commits its own write, so a cascade
of updates is applied one statement at a time; a failure part-way leaves the
earlier updates in place.
"""

import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence

from db.job_store import ACTION_UPDATE_FIELDS, JOB_UPDATE_FIELDS, check_update_payload
from models.errors import (
    create_db_error,
    create_db_not_found_error,
    create_not_found_error,
)
from schemas.job import Action, ActionMedia, Job
from utils.media import group_media_by_action_name

logger = logging.getLogger(__name__)

# Default database path relative to repository root
DEFAULT_DB_PATH = "data/jobflow.db"

_JOB_COLUMNS = (
    "id, name, status, strict_sequence, assigned_to, template_id, "
    "scheduled_date, completed_at, created_at"
)
_ACTION_COLUMNS = (
    "id, job_id, name, description, sequence_order, status, notes, completed_at, created_at"
)


def resolve_db_path(db_path: Optional[str] = None) -> Path:
    """
    Resolve the database path with support for overrides and defaults.

    Resolution order:
    1. Provided db_path parameter
    2. JOBFLOW_DB environment variable
    3. JOBFLOW_ROOT/data/jobflow.db
    4. Default path: data/jobflow.db

    Args:
        db_path: Optional database path override

    Returns:
        Resolved absolute Path to the database
    """
    if db_path is not None:
        path_str = db_path
    else:
        db_env = os.getenv("JOBFLOW_DB")
        if db_env:
            path_str = db_env
        else:
            root_env = os.getenv("JOBFLOW_ROOT")
            if root_env:
                return Path(root_env) / "data" / "jobflow.db"
            path_str = DEFAULT_DB_PATH

    path = Path(path_str)

    if not path.is_absolute():
        repo_root = Path(__file__).resolve().parents[1]  # db/ -> repo/
        path = repo_root / path

    return path


def bootstrap_schema(conn: sqlite3.Connection) -> None:
    """
    Create the jobs, action instance, action template and media tables.

    This operation is idempotent - safe to call on existing databases.

    Raises:
        ToolError: If schema creation fails
    """
    try:
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS jobs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'ready',
                strict_sequence INTEGER NOT NULL DEFAULT 0,
                assigned_to TEXT,
                template_id TEXT,
                scheduled_date TEXT,
                completed_at TEXT,
                created_at TEXT
            );

            CREATE TABLE IF NOT EXISTS job_action_instances (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                job_id INTEGER NOT NULL REFERENCES jobs(id),
                name TEXT NOT NULL,
                description TEXT,
                sequence_order INTEGER NOT NULL,
                status TEXT DEFAULT 'pending',
                notes TEXT,
                completed_at TEXT,
                created_at TEXT
            );

            CREATE INDEX IF NOT EXISTS idx_job_action_instances_job
            ON job_action_instances(job_id, sequence_order);

            CREATE TABLE IF NOT EXISTS actions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                description TEXT,
                created_at TEXT
            );

            CREATE TABLE IF NOT EXISTS action_media (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                action_id INTEGER NOT NULL REFERENCES actions(id),
                media_url TEXT NOT NULL,
                media_type TEXT NOT NULL,
                created_at TEXT
            );
        """)
        conn.commit()

    except sqlite3.Error as e:
        raise create_db_error(
            f"Failed to bootstrap schema: {str(e)}", retryable=False, original_error=e
        ) from e


class SqliteJobStore:
    """
    JobStore backed by a local SQLite file.

    Usage:
        store = SqliteJobStore("data/jobflow.db")
        job = store.fetch_job("1")
        store.update_action("3", {"status": "completed", "completed_at": ts})
    """

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path
        self.resolved_path = resolve_db_path(db_path)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """
        Open a connection to an existing database file.

        Yields:
            sqlite3.Connection with dictionary-style rows

        Raises:
            ToolError: If the database file doesn't exist or the connection fails
        """
        if not self.resolved_path.is_file():
            raise create_db_not_found_error(str(self.resolved_path))

        conn = None
        try:
            conn = sqlite3.connect(str(self.resolved_path))
            conn.row_factory = sqlite3.Row
            yield conn

        except sqlite3.OperationalError as e:
            error_msg = str(e)
            if "unable to open database" in error_msg.lower():
                raise create_db_not_found_error(str(self.resolved_path)) from e
            raise create_db_error(error_msg, retryable=True, original_error=e) from e

        except sqlite3.Error as e:
            raise create_db_error(str(e), retryable=False, original_error=e) from e

        finally:
            if conn is not None:
                conn.close()

    def bootstrap(self) -> None:
        """Create the database file (and parent directories) and the schema."""
        try:
            self.resolved_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise create_db_error(
                f"Failed to create parent directories: {str(e)}", retryable=False, original_error=e
            ) from e

        conn = sqlite3.connect(str(self.resolved_path))
        try:
            bootstrap_schema(conn)
        finally:
            conn.close()

    def _actions_for_jobs(
        self, conn: sqlite3.Connection, job_ids: Sequence[Any]
    ) -> Dict[str, List[Action]]:
        if not job_ids:
            return {}
        placeholders = ",".join("?" * len(job_ids))
        rows = conn.execute(
            f"SELECT {_ACTION_COLUMNS} FROM job_action_instances "
            f"WHERE job_id IN ({placeholders}) ORDER BY sequence_order ASC, id ASC",
            list(job_ids),
        ).fetchall()

        grouped: Dict[str, List[Action]] = {}
        for row in rows:
            action = Action.model_validate(dict(row))
            grouped.setdefault(action.job_id, []).append(action)
        return grouped

    def fetch_jobs(self, assigned_to: Optional[str] = None) -> List[Job]:
        with self._connect() as conn:
            if assigned_to is None:
                rows = conn.execute(f"SELECT {_JOB_COLUMNS} FROM jobs ORDER BY id ASC").fetchall()
            else:
                rows = conn.execute(
                    f"SELECT {_JOB_COLUMNS} FROM jobs WHERE assigned_to = ? ORDER BY id ASC",
                    (assigned_to,),
                ).fetchall()

            actions_by_job = self._actions_for_jobs(conn, [row["id"] for row in rows])

        jobs = []
        for row in rows:
            job = Job.model_validate(dict(row))
            job.actions = actions_by_job.get(job.id, [])
            jobs.append(job)

        logger.debug("Fetched %d jobs (assigned_to=%s)", len(jobs), assigned_to)
        return jobs

    def fetch_job(self, job_id: str) -> Job:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_JOB_COLUMNS} FROM jobs WHERE id = ?", (job_id,)
            ).fetchone()
            if row is None:
                raise create_not_found_error("Job", job_id)
            actions_by_job = self._actions_for_jobs(conn, [row["id"]])

        job = Job.model_validate(dict(row))
        job.actions = actions_by_job.get(job.id, [])
        return job

    def fetch_actions(self, job_id: str) -> List[Action]:
        with self._connect() as conn:
            return self._actions_for_jobs(conn, [job_id]).get(str(job_id), [])

    def _update_row(
        self, table: str, entity: str, row_id: str, payload: Dict[str, Any]
    ) -> None:
        if not payload:
            return

        # Column names come from the allow-listed payload keys only.
        assignments = ", ".join(f"{column} = ?" for column in payload)
        params = list(payload.values()) + [row_id]

        with self._connect() as conn:
            cursor = conn.execute(f"UPDATE {table} SET {assignments} WHERE id = ?", params)
            if cursor.rowcount == 0:
                raise create_not_found_error(entity, row_id)
            conn.commit()

        logger.debug("Updated %s %s: %s", entity.lower(), row_id, sorted(payload))

    def update_action(self, action_id: str, payload: Dict[str, Any]) -> None:
        check_update_payload(payload, ACTION_UPDATE_FIELDS)
        self._update_row("job_action_instances", "Action", action_id, payload)

    def update_job(self, job_id: str, payload: Dict[str, Any]) -> None:
        check_update_payload(payload, JOB_UPDATE_FIELDS)
        self._update_row("jobs", "Job", job_id, payload)

    def fetch_media_for_actions(
        self, action_names: Sequence[str]
    ) -> Dict[str, List[ActionMedia]]:
        names = list(dict.fromkeys(action_names))
        if not names:
            return {}

        with self._connect() as conn:
            placeholders = ",".join("?" * len(names))
            template_rows = conn.execute(
                f"SELECT id, name FROM actions WHERE name IN ({placeholders})", names
            ).fetchall()
            if not template_rows:
                return {}

            names_by_id = {str(row["id"]): row["name"] for row in template_rows}
            id_placeholders = ",".join("?" * len(names_by_id))
            media_rows = conn.execute(
                f"SELECT id, action_id, media_url, media_type, created_at FROM action_media "
                f"WHERE action_id IN ({id_placeholders}) ORDER BY id ASC",
                [row["id"] for row in template_rows],
            ).fetchall()

        media = [ActionMedia.model_validate(dict(row)) for row in media_rows]
        return group_media_by_action_name(names_by_id, media)
