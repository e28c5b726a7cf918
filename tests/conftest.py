"""Shared fixtures: a bootstrapped SQLite store and a job seeding helper."""

import sqlite3

import pytest

from db.sqlite_store import SqliteJobStore


def insert_job(db_path, name="Job", actions=(), **job_fields):
    """
    Insert a job and its action instances directly with SQL.

    ``actions`` is a sequence of ``(name, sequence_order, status)`` tuples.

    Returns:
        (job_id, [action_id, ...]) as strings, actions in insertion order
    """
    conn = sqlite3.connect(str(db_path))
    try:
        columns = ["name"] + list(job_fields)
        values = [name] + list(job_fields.values())
        cursor = conn.execute(
            f"INSERT INTO jobs ({', '.join(columns)}) VALUES ({', '.join('?' * len(values))})",
            values,
        )
        job_id = cursor.lastrowid

        action_ids = []
        for action_name, sequence_order, status in actions:
            cursor = conn.execute(
                "INSERT INTO job_action_instances (job_id, name, sequence_order, status) "
                "VALUES (?, ?, ?, ?)",
                (job_id, action_name, sequence_order, status),
            )
            action_ids.append(str(cursor.lastrowid))

        conn.commit()
    finally:
        conn.close()

    return str(job_id), action_ids


def read_row(db_path, table, row_id):
    """Read one row as a dict straight from SQLite."""
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    try:
        row = conn.execute(f"SELECT * FROM {table} WHERE id = ?", (row_id,)).fetchone()
        return dict(row) if row is not None else None
    finally:
        conn.close()


@pytest.fixture
def db_path(tmp_path):
    """Path to a freshly bootstrapped database."""
    path = tmp_path / "jobflow.db"
    SqliteJobStore(str(path)).bootstrap()
    return path


@pytest.fixture
def store(db_path):
    """SqliteJobStore over the bootstrapped database."""
    return SqliteJobStore(str(db_path))
