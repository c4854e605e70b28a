"""Tests for backend/app/db.py: schema creation and connection pragmas."""

from __future__ import annotations

from unittest.mock import patch

from sqlalchemy import inspect, text
from sqlmodel import create_engine

import app.db as db


def _engine(tmp_path):
    return create_engine(
        f"sqlite:///{tmp_path / 'fresh.db'}",
        connect_args={"check_same_thread": False},
    )


def test_create_db_and_tables_builds_schema(tmp_path):
    eng = _engine(tmp_path)
    with patch("app.db.engine", eng):
        db.create_db_and_tables()

    insp = inspect(eng)
    assert {"notes", "note_usage"} <= set(insp.get_table_names())
    note_columns = {c["name"] for c in insp.get_columns("notes")}
    assert note_columns == {"id", "content", "viewed", "device_id", "created_at"}
    eng.dispose()


def test_create_db_and_tables_is_idempotent(tmp_path):
    eng = _engine(tmp_path)
    with patch("app.db.engine", eng):
        db.create_db_and_tables()
        db.create_db_and_tables()
    assert "notes" in inspect(eng).get_table_names()
    eng.dispose()


def test_connections_use_wal_and_busy_timeout(tmp_path):
    eng = _engine(tmp_path)
    with eng.connect() as conn:
        assert conn.execute(text("PRAGMA journal_mode")).scalar() == "wal"
        assert conn.execute(text("PRAGMA busy_timeout")).scalar() == 5000
        assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1
    eng.dispose()
