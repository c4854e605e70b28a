from __future__ import annotations

import os
import tempfile
import time
from collections.abc import Callable
from unittest.mock import patch

# Set test environment BEFORE importing app modules.
# app.db creates the engine at module level using get_settings().db_url,
# so we must override the env vars before any app imports.
_test_tmp = tempfile.mkdtemp(prefix="destructnote-test-")
os.environ.setdefault("DATA_DIR", os.path.join(_test_tmp, "data"))
os.environ.setdefault("DB_URL", "sqlite://")
os.environ.setdefault("NOTE_GRACE_DELAY_SECONDS", "0.2")
os.environ.setdefault("REVENUECAT_API_KEY", "")

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel, Session, create_engine

from app.main import app as fastapi_app
from app.services.destruction import DestructionScheduler
from app.services.note_store import NoteStore
from app.services.reveal import RevealGate


# ── Database fixtures ─────────────────────────────────────────────────


@pytest.fixture(name="engine")
def engine_fixture(tmp_path):
    """File-backed SQLite engine, one database per test.

    A real file (rather than a shared in-memory connection) lets the
    scrub thread and concurrent readers each hold their own connection,
    the same way they do in production.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'notes.db'}",
        connect_args={"check_same_thread": False},
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


# ── Service fixtures ──────────────────────────────────────────────────


@pytest.fixture(name="store")
def store_fixture(engine) -> NoteStore:
    return NoteStore(engine)


@pytest.fixture(name="scheduler")
def scheduler_fixture(store: NoteStore):
    """Scheduler with a long grace delay: scrubs never fire during a test."""
    scheduler = DestructionScheduler(store, grace_seconds=60, sentinel="[DESTROYED]")
    scheduler.start()
    yield scheduler
    scheduler.stop()


@pytest.fixture(name="gate")
def gate_fixture(store: NoteStore, scheduler: DestructionScheduler) -> RevealGate:
    return RevealGate(store, scheduler)


# ── HTTP client fixtures ──────────────────────────────────────────────


@pytest.fixture(name="client")
def client_fixture(engine):
    """FastAPI TestClient whose lifespan services run on the test engine."""
    with patch("app.db.engine", engine):
        with TestClient(fastapi_app) as client:
            yield client


# ── Helpers ───────────────────────────────────────────────────────────


@pytest.fixture(name="wait_until")
def wait_until_fixture() -> Callable[..., bool]:
    def _wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(0.02)
        return predicate()

    return _wait_until
