from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import app.models  # noqa: F401  register SQLModel tables

from app.config import get_settings
from app.db import create_db_and_tables
from app.dependencies import ServiceUnavailableError, service_unavailable_handler
from app.routers import health, notes, web

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    create_db_and_tables()

    from app.db import engine as db_engine
    from app.services.destruction import DestructionScheduler
    from app.services.expiry import ExpirySweeper
    from app.services.note_store import NoteStore
    from app.services.reveal import RevealGate
    from app.services.subscription import SubscriptionService
    from app.services.usage import UsageService

    note_store = NoteStore(db_engine)
    app.state.note_store = note_store

    # Deferred content scrubs after a reveal
    scheduler = DestructionScheduler(
        note_store,
        grace_seconds=settings.note_grace_delay_seconds,
        sentinel=settings.note_destroyed_sentinel,
    )
    scheduler.start()
    app.state.destruction_scheduler = scheduler
    app.state.reveal_gate = RevealGate(note_store, scheduler)

    subscription = SubscriptionService(settings)
    if not subscription.configured:
        logger.info("RevenueCat not configured, premium status is local only")
    app.state.usage_service = UsageService(
        db_engine, subscription, free_limit=settings.free_note_limit
    )

    # Hourly deletion of abandoned unread notes
    sweeper = ExpirySweeper(
        note_store,
        retention_days=settings.note_retention_days,
        interval_seconds=settings.note_sweep_interval_seconds,
    )
    sweeper.start()
    app.state.expiry_sweeper = sweeper

    yield

    # Shutdown: cancel expiry sweep
    await sweeper.stop()
    # Shutdown: run pending scrubs now instead of losing them
    scheduler.stop()


app = FastAPI(
    title="DestructNote",
    description="Self-destructing encrypted notes",
    version="0.1.0",
    lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        f"https://{settings.domain}",
        "http://localhost:3000",
        "http://localhost:8081",
    ],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.add_exception_handler(ServiceUnavailableError, service_unavailable_handler)

app.include_router(health.router)
app.include_router(notes.router)
app.include_router(web.router)
