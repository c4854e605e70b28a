from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlmodel import Session, text

from app.db import get_session

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request, session: Session = Depends(get_session)):
    db_status = "ok"
    try:
        session.exec(text("SELECT 1"))
    except Exception as exc:
        db_status = f"error: {exc}"

    # Scrubs waiting for their grace delay
    destruction_status: dict | str = "unavailable"
    scheduler = getattr(request.app.state, "destruction_scheduler", None)
    if scheduler is not None:
        destruction_status = {"pending": scheduler.pending_count}

    sweep_status: dict | str = "unavailable"
    sweeper = getattr(request.app.state, "expiry_sweeper", None)
    if sweeper is not None:
        sweep_status = {
            "last_run_at": sweeper.last_run_at.isoformat() if sweeper.last_run_at else None,
            "last_deleted": sweeper.last_deleted,
        }

    return {
        "status": "healthy" if db_status == "ok" else "unhealthy",
        "service": "destructnote-backend",
        "version": "0.1.0",
        "checks": {
            "database": db_status,
            "destruction": destruction_status,
            "expiry_sweep": sweep_status,
        },
    }


@router.get("/health/ready")
async def readiness(session: Session = Depends(get_session)):
    try:
        session.exec(text("SELECT 1"))
    except Exception as exc:
        return JSONResponse(
            status_code=503,
            content={
                "status": "not ready",
                "service": "destructnote-backend",
                "error": str(exc),
            },
        )

    return {
        "status": "ready",
        "service": "destructnote-backend",
    }
