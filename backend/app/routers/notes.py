"""Notes JSON API: create notes, check quota, and read-and-destroy by id."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.dependencies import get_note_store, get_reveal_gate, get_usage_service
from app.models.note import (
    CreateNoteResponse,
    ErrorCode,
    GetNoteResponse,
    NoteCreate,
    NoteErrorResponse,
)
from app.models.usage import NoteUsageResponse, UpgradeRequest, UpgradeResponse
from app.services.note_store import NoteStore
from app.services.reveal import RevealGate, RevealOutcome
from app.services.usage import UsageService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notes", tags=["notes"])


def _error(status_code: int, message: str, code: ErrorCode) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=NoteErrorResponse(error=message, code=code).model_dump(),
    )


def note_not_found() -> JSONResponse:
    return _error(404, "Note not found", "NOT_FOUND")


def note_already_viewed() -> JSONResponse:
    return _error(410, "This note has already been viewed and destroyed", "ALREADY_VIEWED")


def server_error(message: str) -> JSONResponse:
    return _error(500, message, "SERVER_ERROR")


@router.get("/usage/{device_id}", response_model=NoteUsageResponse)
async def get_usage(
    device_id: str,
    usage_service: UsageService = Depends(get_usage_service),
) -> NoteUsageResponse:
    try:
        usage = await usage_service.get_or_create(device_id, verify_subscription=True)
    except Exception:
        # Never block the client on a quota lookup failure
        logger.exception("Failed to get usage for device %s", device_id)
        return NoteUsageResponse(
            count=0, limit=usage_service.free_limit, is_premium=False, can_create=True
        )

    return NoteUsageResponse(
        count=usage.count,
        limit=usage_service.free_limit,
        is_premium=usage.is_premium,
        can_create=usage_service.can_create(usage),
    )


@router.post("/upgrade", response_model=UpgradeResponse)
async def upgrade(
    body: UpgradeRequest,
    usage_service: UsageService = Depends(get_usage_service),
):
    try:
        usage_service.upgrade(body.device_id)
    except Exception:
        logger.exception("Failed to upgrade device %s", body.device_id)
        return JSONResponse(
            status_code=500,
            content=UpgradeResponse(success=False, is_premium=False).model_dump(by_alias=True),
        )

    logger.info("Device upgraded to premium: %s", body.device_id)
    return UpgradeResponse(success=True, is_premium=True)


@router.post("", response_model=CreateNoteResponse)
async def create_note(
    body: NoteCreate,
    store: NoteStore = Depends(get_note_store),
    usage_service: UsageService = Depends(get_usage_service),
):
    max_length = get_settings().note_max_content_length
    if len(body.content) > max_length:
        raise HTTPException(
            status_code=422, detail=f"Note is too long (max {max_length} characters)"
        )

    try:
        await usage_service.get_or_create(body.device_id, verify_subscription=True)
        reserved = usage_service.reserve_slot(body.device_id)
    except Exception:
        logger.exception("Failed to check usage for device %s", body.device_id)
        return server_error("Failed to create note")

    if not reserved:
        logger.info("Free note limit reached for device %s", body.device_id)
        return _error(403, "Free note limit reached", "LIMIT_REACHED")

    try:
        note = store.create(body.content, device_id=body.device_id)
    except Exception:
        logger.exception("Failed to create note for device %s", body.device_id)
        try:
            usage_service.release_slot(body.device_id)
        except Exception:
            logger.exception("Failed to release note slot for device %s", body.device_id)
        return server_error("Failed to create note")

    logger.info("Note created: %s", note.id)
    return CreateNoteResponse(id=note.id, success=True)


@router.get("/{note_id}", response_model=GetNoteResponse)
def read_note(
    note_id: str,
    gate: RevealGate = Depends(get_reveal_gate),
):
    """Return the note content and destroy it. Works exactly once per note."""
    try:
        result = gate.evaluate(note_id)
    except Exception:
        logger.exception("Error retrieving note %s", note_id)
        return server_error("Failed to retrieve note")

    if result.outcome is RevealOutcome.NOT_FOUND:
        return note_not_found()
    if result.outcome is RevealOutcome.ALREADY_DESTROYED:
        return note_already_viewed()
    return GetNoteResponse(content=result.content, destroyed=True)
