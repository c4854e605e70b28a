"""Two-step web delivery of notes.

``GET /note/{id}`` only renders a page with a Reveal button and never
changes note state, so link-preview bots fetching the URL cannot
destroy the note. ``POST /note/{id}/reveal`` is sent by the button and
goes through the same reveal gate as the JSON API.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from app.dependencies import get_reveal_gate
from app.models.note import RevealResponse
from app.routers.notes import note_already_viewed, note_not_found, server_error
from app.services.reveal import RevealGate, RevealOutcome
from app.utils.pages import (
    render_destroyed_page,
    render_error_page,
    render_not_found_page,
    render_reveal_page,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/note", tags=["web"])

_PAGE_HEADERS = {
    "Cache-Control": "no-store",
    "X-Robots-Tag": "noindex, nofollow",
    "Referrer-Policy": "no-referrer",
}


def _page(html: str, status_code: int = 200) -> HTMLResponse:
    return HTMLResponse(content=html, status_code=status_code, headers=_PAGE_HEADERS)


@router.get("/{note_id}", response_class=HTMLResponse)
def view_note_page(
    note_id: str,
    gate: RevealGate = Depends(get_reveal_gate),
) -> HTMLResponse:
    logger.info("Web view requested for note: %s", note_id)
    try:
        state = gate.peek(note_id)
    except Exception:
        logger.exception("Error loading note page %s", note_id)
        return _page(render_error_page(), 500)

    if state is RevealOutcome.NOT_FOUND:
        return _page(render_not_found_page(), 404)
    if state is RevealOutcome.ALREADY_DESTROYED:
        return _page(render_destroyed_page(), 410)
    return _page(render_reveal_page(note_id))


@router.post("/{note_id}/reveal", response_model=RevealResponse)
def reveal_note(
    note_id: str,
    gate: RevealGate = Depends(get_reveal_gate),
):
    logger.info("Reveal requested for note: %s", note_id)
    try:
        result = gate.evaluate(note_id)
    except Exception:
        logger.exception("Error revealing note %s", note_id)
        return server_error("Failed to reveal note")

    if result.outcome is RevealOutcome.NOT_FOUND:
        return note_not_found()
    if result.outcome is RevealOutcome.ALREADY_DESTROYED:
        return note_already_viewed()
    return RevealResponse(success=True, content=result.content)
