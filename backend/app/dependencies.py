"""FastAPI dependency injection for the note services held in app state."""

from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse

from app.models.note import NoteErrorResponse
from app.services.note_store import NoteStore
from app.services.reveal import RevealGate
from app.services.usage import UsageService


class ServiceUnavailableError(Exception):
    """A service expected on app state was never initialized."""


async def service_unavailable_handler(
    request: Request, exc: ServiceUnavailableError
) -> JSONResponse:
    return JSONResponse(
        status_code=503,
        content=NoteErrorResponse(error=str(exc), code="SERVICE_UNAVAILABLE").model_dump(),
    )


def get_note_store(request: Request) -> NoteStore:
    """Inject the NoteStore initialized at startup."""
    store = getattr(request.app.state, "note_store", None)
    if store is None:
        raise ServiceUnavailableError("Note store unavailable")
    return store


def get_reveal_gate(request: Request) -> RevealGate:
    """Inject the RevealGate singleton shared by every delivery surface."""
    gate = getattr(request.app.state, "reveal_gate", None)
    if gate is None:
        raise ServiceUnavailableError("Reveal gate unavailable")
    return gate


def get_usage_service(request: Request) -> UsageService:
    svc = getattr(request.app.state, "usage_service", None)
    if svc is None:
        raise ServiceUnavailableError("Usage service unavailable")
    return svc
