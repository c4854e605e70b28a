from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict
from pydantic import Field as PydanticField
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    """Naive UTC (project convention for SQLite compatibility)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Note(SQLModel, table=True):
    __tablename__ = "notes"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    content: str  # client-side ciphertext, never decrypted here
    viewed: bool = Field(default=False, index=True)
    device_id: str | None = Field(default=None, index=True)
    created_at: datetime = Field(default_factory=utcnow, index=True)


# --- Pydantic schemas for request/response validation ---


ErrorCode = Literal[
    "NOT_FOUND", "ALREADY_VIEWED", "LIMIT_REACHED", "SERVER_ERROR", "SERVICE_UNAVAILABLE"
]


class NoteCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: str = PydanticField(min_length=1)
    device_id: str = PydanticField(min_length=1, alias="deviceId")


class CreateNoteResponse(BaseModel):
    id: str
    success: bool


class GetNoteResponse(BaseModel):
    content: str
    destroyed: bool


class RevealResponse(BaseModel):
    success: bool
    content: str


class NoteErrorResponse(BaseModel):
    error: str
    code: ErrorCode
