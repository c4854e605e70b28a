from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic import Field as PydanticField
from sqlmodel import Field, SQLModel

from app.models.note import utcnow


class NoteUsage(SQLModel, table=True):
    """Lifetime note-creation count per device. No monthly reset."""

    __tablename__ = "note_usage"

    id: int | None = Field(default=None, primary_key=True)
    device_id: str = Field(index=True, unique=True)
    count: int = Field(default=0)
    is_premium: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class NoteUsageResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    count: int
    limit: int
    is_premium: bool = PydanticField(alias="isPremium")
    can_create: bool = PydanticField(alias="canCreate")


class UpgradeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    device_id: str = PydanticField(min_length=1, alias="deviceId")


class UpgradeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool
    is_premium: bool = PydanticField(alias="isPremium")
