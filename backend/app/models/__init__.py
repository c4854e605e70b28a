from __future__ import annotations

from app.models.note import Note  # noqa: F401
from app.models.usage import NoteUsage  # noqa: F401
