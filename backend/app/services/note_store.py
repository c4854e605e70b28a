"""Durable note storage.

Every state change of a note goes through this module. The viewed flag is
flipped with a single conditional UPDATE so concurrent readers are
linearized by the database, never by application-level locking.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, update
from sqlalchemy.engine import Engine
from sqlmodel import Session, func, select

from app.models.note import Note


class NoteStore:
    """Keyed storage for notes. Opens a fresh session per operation."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def create(self, content: str, device_id: str | None = None) -> Note:
        note = Note(content=content, device_id=device_id)
        with Session(self._engine) as session:
            session.add(note)
            session.commit()
            session.refresh(note)
        return note

    def get(self, note_id: str) -> Note | None:
        with Session(self._engine) as session:
            return session.get(Note, note_id)

    def mark_viewed(self, note_id: str) -> str | None:
        """Atomically flip ``viewed`` from false to true.

        Returns the stored content when this call performed the transition,
        None when the note is missing or another caller got there first.
        """
        with Session(self._engine) as session:
            result = session.exec(  # type: ignore[call-overload]
                update(Note)
                .where(Note.id == note_id, Note.viewed == False)  # noqa: E712
                .values(viewed=True)
            )
            if result.rowcount != 1:
                session.rollback()
                return None
            content = session.exec(select(Note.content).where(Note.id == note_id)).one()
            session.commit()
            return content

    def scrub(self, note_id: str, sentinel: str) -> bool:
        """Overwrite the content of a viewed note. False if the row is gone."""
        with Session(self._engine) as session:
            result = session.exec(  # type: ignore[call-overload]
                update(Note)
                .where(Note.id == note_id, Note.viewed == True)  # noqa: E712
                .values(content=sentinel)
            )
            session.commit()
            return result.rowcount > 0

    def delete_unread_before(self, cutoff: datetime) -> int:
        """Delete never-viewed notes created before *cutoff*. Returns the count."""
        with Session(self._engine) as session:
            result = session.exec(  # type: ignore[call-overload]
                delete(Note).where(
                    Note.viewed == False,  # noqa: E712
                    Note.created_at < cutoff,
                )
            )
            session.commit()
            return result.rowcount

    def count_unread_before(self, cutoff: datetime) -> int:
        with Session(self._engine) as session:
            return session.exec(
                select(func.count())
                .select_from(Note)
                .where(
                    Note.viewed == False,  # noqa: E712
                    Note.created_at < cutoff,
                )
            ).one()
