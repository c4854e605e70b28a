"""Reveal gate: read-at-most-once semantics for notes.

Both delivery surfaces (the JSON API and the two-step web flow) call
``RevealGate.evaluate``. The transition to viewed happens on the same
call that returns the content, so a given id can be revealed once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from app.services.destruction import DestructionScheduler
from app.services.note_store import NoteStore

logger = logging.getLogger(__name__)


class RevealOutcome(str, Enum):
    REVEALABLE = "revealable"
    ALREADY_DESTROYED = "already_destroyed"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class RevealResult:
    outcome: RevealOutcome
    content: str | None = None


class RevealGate:
    def __init__(self, store: NoteStore, scheduler: DestructionScheduler) -> None:
        self._store = store
        self._scheduler = scheduler

    def evaluate(self, note_id: str) -> RevealResult:
        """Consume the note if it is unread.

        Storage errors propagate to the caller; the conditional update
        either commits fully or leaves the note untouched.
        """
        content = self._store.mark_viewed(note_id)
        if content is not None:
            logger.info("Note revealed and marked for destruction: %s", note_id)
            self._scheduler.schedule(note_id)
            return RevealResult(RevealOutcome.REVEALABLE, content)

        if self._store.get(note_id) is None:
            logger.info("Note not found: %s", note_id)
            return RevealResult(RevealOutcome.NOT_FOUND)

        logger.info("Note already viewed: %s", note_id)
        return RevealResult(RevealOutcome.ALREADY_DESTROYED)

    def peek(self, note_id: str) -> RevealOutcome:
        """Report what ``evaluate`` would answer right now, without consuming.

        Used by the page-load surface only. Its answer is advisory: a
        concurrent reveal can change it before the caller acts on it.
        """
        note = self._store.get(note_id)
        if note is None:
            return RevealOutcome.NOT_FOUND
        if note.viewed:
            return RevealOutcome.ALREADY_DESTROYED
        return RevealOutcome.REVEALABLE
