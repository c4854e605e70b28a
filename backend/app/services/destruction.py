"""Deferred content destruction for revealed notes.

Runs a daemon thread that waits for the earliest pending scrub and
overwrites the note's stored content with the destroyed sentinel. Scrubs
are best-effort within the process lifetime: a crash loses pending
entries, which is acceptable because the note is already marked viewed
and can never be revealed again.
"""

from __future__ import annotations

import heapq
import logging
import threading
import time

from app.services.note_store import NoteStore

logger = logging.getLogger(__name__)


class DestructionScheduler:
    """One-shot delayed scrubs, owned by the application lifespan.

    ``schedule`` never blocks the caller. There is no way to cancel a
    scheduled scrub; ``stop`` executes whatever is still pending instead
    of dropping it.
    """

    __slots__ = (
        "_store",
        "_grace_seconds",
        "_sentinel",
        "_pending",
        "_cond",
        "_stopping",
        "_thread",
    )

    def __init__(
        self,
        store: NoteStore,
        grace_seconds: float = 5.0,
        sentinel: str = "[DESTROYED]",
    ) -> None:
        self._store = store
        self._grace_seconds = grace_seconds
        self._sentinel = sentinel
        self._pending: list[tuple[float, str]] = []  # (due monotonic time, note id)
        self._cond = threading.Condition()
        self._stopping = False
        self._thread: threading.Thread | None = None

    @property
    def pending_count(self) -> int:
        with self._cond:
            return len(self._pending)

    def start(self) -> None:
        """Start the daemon scrub thread."""
        with self._cond:
            self._stopping = False
        self._thread = threading.Thread(
            target=self._run, name="note-destruction", daemon=True
        )
        self._thread.start()
        logger.info(
            "Destruction scheduler started (grace delay %.1fs)", self._grace_seconds
        )

    def stop(self) -> None:
        """Stop the thread, then scrub anything still pending right away."""
        with self._cond:
            self._stopping = True
            self._cond.notify_all()
        if self._thread is not None:
            self._thread.join(timeout=10)
            self._thread = None

        with self._cond:
            leftover = [note_id for _, note_id in self._pending]
            self._pending.clear()
        for note_id in leftover:
            self.scrub_now(note_id)
        logger.info(
            "Destruction scheduler stopped (%d pending scrub(s) flushed)", len(leftover)
        )

    def schedule(self, note_id: str) -> None:
        """Queue a scrub of *note_id* after the grace delay."""
        due_at = time.monotonic() + self._grace_seconds
        with self._cond:
            heapq.heappush(self._pending, (due_at, note_id))
            self._cond.notify()
        logger.debug("Scrub scheduled for note %s", note_id)

    def scrub_now(self, note_id: str) -> bool:
        """Overwrite the note's content. Never raises.

        Returns False when the row is already gone or the write failed.
        """
        try:
            scrubbed = self._store.scrub(note_id, self._sentinel)
        except Exception:
            logger.exception("Failed to destroy content of note %s", note_id)
            return False
        if scrubbed:
            logger.info("Note content destroyed: %s", note_id)
        else:
            logger.debug("Note %s no longer exists, nothing to destroy", note_id)
        return scrubbed

    def _next_due(self) -> str | None:
        """Block until the earliest scrub is due. Returns None once stopping."""
        with self._cond:
            while not self._stopping:
                if not self._pending:
                    self._cond.wait()
                    continue
                due_at, note_id = self._pending[0]
                remaining = due_at - time.monotonic()
                if remaining <= 0:
                    heapq.heappop(self._pending)
                    return note_id
                self._cond.wait(timeout=remaining)
            return None

    def _run(self) -> None:
        while True:
            note_id = self._next_due()
            if note_id is None:
                return
            self.scrub_now(note_id)
