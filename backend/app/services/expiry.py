from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta

from app.models.note import utcnow
from app.services.note_store import NoteStore

logger = logging.getLogger(__name__)


class ExpirySweeper:
    """Periodically delete unread notes older than the retention window.

    Viewed notes are never touched here; they are governed by the reveal
    and destruction path. A failed pass is logged and retried on the next
    interval.
    """

    def __init__(
        self,
        store: NoteStore,
        retention_days: int = 30,
        interval_seconds: float = 3600,
    ) -> None:
        self._store = store
        self._retention = timedelta(days=retention_days)
        self._interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None
        self.last_run_at: datetime | None = None
        self.last_deleted: int = 0

    def cutoff(self, now: datetime | None = None) -> datetime:
        return (now or utcnow()) - self._retention

    def run_once(self, now: datetime | None = None) -> int:
        """Run a single sweep pass. Returns the number of notes deleted."""
        try:
            deleted = self._store.delete_unread_before(self.cutoff(now))
        except Exception:
            logger.exception("Expiry sweep failed")
            return 0

        self.last_run_at = utcnow()
        self.last_deleted = deleted
        if deleted:
            logger.info(
                "Expiry sweep: deleted %d unread note(s) older than %d days",
                deleted,
                self._retention.days,
            )
        return deleted

    def start(self) -> None:
        """Start the sweep loop on the running event loop. First pass runs now."""
        logger.info(
            "Starting expiry sweep (every %ss, unread notes older than %d days)",
            self._interval_seconds,
            self._retention.days,
        )
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _loop(self) -> None:
        while True:
            await asyncio.to_thread(self.run_once)
            await asyncio.sleep(self._interval_seconds)
