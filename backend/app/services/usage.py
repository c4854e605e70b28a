from __future__ import annotations

import logging

from sqlalchemy import or_, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from app.models.note import utcnow
from app.models.usage import NoteUsage
from app.services.subscription import SubscriptionService

logger = logging.getLogger(__name__)


class UsageService:
    """Per-device lifetime note quota.

    Devices marked premium locally are trusted as-is; the subscription
    provider is only asked when a device is not yet premium, so a fresh
    purchase that the provider has not synced yet never downgrades anyone.
    """

    def __init__(
        self,
        engine: Engine,
        subscription: SubscriptionService,
        free_limit: int = 5,
    ) -> None:
        self._engine = engine
        self._subscription = subscription
        self.free_limit = free_limit

    def can_create(self, usage: NoteUsage) -> bool:
        return usage.is_premium or usage.count < self.free_limit

    async def get_or_create(
        self, device_id: str, verify_subscription: bool = False
    ) -> NoteUsage:
        usage = self._load_or_create(device_id)

        if verify_subscription and not usage.is_premium and self._subscription.configured:
            if await self._subscription.has_active_premium(device_id):
                logger.info(
                    "Found active premium for device %s, upgrading", device_id
                )
                usage = self.upgrade(device_id)
        return usage

    def upgrade(self, device_id: str) -> NoteUsage:
        """Mark a device premium, creating its record if needed."""
        self._load_or_create(device_id)
        with Session(self._engine) as session:
            usage = session.exec(
                select(NoteUsage).where(NoteUsage.device_id == device_id)
            ).one()
            usage.is_premium = True
            usage.updated_at = utcnow()
            session.add(usage)
            session.commit()
            session.refresh(usage)
            return usage

    def reserve_slot(self, device_id: str) -> bool:
        """Claim one note slot for the device in a single conditional UPDATE.

        Premium devices always get a slot. Free devices get one only while
        their count is below the limit, so concurrent creates cannot push a
        device past it. Returns False when the limit is reached.
        """
        with Session(self._engine) as session:
            result = session.exec(  # type: ignore[call-overload]
                update(NoteUsage)
                .where(NoteUsage.device_id == device_id)
                .where(
                    or_(
                        NoteUsage.is_premium == True,  # noqa: E712
                        NoteUsage.count < self.free_limit,
                    )
                )
                .values(count=NoteUsage.count + 1, updated_at=utcnow())
            )
            session.commit()
            return result.rowcount == 1

    def release_slot(self, device_id: str) -> None:
        """Give back a slot reserved for a note that was never stored."""
        with Session(self._engine) as session:
            session.exec(  # type: ignore[call-overload]
                update(NoteUsage)
                .where(NoteUsage.device_id == device_id, NoteUsage.count > 0)
                .values(count=NoteUsage.count - 1, updated_at=utcnow())
            )
            session.commit()

    def _load_or_create(self, device_id: str) -> NoteUsage:
        with Session(self._engine) as session:
            usage = session.exec(
                select(NoteUsage).where(NoteUsage.device_id == device_id)
            ).first()
            if usage is not None:
                return usage

            usage = NoteUsage(device_id=device_id)
            session.add(usage)
            try:
                session.commit()
            except IntegrityError:
                # Created concurrently by another request
                session.rollback()
                return session.exec(
                    select(NoteUsage).where(NoteUsage.device_id == device_id)
                ).one()
            session.refresh(usage)
            return usage
