"""Tests for UsageService: lifetime free-note quota per device."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlmodel import Session, select

from app.models.usage import NoteUsage
from app.services.subscription import SubscriptionService
from app.services.usage import UsageService


def _subscription(configured: bool = False, premium: bool = False) -> MagicMock:
    sub = MagicMock(spec=SubscriptionService)
    sub.configured = configured
    sub.has_active_premium = AsyncMock(return_value=premium)
    return sub


@pytest.fixture(name="usage_service")
def usage_service_fixture(engine) -> UsageService:
    return UsageService(engine, _subscription(), free_limit=2)


class TestGetOrCreate:
    @pytest.mark.asyncio
    async def test_creates_record_once(self, usage_service: UsageService, session: Session):
        first = await usage_service.get_or_create("dev-1")
        second = await usage_service.get_or_create("dev-1")
        assert first.id == second.id
        assert first.count == 0
        assert first.is_premium is False
        rows = session.exec(select(NoteUsage).where(NoteUsage.device_id == "dev-1")).all()
        assert len(rows) == 1

    @pytest.mark.asyncio
    async def test_verification_upgrades_paying_device(self, engine):
        sub = _subscription(configured=True, premium=True)
        service = UsageService(engine, sub, free_limit=2)

        usage = await service.get_or_create("dev-1", verify_subscription=True)

        assert usage.is_premium is True
        sub.has_active_premium.assert_awaited_once_with("dev-1")

    @pytest.mark.asyncio
    async def test_premium_device_is_not_rechecked(self, engine):
        sub = _subscription(configured=True, premium=False)
        service = UsageService(engine, sub, free_limit=2)
        service.upgrade("dev-1")

        usage = await service.get_or_create("dev-1", verify_subscription=True)

        assert usage.is_premium is True
        sub.has_active_premium.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unconfigured_provider_is_not_called(self, engine):
        sub = _subscription(configured=False, premium=True)
        service = UsageService(engine, sub, free_limit=2)

        usage = await service.get_or_create("dev-1", verify_subscription=True)

        assert usage.is_premium is False
        sub.has_active_premium.assert_not_awaited()


class TestQuota:
    @pytest.mark.asyncio
    async def test_limit_reached_after_free_notes(self, usage_service: UsageService):
        usage = await usage_service.get_or_create("dev-1")
        assert usage_service.can_create(usage) is True

        assert usage_service.reserve_slot("dev-1") is True
        assert usage_service.reserve_slot("dev-1") is True
        assert usage_service.reserve_slot("dev-1") is False

        usage = await usage_service.get_or_create("dev-1")
        assert usage.count == 2
        assert usage_service.can_create(usage) is False

    @pytest.mark.asyncio
    async def test_premium_ignores_limit(self, usage_service: UsageService):
        await usage_service.get_or_create("dev-1")
        usage_service.upgrade("dev-1")
        for _ in range(5):
            assert usage_service.reserve_slot("dev-1") is True
        usage = await usage_service.get_or_create("dev-1")
        assert usage.count == 5
        assert usage_service.can_create(usage) is True

    def test_reserve_without_record_fails(self, usage_service: UsageService):
        assert usage_service.reserve_slot("unknown") is False

    @pytest.mark.asyncio
    async def test_release_returns_slot(self, usage_service: UsageService):
        await usage_service.get_or_create("dev-1")
        usage_service.reserve_slot("dev-1")
        usage_service.reserve_slot("dev-1")
        usage_service.release_slot("dev-1")
        assert usage_service.reserve_slot("dev-1") is True
        assert usage_service.reserve_slot("dev-1") is False

    @pytest.mark.asyncio
    async def test_release_never_goes_negative(self, usage_service: UsageService):
        await usage_service.get_or_create("dev-1")
        usage_service.release_slot("dev-1")
        usage = await usage_service.get_or_create("dev-1")
        assert usage.count == 0

    @pytest.mark.asyncio
    async def test_concurrent_reservations_respect_limit(self, usage_service: UsageService):
        await usage_service.get_or_create("dev-race")
        workers = 8
        barrier = threading.Barrier(workers)

        def reserve() -> bool:
            barrier.wait()
            return usage_service.reserve_slot("dev-race")

        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(lambda _: reserve(), range(workers)))

        assert results.count(True) == usage_service.free_limit
        usage = await usage_service.get_or_create("dev-race")
        assert usage.count == usage_service.free_limit

    def test_upgrade_creates_missing_record(self, usage_service: UsageService):
        usage = usage_service.upgrade("brand-new")
        assert usage.is_premium is True
        assert usage.count == 0
