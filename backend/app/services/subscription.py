"""RevenueCat subscriber lookup.

Checks server-side whether a device holds an active premium entitlement,
so clients cannot bypass the free-note limit. The device id doubles as
the RevenueCat app_user_id. Any failure (timeout, 404, non-2xx,
malformed payload) is treated as "no subscription" and logged.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from urllib.parse import quote

import httpx

from app.config import Settings

logger = logging.getLogger(__name__)


class SubscriptionService:
    def __init__(self, settings: Settings) -> None:
        self._base_url = settings.revenuecat_api_url.rstrip("/")
        self._api_key = settings.revenuecat_api_key
        self._entitlement = settings.revenuecat_entitlement
        self._timeout = settings.revenuecat_timeout_seconds

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    async def get_subscriber(self, device_id: str) -> dict | None:
        """Fetch subscriber info, or None if unavailable."""
        if not self.configured:
            logger.debug("RevenueCat API key not configured, skipping subscription check")
            return None

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.get(
                    f"{self._base_url}/subscribers/{quote(device_id, safe='')}",
                    headers={
                        "Authorization": f"Bearer {self._api_key}",
                        "Accept": "application/json",
                    },
                )
        except httpx.TimeoutException:
            logger.warning("RevenueCat request timed out for %s, skipping verification", device_id)
            return None
        except httpx.HTTPError:
            logger.warning("Failed to fetch RevenueCat subscriber %s", device_id, exc_info=True)
            return None

        if resp.status_code == 404:
            logger.info("RevenueCat subscriber not found: %s", device_id)
            return None
        if not resp.is_success:
            logger.warning(
                "RevenueCat API error %d for %s: %s",
                resp.status_code,
                device_id,
                resp.text[:200],
            )
            return None

        try:
            return resp.json()
        except ValueError:
            logger.warning("RevenueCat returned invalid JSON for %s", device_id)
            return None

    async def has_active_premium(self, device_id: str) -> bool:
        data = await self.get_subscriber(device_id)
        if not data:
            return False

        entitlements = (data.get("subscriber") or {}).get("entitlements") or {}
        entitlement = entitlements.get(self._entitlement)
        if not entitlement:
            return False

        expires = entitlement.get("expires_date")
        if expires is None:
            return True  # lifetime purchase

        try:
            expires_at = _parse_timestamp(expires)
        except ValueError:
            logger.warning("Unparseable entitlement expiry %r for %s", expires, device_id)
            return False
        if expires_at < datetime.now(timezone.utc):
            logger.info("Premium expired for device %s at %s", device_id, expires)
            return False
        return True


def _parse_timestamp(value: str) -> datetime:
    if not isinstance(value, str):
        raise ValueError(f"expected ISO timestamp string, got {type(value).__name__}")
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
