import logging
from datetime import datetime

from linelogic.api.modules.fraud.schema import BanType
from linelogic.api.modules.fraud.store import FraudStore

logger = logging.getLogger(__name__)


class BanRegistry:
    """Sole writer of banned-IP rows.

    Membership checks fail open: an unreadable ban table is treated as
    "not banned" so that a store outage does not lock out every visitor.
    Writes propagate :class:`FraudStoreError` to the caller.
    """

    def __init__(self, store: FraudStore):
        self._store = store

    async def is_banned(self, ip_address: str) -> bool:
        try:
            return bool(await self._store.is_ip_banned(ip_address))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Ban lookup failed, treating IP as not banned", extra={"ip": ip_address})
            logger.debug("is_ip_banned failed: %s", exc)
            return False

    async def ban(
        self,
        ip_address: str,
        reason: str,
        banned_by: str = "system",
        ban_type: BanType = "system",
        expires_at: datetime | None = None,
    ) -> None:
        await self._store.ban_ip_address(
            ip_address=ip_address,
            reason=reason,
            banned_by=banned_by,
            ban_type=ban_type,
            expires_at=expires_at,
        )
        logger.info("Banned IP %s (%s) by %s", ip_address, ban_type, banned_by)

    async def unban(self, ip_address: str) -> bool:
        removed = await self._store.unban_ip_address(ip_address)
        if removed:
            logger.info("Unbanned IP %s", ip_address)
        return removed


__all__ = ("BanRegistry",)
