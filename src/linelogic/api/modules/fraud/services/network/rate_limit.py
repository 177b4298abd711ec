import logging
import sys
from datetime import UTC, datetime, timedelta

from linelogic.api.modules.fraud.schema import RateLimitStatus
from linelogic.api.modules.fraud.store import FraudStore

logger = logging.getLogger(__name__)

FAIL_CLOSED_ATTEMPTS = sys.maxsize


class RateLimitWindow:
    """Rolling count of recorded signup attempts per source IP.

    The count is read and compared without a lock, so concurrent requests
    from one IP may each see ``max_attempts - 1`` and all pass. The limit is
    soft by one per concurrent burst.
    """

    def __init__(self, store: FraudStore):
        self._store = store

    async def count_recent(self, ip_address: str, window_seconds: int) -> int:
        since = datetime.now(UTC) - timedelta(seconds=window_seconds)
        return await self._store.count_signup_attempts(ip_address, since)

    async def check_and_count(
        self,
        ip_address: str,
        window_seconds: int,
        max_attempts: int,
    ) -> RateLimitStatus:
        try:
            attempts = await self.count_recent(ip_address, window_seconds)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Rate limit lookup failed, denying attempt", extra={"ip": ip_address}
            )
            logger.debug("count_signup_attempts failed: %s", exc)
            return RateLimitStatus(allowed=False, attempts=FAIL_CLOSED_ATTEMPTS)

        if attempts >= max_attempts:
            return RateLimitStatus(
                allowed=False,
                attempts=attempts,
                reset_at=datetime.now(UTC) + timedelta(seconds=window_seconds),
            )
        return RateLimitStatus(allowed=True, attempts=attempts)


__all__ = ("FAIL_CLOSED_ATTEMPTS", "RateLimitWindow")
