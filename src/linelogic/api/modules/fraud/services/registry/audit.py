import logging

from linelogic.api.modules.fraud.schema import FraudAttemptRecord, SignupAttemptRecord
from linelogic.api.modules.fraud.store import FraudStore

logger = logging.getLogger(__name__)


class AttemptLogger:
    """Append-only audit trail. Write failures are logged and dropped."""

    def __init__(self, store: FraudStore):
        self._store = store

    async def record(self, entry: FraudAttemptRecord) -> None:
        try:
            await self._store.log_fraud_attempt(entry)
        except Exception:  # noqa: BLE001
            logger.warning(
                "Failed to record fraud attempt",
                extra={"ip": entry.ip_address, "fraud_type": entry.fraud_type},
                exc_info=True,
            )

    async def record_signup_attempt(self, entry: SignupAttemptRecord) -> None:
        try:
            await self._store.log_signup_attempt(entry)
        except Exception:  # noqa: BLE001
            logger.warning(
                "Failed to record signup attempt",
                extra={"ip": entry.ip_address},
                exc_info=True,
            )


__all__ = ("AttemptLogger",)
