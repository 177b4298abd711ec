import logging

from linelogic.api.modules.fraud.exceptions import ScoringUnavailableError
from linelogic.api.modules.fraud.store import FraudStore

logger = logging.getLogger(__name__)


class FraudScorer:
    def __init__(self, store: FraudStore):
        self._store = store

    async def score(
        self,
        email: str,
        name: str,
        ip_address: str,
        user_agent: str | None,
    ) -> int:
        try:
            result = await self._store.calculate_fraud_score(
                email=email,
                name=name,
                ip_address=ip_address,
                user_agent=user_agent,
            )
        except Exception as exc:
            raise ScoringUnavailableError(
                "calculate_fraud_score", f"Fraud scoring failed: {exc}"
            ) from exc

        # bool is an int subclass and would silently score 0/1
        if isinstance(result, bool) or not isinstance(result, int) or result < 0:
            raise ScoringUnavailableError(
                "calculate_fraud_score",
                f"Fraud scoring returned an invalid result: {result!r}",
            )
        return result

    async def is_fraudulent_name(self, name: str) -> bool:
        try:
            return bool(await self._store.is_fraud_name(name))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Name fraud check failed, assuming fraud")
            logger.debug("is_fraud_name failed: %s", exc)
            return True

    async def is_domain_allowed(self, email: str) -> bool:
        try:
            return bool(await self._store.is_domain_allowed(email))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Domain allow check failed, assuming disallowed")
            logger.debug("is_domain_allowed failed: %s", exc)
            return False


__all__ = ("FraudScorer",)
