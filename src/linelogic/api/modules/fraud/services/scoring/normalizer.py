import logging

from linelogic.api.modules.fraud.store import FraudStore

logger = logging.getLogger(__name__)


def fallback_normalize(email: str) -> str:
    return email.strip().lower()


class IdentifierNormalizer:
    """Canonical comparison key for an email-like identifier.

    Delegates to the store's ``normalize_email`` procedure and degrades to a
    trimmed, lowercased copy when that procedure is unavailable. Never raises.
    """

    def __init__(self, store: FraudStore):
        self._store = store

    async def normalize(self, email: str) -> str:
        try:
            normalized = await self._store.normalize_email(email)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Email normalization unavailable, using local fallback")
            logger.debug("normalize_email failed: %s", exc)
            return fallback_normalize(email)

        if not isinstance(normalized, str) or not normalized.strip():
            return fallback_normalize(email)
        return normalized


__all__ = ("IdentifierNormalizer", "fallback_normalize")
