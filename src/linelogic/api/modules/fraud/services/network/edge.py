import logging
from dataclasses import dataclass
from typing import Literal

from linelogic.api.modules.fraud.services.network.rate_limit import RateLimitWindow
from linelogic.api.modules.fraud.services.registry import BanRegistry
from linelogic.settings import FraudConfig

logger = logging.getLogger(__name__)

EdgeAction = Literal["bypass", "forward", "banned", "rate_limited"]


@dataclass(slots=True)
class EdgeVerdict:
    action: EdgeAction
    client_ip: str | None = None
    attempts: int | None = None
    retry_after_seconds: int | None = None


class EdgeGuard:
    """Request-level gate in front of the signup and login routes.

    Store errors propagate out of :meth:`inspect`; the middleware turns them
    into a pass-through.
    """

    def __init__(
        self,
        config: FraudConfig,
        ban_registry: BanRegistry,
        rate_limiter: RateLimitWindow,
    ):
        self._prefixes = tuple(config.protected_path_prefixes)
        self._signup_markers = tuple(config.signup_path_markers)
        self._window_seconds = config.edge_rate_window_seconds
        self._max_attempts = config.edge_rate_max_attempts
        self._ban_registry = ban_registry
        self._rate_limiter = rate_limiter

    def is_protected(self, path: str) -> bool:
        return path.startswith(self._prefixes)

    def is_signup_path(self, path: str) -> bool:
        return any(marker in path for marker in self._signup_markers)

    async def inspect(self, path: str, client_ip: str | None) -> EdgeVerdict:
        if not self.is_protected(path) or not client_ip:
            return EdgeVerdict(action="bypass", client_ip=client_ip)

        if await self._ban_registry.is_banned(client_ip):
            logger.info("Edge rejected banned IP %s on %s", client_ip, path)
            return EdgeVerdict(action="banned", client_ip=client_ip)

        if self.is_signup_path(path):
            attempts = await self._rate_limiter.count_recent(
                client_ip, self._window_seconds
            )
            if attempts >= self._max_attempts:
                logger.info(
                    "Edge rate limited IP %s on %s (%d attempts)",
                    client_ip,
                    path,
                    attempts,
                )
                return EdgeVerdict(
                    action="rate_limited",
                    client_ip=client_ip,
                    attempts=attempts,
                    retry_after_seconds=self._window_seconds,
                )

        return EdgeVerdict(action="forward", client_ip=client_ip)


__all__ = ("EdgeAction", "EdgeGuard", "EdgeVerdict")
