"""Persistent-store capabilities the fraud pipeline depends on.

Each named procedure is one typed coroutine on :class:`FraudStore`. The
pipeline only ever talks to this protocol, so tests swap in an in-memory
fake and production uses :class:`SqlFraudStore`.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta
from typing import Protocol, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from linelogic.api.modules.fraud.exceptions import FraudStoreError
from linelogic.api.modules.fraud.models import FraudAttempt, SignupAttempt
from linelogic.api.modules.fraud.schema import (
    BannedIpResponse,
    BanType,
    FraudAttemptRecord,
    FraudAttemptResponse,
    FraudStatsResponse,
    FraudType,
    Severity,
    SignupAttemptRecord,
)
from linelogic.api.modules.fraud.services.core import (
    canonical_email,
    domain_allowed,
    looks_automated,
    looks_like_fraud_name,
)
from linelogic.database.uow import UnitOfWork
from linelogic.settings import FraudConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


def attempt_filters(
    severity: str | None,
    fraud_type: str | None,
    ip_address: str | None,
) -> list:
    filters = []
    if severity:
        filters.append(FraudAttempt.severity == severity)
    if fraud_type:
        filters.append(FraudAttempt.fraud_type == fraud_type)
    if ip_address:
        filters.append(FraudAttempt.ip_address == ip_address)
    return filters


class FraudStore(Protocol):
    async def is_ip_banned(self, ip_address: str) -> bool: ...

    async def calculate_fraud_score(
        self,
        email: str,
        name: str,
        ip_address: str,
        user_agent: str | None,
    ) -> int: ...

    async def ban_ip_address(
        self,
        ip_address: str,
        reason: str,
        banned_by: str,
        ban_type: BanType = "system",
        expires_at: datetime | None = None,
    ) -> None: ...

    async def unban_ip_address(self, ip_address: str) -> bool: ...

    async def log_fraud_attempt(self, record: FraudAttemptRecord) -> None: ...

    async def log_signup_attempt(self, record: SignupAttemptRecord) -> None: ...

    async def is_fraud_name(self, name: str) -> bool: ...

    async def is_domain_allowed(self, email: str) -> bool: ...

    async def normalize_email(self, email: str) -> str: ...

    async def count_signup_attempts(self, ip_address: str, since: datetime) -> int: ...

    async def list_bans(self, include_expired: bool = False) -> list[BannedIpResponse]: ...

    async def list_fraud_attempts(
        self,
        limit: int,
        offset: int,
        severity: Severity | None = None,
        fraud_type: FraudType | None = None,
        ip_address: str | None = None,
    ) -> tuple[list[FraudAttemptResponse], int]: ...

    async def fraud_stats(self) -> FraudStatsResponse: ...


class SqlFraudStore:
    """SQLAlchemy implementation; one short session per call."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        config: FraudConfig,
    ):
        self._session_factory = session_factory
        self._config = config
        self._timeout = config.store_timeout_seconds

    async def _execute(
        self,
        work: Callable[[UnitOfWork], Awaitable[T]],
        commit: bool,
    ) -> T:
        async with self._session_factory() as session:
            uow = UnitOfWork(session)
            try:
                result = await work(uow)
                if commit:
                    await uow.commit()
                return result
            except Exception:
                await uow.rollback()
                raise

    async def _run(
        self,
        operation: str,
        work: Callable[[UnitOfWork], Awaitable[T]],
        commit: bool = False,
    ) -> T:
        try:
            return await asyncio.wait_for(
                self._execute(work, commit),
                timeout=self._timeout,
            )
        except TimeoutError as exc:
            raise FraudStoreError(
                operation, f"{operation} timed out after {self._timeout}s"
            ) from exc
        except SQLAlchemyError as exc:
            logger.debug("Fraud store %s failed: %s", operation, exc)
            raise FraudStoreError(operation, str(exc)) from exc

    async def is_ip_banned(self, ip_address: str) -> bool:
        now = datetime.now(UTC)

        async def work(uow: UnitOfWork) -> bool:
            return await uow.banned_ips.get_active(ip_address, now) is not None

        return await self._run("is_ip_banned", work)

    async def calculate_fraud_score(
        self,
        email: str,
        name: str,
        ip_address: str,
        user_agent: str | None,
    ) -> int:
        weights = self._config.weights
        score = 0

        if await self.is_fraud_name(name):
            score += weights.fraud_name
        if not await self.is_domain_allowed(email):
            score += weights.disallowed_domain

        if not user_agent or not user_agent.strip():
            score += weights.missing_user_agent
        elif looks_automated(user_agent):
            score += weights.automation_user_agent

        normalized = await self.normalize_email(email)
        now = datetime.now(UTC)
        attempts_since = now - timedelta(
            seconds=self._config.recent_attempt_window_seconds
        )
        fraud_since = now - timedelta(seconds=self._config.prior_fraud_window_seconds)

        async def work(uow: UnitOfWork) -> int:
            recent = await uow.signup_attempts.count_for_ip(ip_address, attempts_since)
            prior = await uow.fraud_attempts.count_for_ip(ip_address, fraud_since)
            reused = await uow.signup_attempts.email_seen_from_other_ip(
                normalized, ip_address
            )
            history = min(
                recent * weights.recent_ip_attempt, weights.recent_ip_attempt_cap
            )
            history += min(
                prior * weights.prior_fraud_record, weights.prior_fraud_record_cap
            )
            if reused:
                history += weights.email_reused_from_other_ip
            return history

        score += await self._run("calculate_fraud_score", work)
        return score

    async def ban_ip_address(
        self,
        ip_address: str,
        reason: str,
        banned_by: str,
        ban_type: BanType = "system",
        expires_at: datetime | None = None,
    ) -> None:
        async def work(uow: UnitOfWork) -> None:
            await uow.banned_ips.upsert(
                ip_address=ip_address,
                reason=reason,
                ban_type=ban_type,
                banned_by=banned_by,
                expires_at=expires_at,
            )

        await self._run("ban_ip_address", work, commit=True)

    async def unban_ip_address(self, ip_address: str) -> bool:
        async def work(uow: UnitOfWork) -> bool:
            return await uow.banned_ips.delete(ip_address) > 0

        return await self._run("unban_ip_address", work, commit=True)

    async def log_fraud_attempt(self, record: FraudAttemptRecord) -> None:
        async def work(uow: UnitOfWork) -> None:
            await uow.fraud_attempts.create(
                FraudAttempt(
                    ip_address=record.ip_address,
                    email=record.email,
                    name=record.name,
                    user_agent=record.user_agent,
                    fraud_type=record.fraud_type,
                    severity=record.severity,
                    action_taken=record.action_taken,
                    extra=record.metadata,
                )
            )

        await self._run("log_fraud_attempt", work, commit=True)

    async def log_signup_attempt(self, record: SignupAttemptRecord) -> None:
        async def work(uow: UnitOfWork) -> None:
            await uow.signup_attempts.create(
                SignupAttempt(
                    ip_address=record.ip_address,
                    email=record.email,
                    normalized_email=record.normalized_email,
                    user_agent=record.user_agent,
                    succeeded=record.succeeded,
                    fraud_score=record.fraud_score,
                )
            )

        await self._run("log_signup_attempt", work, commit=True)

    async def is_fraud_name(self, name: str) -> bool:
        return looks_like_fraud_name(name, self._config.fraud_name_pattern_list())

    async def is_domain_allowed(self, email: str) -> bool:
        return domain_allowed(
            email,
            blocked_domains=self._config.blocked_email_domain_set(),
            allowed_domains=self._config.allowed_email_domain_set(),
        )

    async def normalize_email(self, email: str) -> str:
        return canonical_email(email, self._config.dot_insensitive_domain_set())

    async def count_signup_attempts(self, ip_address: str, since: datetime) -> int:
        async def work(uow: UnitOfWork) -> int:
            return await uow.signup_attempts.count_for_ip(ip_address, since)

        return await self._run("count_signup_attempts", work)

    async def list_bans(self, include_expired: bool = False) -> list[BannedIpResponse]:
        now = datetime.now(UTC)

        async def work(uow: UnitOfWork) -> list[BannedIpResponse]:
            rows = await uow.banned_ips.get_all(now, include_expired=include_expired)
            return [BannedIpResponse.model_validate(row) for row in rows]

        return await self._run("list_bans", work)

    async def list_fraud_attempts(
        self,
        limit: int,
        offset: int,
        severity: Severity | None = None,
        fraud_type: FraudType | None = None,
        ip_address: str | None = None,
    ) -> tuple[list[FraudAttemptResponse], int]:
        filters = attempt_filters(severity, fraud_type, ip_address)

        async def work(uow: UnitOfWork) -> tuple[list[FraudAttemptResponse], int]:
            rows = await uow.fraud_attempts.get_all(
                limit=limit, offset=offset, filters=filters
            )
            total = await uow.fraud_attempts.get_total_count(filters)
            return [FraudAttemptResponse.model_validate(row) for row in rows], total

        return await self._run("list_fraud_attempts", work)

    async def fraud_stats(self) -> FraudStatsResponse:
        now = datetime.now(UTC)
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)

        async def work(uow: UnitOfWork) -> FraudStatsResponse:
            attempts = uow.fraud_attempts
            return FraudStatsResponse(
                total_attempts=await attempts.get_total_count([]),
                banned_ips=await uow.banned_ips.count_active(now),
                today_attempts=await attempts.get_total_count(
                    [FraudAttempt.created_at >= start_of_day]
                ),
                critical_attempts=await attempts.get_total_count(
                    [FraudAttempt.severity == "critical"]
                ),
            )

        return await self._run("fraud_stats", work)


__all__ = ("FraudStore", "SqlFraudStore", "attempt_filters")
