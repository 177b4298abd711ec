from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from linelogic.api.modules.fraud.exceptions import ScoringUnavailableError
from linelogic.api.modules.fraud.schema import (
    FraudAttemptRecord,
    RateLimitStatus,
    SignupAttemptRecord,
)
from linelogic.api.modules.fraud.services.network import FAIL_CLOSED_ATTEMPTS, RateLimitWindow
from linelogic.api.modules.fraud.services.registry import AttemptLogger, BanRegistry
from linelogic.api.modules.fraud.services.scoring import FraudScorer, IdentifierNormalizer
from tests.fakes import InMemoryFraudStore


@pytest.mark.asyncio
async def test_rate_limit_allows_fifth_attempt(store: InMemoryFraudStore) -> None:
    store.add_signup_attempts("1.2.3.4", 4)
    status = await RateLimitWindow(store).check_and_count("1.2.3.4", 86400, 5)
    assert status.allowed is True
    assert status.attempts == 4
    assert status.reset_at is None


@pytest.mark.asyncio
async def test_rate_limit_denies_sixth_attempt(store: InMemoryFraudStore) -> None:
    store.add_signup_attempts("1.2.3.4", 5)
    before = datetime.now(UTC)

    status = await RateLimitWindow(store).check_and_count("1.2.3.4", 86400, 5)

    assert status.allowed is False
    assert status.attempts == 5
    assert status.reset_at is not None
    assert status.reset_at >= before + timedelta(seconds=86400)


@pytest.mark.asyncio
async def test_rate_limit_ignores_attempts_outside_window(store: InMemoryFraudStore) -> None:
    store.add_signup_attempts("1.2.3.4", 10, created_at=datetime.now(UTC) - timedelta(hours=2))
    status = await RateLimitWindow(store).check_and_count("1.2.3.4", 3600, 10)
    assert status.allowed is True
    assert status.attempts == 0


@pytest.mark.asyncio
async def test_rate_limit_counts_per_ip(store: InMemoryFraudStore) -> None:
    store.add_signup_attempts("5.5.5.5", 9)
    status = await RateLimitWindow(store).check_and_count("1.2.3.4", 86400, 5)
    assert status.allowed is True


@pytest.mark.asyncio
async def test_rate_limit_fails_closed(store: InMemoryFraudStore) -> None:
    store.count_signup_attempts = AsyncMock(side_effect=TimeoutError())  # type: ignore[method-assign]
    status = await RateLimitWindow(store).check_and_count("1.2.3.4", 86400, 5)
    assert status.allowed is False
    assert status.attempts == FAIL_CLOSED_ATTEMPTS


def test_retry_after_seconds() -> None:
    now = datetime(2026, 1, 1, tzinfo=UTC)
    status = RateLimitStatus(allowed=False, attempts=5, reset_at=now + timedelta(seconds=90))
    assert status.retry_after_seconds(now) == 90
    assert RateLimitStatus(allowed=True, attempts=0).retry_after_seconds(now) is None


@pytest.mark.asyncio
async def test_ban_is_idempotent(store: InMemoryFraudStore) -> None:
    registry = BanRegistry(store)
    await registry.ban("1.2.3.4", "first", "system")
    await registry.ban("1.2.3.4", "second", "admin@linelogic.io", ban_type="manual")

    assert len(store.bans) == 1
    assert store.bans["1.2.3.4"].reason == "second"
    assert store.bans["1.2.3.4"].banned_by == "admin@linelogic.io"
    assert await registry.is_banned("1.2.3.4") is True


@pytest.mark.asyncio
async def test_unban_removes_and_is_noop_when_absent(store: InMemoryFraudStore) -> None:
    registry = BanRegistry(store)
    await registry.ban("1.2.3.4", "reason")

    assert await registry.unban("1.2.3.4") is True
    assert await registry.is_banned("1.2.3.4") is False
    assert await registry.unban("1.2.3.4") is False


@pytest.mark.asyncio
async def test_expired_ban_reads_as_absent(store: InMemoryFraudStore) -> None:
    registry = BanRegistry(store)
    await registry.ban("1.2.3.4", "temp", expires_at=datetime.now(UTC) - timedelta(seconds=1))
    assert await registry.is_banned("1.2.3.4") is False


@pytest.mark.asyncio
async def test_ban_lookup_fails_open(store: InMemoryFraudStore) -> None:
    store.is_ip_banned = AsyncMock(side_effect=ConnectionError())  # type: ignore[method-assign]
    assert await BanRegistry(store).is_banned("1.2.3.4") is False


@pytest.mark.asyncio
async def test_ban_write_errors_propagate(store: InMemoryFraudStore) -> None:
    store.ban_ip_address = AsyncMock(side_effect=ConnectionError())  # type: ignore[method-assign]
    with pytest.raises(ConnectionError):
        await BanRegistry(store).ban("1.2.3.4", "reason")


@pytest.mark.asyncio
async def test_scorer_returns_store_score(store: InMemoryFraudStore) -> None:
    store.score = 420
    assert await FraudScorer(store).score("a@b.com", "Ann", "1.2.3.4", None) == 420


@pytest.mark.asyncio
@pytest.mark.parametrize("bad_result", [None, "100", 1.5, True, -1])
async def test_scorer_rejects_invalid_results(store: InMemoryFraudStore, bad_result: object) -> None:
    store.calculate_fraud_score = AsyncMock(return_value=bad_result)  # type: ignore[method-assign]
    with pytest.raises(ScoringUnavailableError):
        await FraudScorer(store).score("a@b.com", "Ann", "1.2.3.4", None)


@pytest.mark.asyncio
async def test_scorer_wraps_store_errors(store: InMemoryFraudStore) -> None:
    store.score = ConnectionError("refused")
    with pytest.raises(ScoringUnavailableError) as exc_info:
        await FraudScorer(store).score("a@b.com", "Ann", "1.2.3.4", None)
    assert exc_info.value.operation == "calculate_fraud_score"


@pytest.mark.asyncio
async def test_name_check_fails_closed(store: InMemoryFraudStore) -> None:
    scorer = FraudScorer(store)
    assert await scorer.is_fraudulent_name("Ann") is False

    store.is_fraud_name = AsyncMock(side_effect=ConnectionError())  # type: ignore[method-assign]
    assert await scorer.is_fraudulent_name("Ann") is True


@pytest.mark.asyncio
async def test_domain_check_fails_closed(store: InMemoryFraudStore) -> None:
    scorer = FraudScorer(store)
    assert await scorer.is_domain_allowed("ann@example.com") is True

    store.is_domain_allowed = AsyncMock(side_effect=ConnectionError())  # type: ignore[method-assign]
    assert await scorer.is_domain_allowed("ann@example.com") is False


@pytest.mark.asyncio
async def test_normalizer_uses_store(store: InMemoryFraudStore) -> None:
    store.normalize_email = AsyncMock(return_value="firstlast@gmail.com")  # type: ignore[method-assign]
    normalized = await IdentifierNormalizer(store).normalize("First.Last+x@gmail.com")
    assert normalized == "firstlast@gmail.com"


@pytest.mark.asyncio
async def test_normalizer_falls_back_on_error(store: InMemoryFraudStore) -> None:
    store.normalize_email = AsyncMock(side_effect=ConnectionError())  # type: ignore[method-assign]
    normalized = await IdentifierNormalizer(store).normalize("  Ann@Example.COM ")
    assert normalized == "ann@example.com"


@pytest.mark.asyncio
async def test_normalizer_falls_back_on_empty_result(store: InMemoryFraudStore) -> None:
    store.normalize_email = AsyncMock(return_value="")  # type: ignore[method-assign]
    assert await IdentifierNormalizer(store).normalize("Ann@Example.com") == "ann@example.com"


@pytest.mark.asyncio
async def test_attempt_logger_swallows_failures(store: InMemoryFraudStore) -> None:
    store.log_fraud_attempt = AsyncMock(side_effect=ConnectionError())  # type: ignore[method-assign]
    store.log_signup_attempt = AsyncMock(side_effect=ConnectionError())  # type: ignore[method-assign]
    logger = AttemptLogger(store)

    await logger.record(
        FraudAttemptRecord(
            ip_address="1.2.3.4",
            email="a@b.com",
            name="Ann",
            fraud_type="high_risk",
            severity="high",
            action_taken="blocked",
        )
    )
    await logger.record_signup_attempt(
        SignupAttemptRecord(
            ip_address="1.2.3.4",
            email="a@b.com",
            normalized_email="a@b.com",
            succeeded=False,
            fraud_score=600,
        )
    )

    store.log_fraud_attempt.assert_awaited_once()
    store.log_signup_attempt.assert_awaited_once()
