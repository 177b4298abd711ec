import logging

from linelogic.api.modules.fraud.schema import (
    FraudAttemptRecord,
    FraudDecision,
    SignupAttemptRecord,
    SignupEvaluationRequest,
)
from linelogic.api.modules.fraud.services.core import (
    BANNED_IP_BAND,
    ScoreBand,
    band_for_score,
)
from linelogic.api.modules.fraud.services.registry import AttemptLogger, BanRegistry
from linelogic.api.modules.fraud.services.scoring import (
    FraudScorer,
    IdentifierNormalizer,
)
from linelogic.settings import FraudConfig

logger = logging.getLogger(__name__)


class FraudGate:
    """Staged allow/deny decision for one signup attempt.

    Stages run in order and stop at the first match:

    1. an existing, unexpired ban on the source IP blocks without scoring;
    2. the composite fraud score is computed;
    3. ``score >= ban threshold`` bans the IP and blocks; ``banned`` reports
       whether the ban row was actually written;
    4. ``score >= block threshold`` blocks this attempt only;
    5. ``score >= review threshold`` holds the signup for manual review;
    6. anything lower is allowed without an audit record.

    Any error after stage 1 yields a ``SYSTEM_ERROR`` denial. Every
    evaluation, whatever its outcome, is appended to the signup-attempt log.
    """

    def __init__(
        self,
        config: FraudConfig,
        ban_registry: BanRegistry,
        scorer: FraudScorer,
        attempt_logger: AttemptLogger,
        normalizer: IdentifierNormalizer,
    ):
        self._config = config
        self._ban_registry = ban_registry
        self._scorer = scorer
        self._attempt_logger = attempt_logger
        self._normalizer = normalizer

    async def evaluate(self, signup: SignupEvaluationRequest) -> FraudDecision:
        decision = await self._decide(signup)
        if not decision.allowed:
            logger.info(
                "Signup denied for ip=%s score=%d reason=%s",
                signup.ip_address,
                decision.score,
                decision.reason,
            )
        await self._record_signup_attempt(signup, decision)
        return decision

    async def _decide(self, signup: SignupEvaluationRequest) -> FraudDecision:
        if await self._ban_registry.is_banned(signup.ip_address):
            score = self._config.banned_ip_score
            await self._record_fraud_attempt(signup, BANNED_IP_BAND, score)
            return FraudDecision(
                allowed=False,
                banned=True,
                score=score,
                reason=BANNED_IP_BAND.reason,
                action_taken=BANNED_IP_BAND.action_taken,
            )

        try:
            score = await self._scorer.score(
                email=signup.email,
                name=signup.name,
                ip_address=signup.ip_address,
                user_agent=signup.user_agent,
            )
            band = band_for_score(score, self._config)

            banned = band.creates_ban and await self._ban_for_fraud_name(signup)
            if band.fraud_type is not None:
                await self._record_fraud_attempt(signup, band, score)
        except Exception:
            logger.exception("Fraud evaluation failed for ip=%s", signup.ip_address)
            return self._system_error()

        return FraudDecision(
            allowed=band.allowed,
            banned=banned,
            score=score,
            reason=band.reason,
            action_taken=band.action_taken,
        )

    def _system_error(self) -> FraudDecision:
        return FraudDecision(
            allowed=False,
            banned=False,
            score=self._config.system_error_score,
            reason="SYSTEM_ERROR",
            action_taken="blocked",
        )

    async def _ban_for_fraud_name(self, signup: SignupEvaluationRequest) -> bool:
        try:
            await self._ban_registry.ban(
                ip_address=signup.ip_address,
                reason=f'Fraud name detection: "{signup.name}"',
                banned_by="system",
            )
        except Exception:  # noqa: BLE001
            logger.warning(
                "Failed to ban IP after fraud name detection",
                extra={"ip": signup.ip_address},
                exc_info=True,
            )
            return False
        return True

    async def _record_fraud_attempt(
        self,
        signup: SignupEvaluationRequest,
        band: ScoreBand,
        score: int,
    ) -> None:
        if band.fraud_type is None:
            return
        await self._attempt_logger.record(
            FraudAttemptRecord(
                ip_address=signup.ip_address,
                email=signup.email,
                name=signup.name,
                user_agent=signup.user_agent,
                fraud_type=band.fraud_type,
                severity=band.severity,
                action_taken=band.action_taken,
                metadata={"score": score, "reason": band.reason},
            )
        )

    async def _record_signup_attempt(
        self,
        signup: SignupEvaluationRequest,
        decision: FraudDecision,
    ) -> None:
        normalized_email = await self._normalizer.normalize(signup.email)
        await self._attempt_logger.record_signup_attempt(
            SignupAttemptRecord(
                ip_address=signup.ip_address,
                email=signup.email,
                normalized_email=normalized_email,
                user_agent=signup.user_agent,
                succeeded=decision.allowed,
                fraud_score=decision.score,
            )
        )


__all__ = ("FraudGate",)
