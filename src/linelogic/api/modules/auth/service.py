import logging
from datetime import UTC, datetime

from fastapi import HTTPException, Request

from linelogic.api.modules.auth.schema import (
    PrecheckRequest,
    PrecheckResponse,
    SigninRequest,
    SigninResponse,
    SignupRequest,
    SignupResponse,
)
from linelogic.api.modules.fraud.schema import FraudDecision, SignupEvaluationRequest
from linelogic.api.modules.fraud.service import FraudGate
from linelogic.api.modules.fraud.services.core import RATE_LIMITED_MESSAGE, fraud_message
from linelogic.api.modules.fraud.services.network import (
    ClientIpResolver,
    RateLimitWindow,
)
from linelogic.api.modules.fraud.services.scoring import (
    FraudScorer,
    IdentifierNormalizer,
)
from linelogic.clients.auth import AuthClient, AuthProviderError
from linelogic.settings import Config

logger = logging.getLogger(__name__)


def _auth_error(exc: AuthProviderError) -> HTTPException:
    if 400 <= exc.status_code < 500:
        return HTTPException(status_code=exc.status_code, detail=exc.message)
    return HTTPException(status_code=502, detail="auth_provider_error")


def _denial(decision: FraudDecision) -> HTTPException:
    return HTTPException(
        status_code=403,
        detail={
            "error": fraud_message(decision.reason),
            "code": decision.reason,
            "banned": decision.banned,
        },
    )


class SignupService:
    def __init__(
        self,
        config: Config,
        ip_resolver: ClientIpResolver,
        rate_limiter: RateLimitWindow,
        gate: FraudGate,
        scorer: FraudScorer,
        normalizer: IdentifierNormalizer,
        auth_client: AuthClient,
    ):
        self._config = config
        self._ip_resolver = ip_resolver
        self._rate_limiter = rate_limiter
        self._gate = gate
        self._scorer = scorer
        self._normalizer = normalizer
        self._auth_client = auth_client

    async def sign_up_request(
        self,
        request: Request,
        payload: SignupRequest,
    ) -> SignupResponse:
        ip_address = self._ip_resolver.get_request_ip(request)
        user_agent = payload.user_agent or request.headers.get("user-agent")
        return await self.sign_up(
            payload=payload,
            ip_address=ip_address,
            user_agent=user_agent,
        )

    async def sign_up(
        self,
        payload: SignupRequest,
        ip_address: str,
        user_agent: str | None,
    ) -> SignupResponse:
        fraud = self._config.fraud
        limit = await self._rate_limiter.check_and_count(
            ip_address,
            window_seconds=fraud.signup_rate_window_seconds,
            max_attempts=fraud.signup_rate_max_attempts,
        )
        if not limit.allowed:
            retry_after = limit.retry_after_seconds(datetime.now(UTC))
            raise HTTPException(
                status_code=429,
                detail={"error": RATE_LIMITED_MESSAGE, "code": "RATE_LIMITED"},
                headers={
                    "Retry-After": str(
                        retry_after
                        if retry_after is not None
                        else fraud.signup_rate_window_seconds
                    )
                },
            )

        decision = await self._gate.evaluate(
            SignupEvaluationRequest(
                email=payload.email,
                name=payload.name,
                ip_address=ip_address,
                user_agent=user_agent,
            )
        )
        if not decision.allowed:
            raise _denial(decision)

        try:
            user = await self._auth_client.sign_up(
                email=payload.email,
                password=payload.password,
                metadata={
                    "name": payload.name,
                    "credits": self._config.auth.signup_bonus_credits,
                },
            )
        except AuthProviderError as exc:
            logger.warning(
                "Account creation rejected by auth provider",
                extra={"status_code": exc.status_code},
            )
            raise _auth_error(exc) from exc

        return SignupResponse(
            user_id=user.id,
            email=user.email or payload.email,
            score=decision.score,
        )

    async def sign_in(self, payload: SigninRequest) -> SigninResponse:
        try:
            session = await self._auth_client.sign_in(
                email=payload.email,
                password=payload.password,
            )
        except AuthProviderError as exc:
            raise _auth_error(exc) from exc

        return SigninResponse(
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            expires_in=session.expires_in,
            user_id=session.user.id,
            email=session.user.email or payload.email,
        )

    async def precheck(self, payload: PrecheckRequest) -> PrecheckResponse:
        normalized_email = await self._normalizer.normalize(payload.email)
        name_allowed = not await self._scorer.is_fraudulent_name(payload.name)
        domain_allowed = await self._scorer.is_domain_allowed(payload.email)
        return PrecheckResponse(
            normalized_email=normalized_email,
            name_allowed=name_allowed,
            domain_allowed=domain_allowed,
        )


__all__ = ("SignupService",)
