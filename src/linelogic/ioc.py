from dishka import AsyncContainer, Provider, Scope, make_async_container, provide
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from linelogic.api.modules.auth.service import SignupService
from linelogic.api.modules.fraud.service import FraudGate
from linelogic.api.modules.fraud.services.network import (
    ClientIpResolver,
    EdgeGuard,
    RateLimitWindow,
)
from linelogic.api.modules.fraud.services.registry import AttemptLogger, BanRegistry
from linelogic.api.modules.fraud.services.scoring import (
    FraudScorer,
    IdentifierNormalizer,
)
from linelogic.api.modules.fraud.store import FraudStore, SqlFraudStore
from linelogic.clients.auth import AuthClient
from linelogic.clients.providers import HttpClientsProvider
from linelogic.database.engine import get_session_factory
from linelogic.settings import Config, FraudConfig, get_config


class AppProvider(Provider):
    """Application provider for dependency injection."""

    @provide(scope=Scope.APP)
    def get_config(self) -> Config:
        return get_config()

    @provide(scope=Scope.APP)
    def get_fraud_config(self, config: Config) -> FraudConfig:
        return config.fraud


class DatabaseProvider(Provider):
    """Session factory and the SQL-backed fraud store."""

    @provide(scope=Scope.APP)
    def get_session_factory(self) -> async_sessionmaker[AsyncSession]:
        return get_session_factory()

    @provide(scope=Scope.APP)
    def get_fraud_store(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        config: FraudConfig,
    ) -> FraudStore:
        return SqlFraudStore(session_factory, config)


class ServicesProvider(Provider):
    """Services provider for dependency injection."""

    @provide(scope=Scope.APP)
    def get_ban_registry(self, store: FraudStore) -> BanRegistry:
        return BanRegistry(store)

    @provide(scope=Scope.APP)
    def get_fraud_scorer(self, store: FraudStore) -> FraudScorer:
        return FraudScorer(store)

    @provide(scope=Scope.APP)
    def get_attempt_logger(self, store: FraudStore) -> AttemptLogger:
        return AttemptLogger(store)

    @provide(scope=Scope.APP)
    def get_identifier_normalizer(self, store: FraudStore) -> IdentifierNormalizer:
        return IdentifierNormalizer(store)

    @provide(scope=Scope.APP)
    def get_rate_limit_window(self, store: FraudStore) -> RateLimitWindow:
        return RateLimitWindow(store)

    @provide(scope=Scope.APP)
    def get_client_ip_resolver(self, config: FraudConfig) -> ClientIpResolver:
        return ClientIpResolver(config)

    @provide(scope=Scope.APP)
    def get_fraud_gate(
        self,
        config: FraudConfig,
        ban_registry: BanRegistry,
        scorer: FraudScorer,
        attempt_logger: AttemptLogger,
        normalizer: IdentifierNormalizer,
    ) -> FraudGate:
        return FraudGate(
            config=config,
            ban_registry=ban_registry,
            scorer=scorer,
            attempt_logger=attempt_logger,
            normalizer=normalizer,
        )

    @provide(scope=Scope.APP)
    def get_edge_guard(
        self,
        config: FraudConfig,
        ban_registry: BanRegistry,
        rate_limiter: RateLimitWindow,
    ) -> EdgeGuard:
        return EdgeGuard(
            config=config,
            ban_registry=ban_registry,
            rate_limiter=rate_limiter,
        )

    @provide(scope=Scope.REQUEST)
    def get_signup_service(
        self,
        config: Config,
        ip_resolver: ClientIpResolver,
        rate_limiter: RateLimitWindow,
        gate: FraudGate,
        scorer: FraudScorer,
        normalizer: IdentifierNormalizer,
        auth_client: AuthClient,
    ) -> SignupService:
        return SignupService(
            config=config,
            ip_resolver=ip_resolver,
            rate_limiter=rate_limiter,
            gate=gate,
            scorer=scorer,
            normalizer=normalizer,
            auth_client=auth_client,
        )


def get_async_container(*providers: Provider) -> AsyncContainer:
    return make_async_container(
        AppProvider(),
        DatabaseProvider(),
        ServicesProvider(),
        HttpClientsProvider(),
        *providers,
    )
