from __future__ import annotations

import pytest
from dishka import Provider, Scope, make_async_container, provide
from fastapi import FastAPI
from fastapi.testclient import TestClient

from linelogic.api.modules.fraud.service import FraudGate
from linelogic.api.modules.fraud.services.registry import AttemptLogger, BanRegistry
from linelogic.api.modules.fraud.services.scoring import FraudScorer, IdentifierNormalizer
from linelogic.api.modules.fraud.store import FraudStore
from linelogic.application import create_app
from linelogic.clients.auth import AuthClient
from linelogic.ioc import ServicesProvider
from linelogic.settings import AuthConfig, Config, FraudConfig, PostgresConfig
from tests.fakes import FakeAuthClient, InMemoryFraudStore


class FakeInfraProvider(Provider):
    def __init__(self, config: Config, store: InMemoryFraudStore, auth_client: FakeAuthClient):
        super().__init__()
        self._config = config
        self._store = store
        self._auth_client = auth_client

    @provide(scope=Scope.APP)
    def get_config(self) -> Config:
        return self._config

    @provide(scope=Scope.APP)
    def get_fraud_config(self, config: Config) -> FraudConfig:
        return config.fraud

    @provide(scope=Scope.APP)
    def get_fraud_store(self) -> FraudStore:
        return self._store

    @provide(scope=Scope.APP)
    def get_auth_client(self) -> AuthClient:
        return self._auth_client  # type: ignore[return-value]


@pytest.fixture
def config() -> Config:
    return Config(
        env="local",
        postgres=PostgresConfig(user="linelogic", password="pw", host="db", db="linelogic"),
        auth=AuthConfig(admin_emails="Admin@LineLogic.io, ops@linelogic.io"),
    )


@pytest.fixture
def fraud_config(config: Config) -> FraudConfig:
    return config.fraud


@pytest.fixture
def store() -> InMemoryFraudStore:
    return InMemoryFraudStore()


@pytest.fixture
def auth_client() -> FakeAuthClient:
    return FakeAuthClient()


@pytest.fixture
def ban_registry(store: InMemoryFraudStore) -> BanRegistry:
    return BanRegistry(store)


@pytest.fixture
def gate(fraud_config: FraudConfig, store: InMemoryFraudStore, ban_registry: BanRegistry) -> FraudGate:
    return FraudGate(
        config=fraud_config,
        ban_registry=ban_registry,
        scorer=FraudScorer(store),
        attempt_logger=AttemptLogger(store),
        normalizer=IdentifierNormalizer(store),
    )


@pytest.fixture
def app(config: Config, store: InMemoryFraudStore, auth_client: FakeAuthClient) -> FastAPI:
    container = make_async_container(
        FakeInfraProvider(config, store, auth_client),
        ServicesProvider(),
    )
    return create_app(config, container, manage_database=False)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)
