from __future__ import annotations

import json

import httpx
import pytest

from linelogic.clients.auth import AuthClient, AuthProviderError
from linelogic.settings import AuthConfig, Config, PostgresConfig


def _config() -> Config:
    return Config(
        postgres=PostgresConfig(user="u", password="p", host="h", db="d"),
        auth=AuthConfig(base_url="https://auth.example.com/auth/v1/", api_key="anon-key"),
    )


def _client(handler) -> AuthClient:  # noqa: ANN001
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AuthClient(http, _config())


@pytest.mark.asyncio
async def test_sign_up_posts_metadata() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "u-1", "email": "ann@example.com"})

    user = await _client(handler).sign_up("ann@example.com", "secret1", {"name": "Ann", "credits": 10})

    assert user.id == "u-1"
    request = seen[0]
    assert str(request.url) == "https://auth.example.com/auth/v1/signup"
    assert request.headers["apikey"] == "anon-key"
    assert request.headers["Authorization"] == "Bearer anon-key"
    assert json.loads(request.content) == {
        "email": "ann@example.com",
        "password": "secret1",
        "data": {"name": "Ann", "credits": 10},
    }


@pytest.mark.asyncio
async def test_sign_in_uses_password_grant() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/auth/v1/token"
        assert request.url.params["grant_type"] == "password"
        return httpx.Response(
            200,
            json={
                "access_token": "at",
                "refresh_token": "rt",
                "expires_in": 3600,
                "user": {"id": "u-1", "email": "ann@example.com"},
            },
        )

    session = await _client(handler).sign_in("ann@example.com", "secret1")

    assert session.access_token == "at"
    assert session.expires_in == 3600
    assert session.user.id == "u-1"


@pytest.mark.asyncio
async def test_error_status_carries_provider_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, json={"msg": "User already registered"})

    with pytest.raises(AuthProviderError) as exc_info:
        await _client(handler).sign_up("ann@example.com", "secret1", {})

    assert exc_info.value.status_code == 422
    assert exc_info.value.message == "User already registered"


@pytest.mark.asyncio
async def test_network_error_is_bad_gateway() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(AuthProviderError) as exc_info:
        await _client(handler).sign_in("ann@example.com", "secret1")

    assert exc_info.value.status_code == 502


@pytest.mark.asyncio
async def test_missing_access_token_is_invalid() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"user": {"id": "u-1"}})

    with pytest.raises(AuthProviderError) as exc_info:
        await _client(handler).sign_in("ann@example.com", "secret1")

    assert exc_info.value.message == "auth_provider_invalid_response"
