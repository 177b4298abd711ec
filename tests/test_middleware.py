from __future__ import annotations

from unittest.mock import AsyncMock

from fastapi.testclient import TestClient

from linelogic.api.middleware import SECURITY_HEADERS
from tests.fakes import BanRow, InMemoryFraudStore

BANNED_IP = "198.51.100.23"


def _ban(store: InMemoryFraudStore, ip: str = BANNED_IP) -> None:
    store.bans[ip] = BanRow(ip_address=ip, reason="test ban", banned_by="system", ban_type="system")


def test_banned_ip_is_rejected_on_register(client: TestClient, store: InMemoryFraudStore) -> None:
    _ban(store)

    response = client.post("/register", headers={"X-Forwarded-For": BANNED_IP})

    assert response.status_code == 403
    body = response.json()
    assert body["banned"] is True
    assert body["code"] == "IP_BANNED"
    assert response.headers["X-Banned-IP"] == BANNED_IP
    assert response.headers["X-Ban-Reason"] == "Fraud Detection"


def test_banned_ip_is_rejected_on_signin(client: TestClient, store: InMemoryFraudStore) -> None:
    _ban(store)

    response = client.post(
        "/api/auth/signin",
        json={"email": "ann@example.com", "password": "secret"},
        headers={"X-Real-IP": BANNED_IP},
    )

    assert response.status_code == 403
    assert response.json()["code"] == "IP_BANNED"


def test_signup_path_rate_limited_at_edge(client: TestClient, store: InMemoryFraudStore) -> None:
    store.add_signup_attempts("203.0.113.9", 10)

    response = client.post(
        "/api/auth/signup",
        json={"email": "ann@example.com", "password": "secret1", "name": "Ann Lee"},
        headers={"X-Forwarded-For": "203.0.113.9"},
    )

    assert response.status_code == 429
    assert response.json()["code"] == "RATE_LIMITED"
    assert response.headers["Retry-After"] == "3600"
    assert response.headers["X-Rate-Limited-IP"] == "203.0.113.9"


def test_login_path_is_not_rate_limited_at_edge(client: TestClient, store: InMemoryFraudStore) -> None:
    store.add_signup_attempts("203.0.113.9", 50)

    response = client.post(
        "/api/auth/signin",
        json={"email": "ann@example.com", "password": "secret"},
        headers={"X-Forwarded-For": "203.0.113.9"},
    )

    assert response.status_code == 200


def test_forwarded_request_gets_client_ip_and_security_headers(client: TestClient) -> None:
    response = client.post(
        "/api/auth/signin",
        json={"email": "ann@example.com", "password": "secret"},
        headers={"X-Forwarded-For": "203.0.113.10, 10.0.0.1"},
    )

    assert response.status_code == 200
    assert response.headers["X-Client-IP"] == "203.0.113.10"
    for name, value in SECURITY_HEADERS.items():
        assert response.headers[name] == value


def test_unresolvable_client_uses_fallback_ip(client: TestClient) -> None:
    response = client.post(
        "/api/auth/signin",
        json={"email": "ann@example.com", "password": "secret"},
    )

    assert response.headers["X-Client-IP"] == "127.0.0.1"


def test_unprotected_paths_are_untouched(client: TestClient, store: InMemoryFraudStore) -> None:
    _ban(store, "127.0.0.1")

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert "X-Client-IP" not in response.headers


def test_guard_failure_forwards_request(client: TestClient, store: InMemoryFraudStore) -> None:
    store.count_signup_attempts = AsyncMock(side_effect=ConnectionError())  # type: ignore[method-assign]

    response = client.post(
        "/api/auth/signup",
        json={"email": "ann@example.com", "password": "secret1", "name": "Ann Lee"},
        headers={"X-Forwarded-For": "203.0.113.11"},
    )

    # the edge lets it through; the signup flow itself denies on an unreadable count
    assert "X-Client-IP" not in response.headers
    assert response.status_code == 429
    assert response.json()["detail"]["code"] == "RATE_LIMITED"


def test_ban_lookup_failure_does_not_block(client: TestClient, store: InMemoryFraudStore) -> None:
    store.is_ip_banned = AsyncMock(side_effect=ConnectionError())  # type: ignore[method-assign]

    response = client.post(
        "/api/auth/signin",
        json={"email": "ann@example.com", "password": "secret"},
        headers={"X-Forwarded-For": "203.0.113.12"},
    )

    assert response.status_code == 200
