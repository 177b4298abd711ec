from __future__ import annotations

import pytest

from linelogic.api.modules.fraud.services.network import ClientIpResolver, normalize_ip
from linelogic.settings import FraudConfig


@pytest.fixture
def resolver() -> ClientIpResolver:
    return ClientIpResolver(FraudConfig())


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("203.0.113.7", "203.0.113.7"),
        (" 203.0.113.7 , 10.0.0.1", "203.0.113.7"),
        ("for=192.0.2.60;proto=http", "192.0.2.60"),
        ('for="[2001:db8::1]:4711"', "2001:db8::1"),
        ("unknown", None),
        ("not-an-ip", None),
        ("", None),
        (None, None),
    ],
)
def test_normalize_ip(raw: str | None, expected: str | None) -> None:
    assert normalize_ip(raw) == expected


def test_forwarded_for_wins_over_other_headers(resolver: ClientIpResolver) -> None:
    headers = {
        "X-Forwarded-For": "1.1.1.1, 10.0.0.1",
        "X-Real-IP": "2.2.2.2",
        "CF-Connecting-IP": "3.3.3.3",
    }
    assert resolver.resolve(headers, "10.0.0.5") == "1.1.1.1"


def test_skips_unusable_headers(resolver: ClientIpResolver) -> None:
    headers = {"x-forwarded-for": "unknown", "x-real-ip": "2.2.2.2"}
    assert resolver.resolve(headers, "10.0.0.5") == "2.2.2.2"


def test_uses_forwarded_header(resolver: ClientIpResolver) -> None:
    assert resolver.resolve({"forwarded": "for=192.0.2.60"}, None) == "192.0.2.60"


def test_falls_back_to_peer_then_default(resolver: ClientIpResolver) -> None:
    assert resolver.resolve({}, "10.0.0.5") == "10.0.0.5"
    assert resolver.resolve({}, "testclient") == "127.0.0.1"
    assert resolver.resolve({}, None) == "127.0.0.1"


def test_header_priority_is_configurable() -> None:
    resolver = ClientIpResolver(FraudConfig(client_ip_headers=["CF-Connecting-IP"]))
    headers = {"x-forwarded-for": "1.1.1.1", "cf-connecting-ip": "3.3.3.3"}
    assert resolver.resolve(headers, None) == "3.3.3.3"
