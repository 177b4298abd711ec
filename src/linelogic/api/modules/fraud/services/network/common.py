from collections.abc import Mapping

from starlette.requests import Request

from linelogic.api.common.ip import normalize_ip
from linelogic.settings import FraudConfig


def normalize_headers(headers: Mapping[str, str] | None) -> dict[str, str]:
    if not headers:
        return {}
    return {str(k).lower(): str(v) for k, v in headers.items()}


class ClientIpResolver:
    def __init__(self, config: FraudConfig):
        self._headers = [header.lower() for header in config.client_ip_headers]
        self._fallback_ip = config.fallback_client_ip

    def resolve(self, headers: Mapping[str, str], peer_host: str | None) -> str:
        normalized = normalize_headers(headers)
        for header in self._headers:
            ip = normalize_ip(normalized.get(header))
            if ip:
                return ip

        return normalize_ip(peer_host) or self._fallback_ip

    def get_request_ip(self, request: Request) -> str:
        peer_host = request.client.host if request.client else None
        return self.resolve(request.headers, peer_host)


__all__ = (
    "ClientIpResolver",
    "normalize_headers",
    "normalize_ip",
)
