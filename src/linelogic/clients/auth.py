import logging
from dataclasses import dataclass
from typing import Any

import httpx

from linelogic.settings import Config

logger = logging.getLogger(__name__)


class AuthProviderError(Exception):
    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


@dataclass(slots=True)
class AuthUser:
    id: str
    email: str


@dataclass(slots=True)
class AuthSession:
    access_token: str
    refresh_token: str | None
    expires_in: int | None
    user: AuthUser


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or f"auth_http_{response.status_code}"
    if not isinstance(data, dict):
        return f"auth_http_{response.status_code}"
    for key in ("msg", "error_description", "message", "error"):
        value = data.get(key)
        if isinstance(value, str) and value:
            return value
    return f"auth_http_{response.status_code}"


def _parse_user(data: dict[str, Any]) -> AuthUser:
    user = data.get("user") if isinstance(data.get("user"), dict) else data
    return AuthUser(id=str(user.get("id") or ""), email=str(user.get("email") or ""))


class AuthClient:
    """Hosted auth service (GoTrue-style REST API)."""

    def __init__(self, client: httpx.AsyncClient, config: Config):
        self._client = client
        self._base_url = config.auth.base_url.rstrip("/")
        self._api_key = config.auth.api_key
        self._timeout = config.auth.timeout_seconds

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["apikey"] = self._api_key
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def _post(
        self,
        path: str,
        payload: dict[str, Any],
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self._client.post(
                f"{self._base_url}{path}",
                json=payload,
                params=params,
                headers=self._headers(),
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            logger.warning("Auth provider request failed", extra={"path": path})
            logger.debug("Auth provider network error: %s", exc)
            raise AuthProviderError(502, "auth_provider_unreachable") from exc

        if response.status_code >= 400:
            raise AuthProviderError(response.status_code, _error_message(response))

        try:
            data = response.json()
        except ValueError as exc:
            raise AuthProviderError(502, "auth_provider_invalid_response") from exc
        if not isinstance(data, dict):
            raise AuthProviderError(502, "auth_provider_invalid_response")
        return data

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: dict[str, Any],
    ) -> AuthUser:
        data = await self._post(
            "/signup",
            {"email": email, "password": password, "data": metadata},
        )
        return _parse_user(data)

    async def sign_in(self, email: str, password: str) -> AuthSession:
        data = await self._post(
            "/token",
            {"email": email, "password": password},
            params={"grant_type": "password"},
        )
        access_token = data.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise AuthProviderError(502, "auth_provider_invalid_response")
        expires_in = data.get("expires_in")
        return AuthSession(
            access_token=access_token,
            refresh_token=data.get("refresh_token"),
            expires_in=expires_in if isinstance(expires_in, int) else None,
            user=_parse_user(data),
        )


__all__ = ("AuthClient", "AuthProviderError", "AuthSession", "AuthUser")
