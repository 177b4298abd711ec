import hmac
import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from linelogic.api.common.schema import ErrorResponse
from linelogic.api.modules.fraud.services.core import (
    RATE_LIMITED_MESSAGE,
    fraud_message,
)
from linelogic.api.modules.fraud.services.network import (
    ClientIpResolver,
    EdgeGuard,
    EdgeVerdict,
)

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
}


class ApiKeyMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, api_key: str, path_prefix: str = "/admin") -> None:  # noqa: ANN001
        super().__init__(app)
        self._api_key = api_key
        self._path_prefix = path_prefix

    async def dispatch(self, request: Request, call_next) -> Response:  # noqa: ANN001
        if not request.url.path.startswith(self._path_prefix):
            return await call_next(request)

        provided = request.headers.get("X-API-Key", "")
        if not hmac.compare_digest(provided, self._api_key):
            return JSONResponse(
                {"detail": "Invalid or missing API key"},
                status_code=401,
            )

        return await call_next(request)


def banned_response(client_ip: str) -> JSONResponse:
    return JSONResponse(
        ErrorResponse(
            error=fraud_message("IP_BANNED"), code="IP_BANNED", banned=True
        ).model_dump(),
        status_code=403,
        headers={
            "X-Banned-IP": client_ip,
            "X-Ban-Reason": "Fraud Detection",
        },
    )


def rate_limited_response(client_ip: str, retry_after_seconds: int) -> JSONResponse:
    return JSONResponse(
        ErrorResponse(error=RATE_LIMITED_MESSAGE, code="RATE_LIMITED").model_dump(),
        status_code=429,
        headers={
            "Retry-After": str(retry_after_seconds),
            "X-Rate-Limited-IP": client_ip,
        },
    )


class EdgeGuardMiddleware(BaseHTTPMiddleware):
    """Short-circuits banned and rate-limited IPs before routing.

    Guard failures let the request through untouched.
    """

    async def _inspect(self, request: Request) -> EdgeVerdict:
        container = request.app.state.dishka_container
        guard = await container.get(EdgeGuard)
        if not guard.is_protected(request.url.path):
            return EdgeVerdict(action="bypass")

        resolver = await container.get(ClientIpResolver)
        client_ip = resolver.get_request_ip(request)
        return await guard.inspect(request.url.path, client_ip)

    async def dispatch(self, request: Request, call_next) -> Response:  # noqa: ANN001
        try:
            verdict = await self._inspect(request)
        except Exception:  # noqa: BLE001
            logger.exception("Edge guard failed, forwarding request")
            return await call_next(request)

        if verdict.action == "banned" and verdict.client_ip:
            return banned_response(verdict.client_ip)
        if verdict.action == "rate_limited" and verdict.client_ip:
            return rate_limited_response(
                verdict.client_ip, verdict.retry_after_seconds or 0
            )

        response = await call_next(request)
        if verdict.action == "forward" and verdict.client_ip:
            response.headers["X-Client-IP"] = verdict.client_ip
            for name, value in SECURITY_HEADERS.items():
                response.headers[name] = value
        return response
