"""HTTP clients provider for dependency injection."""

from collections.abc import AsyncIterator

import httpx
from dishka import Provider, Scope, provide

from linelogic.clients.auth import AuthClient
from linelogic.settings import Config


class HttpClientsProvider(Provider):
    """Provider for HTTP clients and external service integrations.

    A single ``httpx.AsyncClient`` is shared for the application lifetime so
    connections to the auth service are pooled; it is closed when the
    container shuts down.
    """

    @provide(scope=Scope.APP)
    async def get_httpx_client(self) -> AsyncIterator[httpx.AsyncClient]:
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(30.0),
            limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            follow_redirects=True,
        ) as client:
            yield client

    @provide(scope=Scope.APP)
    def get_auth_client(
        self,
        client: httpx.AsyncClient,
        config: Config,
    ) -> AuthClient:
        return AuthClient(client, config)
