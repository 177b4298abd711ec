import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from dishka import AsyncContainer
from dishka.integrations.fastapi import setup_dishka
from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi

from linelogic.api import register_routers
from linelogic.api.middleware import ApiKeyMiddleware, EdgeGuardMiddleware
from linelogic.ioc import get_async_container
from linelogic.services.logging import setup_logging
from linelogic.settings import Config, get_config

logger = logging.getLogger(__name__)

_OPENAPI_API_KEY_SCHEME = "ApiKeyAuth"


def _install_openapi_api_key_security(app: FastAPI) -> None:
    def custom_openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = get_openapi(
            title=app.title,
            version=app.version,
            routes=app.routes,
        )

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes[_OPENAPI_API_KEY_SCHEME] = {
            "type": "apiKey",
            "in": "header",
            "name": "X-API-Key",
        }
        for path, operations in schema.get("paths", {}).items():
            if not path.startswith("/admin"):
                continue
            for operation in operations.values():
                operation["security"] = [{_OPENAPI_API_KEY_SCHEME: []}]

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    from linelogic.database.base import Base
    from linelogic.database.engine import get_engine

    # Import models so Base.metadata knows about them
    import linelogic.api.modules.fraud.models  # noqa: F401

    engine = get_engine()
    logger.info("Creating database tables...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Starting application...")
    yield
    logger.info("Shutting down application...")
    await app.state.dishka_container.close()
    await engine.dispose()


def create_app(
    config: Config,
    container: AsyncContainer,
    manage_database: bool = True,
) -> FastAPI:
    app = FastAPI(
        title=config.api.title,
        version=config.api.version,
        lifespan=lifespan if manage_database else None,
    )

    app.add_middleware(EdgeGuardMiddleware)

    if config.api.api_key:
        app.add_middleware(ApiKeyMiddleware, api_key=config.api.api_key)
        _install_openapi_api_key_security(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.allowed_hosts,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_router = APIRouter()
    register_routers(api_router)
    app.include_router(api_router)

    setup_dishka(container, app)

    return app


def get_production_app() -> FastAPI:
    """Get the FastAPI application instance."""
    config = get_config()
    setup_logging(config.env)
    return create_app(config, get_async_container())
