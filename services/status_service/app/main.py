"""Status Service — FastAPI application factory.

Runs the configured dependency checks and exposes them as liveness,
readiness and detailed status endpoints.
"""

from __future__ import annotations

import httpx
import uvicorn
from fastapi import FastAPI

from app.core.config import StatusServiceSettings
from app.core.config import settings as default_settings
from app.core.events import lifespan
from app.routers.health import build_registry, build_router

from pulsecheck.logging import configure_logging
from pulsecheck.middleware import RequestContextMiddleware
from pulsecheck.registry import CheckRegistry
from pulsecheck.runner import CheckRunner
from pulsecheck.service import HealthCheckService


def create_app(
    settings: StatusServiceSettings | None = None,
    *,
    registry: CheckRegistry | None = None,
) -> FastAPI:
    """Construct and return the FastAPI application.

    ``registry`` replaces the checks built from ``settings``.
    """
    settings = settings or default_settings
    configure_logging(settings)

    application = FastAPI(
        title="Status Service",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    if registry is None:
        http_client = httpx.AsyncClient(follow_redirects=True)
        engine = None
        if settings.database_url:
            from sqlalchemy.ext.asyncio import create_async_engine

            engine = create_async_engine(settings.database_url, pool_pre_ping=True)
        application.state.http_client = http_client
        application.state.engine = engine
        registry = build_registry(settings, http_client=http_client, engine=engine)

    service = HealthCheckService(
        registry, CheckRunner(default_deadline=settings.health_batch_deadline)
    )
    application.state.health = service

    application.add_middleware(RequestContextMiddleware)
    application.include_router(build_router(service, settings))

    return application


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=default_settings.service_port,
        log_level=default_settings.log_level.lower(),
    )
