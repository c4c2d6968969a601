"""Status Service — application lifespan (startup / shutdown hooks)."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Freeze the check registry before serving; release clients on exit."""
    registry = app.state.health.registry
    registry.freeze()
    log.info(
        "status_service starting up",
        checks=[d.name for d in registry],
    )

    yield

    log.info("status_service shutting down")
    http_client = getattr(app.state, "http_client", None)
    if http_client is not None:
        await http_client.aclose()
    engine = getattr(app.state, "engine", None)
    if engine is not None:
        await engine.dispose()
