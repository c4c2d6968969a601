"""Built-in probe factories for common dependencies.

Each factory returns an async probe suitable for ``CheckRegistry.add_check``.
Connection errors are left to propagate: the runner records them as failures
carrying the underlying error message.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import httpx
import psutil
import structlog

from pulsecheck.models import HealthStatus, ProbeOutcome, ProbeResult

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = structlog.get_logger(__name__)

AsyncProbe = Callable[[], Any]


def process_memory_bytes() -> int:
    """Current resident set size of this process."""
    return psutil.Process().memory_info().rss


def memory_probe(
    threshold_bytes: int,
    *,
    status: HealthStatus = HealthStatus.DEGRADED,
    usage: Callable[[], int] = process_memory_bytes,
) -> AsyncProbe:
    """Report ``status`` while process memory is at or above ``threshold_bytes``."""

    async def check_memory() -> ProbeOutcome:
        allocated = usage()
        data = {"allocated_bytes": allocated, "threshold_bytes": threshold_bytes}
        if allocated >= threshold_bytes:
            logger.info(
                "memory_threshold_exceeded",
                allocated_bytes=allocated,
                threshold_bytes=threshold_bytes,
            )
            return ProbeResult(
                status,
                f"Memory usage {allocated} bytes is at or above {threshold_bytes} bytes",
                data,
            )
        return ProbeResult(HealthStatus.HEALTHY, "Memory usage within threshold", data)

    return check_memory


def http_probe(
    url: str,
    *,
    expected_status: int = 200,
    timeout: float = 5.0,
    client: httpx.AsyncClient | None = None,
) -> AsyncProbe:
    """GET ``url`` and expect ``expected_status``.

    Pass a shared ``client`` to reuse connections across batches; otherwise a
    short-lived client is created per run.
    """

    async def check_http() -> ProbeOutcome:
        if client is not None:
            response = await client.get(url, timeout=timeout)
        else:
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as http:
                response = await http.get(url)

        data = {"url": url, "status_code": response.status_code}
        if response.status_code != expected_status:
            logger.info(
                "upstream_unexpected_status",
                url=url,
                status_code=response.status_code,
                expected_status=expected_status,
            )
            return ProbeResult.unhealthy(
                f"{url} returned {response.status_code}, expected {expected_status}",
                **data,
            )
        return ProbeResult.healthy(f"{url} is reachable", **data)

    return check_http


def tcp_probe(host: str, port: int) -> AsyncProbe:
    """Open and close a TCP connection to ``host:port``."""

    async def check_tcp() -> ProbeOutcome:
        _, writer = await asyncio.open_connection(host, port)
        writer.close()
        await writer.wait_closed()
        return ProbeResult.healthy(f"Connected to {host}:{port}", host=host, port=port)

    return check_tcp


def database_probe(engine: AsyncEngine) -> AsyncProbe:
    """Run ``SELECT 1`` on a SQLAlchemy async engine."""
    from sqlalchemy import text

    async def check_database() -> ProbeOutcome:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return ProbeResult.healthy(
            "Database is reachable", dialect=engine.dialect.name
        )

    return check_database


def amqp_probe(url: str) -> AsyncProbe:
    """Connect to an AMQP broker with aio-pika and disconnect again."""
    # aio-pika is an optional dependency; only services probing a broker need it
    import aio_pika

    async def check_amqp() -> ProbeOutcome:
        connection = await aio_pika.connect(url)
        try:
            is_closed = connection.is_closed
        finally:
            await connection.close()
        if is_closed:
            return ProbeResult.unhealthy("Broker connection closed immediately")
        return ProbeResult.healthy("Broker is reachable")

    return check_amqp
