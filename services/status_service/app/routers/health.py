"""Status Service — health checks and their HTTP endpoints.

``/health/live``    liveness, runs nothing, plain-text status
``/health/ready``   checks tagged ``ready`` (database, broker, upstreams)
``/health/status``  every registered check, detailed JSON
"""

from __future__ import annotations

import httpx
from fastapi import APIRouter

from app.core.config import StatusServiceSettings
from pulsecheck.formatter import JsonReportFormatter, PlainTextFormatter
from pulsecheck.health import HealthEndpoint, create_health_router
from pulsecheck.models import HealthStatus
from pulsecheck.probes import amqp_probe, database_probe, http_probe, memory_probe
from pulsecheck.registry import CheckRegistry, no_checks, tagged
from pulsecheck.service import HealthCheckService


def build_registry(
    settings: StatusServiceSettings,
    *,
    http_client: httpx.AsyncClient | None = None,
    engine=None,
) -> CheckRegistry:
    """Register a check for each dependency configured in ``settings``."""
    registry = CheckRegistry(default_timeout=settings.health_check_timeout)

    registry.add_check(
        "memory",
        memory_probe(settings.memory_threshold_bytes),
        tags=("memory",),
        failure_status=HealthStatus.DEGRADED,
    )

    if engine is not None:
        registry.add_check("database", database_probe(engine), tags=("ready", "db"))

    if settings.rabbitmq_url:
        registry.add_check("rabbitmq", amqp_probe(settings.rabbitmq_url), tags=("ready", "broker"))

    # A failing upstream degrades this service but does not make it unready
    for url in settings.upstreams:
        registry.add_check(
            f"upstream:{url}",
            http_probe(url, timeout=settings.upstream_timeout, client=http_client),
            tags=("ready", "upstream"),
            failure_status=HealthStatus.DEGRADED,
            timeout=settings.upstream_timeout,
        )

    return registry


def build_router(
    service: HealthCheckService, settings: StatusServiceSettings
) -> APIRouter:
    status_codes = settings.status_codes()
    return create_health_router(
        service,
        (
            HealthEndpoint(
                "/live",
                predicate=no_checks,
                formatter=PlainTextFormatter(status_codes),
                name="liveness",
            ),
            HealthEndpoint(
                "/ready",
                predicate=tagged("ready"),
                formatter=JsonReportFormatter(status_codes, include_entries=False),
                name="readiness",
            ),
            HealthEndpoint(
                "/status",
                formatter=JsonReportFormatter(status_codes),
                name="status",
            ),
        ),
    )
