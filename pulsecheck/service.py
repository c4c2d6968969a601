"""HealthCheckService: select, run and aggregate in one call."""

from __future__ import annotations

import asyncio

import structlog

from pulsecheck.aggregator import aggregate_batch
from pulsecheck.models import HealthReport, HealthStatus
from pulsecheck.registry import CheckRegistry, Predicate
from pulsecheck.runner import CheckRunner

logger = structlog.get_logger(__name__)


class HealthCheckService:
    """Entry point used by transports (HTTP routes, CLIs, schedulers)."""

    def __init__(self, registry: CheckRegistry, runner: CheckRunner | None = None):
        self.registry = registry
        self.runner = runner or CheckRunner()

    async def check_health(
        self,
        predicate: Predicate | None = None,
        *,
        deadline: float | None = None,
        cancel: asyncio.Event | None = None,
    ) -> HealthReport:
        """Run the checks selected by ``predicate`` and return their report."""
        definitions = self.registry.select(predicate)
        batch = await self.runner.run(definitions, deadline, cancel=cancel)
        report = aggregate_batch(batch)

        for entry in report.entries:
            if entry.status is not HealthStatus.HEALTHY:
                logger.warning(
                    "health_check_not_healthy",
                    check=entry.name,
                    status=entry.status.value,
                    description=entry.description,
                    error=entry.error,
                )
        logger.info(
            "health_report_generated",
            status=report.status.value,
            checks=len(report.entries),
            total_duration_ms=round(report.total_duration.total_seconds() * 1000, 3),
        )
        return report
