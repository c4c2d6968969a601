"""Shared test fixtures."""

from __future__ import annotations

import asyncio

import pytest

from pulsecheck.models import HealthStatus, ProbeResult
from pulsecheck.registry import CheckRegistry


def sleeping_probe(delay: float, status: HealthStatus = HealthStatus.HEALTHY, **data):
    """Async probe that sleeps ``delay`` seconds then reports ``status``."""

    async def probe() -> ProbeResult:
        await asyncio.sleep(delay)
        return ProbeResult(status, f"slept {delay}s", data)

    return probe


def failing_probe(exc: Exception, delay: float = 0.0):
    async def probe() -> ProbeResult:
        if delay:
            await asyncio.sleep(delay)
        raise exc

    return probe


@pytest.fixture
def registry() -> CheckRegistry:
    """Registry with the canonical memory (healthy) + db (unhealthy) pair."""
    return (
        CheckRegistry()
        .add_check("memory", sleeping_probe(0.005), tags=("live",))
        .add_check("db", sleeping_probe(0.005, HealthStatus.UNHEALTHY), tags=("ready",))
    )
