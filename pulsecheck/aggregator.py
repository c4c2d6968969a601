"""Combine check results into a single ``HealthReport``."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import timedelta

from pulsecheck.errors import AggregationError
from pulsecheck.models import CheckResult, HealthReport, HealthStatus
from pulsecheck.runner import BatchResult


def aggregate(
    results: Sequence[CheckResult],
    total_duration: timedelta | None = None,
) -> HealthReport:
    """Build a report whose status is the most severe entry status.

    ``total_duration`` should be the wall-clock span of the batch. When it is
    not known the longest single duration is used, since checks overlap.
    """
    seen: set[str] = set()
    for result in results:
        if not isinstance(result.status, HealthStatus):
            raise AggregationError(
                f"Result {result.name!r} has unknown status {result.status!r}"
            )
        if result.name in seen:
            raise AggregationError(f"Duplicate result for check {result.name!r}")
        seen.add(result.name)

    if total_duration is None:
        total_duration = max((r.duration for r in results), default=timedelta(0))

    return HealthReport(
        status=HealthStatus.worst(*(r.status for r in results)),
        total_duration=total_duration,
        entries=tuple(results),
    )


def aggregate_batch(batch: BatchResult) -> HealthReport:
    return aggregate(batch.results, batch.total_duration)
