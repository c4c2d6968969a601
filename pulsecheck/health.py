"""Reusable health-check router.

Mounts one GET (and HEAD) route per ``HealthEndpoint``. By default that is
``/health/live`` (liveness: runs no checks) and ``/health/ready`` (readiness:
runs every registered check). Each route selects checks, runs them through a
``HealthCheckService`` and writes the report with the endpoint's formatter.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import APIRouter, Response

from pulsecheck.formatter import JsonReportFormatter, ReportFormatter, StatusCodeMap
from pulsecheck.registry import Predicate, no_checks
from pulsecheck.service import HealthCheckService

_NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache",
    "Pragma": "no-cache",
    "Expires": "Thu, 01 Jan 1970 00:00:00 GMT",
}


@dataclass(frozen=True)
class HealthEndpoint:
    """Route configuration: which checks to run and how to write the result.

    ``formatter`` wins over ``status_codes`` when both are given; with only
    ``status_codes`` a ``JsonReportFormatter`` using that map is built.
    """

    path: str
    predicate: Predicate | None = None
    formatter: ReportFormatter | None = None
    status_codes: StatusCodeMap | None = None
    deadline: float | None = None
    name: str | None = None

    def resolve_formatter(self, default: ReportFormatter) -> ReportFormatter:
        if self.formatter is not None:
            return self.formatter
        if self.status_codes is not None:
            return JsonReportFormatter(self.status_codes)
        return default


DEFAULT_ENDPOINTS = (
    HealthEndpoint("/live", predicate=no_checks, name="liveness"),
    HealthEndpoint("/ready", name="readiness"),
)


def create_health_router(
    service: HealthCheckService,
    endpoints: tuple[HealthEndpoint, ...] | list[HealthEndpoint] | None = None,
    *,
    prefix: str = "/health",
    formatter: ReportFormatter | None = None,
) -> APIRouter:
    """Build a health router for ``service``.

    Args:
        service: Runs the checks behind every endpoint.
        endpoints: Routes to mount; defaults to ``/live`` and ``/ready``.
        prefix: Router prefix.
        formatter: Formatter for endpoints that do not set their own.

    Returns:
        A FastAPI ``APIRouter``.
    """
    router = APIRouter(prefix=prefix, tags=["health"])
    default_formatter = formatter or JsonReportFormatter()

    for endpoint in endpoints if endpoints is not None else DEFAULT_ENDPOINTS:
        _add_endpoint(router, service, endpoint, endpoint.resolve_formatter(default_formatter))

    return router


def _add_endpoint(
    router: APIRouter,
    service: HealthCheckService,
    endpoint: HealthEndpoint,
    formatter: ReportFormatter,
) -> None:
    media_type = getattr(formatter, "media_type", "application/json")

    async def health_endpoint() -> Response:
        report = await service.check_health(endpoint.predicate, deadline=endpoint.deadline)
        status_code, body = formatter(report)
        return Response(
            content=body,
            status_code=status_code,
            media_type=media_type,
            headers=_NO_CACHE_HEADERS,
        )

    router.add_api_route(
        endpoint.path,
        health_endpoint,
        methods=["GET", "HEAD"],
        name=endpoint.name,
        summary=f"Health check ({endpoint.name or endpoint.path})",
        response_class=Response,
    )
