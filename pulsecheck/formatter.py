"""Report formatters: ``HealthReport`` -> (status code, body bytes).

The core never depends on a wire format. Transports call any object matching
``ReportFormatter`` and use its optional ``media_type`` attribute.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import timedelta
from typing import Any, Protocol

from pulsecheck.models import CheckResult, HealthReport, HealthStatus

DEFAULT_STATUS_CODES: dict[HealthStatus, int] = {
    HealthStatus.HEALTHY: 200,
    HealthStatus.DEGRADED: 200,
    HealthStatus.UNHEALTHY: 503,
}


class ReportFormatter(Protocol):
    def __call__(self, report: HealthReport) -> tuple[int, bytes]: ...


class StatusCodeMap:
    """Maps each ``HealthStatus`` to a transport status code.

    Statuses left out of ``overrides`` keep their defaults
    (200 / 200 / 503).
    """

    def __init__(self, overrides: Mapping[HealthStatus | str, int] | None = None):
        self._codes = dict(DEFAULT_STATUS_CODES)
        for status, code in (overrides or {}).items():
            self._codes[HealthStatus(status)] = int(code)

    def __getitem__(self, status: HealthStatus) -> int:
        return self._codes[status]

    def as_dict(self) -> dict[HealthStatus, int]:
        return dict(self._codes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StatusCodeMap):
            return NotImplemented
        return self._codes == other._codes

    def __repr__(self) -> str:
        codes = ", ".join(f"{s.value}={c}" for s, c in self._codes.items())
        return f"StatusCodeMap({codes})"


def _ms(duration: timedelta) -> float:
    return round(duration.total_seconds() * 1000, 3)


def entry_to_dict(entry: CheckResult) -> dict[str, Any]:
    return {
        "status": entry.status.value,
        "description": entry.description,
        "duration_ms": _ms(entry.duration),
        "tags": sorted(entry.tags),
        "data": entry.data,
        "error": entry.error,
    }


def report_to_dict(report: HealthReport, *, include_entries: bool = True) -> dict[str, Any]:
    """Plain-dict view of a report; entry order follows the report."""
    body: dict[str, Any] = {
        "status": report.status.value,
        "total_duration_ms": _ms(report.total_duration),
    }
    if include_entries:
        body["entries"] = {e.name: entry_to_dict(e) for e in report.entries}
    return body


class JsonReportFormatter:
    """Detailed JSON body, one object per entry keyed by check name."""

    media_type = "application/json"

    def __init__(
        self,
        status_codes: StatusCodeMap | None = None,
        *,
        include_entries: bool = True,
    ):
        self.status_codes = status_codes or StatusCodeMap()
        self.include_entries = include_entries

    def __call__(self, report: HealthReport) -> tuple[int, bytes]:
        body = report_to_dict(report, include_entries=self.include_entries)
        payload = json.dumps(body, default=str, allow_nan=False)
        return self.status_codes[report.status], payload.encode()


class PlainTextFormatter:
    """Body is only the overall status, e.g. ``healthy``."""

    media_type = "text/plain"

    def __init__(self, status_codes: StatusCodeMap | None = None):
        self.status_codes = status_codes or StatusCodeMap()

    def __call__(self, report: HealthReport) -> tuple[int, bytes]:
        return self.status_codes[report.status], report.status.value.encode()
