"""pulsecheck: concurrent health-check aggregation."""

from pulsecheck.aggregator import aggregate, aggregate_batch
from pulsecheck.errors import (
    AggregationError,
    DuplicateNameError,
    InvalidCheckError,
    PulsecheckError,
    RegistrationError,
    RegistryFrozenError,
)
from pulsecheck.formatter import (
    JsonReportFormatter,
    PlainTextFormatter,
    ReportFormatter,
    StatusCodeMap,
)
from pulsecheck.health import HealthEndpoint, create_health_router
from pulsecheck.models import (
    CheckDefinition,
    CheckResult,
    HealthReport,
    HealthStatus,
    ProbeResult,
)
from pulsecheck.registry import CheckRegistry, named, no_checks, tagged, tagged_all
from pulsecheck.runner import BatchResult, CheckRunner
from pulsecheck.service import HealthCheckService

__all__ = [
    "AggregationError",
    "BatchResult",
    "CheckDefinition",
    "CheckRegistry",
    "CheckResult",
    "CheckRunner",
    "DuplicateNameError",
    "HealthCheckService",
    "HealthEndpoint",
    "HealthReport",
    "HealthStatus",
    "InvalidCheckError",
    "JsonReportFormatter",
    "PlainTextFormatter",
    "ProbeResult",
    "PulsecheckError",
    "RegistrationError",
    "RegistryFrozenError",
    "ReportFormatter",
    "StatusCodeMap",
    "aggregate",
    "aggregate_batch",
    "create_health_router",
    "named",
    "no_checks",
    "tagged",
    "tagged_all",
]
