"""Core value types: statuses, check definitions, results and reports."""

from __future__ import annotations

import enum
import math
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, FiniteFloat, model_validator
from typing_extensions import TypeAliasType

from pulsecheck.errors import AggregationError, InvalidCheckError

DEFAULT_TIMEOUT = 30.0


class HealthStatus(str, enum.Enum):
    """Health of a single check or of a whole report."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]

    @classmethod
    def worst(cls, *statuses: HealthStatus) -> HealthStatus:
        """Most severe of ``statuses``; Healthy when none are given."""
        return max(statuses, key=lambda s: s.severity, default=cls.HEALTHY)


_SEVERITY = {
    HealthStatus.HEALTHY: 0,
    HealthStatus.DEGRADED: 1,
    HealthStatus.UNHEALTHY: 2,
}

# Free-form diagnostics attached to a result. Nested mappings are allowed so
# probes can group values, but arbitrary objects are rejected at validation.
DataValue = TypeAliasType(
    "DataValue",
    "Union[str, bool, int, FiniteFloat, None, dict[str, DataValue]]",
)


@dataclass(frozen=True)
class ProbeResult:
    """Outcome reported by a probe that completed normally."""

    status: HealthStatus = HealthStatus.HEALTHY
    description: str = ""
    data: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def healthy(cls, description: str = "", **data: Any) -> ProbeResult:
        return cls(HealthStatus.HEALTHY, description, data)

    @classmethod
    def degraded(cls, description: str = "", **data: Any) -> ProbeResult:
        return cls(HealthStatus.DEGRADED, description, data)

    @classmethod
    def unhealthy(cls, description: str = "", **data: Any) -> ProbeResult:
        return cls(HealthStatus.UNHEALTHY, description, data)


# A probe is either a coroutine function or a plain callable (run on a worker
# thread). ``True``/``None`` mean healthy, ``False`` means the check failed.
ProbeOutcome = Union[ProbeResult, bool, None]
Probe = Callable[[], Union[Awaitable[ProbeOutcome], ProbeOutcome]]


@dataclass(frozen=True)
class CheckDefinition:
    """A named, tagged probe plus the policy applied when it fails."""

    name: str
    probe: Probe
    tags: frozenset[str] = frozenset()
    failure_status: HealthStatus = HealthStatus.UNHEALTHY
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise InvalidCheckError("Health check name must be a non-empty string")
        if self.name != self.name.strip():
            raise InvalidCheckError(
                f"Health check name {self.name!r} has surrounding whitespace"
            )
        if not callable(self.probe):
            raise InvalidCheckError(f"Probe for {self.name!r} is not callable")
        if not isinstance(self.failure_status, HealthStatus):
            raise InvalidCheckError(
                f"Invalid failure status for {self.name!r}: {self.failure_status!r}"
            )
        if (
            isinstance(self.timeout, bool)
            or not isinstance(self.timeout, (int, float))
            or not math.isfinite(self.timeout)
            or self.timeout <= 0
        ):
            raise InvalidCheckError(
                f"Timeout for {self.name!r} must be a positive number of seconds"
            )
        # Accept any iterable of tags but store an immutable set.
        tags = self.tags
        if isinstance(tags, str):
            tags = (tags,)
        object.__setattr__(self, "tags", frozenset(tags))


class CheckResult(BaseModel):
    """Outcome of one check within one batch."""

    model_config = ConfigDict(frozen=True)

    name: str
    status: HealthStatus
    description: str = ""
    data: dict[str, DataValue] = Field(default_factory=dict)
    duration: timedelta = timedelta(0)
    error: str | None = None
    tags: frozenset[str] = frozenset()


class HealthReport(BaseModel):
    """Aggregate of one batch: overall status plus ordered entries."""

    model_config = ConfigDict(frozen=True)

    status: HealthStatus
    total_duration: timedelta
    entries: tuple[CheckResult, ...] = ()

    @model_validator(mode="after")
    def _status_is_most_severe_entry(self) -> HealthReport:
        names = [entry.name for entry in self.entries]
        if len(set(names)) != len(names):
            raise AggregationError(f"Duplicate entry names in report: {names}")
        expected = HealthStatus.worst(*(entry.status for entry in self.entries))
        if self.status is not expected:
            raise AggregationError(
                f"Report status {self.status.value!r} does not match "
                f"most severe entry status {expected.value!r}"
            )
        return self

    @property
    def entries_by_name(self) -> dict[str, CheckResult]:
        return {entry.name: entry for entry in self.entries}

    def entry(self, name: str) -> CheckResult:
        for entry in self.entries:
            if entry.name == name:
                return entry
        raise KeyError(name)
