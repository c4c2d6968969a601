"""Exception hierarchy for pulsecheck.

Probe failures and timeouts are never raised to callers: the runner turns them
into ``CheckResult`` entries. Only registration problems (fatal at startup)
and broken internal invariants surface as exceptions.
"""

from __future__ import annotations


class PulsecheckError(Exception):
    """Base class for all pulsecheck errors."""


# ── Registration ──────────────────────────────


class RegistrationError(PulsecheckError):
    """A check could not be registered."""


class DuplicateNameError(RegistrationError):
    """A check with the same name is already registered."""

    def __init__(self, name: str):
        super().__init__(f"Health check {name!r} is already registered")
        self.name = name


class InvalidCheckError(RegistrationError):
    """The check definition is malformed (bad name, timeout or probe)."""


class RegistryFrozenError(RegistrationError):
    """The registry no longer accepts new checks."""


# ── Aggregation ───────────────────────────────


class AggregationError(PulsecheckError):
    """Internal invariant violated while building a report.

    Seeing this means a bug, not an unhealthy dependency.
    """
