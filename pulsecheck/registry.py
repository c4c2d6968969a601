"""Check registry and selection predicates.

The registry is filled once at startup (directly or through the chained
``add_check`` builder), frozen, and then only read while batches run.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator

import structlog

from pulsecheck.errors import DuplicateNameError, InvalidCheckError, RegistryFrozenError
from pulsecheck.models import DEFAULT_TIMEOUT, CheckDefinition, HealthStatus, Probe

logger = structlog.get_logger(__name__)

Predicate = Callable[[CheckDefinition], bool]


class CheckRegistry:
    """Ordered collection of uniquely named check definitions."""

    def __init__(
        self,
        definitions: Iterable[CheckDefinition] = (),
        *,
        default_timeout: float = DEFAULT_TIMEOUT,
    ):
        self._checks: dict[str, CheckDefinition] = {}
        self._frozen = False
        self._default_timeout = default_timeout
        for definition in definitions:
            self.register(definition)

    def register(self, definition: CheckDefinition) -> CheckDefinition:
        """Add ``definition``; names must be unique across the registry."""
        if self._frozen:
            raise RegistryFrozenError(
                f"Cannot register {getattr(definition, 'name', definition)!r}: "
                "registry is frozen"
            )
        if not isinstance(definition, CheckDefinition):
            raise InvalidCheckError(f"Expected a CheckDefinition, got {definition!r}")
        if definition.name in self._checks:
            raise DuplicateNameError(definition.name)

        self._checks[definition.name] = definition
        logger.debug(
            "health_check_registered",
            check=definition.name,
            tags=sorted(definition.tags),
            failure_status=definition.failure_status.value,
            timeout=definition.timeout,
        )
        return definition

    def add_check(
        self,
        name: str,
        probe: Probe,
        *,
        tags: Iterable[str] = (),
        failure_status: HealthStatus = HealthStatus.UNHEALTHY,
        timeout: float | None = None,
    ) -> CheckRegistry:
        """Build and register a definition, returning ``self`` for chaining."""
        self.register(
            CheckDefinition(
                name=name,
                probe=probe,
                tags=tags,
                failure_status=failure_status,
                timeout=self._default_timeout if timeout is None else timeout,
            )
        )
        return self

    def select(self, predicate: Predicate | None = None) -> tuple[CheckDefinition, ...]:
        """Definitions matching ``predicate`` in registration order."""
        if predicate is None:
            return tuple(self._checks.values())
        return tuple(d for d in self._checks.values() if predicate(d))

    def freeze(self) -> None:
        if not self._frozen:
            self._frozen = True
            logger.info("health_registry_frozen", checks=list(self._checks))

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, name: str) -> CheckDefinition | None:
        return self._checks.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._checks

    def __iter__(self) -> Iterator[CheckDefinition]:
        return iter(tuple(self._checks.values()))

    def __len__(self) -> int:
        return len(self._checks)

    def __repr__(self) -> str:
        state = "frozen" if self._frozen else "open"
        return f"<CheckRegistry {state} checks={list(self._checks)}>"


# ── Predicates ────────────────────────────────


def tagged(*tags: str) -> Predicate:
    """Select checks carrying at least one of ``tags``."""
    wanted = frozenset(tags)

    def predicate(definition: CheckDefinition) -> bool:
        return bool(definition.tags & wanted)

    return predicate


def tagged_all(*tags: str) -> Predicate:
    """Select checks carrying every one of ``tags``."""
    wanted = frozenset(tags)

    def predicate(definition: CheckDefinition) -> bool:
        return wanted <= definition.tags

    return predicate


def named(*names: str) -> Predicate:
    wanted = frozenset(names)

    def predicate(definition: CheckDefinition) -> bool:
        return definition.name in wanted

    return predicate


def no_checks(definition: CheckDefinition) -> bool:
    """Select nothing. Liveness endpoints use this to report process health only."""
    return False
