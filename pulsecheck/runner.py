"""Concurrent check runner.

Every selected probe runs as its own asyncio task, bounded by the check's
timeout and by the batch deadline. Whatever happens to a probe (success,
exception, timeout, cancellation) the batch yields exactly one
``CheckResult`` per definition, in input order.
"""

from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import timedelta

import structlog

from pulsecheck.models import (
    CheckDefinition,
    CheckResult,
    HealthStatus,
    ProbeOutcome,
    ProbeResult,
)

logger = structlog.get_logger(__name__)

DEADLINE_EXCEEDED = "deadline exceeded"
CANCELLED = "cancelled"


@dataclass(frozen=True)
class BatchResult:
    """Ordered results of one batch plus its wall-clock span."""

    results: tuple[CheckResult, ...]
    total_duration: timedelta


class CheckRunner:
    """Runs check definitions concurrently.

    Args:
        default_deadline: Batch deadline in seconds applied when ``run`` is
            called without one. ``None`` leaves batches bounded only by the
            per-check timeouts.
    """

    def __init__(self, *, default_deadline: float | None = None):
        self.default_deadline = default_deadline

    async def run(
        self,
        definitions: Sequence[CheckDefinition],
        deadline: float | None = None,
        *,
        cancel: asyncio.Event | None = None,
    ) -> BatchResult:
        """Run ``definitions`` and collect one result per definition.

        Args:
            definitions: Checks to run; result order follows this sequence.
            deadline: Seconds from batch start after which still-running
                probes are cancelled and reported as timed out.
            cancel: Setting this event stops the batch early. Finished
                results are kept, in-flight ones are reported as cancelled.
        """
        if deadline is None:
            deadline = self.default_deadline

        loop = asyncio.get_running_loop()
        started = time.perf_counter()
        deadline_at = None if deadline is None else loop.time() + deadline

        results: list[CheckResult | None] = [None] * len(definitions)
        tasks = [
            asyncio.create_task(self._execute(d), name=f"health-check:{d.name}")
            for d in definitions
        ]
        pending: set[asyncio.Task] = set(tasks)
        cancel_waiter = asyncio.create_task(cancel.wait()) if cancel is not None else None
        stop_reason: str | None = None

        try:
            while pending:
                if cancel is not None and cancel.is_set():
                    stop_reason = CANCELLED
                    break
                timeout = None
                if deadline_at is not None:
                    timeout = deadline_at - loop.time()
                    if timeout <= 0:
                        stop_reason = DEADLINE_EXCEEDED
                        break

                waiters = pending if cancel_waiter is None else pending | {cancel_waiter}
                done, _ = await asyncio.wait(
                    waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
                )
                pending -= done
        finally:
            if cancel_waiter is not None:
                cancel_waiter.cancel()
            # Never leave probes running past the batch, including when the
            # caller's own task is cancelled while waiting.
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        finished = time.perf_counter()
        for index, (definition, task) in enumerate(zip(definitions, tasks)):
            if task.cancelled():
                results[index] = self._interrupted(
                    definition,
                    stop_reason or CANCELLED,
                    elapsed=finished - started,
                    deadline=deadline,
                )
            else:
                results[index] = task.result()

        if stop_reason is not None:
            logger.warning(
                "health_batch_interrupted",
                reason=stop_reason,
                interrupted=[d.name for d, t in zip(definitions, tasks) if t.cancelled()],
            )

        return BatchResult(
            results=tuple(r for r in results if r is not None),
            total_duration=timedelta(seconds=finished - started),
        )

    async def _execute(self, definition: CheckDefinition) -> CheckResult:
        log = logger.bind(check=definition.name)
        started = time.perf_counter()
        scope = asyncio.timeout(definition.timeout)
        try:
            async with scope:
                outcome = await _invoke(definition)
            result = _from_outcome(definition, outcome, time.perf_counter() - started)
        except TimeoutError as exc:
            elapsed = time.perf_counter() - started
            # Only the check's own scope counts as a timeout; a TimeoutError
            # raised by the probe (e.g. a connect timeout) is a failure.
            if not scope.expired():
                return _failed(definition, exc, elapsed, log)
            log.warning(
                "health_check_timed_out",
                timeout=definition.timeout,
                elapsed=round(elapsed, 6),
            )
            return CheckResult(
                name=definition.name,
                status=definition.failure_status,
                description=f"Check timed out after {definition.timeout:g}s",
                duration=timedelta(seconds=elapsed),
                error=DEADLINE_EXCEEDED,
                tags=definition.tags,
            )
        except Exception as exc:
            return _failed(definition, exc, time.perf_counter() - started, log)

        log.debug(
            "health_check_completed",
            status=result.status.value,
            duration_ms=round(result.duration.total_seconds() * 1000, 3),
        )
        return result

    @staticmethod
    def _interrupted(
        definition: CheckDefinition,
        reason: str,
        *,
        elapsed: float,
        deadline: float | None,
    ) -> CheckResult:
        if reason == DEADLINE_EXCEEDED:
            description = f"Batch deadline of {deadline:g}s elapsed before the check finished (timed out)"
        else:
            description = "Batch cancelled before the check finished"
        logger.info("health_check_cancelled", check=definition.name, reason=reason)
        return CheckResult(
            name=definition.name,
            status=definition.failure_status,
            description=description,
            duration=timedelta(seconds=elapsed),
            error=reason,
            tags=definition.tags,
        )


async def _invoke(definition: CheckDefinition) -> ProbeOutcome:
    probe = definition.probe
    if inspect.iscoroutinefunction(probe):
        return await probe()
    # Plain callables run on a worker thread. A thread cannot be interrupted,
    # so on timeout it is abandoned and finishes in the background.
    outcome = await asyncio.to_thread(probe)
    if inspect.isawaitable(outcome):
        return await outcome
    return outcome


def _from_outcome(
    definition: CheckDefinition, outcome: ProbeOutcome, elapsed: float
) -> CheckResult:
    if outcome is None or outcome is True:
        outcome = ProbeResult.healthy()
    elif outcome is False:
        outcome = ProbeResult(definition.failure_status, "Probe reported failure")
    elif not isinstance(outcome, ProbeResult):
        raise TypeError(
            f"Probe returned {type(outcome).__name__}, expected ProbeResult or bool"
        )

    # Raises pydantic.ValidationError for data outside the DataValue union,
    # which the caller reports as a probe failure.
    return CheckResult(
        name=definition.name,
        status=outcome.status,
        description=outcome.description,
        data=dict(outcome.data),
        duration=timedelta(seconds=elapsed),
        tags=definition.tags,
    )


def _failed(
    definition: CheckDefinition, exc: Exception, elapsed: float, log
) -> CheckResult:
    log.warning(
        "health_check_failed",
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return CheckResult(
        name=definition.name,
        status=definition.failure_status,
        description=f"Check raised {type(exc).__name__}",
        duration=timedelta(seconds=elapsed),
        error=str(exc) or type(exc).__name__,
        tags=definition.tags,
    )
