"""Tests for the concurrent check runner."""

from __future__ import annotations

import asyncio
import threading
import time

import pytest

from conftest import failing_probe, sleeping_probe
from pulsecheck.models import CheckDefinition, HealthStatus, ProbeResult
from pulsecheck.runner import CANCELLED, DEADLINE_EXCEEDED, CheckRunner


def _names(batch) -> list[str]:
    return [r.name for r in batch.results]


# ── Ordering & concurrency ───────────────────────────────────────────────────


class TestOrdering:
    @pytest.mark.asyncio
    async def test_results_follow_input_order_not_completion_order(self) -> None:
        defs = [
            CheckDefinition("slowest", sleeping_probe(0.06)),
            CheckDefinition("fastest", sleeping_probe(0.0)),
            CheckDefinition("middle", sleeping_probe(0.03)),
        ]
        batch = await CheckRunner().run(defs)
        assert _names(batch) == ["slowest", "fastest", "middle"]

    @pytest.mark.asyncio
    async def test_probes_run_concurrently(self) -> None:
        defs = [CheckDefinition(f"c{i}", sleeping_probe(0.1)) for i in range(10)]
        started = time.perf_counter()
        batch = await CheckRunner().run(defs)
        elapsed = time.perf_counter() - started
        assert len(batch.results) == 10
        # Serial execution would take a full second
        assert elapsed < 0.5
        assert batch.total_duration.total_seconds() < 0.5

    @pytest.mark.asyncio
    async def test_total_duration_is_wall_clock_span(self) -> None:
        defs = [CheckDefinition(f"c{i}", sleeping_probe(0.05)) for i in range(4)]
        batch = await CheckRunner().run(defs)
        summed = sum(r.duration.total_seconds() for r in batch.results)
        assert batch.total_duration.total_seconds() >= 0.05
        assert batch.total_duration.total_seconds() < summed

    @pytest.mark.asyncio
    async def test_empty_batch(self) -> None:
        batch = await CheckRunner().run([])
        assert batch.results == ()


# ── Probe outcomes ───────────────────────────────────────────────────────────


class TestOutcomes:
    @pytest.mark.asyncio
    async def test_probe_result_copied(self) -> None:
        d = CheckDefinition(
            "db", sleeping_probe(0.0, HealthStatus.DEGRADED, pool_size=5), tags=("ready",)
        )
        (result,) = (await CheckRunner().run([d])).results
        assert result.status is HealthStatus.DEGRADED
        assert result.data == {"pool_size": 5}
        assert result.tags == frozenset({"ready"})
        assert result.error is None
        assert result.duration.total_seconds() >= 0

    @pytest.mark.asyncio
    async def test_bool_outcomes(self) -> None:
        async def up() -> bool:
            return True

        async def down() -> bool:
            return False

        async def silent() -> None:
            return None

        defs = [
            CheckDefinition("up", up),
            CheckDefinition("down", down, failure_status=HealthStatus.DEGRADED),
            CheckDefinition("silent", silent),
        ]
        up_r, down_r, silent_r = (await CheckRunner().run(defs)).results
        assert up_r.status is HealthStatus.HEALTHY
        assert down_r.status is HealthStatus.DEGRADED
        assert silent_r.status is HealthStatus.HEALTHY

    @pytest.mark.asyncio
    async def test_sync_probe_runs_on_thread(self) -> None:
        seen: list[str] = []

        def blocking_probe() -> ProbeResult:
            seen.append(threading.current_thread().name)
            time.sleep(0.01)
            return ProbeResult.healthy("sync")

        (result,) = (await CheckRunner().run([CheckDefinition("sync", blocking_probe)])).results
        assert result.status is HealthStatus.HEALTHY
        assert result.description == "sync"
        assert seen and seen[0] != threading.main_thread().name


# ── Failures ─────────────────────────────────────────────────────────────────


class TestFailures:
    @pytest.mark.asyncio
    async def test_exception_becomes_failure_result(self) -> None:
        defs = [
            CheckDefinition("ok", sleeping_probe(0.01)),
            CheckDefinition(
                "broken",
                failing_probe(ConnectionError("connection refused")),
                failure_status=HealthStatus.DEGRADED,
            ),
            CheckDefinition("also_ok", sleeping_probe(0.01)),
        ]
        ok, broken, also_ok = (await CheckRunner().run(defs)).results
        assert ok.status is HealthStatus.HEALTHY
        assert also_ok.status is HealthStatus.HEALTHY
        assert broken.status is HealthStatus.DEGRADED
        assert "connection refused" in broken.error
        assert "ConnectionError" in broken.description

    @pytest.mark.asyncio
    async def test_timeout_error_raised_by_check_is_a_failure(self) -> None:
        d = CheckDefinition(
            "db",
            failing_probe(TimeoutError(110, "Connect call failed ('10.0.0.1', 5432)")),
            timeout=30,
        )
        started = time.perf_counter()
        (result,) = (await CheckRunner().run([d])).results
        assert time.perf_counter() - started < 1.0
        assert result.status is HealthStatus.UNHEALTHY
        assert "Connect call failed" in result.error
        assert result.error != DEADLINE_EXCEEDED
        assert "TimeoutError" in result.description
        assert "timed out after" not in result.description

    @pytest.mark.asyncio
    async def test_exception_without_message_uses_type_name(self) -> None:
        d = CheckDefinition("broken", failing_probe(RuntimeError()))
        (result,) = (await CheckRunner().run([d])).results
        assert result.status is HealthStatus.UNHEALTHY
        assert result.error == "RuntimeError"

    @pytest.mark.asyncio
    async def test_sync_probe_exception(self) -> None:
        def broken() -> bool:
            raise ValueError("bad config")

        (result,) = (await CheckRunner().run([CheckDefinition("sync", broken)])).results
        assert result.status is HealthStatus.UNHEALTHY
        assert result.error == "bad config"

    @pytest.mark.asyncio
    async def test_invalid_return_type_is_failure(self) -> None:
        async def odd() -> str:
            return "fine"

        (result,) = (await CheckRunner().run([CheckDefinition("odd", odd)])).results
        assert result.status is HealthStatus.UNHEALTHY
        assert "str" in result.error

    @pytest.mark.asyncio
    async def test_unserialisable_data_is_failure(self) -> None:
        async def leaky() -> ProbeResult:
            return ProbeResult.healthy(conn=object())

        (result,) = (await CheckRunner().run([CheckDefinition("leaky", leaky)])).results
        assert result.status is HealthStatus.UNHEALTHY
        assert result.error

    @pytest.mark.asyncio
    async def test_non_finite_data_is_failure(self) -> None:
        async def ratio() -> ProbeResult:
            return ProbeResult.healthy(ratio=float("nan"))

        (result,) = (await CheckRunner().run([CheckDefinition("ratio", ratio)])).results
        assert result.status is HealthStatus.UNHEALTHY
        assert result.data == {}


# ── Timeouts & deadlines ─────────────────────────────────────────────────────


class TestTimeouts:
    @pytest.mark.asyncio
    async def test_per_check_timeout(self) -> None:
        d = CheckDefinition(
            "slow",
            sleeping_probe(1.0),
            tags=("slow",),
            timeout=0.05,
            failure_status=HealthStatus.DEGRADED,
        )
        started = time.perf_counter()
        (result,) = (await CheckRunner().run([d])).results
        elapsed = time.perf_counter() - started

        assert result.status is HealthStatus.DEGRADED
        assert result.error == DEADLINE_EXCEEDED
        assert "timed out" in result.description
        assert elapsed < 0.5

    @pytest.mark.asyncio
    async def test_slow_probe_does_not_block_others(self) -> None:
        defs = [
            CheckDefinition("slow", sleeping_probe(1.0), timeout=0.1),
            CheckDefinition("fast", sleeping_probe(0.01)),
        ]
        slow, fast = (await CheckRunner().run(defs)).results
        assert slow.error == DEADLINE_EXCEEDED
        assert fast.status is HealthStatus.HEALTHY
        assert fast.duration.total_seconds() < 0.1

    @pytest.mark.asyncio
    async def test_batch_deadline_cancels_running_probes(self) -> None:
        cancelled = asyncio.Event()

        async def stubborn() -> bool:
            try:
                await asyncio.sleep(5)
            except asyncio.CancelledError:
                cancelled.set()
                raise
            return True

        defs = [
            CheckDefinition("fast", sleeping_probe(0.0)),
            CheckDefinition("stubborn", stubborn, timeout=10, failure_status=HealthStatus.DEGRADED),
        ]
        started = time.perf_counter()
        fast, slow = (await CheckRunner().run(defs, deadline=0.05)).results
        elapsed = time.perf_counter() - started

        assert fast.status is HealthStatus.HEALTHY
        assert slow.status is HealthStatus.DEGRADED
        assert slow.error == DEADLINE_EXCEEDED
        assert "timed out" in slow.description
        assert cancelled.is_set()
        assert elapsed < 1.0

    @pytest.mark.asyncio
    async def test_default_deadline(self) -> None:
        runner = CheckRunner(default_deadline=0.05)
        (result,) = (await runner.run([CheckDefinition("slow", sleeping_probe(5), timeout=10)])).results
        assert result.error == DEADLINE_EXCEEDED

    @pytest.mark.asyncio
    async def test_sync_probe_timeout_is_not_blocked_by_thread(self) -> None:
        def hangs() -> bool:
            time.sleep(0.5)
            return True

        started = time.perf_counter()
        (result,) = (await CheckRunner().run([CheckDefinition("hangs", hangs, timeout=0.05)])).results
        assert result.error == DEADLINE_EXCEEDED
        assert time.perf_counter() - started < 0.4


# ── Cancellation ─────────────────────────────────────────────────────────────


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancel_event_preserves_completed_results(self) -> None:
        cancel = asyncio.Event()
        defs = [
            CheckDefinition("done", sleeping_probe(0.0, HealthStatus.DEGRADED, rows=3)),
            CheckDefinition("in_flight", sleeping_probe(5.0), failure_status=HealthStatus.DEGRADED),
            CheckDefinition("also_in_flight", sleeping_probe(5.0)),
        ]

        async def cancel_soon() -> None:
            await asyncio.sleep(0.05)
            cancel.set()

        canceller = asyncio.create_task(cancel_soon())
        started = time.perf_counter()
        done, in_flight, also = (await CheckRunner().run(defs, cancel=cancel)).results
        await canceller

        assert time.perf_counter() - started < 1.0
        assert done.status is HealthStatus.DEGRADED
        assert done.data == {"rows": 3}
        assert done.error is None
        assert in_flight.status is HealthStatus.DEGRADED
        assert in_flight.error == CANCELLED
        assert also.status is HealthStatus.UNHEALTHY
        assert also.error == CANCELLED

    @pytest.mark.asyncio
    async def test_cancel_already_set(self) -> None:
        cancel = asyncio.Event()
        cancel.set()
        (result,) = (await CheckRunner().run([CheckDefinition("db", sleeping_probe(0.0))], cancel=cancel)).results
        assert result.error == CANCELLED

    @pytest.mark.asyncio
    async def test_cancelling_the_caller_cancels_probes(self) -> None:
        probe_cancelled = asyncio.Event()

        async def long_probe() -> bool:
            try:
                await asyncio.sleep(5)
            except asyncio.CancelledError:
                probe_cancelled.set()
                raise
            return True

        task = asyncio.create_task(CheckRunner().run([CheckDefinition("long", long_probe)]))
        await asyncio.sleep(0.02)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert probe_cancelled.is_set()
