# ============================================================================
# DEPENDENCY MONITOR TESTS
# ============================================================================
# EPOCH: 1 - DEPENDENCY MONITORING
# STATUS: Tests - Monitor orchestration and scheduling
# PURPOSE: Verify cached evaluation, failure absorption and the check loop
# CREATED: 19 OCT 2026
# ============================================================================
"""
Dependency Monitor Tests

Covers:
1. Registration validation through the monitor
2. get_status caching, not-found, skip and failure handling
3. get_all_statuses isolation and ordering
4. Stale-while-revalidate through get_status
5. Per-check timeout, sync check functions, bad return values
6. Metrics updates and rendering
7. Scheduler start/stop semantics

Run with:
    pytest tests/test_monitor.py -v
"""

import asyncio
import pytest
from unittest.mock import AsyncMock, patch

from prometheus_client import CollectorRegistry

from core.config import MonitorDefaults
from core.contracts import HealthState, StatusCode
from core.models import CheckDefinition, CheckResult, DatabaseCheckDetails
from health.monitor import DependencyMonitor
from health.registry import CheckRegistry, CheckValidationError, DependencyNotFoundError


# ============================================================================
# HELPERS
# ============================================================================

class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 500.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _make_monitor(clock=None, **overrides) -> DependencyMonitor:
    """Monitor with explicit defaults (no environment lookups)."""
    settings = dict(
        cache_duration_ms=10_000,
        refresh_threshold_ms=2_000,
        check_interval_ms=5_000,
    )
    settings.update(overrides)
    return DependencyMonitor(
        defaults=MonitorDefaults(**settings),
        metrics_registry=CollectorRegistry(),
        clock=clock,
    )


def _check(name, check_fn=None, **kwargs) -> CheckDefinition:
    kwargs.setdefault("description", f"{name} dependency")
    kwargs.setdefault("impact", "degraded")
    return CheckDefinition(name=name, check_fn=check_fn, **kwargs)


def _ok_check():
    return AsyncMock(return_value=StatusCode.OK)


# ============================================================================
# REGISTRATION
# ============================================================================

class TestRegistration:
    """Validation errors surface synchronously from register()."""

    def test_blank_name_rejected(self):
        monitor = _make_monitor()
        with pytest.raises(CheckValidationError):
            monitor.register(_check("   ", _ok_check()))

    def test_missing_check_fn_rejected(self):
        monitor = _make_monitor()
        with pytest.raises(CheckValidationError) as exc_info:
            monitor.register(_check("db"))
        assert exc_info.value.field == "check_fn"

    def test_skipped_check_needs_no_function(self):
        monitor = _make_monitor()
        monitor.register(_check("external", skip=True))
        assert "external" in monitor.registry


# ============================================================================
# GET STATUS
# ============================================================================

class TestGetStatus:
    """Single-dependency queries."""

    def test_second_call_served_from_cache(self):
        # svc-a: 5ms check, ttl 10s, two rapid calls
        calls = []

        async def check():
            calls.append(1)
            await asyncio.sleep(0.005)
            return 0

        monitor = _make_monitor()
        monitor.register(_check("svc-a", check))

        async def run():
            first = await monitor.get_status("svc-a")
            second = await monitor.get_status("svc-a")
            return first, second

        first, second = asyncio.run(run())

        assert len(calls) == 1
        assert second is first
        assert second.healthy is True
        assert second.health.state == HealthState.OK
        assert second.health.latency_ms >= 4.0

    def test_skipped_dependency_never_invokes_check(self):
        check = AsyncMock(side_effect=RuntimeError("should not run"))
        monitor = _make_monitor()
        monitor.register(_check("svc-b", check, skip=True))

        status = asyncio.run(monitor.get_status("svc-b"))

        check.assert_not_called()
        assert status.healthy is True
        assert status.health.code == 0
        assert status.health.latency_ms == 0
        assert status.health.skipped is True

    def test_unknown_dependency_raises(self):
        monitor = _make_monitor()
        monitor.register(_check("svc-a", _ok_check()))

        with pytest.raises(DependencyNotFoundError, match="unknown"):
            asyncio.run(monitor.get_status("unknown"))

    def test_warning_is_healthy(self):
        monitor = _make_monitor()
        monitor.register(_check("queue", AsyncMock(return_value=CheckResult.warning("backlog"))))

        status = asyncio.run(monitor.get_status("queue"))

        assert status.healthy is True
        assert status.health.state == HealthState.WARNING
        assert status.health.code == StatusCode.WARNING

    def test_critical_result_carries_error(self):
        error = ConnectionRefusedError("port 5432")
        monitor = _make_monitor()
        monitor.register(_check("db", AsyncMock(return_value=CheckResult.critical(error=error))))

        status = asyncio.run(monitor.get_status("db"))

        assert status.healthy is False
        assert status.health.state == HealthState.CRITICAL
        assert status.error.name == "ConnectionRefusedError"
        assert status.error.message == "port 5432"

    def test_raising_check_is_cached_as_critical(self):
        check = AsyncMock(side_effect=TimeoutError("Timeout"))
        monitor = _make_monitor()
        monitor.register(_check("svc-c", check))

        async def run():
            first = await monitor.get_status("svc-c")
            second = await monitor.get_status("svc-c")
            return first, second

        first, second = asyncio.run(run())

        assert check.await_count == 1
        assert second is first
        assert first.healthy is False
        assert first.error.name == "TimeoutError"
        assert "svc-c" in first.error_message
        assert first.error_message == "Error checking dependency svc-c"

    def test_invalid_return_value_is_critical(self):
        monitor = _make_monitor()
        monitor.register(_check("weird", AsyncMock(return_value="fine")))

        status = asyncio.run(monitor.get_status("weird"))

        assert status.healthy is False
        assert status.error.name == "TypeError"

    def test_unknown_code_is_critical(self):
        monitor = _make_monitor()
        monitor.register(_check("odd", AsyncMock(return_value=42)))

        status = asyncio.run(monitor.get_status("odd"))

        assert status.healthy is False
        assert status.health.code == StatusCode.CRITICAL

    def test_sync_check_function_supported(self):
        calls = []

        def check():
            calls.append(1)
            return CheckResult.ok()

        monitor = _make_monitor()
        monitor.register(_check("file", check))

        status = asyncio.run(monitor.get_status("file"))

        assert calls == [1]
        assert status.healthy is True

    def test_timeout_maps_to_critical(self):
        async def hangs():
            await asyncio.sleep(5)
            return 0

        monitor = _make_monitor()
        monitor.register(_check("slow", hangs, timeout_ms=20))

        status = asyncio.run(monitor.get_status("slow"))

        assert status.healthy is False
        assert status.error.name == "TimeoutError"

    def test_default_timeout_applies_to_all_checks(self):
        async def hangs():
            await asyncio.sleep(5)
            return 0

        monitor = _make_monitor(check_timeout_ms=20)
        monitor.register(_check("slow", hangs))

        status = asyncio.run(monitor.get_status("slow"))
        assert status.healthy is False

    def test_status_copies_definition_metadata(self):
        details = DatabaseCheckDetails(server="localhost", database="cache", db_type="redis")
        monitor = _make_monitor()
        monitor.register(_check(
            "redis",
            _ok_check(),
            impact="Responses may be slower (cache miss path).",
            contact={"slack": "#oncall"},
            details=details,
        ))

        status = asyncio.run(monitor.get_status("redis"))

        assert status.impact == "Responses may be slower (cache miss path)."
        assert status.contact == {"slack": "#oncall"}
        assert status.details == details


# ============================================================================
# STALE-WHILE-REVALIDATE
# ============================================================================

class TestRefreshWindow:
    """get_status inside the refresh window serves stale and refreshes once."""

    def test_stale_value_returned_then_replaced(self):
        clock = FakeClock()
        check = _ok_check()
        monitor = _make_monitor(clock=clock)
        monitor.register(_check("svc", check, cache_duration_ms=100, refresh_threshold_ms=40))

        async def run():
            first = await monitor.get_status("svc")
            clock.advance(0.070)
            served = await monitor.get_status("svc")
            await monitor.drain()
            return first, served

        first, served = asyncio.run(run())

        assert served is first
        assert check.await_count == 2
        refreshed = monitor.cache.get("svc")
        assert refreshed is not first
        assert refreshed.healthy is True

    def test_failed_refresh_keeps_previous_status(self):
        clock = FakeClock()
        outcomes = [0, RuntimeError("flap")]

        async def check():
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        monitor = _make_monitor(clock=clock)
        monitor.register(_check("svc", check, cache_duration_ms=100, refresh_threshold_ms=40))

        async def run():
            first = await monitor.get_status("svc")
            clock.advance(0.070)
            await monitor.get_status("svc")
            await monitor.drain()
            return first

        first = asyncio.run(run())
        assert monitor.cache.get("svc") is first
        assert first.healthy is True

    def test_expired_status_re_evaluated_inline(self):
        clock = FakeClock()
        check = _ok_check()
        monitor = _make_monitor(clock=clock)
        monitor.register(_check("svc", check, cache_duration_ms=100, refresh_threshold_ms=10))

        async def run():
            first = await monitor.get_status("svc")
            clock.advance(0.200)
            second = await monitor.get_status("svc")
            return first, second

        first, second = asyncio.run(run())
        assert second is not first
        assert check.await_count == 2


# ============================================================================
# GET ALL STATUSES
# ============================================================================

class TestGetAllStatuses:
    """Concurrent evaluation of every dependency."""

    def test_one_failure_does_not_abort_others(self):
        monitor = _make_monitor()
        monitor.register(_check("svc-a", _ok_check()))
        monitor.register(_check("svc-c", AsyncMock(side_effect=TimeoutError("Timeout"))))
        monitor.register(_check("svc-b", skip=True))

        statuses = asyncio.run(monitor.get_all_statuses())

        assert [s.name for s in statuses] == ["svc-a", "svc-c", "svc-b"]
        assert statuses[0].healthy is True
        assert statuses[1].healthy is False
        assert "svc-c" in statuses[1].error_message
        assert statuses[2].health.skipped is True

    def test_checks_run_concurrently(self):
        async def slow():
            await asyncio.sleep(0.05)
            return 0

        monitor = _make_monitor()
        for i in range(5):
            monitor.register(_check(f"svc-{i}", slow))

        async def run():
            loop = asyncio.get_running_loop()
            started = loop.time()
            await monitor.get_all_statuses()
            return loop.time() - started

        assert asyncio.run(run()) < 0.2

    def test_empty_registry(self):
        assert asyncio.run(_make_monitor().get_all_statuses()) == []

    def test_duplicate_names_first_match_wins(self):
        monitor = _make_monitor()
        monitor.register(_check("dup", _ok_check(), description="first"))
        monitor.register(_check("dup", _ok_check(), description="second"))

        definition = monitor.registry.get("dup")
        assert definition.description == "first"
        assert len(monitor.registry) == 2

        status = asyncio.run(monitor.get_status("dup"))
        assert status.description == "first"

    @pytest.mark.parametrize("field,value", [
        ("contact", {"pager": 5551234}),
        ("details", {"type": "ftp"}),
        ("impact", None),
    ])
    def test_unusable_metadata_does_not_fail_the_batch(self, field, value):
        monitor = _make_monitor()
        monitor.register(_check("good", _ok_check()))
        # Bypass registration checks to reach evaluation with bad metadata
        with patch.object(CheckRegistry, "validate"):
            monitor.register(_check("bad", _ok_check(), **{field: value}))

        statuses = asyncio.run(monitor.get_all_statuses())

        assert [s.name for s in statuses] == ["good", "bad"]
        assert statuses[0].healthy is True
        assert statuses[1].healthy is False
        assert statuses[1].health.state == HealthState.CRITICAL
        assert statuses[1].error.name == "ValidationError"
        assert statuses[1].error_message == "Error checking dependency bad"
        assert monitor.metrics_registry.get_sample_value(
            "dependency_health", {"dependency": "bad", "impact": ""}
        ) == 2


# ============================================================================
# METRICS
# ============================================================================

class TestMetrics:
    """Gauges follow every evaluation."""

    def test_gauges_set_after_evaluation(self):
        monitor = _make_monitor()
        monitor.register(_check("ok-dep", _ok_check(), impact="none"))
        monitor.register(_check("warn-dep", AsyncMock(return_value=2), impact="slow"))
        monitor.register(_check("bad-dep", AsyncMock(side_effect=OSError("x")), impact="outage"))

        asyncio.run(monitor.get_all_statuses())
        registry = monitor.metrics_registry

        assert registry.get_sample_value(
            "dependency_health", {"dependency": "ok-dep", "impact": "none"}
        ) == 0
        assert registry.get_sample_value(
            "dependency_health", {"dependency": "warn-dep", "impact": "slow"}
        ) == 1
        assert registry.get_sample_value(
            "dependency_health", {"dependency": "bad-dep", "impact": "outage"}
        ) == 2
        assert registry.get_sample_value(
            "dependency_latency_ms", {"dependency": "ok-dep"}
        ) is not None

    def test_render_metrics_evaluates_first(self):
        check = _ok_check()
        monitor = _make_monitor()
        monitor.register(_check("svc-a", check, impact="none"))

        text = asyncio.run(monitor.render_metrics())

        check.assert_awaited_once()
        assert "# TYPE dependency_health gauge" in text
        assert 'dependency_health{dependency="svc-a",impact="none"} 0.0' in text
        assert "dependency_latency_ms" in text


# ============================================================================
# SCHEDULER
# ============================================================================

class TestScheduler:
    """start()/stop() state machine."""

    def _fast_monitor(self):
        return _make_monitor(
            cache_duration_ms=1,
            refresh_threshold_ms=0,
            check_interval_ms=20,
        )

    def test_start_evaluates_immediately_and_periodically(self):
        check = _ok_check()
        monitor = self._fast_monitor()
        monitor.register(_check("svc", check))

        async def run():
            assert not monitor.is_running
            await monitor.start()
            assert monitor.is_running
            await asyncio.sleep(0.11)
            await monitor.stop()
            assert not monitor.is_running
            await monitor.drain()
            count_at_stop = check.await_count
            await asyncio.sleep(0.06)
            return count_at_stop

        count_at_stop = asyncio.run(run())
        assert count_at_stop >= 2
        assert check.await_count == count_at_stop

    def test_restart_replaces_previous_loop(self):
        monitor = self._fast_monitor()
        monitor.register(_check("svc", _ok_check()))

        async def run():
            await monitor.start()
            first_task = monitor._loop_task
            await monitor.start()
            replaced = first_task.done()
            running = monitor.is_running
            await monitor.stop()
            return replaced, running

        replaced, running = asyncio.run(run())
        assert replaced is True
        assert running is True

    def test_tick_failure_keeps_loop_alive(self):
        monitor = self._fast_monitor()

        async def run():
            with patch.object(
                monitor, "get_all_statuses", AsyncMock(side_effect=RuntimeError("tick"))
            ):
                await monitor.start()
                await asyncio.sleep(0.07)
                alive = monitor.is_running
                await monitor.stop()
                await monitor.drain()
            return alive

        assert asyncio.run(run()) is True
        assert monitor.get_stats()["tick_errors"] >= 2

    def test_stop_does_not_cancel_inflight_checks(self):
        finished = []

        async def slow():
            await asyncio.sleep(0.05)
            finished.append(1)
            return 0

        monitor = _make_monitor(check_interval_ms=1_000)
        monitor.register(_check("svc", slow))

        async def run():
            await monitor.start()
            await asyncio.sleep(0.01)
            await monitor.stop()
            await monitor.drain()

        asyncio.run(run())
        assert finished == [1]
        assert monitor.cache.get("svc").healthy is True

    def test_stop_when_not_running_is_noop(self):
        monitor = _make_monitor()
        asyncio.run(monitor.stop())
        assert not monitor.is_running
