# ============================================================================
# DEPENDENCY MONITOR
# ============================================================================
# EPOCH: 1 - DEPENDENCY MONITORING
# STATUS: Core - Cached, scheduled dependency evaluation
# PURPOSE: Register checks, evaluate them through the TTL cache, feed metrics
# CREATED: 19 OCT 2026
# ============================================================================
"""
Dependency Monitor

Composes the registry, TTL cache, status formatter and metrics sink.

Evaluation of one dependency:
1. cache.wrap(name, factory) serves the cached status, refreshing it in the
   background when inside the refresh window
2. factory: skip -> OK without invoking the check; otherwise invoke the check
   (with optional timeout), time it, format it, update metrics
3. any exception escaping step 1 becomes a CRITICAL status that is cached
   and exported like any other result

Scheduler states:
    stopped --start()--> running --stop()--> stopped

stop() cancels only the timer loop; in-flight evaluations and background
refreshes run to completion and still populate the cache.

Usage:
    monitor = DependencyMonitor()
    monitor.register(CheckDefinition(name="redis", impact="slow reads", check_fn=ping))

    await monitor.start()
    status = await monitor.get_status("redis")
    text = await monitor.render_metrics()
    await monitor.stop()
"""

import asyncio
import inspect
import time
import uuid
from typing import List, Optional, Set

from prometheus_client import CollectorRegistry
from pydantic import ValidationError

from core.config import MonitorDefaults, get_defaults
from core.contracts import ERROR_CHECKING_DEPENDENCY
from core.logging import ComponentType, get_logger, log_context
from core.models import CheckDefinition, CheckResult, DependencyStatus, HealthBlock
from health.cache import Clock, TtlCache
from health.formatter import build_error_block, format_check_result
from health.metrics import MetricsSink
from health.registry import CheckRegistry

logger = get_logger(__name__, ComponentType.MONITOR)


class DependencyMonitor:
    """
    Caching, scheduling dependency health monitor.

    One instance owns its registry, cache and gauges; callers hold and
    pass the instance around.
    """

    def __init__(
        self,
        defaults: Optional[MonitorDefaults] = None,
        metrics_registry: Optional[CollectorRegistry] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize monitor.

        Args:
            defaults: Cache/refresh/interval settings (environment defaults if None)
            metrics_registry: Prometheus registry for the gauges (private if None)
            clock: Monotonic seconds clock for cache expiry (time.monotonic if None)
        """
        self.defaults = defaults or get_defaults()
        self._monitor_id = str(uuid.uuid4())[:8]

        self._registry = CheckRegistry()
        self._cache = TtlCache(
            clock=clock,
            dedupe_refresh=self.defaults.dedupe_refresh,
            strict_ordering=self.defaults.strict_ordering,
        )
        self._metrics = MetricsSink(metrics_registry)

        # Scheduler state
        self._loop_task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._tick_tasks: Set[asyncio.Task] = set()
        self._ticks = 0
        self._tick_errors = 0

    # =========================================================================
    # ACCESSORS
    # =========================================================================

    @property
    def monitor_id(self) -> str:
        return self._monitor_id

    @property
    def registry(self) -> CheckRegistry:
        return self._registry

    @property
    def cache(self) -> TtlCache:
        return self._cache

    @property
    def metrics(self) -> MetricsSink:
        return self._metrics

    @property
    def metrics_registry(self) -> CollectorRegistry:
        """Prometheus registry holding the dependency gauges."""
        return self._metrics.registry

    @property
    def is_running(self) -> bool:
        """True while the periodic check loop is active."""
        return self._loop_task is not None and not self._loop_task.done()

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def register(self, definition: CheckDefinition) -> CheckDefinition:
        """
        Register a dependency check.

        Raises:
            CheckValidationError: If the definition is malformed
        """
        return self._registry.register(definition)

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def get_status(self, name: str) -> DependencyStatus:
        """
        Get the status of one dependency.

        A fresh cached status is returned as-is. Otherwise the dependency
        is evaluated through the cache (a stale-but-valid status is returned
        immediately while a background refresh runs).

        Raises:
            DependencyNotFoundError: If no check is registered under name
        """
        entry = self._cache.get_entry(name)
        if entry is not None and not entry.should_refresh(self._cache.now()):
            return entry.value

        definition = self._registry.get_or_raise(name)
        return await self._evaluate(definition)

    async def get_all_statuses(self) -> List[DependencyStatus]:
        """
        Evaluate every registered dependency concurrently.

        Returns:
            Statuses in registration order; failures appear as CRITICAL entries
        """
        definitions = self._registry.get_all()
        if not definitions:
            return []
        results = await asyncio.gather(*(self._evaluate(d) for d in definitions))
        return list(results)

    async def render_metrics(self) -> str:
        """Evaluate all dependencies, then render the Prometheus text exposition."""
        await self.get_all_statuses()
        return self._metrics.render()

    # =========================================================================
    # EVALUATION
    # =========================================================================

    def _ttl_seconds(self, definition: CheckDefinition) -> float:
        ms = definition.cache_duration_ms
        if ms is None:
            ms = self.defaults.cache_duration_ms
        return ms / 1000.0

    def _refresh_threshold_seconds(self, definition: CheckDefinition) -> float:
        ms = definition.refresh_threshold_ms
        if ms is None:
            ms = self.defaults.refresh_threshold_ms
        return ms / 1000.0

    def _timeout_seconds(self, definition: CheckDefinition) -> Optional[float]:
        ms = definition.timeout_ms
        if ms is None:
            ms = self.defaults.check_timeout_ms
        return ms / 1000.0 if ms is not None else None

    async def _evaluate(self, definition: CheckDefinition) -> DependencyStatus:
        """Evaluate one dependency through the cache; never raises Exception."""
        ttl = self._ttl_seconds(definition)
        refresh_threshold = self._refresh_threshold_seconds(definition)

        with log_context(dependency=definition.name, monitor_id=self._monitor_id):
            try:
                return await self._cache.wrap(
                    definition.name,
                    lambda: self._run_check(definition),
                    ttl,
                    refresh_threshold,
                )
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(f"Dependency check {definition.name} failed: {e!r}")
                failure = self._failure_status(definition, e)
                self._cache.set(definition.name, failure, ttl, refresh_threshold)
                self._metrics.update(failure)
                return failure

    @staticmethod
    def _failure_status(definition: CheckDefinition, error: Exception) -> DependencyStatus:
        """CRITICAL status for error; falls back to name-only if metadata is unusable."""
        message = ERROR_CHECKING_DEPENDENCY.format(name=definition.name)
        try:
            return format_check_result(
                definition, CheckResult.critical(error=error, message=message)
            )
        except ValidationError as e:
            logger.error(f"Dependency {definition.name} metadata rejected: {e}")
            return DependencyStatus(
                name=str(definition.name),
                health=HealthBlock(),
                healthy=False,
                error=build_error_block(error),
                error_message=message,
            )

    async def _run_check(self, definition: CheckDefinition) -> DependencyStatus:
        """Cache factory: run the check once and format the result."""
        if definition.skip:
            status = format_check_result(definition, CheckResult.ok(), 0, skipped=True)
            self._metrics.update(status)
            return status

        start_time = time.perf_counter()
        timeout = self._timeout_seconds(definition)
        if timeout is not None:
            raw = await asyncio.wait_for(self._invoke(definition), timeout=timeout)
        else:
            raw = await self._invoke(definition)
        latency_ms = round((time.perf_counter() - start_time) * 1000, 2)

        result = CheckResult.from_value(raw)
        status = format_check_result(definition, result, latency_ms)
        self._metrics.update(status)

        logger.debug(
            f"Dependency check {definition.name}: {status.health.state.value} "
            f"({latency_ms:.1f}ms)"
        )
        return status

    async def _invoke(self, definition: CheckDefinition):
        """Call check_fn; sync callables run in the default executor."""
        check_fn = definition.check_fn
        if inspect.iscoroutinefunction(check_fn):
            return await check_fn()

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, check_fn)
        # Plain callables may still hand back an awaitable
        if inspect.isawaitable(result):
            result = await result
        return result

    # =========================================================================
    # SCHEDULER
    # =========================================================================

    async def start(self) -> None:
        """
        Start periodic evaluation.

        Cancels any previous loop, evaluates all dependencies immediately,
        then every check_interval_ms.
        """
        if self._loop_task is not None:
            await self._cancel_loop()

        self._stop_event = asyncio.Event()
        self._loop_task = asyncio.create_task(
            self._check_loop(self._stop_event),
            name=f"dependency-monitor-{self._monitor_id}",
        )
        logger.info(
            f"Dependency check loop started (monitor={self._monitor_id}, "
            f"interval={self.defaults.check_interval_ms}ms, "
            f"dependencies={len(self._registry)})"
        )

    async def stop(self) -> None:
        """Stop periodic evaluation. In-flight checks are left to finish."""
        if self._loop_task is None:
            return
        await self._cancel_loop()
        logger.info(f"Dependency check loop stopped (monitor={self._monitor_id})")

    async def _cancel_loop(self) -> None:
        task = self._loop_task
        self._loop_task = None
        if self._stop_event is not None:
            self._stop_event.set()
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _check_loop(self, stop_event: asyncio.Event) -> None:
        """Spawn a tick every interval until stop_event is set."""
        interval = self.defaults.check_interval_seconds

        while not stop_event.is_set():
            self._spawn_tick()

            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval)
                break
            except asyncio.TimeoutError:
                pass

    def _spawn_tick(self) -> None:
        # Ticks are independent tasks so cancelling the loop never cancels checks
        task = asyncio.create_task(self._tick(), name=f"dependency-tick-{self._monitor_id}")
        self._tick_tasks.add(task)
        task.add_done_callback(self._tick_tasks.discard)

    async def _tick(self) -> None:
        self._ticks += 1
        with log_context(operation="scheduled_check", monitor_id=self._monitor_id):
            try:
                await self.get_all_statuses()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self._tick_errors += 1
                logger.error(f"Scheduled dependency check failed: {e}")

    async def drain(self) -> None:
        """Wait for in-flight scheduled ticks and background refreshes."""
        while self._tick_tasks:
            await asyncio.gather(*list(self._tick_tasks), return_exceptions=True)
        await self._cache.drain()

    def get_stats(self) -> dict:
        """Scheduler and cache counters."""
        return {
            "monitor_id": self._monitor_id,
            "running": self.is_running,
            "dependencies": len(self._registry),
            "ticks": self._ticks,
            "tick_errors": self._tick_errors,
            "cache": self._cache.get_stats(),
        }


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "DependencyMonitor",
]
