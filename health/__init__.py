# ============================================================================
# HEALTH MONITOR MODULE
# ============================================================================
# EPOCH: 1 - DEPENDENCY MONITORING
# STATUS: Infrastructure - Dependency health monitoring
# PURPOSE: Cached, scheduled dependency checks with Prometheus export
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Monitor Module

Dependency health monitoring for a host process:
- register named checks (database pings, endpoint probes, queue checks)
- evaluate them on demand and on a fixed interval
- cache results with a TTL and a proactive background-refresh window
- export latency and health as Prometheus gauges

Architecture:
- TtlCache: per-key TTL cache with stale-while-revalidate
- CheckRegistry: validated, insertion-ordered check definitions
- format_check_result: raw outcome -> DependencyStatus
- MetricsSink: dependency_latency_ms / dependency_health gauges
- DependencyMonitor: composes the above, runs the scheduler
- create_dependency_router: optional FastAPI surface

Usage:
    from core.models import CheckDefinition, CheckResult
    from health import DependencyMonitor

    async def ping_redis():
        await redis.ping()
        return CheckResult.ok()

    monitor = DependencyMonitor()
    monitor.register(CheckDefinition(
        name="redis",
        description="Redis cache",
        impact="Responses may be slower (cache miss path).",
        check_fn=ping_redis,
    ))
    await monitor.start()
"""

from health.cache import CacheEntry, TtlCache
from health.registry import (
    MonitorError,
    CheckValidationError,
    DependencyNotFoundError,
    CheckRegistry,
)
from health.formatter import format_check_result, build_error_block
from health.metrics import MetricsSink
from health.monitor import DependencyMonitor
from health.router import create_dependency_router

__all__ = [
    # Cache
    "CacheEntry",
    "TtlCache",
    # Registry
    "MonitorError",
    "CheckValidationError",
    "DependencyNotFoundError",
    "CheckRegistry",
    # Formatter
    "format_check_result",
    "build_error_block",
    # Metrics
    "MetricsSink",
    # Monitor
    "DependencyMonitor",
    # Router
    "create_dependency_router",
]
