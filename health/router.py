# ============================================================================
# DEPENDENCY ROUTER
# ============================================================================
# EPOCH: 1 - DEPENDENCY MONITORING
# STATUS: Infrastructure - FastAPI endpoints for dependency status
# PURPOSE: Mountable HTTP surface over a DependencyMonitor
# CREATED: 19 OCT 2026
# ============================================================================
"""
Dependency Router

FastAPI router exposing a monitor's statuses and Prometheus metrics.

Endpoints:
    GET /dependencies         - All dependency statuses (registration order)
    GET /dependencies/{name}  - Single dependency status (404 if unknown)
    GET /metrics              - Prometheus text exposition

Response Codes:
    200 - All reported dependencies OK
    206 - Worst state is WARNING (partial content)
    503 - At least one dependency CRITICAL

Usage:
    monitor = DependencyMonitor()
    app.include_router(create_dependency_router(monitor))
"""

from typing import Iterable

from fastapi import APIRouter
from fastapi.responses import JSONResponse, Response

from core.contracts import HealthState, health_gauge_value
from core.logging import ComponentType, get_logger
from core.models import DependencyStatus
from health.monitor import DependencyMonitor
from health.registry import DependencyNotFoundError
from __version__ import __version__

logger = get_logger(__name__, ComponentType.API)


def _overall_state(statuses: Iterable[DependencyStatus]) -> HealthState:
    """Worst state wins."""
    worst = HealthState.OK
    for status in statuses:
        if health_gauge_value(status.health.state.value) > health_gauge_value(worst.value):
            worst = status.health.state
    return worst


def _state_to_http_code(state: HealthState) -> int:
    """Map health state to HTTP status code."""
    return {
        HealthState.OK: 200,
        HealthState.WARNING: 206,  # Partial Content
        HealthState.CRITICAL: 503,  # Service Unavailable
    }[state]


def create_dependency_router(monitor: DependencyMonitor) -> APIRouter:
    """
    Build a router bound to one monitor instance.

    Args:
        monitor: Monitor whose statuses and metrics are exposed

    Returns:
        APIRouter to include in a FastAPI app
    """
    router = APIRouter(tags=["Dependencies"])

    # ========================================================================
    # ALL DEPENDENCIES
    # ========================================================================

    @router.get("/dependencies")
    async def all_dependencies():
        """
        Status of every registered dependency.

        Served from the monitor cache; expired entries are re-evaluated.
        """
        statuses = await monitor.get_all_statuses()
        overall = _overall_state(statuses)

        body = {
            "status": overall.value,
            "healthy": overall.is_healthy(),
            "dependencies": [s.to_dict() for s in statuses],
            "version": __version__,
        }
        return JSONResponse(status_code=_state_to_http_code(overall), content=body)

    # ========================================================================
    # SINGLE DEPENDENCY
    # ========================================================================

    @router.get("/dependencies/{name}")
    async def single_dependency(name: str):
        """Status of one dependency by name."""
        try:
            status = await monitor.get_status(name)
        except DependencyNotFoundError as e:
            logger.info(f"Dependency lookup failed: {e}")
            return JSONResponse(status_code=404, content={"error": str(e)})

        return JSONResponse(
            status_code=_state_to_http_code(status.health.state),
            content=status.to_dict(),
        )

    # ========================================================================
    # PROMETHEUS METRICS
    # ========================================================================

    @router.get("/metrics")
    async def metrics():
        """Prometheus scrape endpoint (evaluates dependencies first)."""
        text = await monitor.render_metrics()
        return Response(content=text, media_type=monitor.metrics.content_type)

    return router


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "create_dependency_router",
]
