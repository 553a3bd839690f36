# ============================================================================
# METRICS SINK
# ============================================================================
# EPOCH: 1 - DEPENDENCY MONITORING
# STATUS: Infrastructure - Prometheus gauges for dependency health
# PURPOSE: Export latency and health of every evaluated dependency
# CREATED: 19 OCT 2026
# ============================================================================
"""
Metrics Sink

Two gauge families in a (injectable) Prometheus CollectorRegistry:

    dependency_latency_ms{dependency}        last check latency
    dependency_health{dependency,impact}     0=OK, 1=WARNING, 2=CRITICAL

Gauges are set after every evaluation; the last write per label set wins.
Label values are passed through verbatim, escaping is done by the
prometheus_client exposition encoder.
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Gauge, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST

from core.contracts import health_gauge_value
from core.logging import ComponentType, get_logger
from core.models import DependencyStatus

logger = get_logger(__name__, ComponentType.METRICS)

LATENCY_METRIC = "dependency_latency_ms"
HEALTH_METRIC = "dependency_health"


class MetricsSink:
    """
    Holds the dependency gauges.

    prometheus_client gauges are thread-safe, so concurrent updates from
    parallel evaluations need no extra locking.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """
        Initialize sink.

        Args:
            registry: Registry to create the gauges in (new private registry if None)
        """
        self._registry = registry if registry is not None else CollectorRegistry()

        self.latency_gauge = Gauge(
            LATENCY_METRIC,
            "Last dependency check latency in milliseconds",
            labelnames=["dependency"],
            registry=self._registry,
        )
        self.health_gauge = Gauge(
            HEALTH_METRIC,
            "Dependency health status (0=OK,1=WARNING,2=CRITICAL)",
            labelnames=["dependency", "impact"],
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        """Registry for external scrape handlers to mount."""
        return self._registry

    @property
    def content_type(self) -> str:
        return CONTENT_TYPE_LATEST

    def update(self, status: DependencyStatus) -> None:
        """Set both gauges from a status snapshot."""
        state = status.health.state
        state_value = state.value if hasattr(state, "value") else str(state)

        self.latency_gauge.labels(dependency=status.name).set(status.health.latency_ms)
        self.health_gauge.labels(dependency=status.name, impact=status.impact).set(
            health_gauge_value(state_value)
        )

    def render(self) -> str:
        """Render the registry in Prometheus text exposition format."""
        text = generate_latest(self._registry).decode("utf-8")
        logger.debug(f"Rendered metrics exposition ({len(text)} bytes)")
        return text


__all__ = [
    "LATENCY_METRIC",
    "HEALTH_METRIC",
    "MetricsSink",
]
