# ============================================================================
# BASE CONTRACTS & ENUMS
# ============================================================================
# EPOCH: 1 - DEPENDENCY MONITORING
# STATUS: Foundation - Status codes and state names
# PURPOSE: Define the status vocabulary shared by checks, statuses and metrics
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: StatusCode, HealthState, HEALTH_GAUGE_VALUES, DEFAULT_* constants
# DEPENDENCIES: enum
# ============================================================================
"""
Base contracts for the dependency monitor.

Three vocabularies cross boundaries:
- Check functions report a numeric StatusCode
- DependencyStatus carries a HealthState string
- The health gauge exports a numeric severity per HealthState

The numeric codes and the gauge values use different orderings:
codes follow the check-function convention (OK=0, CRITICAL=1, WARNING=2),
gauge values follow severity (OK=0, WARNING=1, CRITICAL=2).
"""

from enum import Enum, IntEnum
from typing import Dict


# ============================================================================
# STATUS ENUMS
# ============================================================================

class StatusCode(IntEnum):
    """
    Result codes returned by check functions.

    Any integer outside this set is treated as CRITICAL.
    """
    OK = 0
    CRITICAL = 1
    WARNING = 2

    @classmethod
    def is_known(cls, code: int) -> bool:
        """Check if an integer is one of the defined codes."""
        return code in cls._value2member_map_


class HealthState(str, Enum):
    """
    Normalized health state names.

    State mapping from StatusCode:
        OK       -> healthy
        WARNING  -> healthy (non-fatal)
        CRITICAL -> unhealthy
    """
    OK = "OK"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"

    def is_healthy(self) -> bool:
        """WARNING is reported as healthy."""
        return self in (HealthState.OK, HealthState.WARNING)


# Health gauge severity by state string (exact match, unknown -> CRITICAL)
HEALTH_GAUGE_VALUES: Dict[str, int] = {
    HealthState.OK.value: 0,
    HealthState.WARNING.value: 1,
    HealthState.CRITICAL.value: 2,
}
HEALTH_GAUGE_UNKNOWN = HEALTH_GAUGE_VALUES[HealthState.CRITICAL.value]


def health_gauge_value(state: str) -> int:
    """Map a health state string to its gauge severity."""
    return HEALTH_GAUGE_VALUES.get(state, HEALTH_GAUGE_UNKNOWN)


# ============================================================================
# DEFAULTS
# ============================================================================

DEFAULT_CACHE_DURATION_MS = 60_000  # 1 minute
DEFAULT_REFRESH_THRESHOLD_MS = 5_000  # 5 seconds
DEFAULT_CHECK_INTERVAL_MS = 15_000  # 15 seconds

ERROR_CHECKING_DEPENDENCY = "Error checking dependency {name}"


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "StatusCode",
    "HealthState",
    "HEALTH_GAUGE_VALUES",
    "HEALTH_GAUGE_UNKNOWN",
    "health_gauge_value",
    "DEFAULT_CACHE_DURATION_MS",
    "DEFAULT_REFRESH_THRESHOLD_MS",
    "DEFAULT_CHECK_INTERVAL_MS",
    "ERROR_CHECKING_DEPENDENCY",
]
