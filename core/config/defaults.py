# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 1 - DEPENDENCY MONITORING
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for caching, refresh and scheduling
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration Defaults

Provides sensible defaults for the dependency monitor.
These can be overridden via environment variables or per-check settings.

Design:
- Immutable dataclass for defaults
- Environment variable overrides (DEPMON_ prefix)
- Per-check overrides on CheckDefinition win over these values
"""

import os
from dataclasses import dataclass
from typing import Optional

from core.contracts import (
    DEFAULT_CACHE_DURATION_MS,
    DEFAULT_REFRESH_THRESHOLD_MS,
    DEFAULT_CHECK_INTERVAL_MS,
)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return int(raw)


@dataclass(frozen=True)
class MonitorDefaults:
    """
    Defaults for the dependency monitor.

    Controls cache lifetime, the background refresh window, the periodic
    check interval and hardening switches for the refresh protocol.
    """
    # Cache lifetime of a dependency status (ms)
    cache_duration_ms: int = DEFAULT_CACHE_DURATION_MS

    # Time left before expiry that triggers a background refresh (ms)
    refresh_threshold_ms: int = DEFAULT_REFRESH_THRESHOLD_MS

    # Interval between scheduled evaluations of all dependencies (ms)
    check_interval_ms: int = DEFAULT_CHECK_INTERVAL_MS

    # Per-check timeout (ms); None = no timeout
    check_timeout_ms: Optional[int] = None

    # At most one in-flight background refresh per key
    dedupe_refresh: bool = True

    # Drop refresh results that finish after a newer value was installed
    strict_ordering: bool = False

    def __post_init__(self):
        if self.cache_duration_ms <= 0:
            raise ValueError("cache_duration_ms must be positive")
        if self.refresh_threshold_ms < 0:
            raise ValueError("refresh_threshold_ms must not be negative")
        if self.check_interval_ms <= 0:
            raise ValueError("check_interval_ms must be positive")
        if self.check_timeout_ms is not None and self.check_timeout_ms <= 0:
            raise ValueError("check_timeout_ms must be positive when set")

    @property
    def check_interval_seconds(self) -> float:
        return self.check_interval_ms / 1000.0

    @classmethod
    def from_env(cls) -> "MonitorDefaults":
        """Create from environment variables."""
        return cls(
            cache_duration_ms=int(os.getenv("DEPMON_CACHE_DURATION_MS", DEFAULT_CACHE_DURATION_MS)),
            refresh_threshold_ms=int(os.getenv("DEPMON_REFRESH_THRESHOLD_MS", DEFAULT_REFRESH_THRESHOLD_MS)),
            check_interval_ms=int(os.getenv("DEPMON_CHECK_INTERVAL_MS", DEFAULT_CHECK_INTERVAL_MS)),
            check_timeout_ms=_env_optional_int("DEPMON_CHECK_TIMEOUT_MS"),
            dedupe_refresh=_env_bool("DEPMON_DEDUPE_REFRESH", True),
            strict_ordering=_env_bool("DEPMON_STRICT_ORDERING", False),
        )


# ============================================================================
# GLOBAL DEFAULTS INSTANCE
# ============================================================================

_defaults: Optional[MonitorDefaults] = None


def get_defaults() -> MonitorDefaults:
    """Get global defaults instance."""
    global _defaults
    if _defaults is None:
        _defaults = MonitorDefaults.from_env()
    return _defaults


def reset_defaults() -> None:
    """Reset defaults (for testing)."""
    global _defaults
    _defaults = None


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "MonitorDefaults",
    "get_defaults",
    "reset_defaults",
]
