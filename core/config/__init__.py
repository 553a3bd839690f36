# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - DEPENDENCY MONITORING
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration Module

Provides centralized configuration and defaults for the dependency monitor.
"""

from core.config.defaults import (
    MonitorDefaults,
    get_defaults,
    reset_defaults,
)

__all__ = [
    "MonitorDefaults",
    "get_defaults",
    "reset_defaults",
]
