# ============================================================================
# CORE MODULE
# ============================================================================
# EPOCH: 1 - DEPENDENCY MONITORING
# STATUS: Core module initialization
# PURPOSE: Export core contracts and models
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================

from core.contracts import StatusCode, HealthState
from core.models import (
    CheckDefinition,
    CheckResult,
    DependencyStatus,
    HealthBlock,
    ErrorBlock,
)

__all__ = [
    # Enums
    "StatusCode",
    "HealthState",
    # Models
    "CheckDefinition",
    "CheckResult",
    "DependencyStatus",
    "HealthBlock",
    "ErrorBlock",
]
