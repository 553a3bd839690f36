# ============================================================================
# MODELS MODULE
# ============================================================================
# EPOCH: 1 - DEPENDENCY MONITORING
# STATUS: Model exports
# PURPOSE: Central export point for check and status models
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point

- check: what to check (CheckDefinition) and what it reported (CheckResult)
- status: the normalized snapshot returned to callers (DependencyStatus)
"""

from core.models.check import (
    CheckDefinition,
    CheckResult,
    CheckFunc,
    CheckDetails,
    GenericCheckDetails,
    DatabaseCheckDetails,
    RestCheckDetails,
    SoapCheckDetails,
)
from core.models.status import DependencyStatus, HealthBlock, ErrorBlock

__all__ = [
    # Check
    "CheckDefinition",
    "CheckResult",
    "CheckFunc",
    # Details
    "CheckDetails",
    "GenericCheckDetails",
    "DatabaseCheckDetails",
    "RestCheckDetails",
    "SoapCheckDetails",
    # Status
    "DependencyStatus",
    "HealthBlock",
    "ErrorBlock",
]
