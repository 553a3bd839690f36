# ============================================================================
# DEPENDENCY STATUS MODEL
# ============================================================================
# EPOCH: 1 - DEPENDENCY MONITORING
# STATUS: Core model - Normalized dependency status
# PURPOSE: Immutable snapshot of one dependency evaluation
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: DependencyStatus, HealthBlock, ErrorBlock
# DEPENDENCIES: pydantic
# ============================================================================
"""
Dependency Status Model

DependencyStatus is created fresh on every evaluation and cached under the
dependency name. It is what callers, the HTTP router and the metrics sink see.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field

from core.contracts import HealthState, StatusCode
from core.models.check import CheckDetails


class HealthBlock(BaseModel):
    """Health details with normalized code and state."""
    state: HealthState = HealthState.CRITICAL
    code: int = StatusCode.CRITICAL
    latency_ms: float = Field(default=0.0, ge=0, description="Check duration in milliseconds")
    skipped: bool = False

    model_config = {"frozen": True}


class ErrorBlock(BaseModel):
    """Flattened error information (type, message, and stack)."""
    name: str
    message: str
    stack: Optional[str] = None

    model_config = {"frozen": True}


class DependencyStatus(BaseModel):
    """
    Structured status of a dependency.

    healthy is True for OK and WARNING states, False for CRITICAL.
    """
    name: str
    description: str = ""
    impact: str = ""
    contact: Optional[Dict[str, str]] = None
    health: HealthBlock = Field(default_factory=HealthBlock)
    healthy: bool = False
    last_checked: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    details: Optional[CheckDetails] = None
    error: Optional[ErrorBlock] = None
    error_message: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def state(self) -> HealthState:
        return self.health.state

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON response."""
        return self.model_dump(mode="json", exclude_none=True)


__all__ = [
    "HealthBlock",
    "ErrorBlock",
    "DependencyStatus",
]
