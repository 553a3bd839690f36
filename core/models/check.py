# ============================================================================
# CHECK DEFINITION MODELS
# ============================================================================
# EPOCH: 1 - DEPENDENCY MONITORING
# STATUS: Core model - Check registration and check outcomes
# PURPOSE: Describe what to check and what a check reported
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: CheckDefinition, CheckResult, CheckDetails, *CheckDetails variants
# DEPENDENCIES: pydantic
# ============================================================================
"""
Check Definition Models

Key concept:
- CheckDefinition = TEMPLATE (what to check, how long to cache it)
- CheckResult = OUTCOME (what one invocation of the check reported)
- DependencyStatus = SNAPSHOT (normalized outcome, see core.models.status)

CheckDetails is a closed set of variants discriminated by the "type" field.
New kinds of dependencies are supported by adding a variant here.
"""

from dataclasses import dataclass
from typing import Annotated, Any, Awaitable, Callable, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field

from core.contracts import StatusCode


# ============================================================================
# CHECK DETAILS (tagged variants)
# ============================================================================

class GenericCheckDetails(BaseModel):
    """Free-form details for dependencies without a dedicated variant."""
    type: Literal["generic"] = "generic"
    notes: Optional[str] = Field(default=None, description="Operator notes")

    model_config = {"frozen": True}


class DatabaseCheckDetails(BaseModel):
    """Database server under check."""
    type: Literal["database"] = "database"
    server: str = Field(..., description="Host or DSN host part")
    database: Optional[str] = Field(default=None, description="Database / schema name")
    db_type: Optional[str] = Field(default=None, description="Engine, e.g. postgres, redis")

    model_config = {"frozen": True}


class RestCheckDetails(BaseModel):
    """REST endpoint under check."""
    type: Literal["rest"] = "rest"
    url: str
    method: str = "GET"

    model_config = {"frozen": True}


class SoapCheckDetails(BaseModel):
    """SOAP endpoint under check."""
    type: Literal["soap"] = "soap"
    endpoint: str
    action: str

    model_config = {"frozen": True}


CheckDetails = Annotated[
    Union[GenericCheckDetails, DatabaseCheckDetails, RestCheckDetails, SoapCheckDetails],
    Field(discriminator="type"),
]


# ============================================================================
# CHECK RESULT
# ============================================================================

@dataclass(frozen=True)
class CheckResult:
    """
    Outcome reported by a check function.

    Check functions may return a CheckResult or a bare integer code;
    CheckResult.from_value() is the single conversion point.
    """
    code: int = StatusCode.OK
    error: Optional[BaseException] = None
    error_message: Optional[str] = None

    @classmethod
    def ok(cls) -> "CheckResult":
        return cls(code=StatusCode.OK)

    @classmethod
    def warning(cls, message: Optional[str] = None) -> "CheckResult":
        return cls(code=StatusCode.WARNING, error_message=message)

    @classmethod
    def critical(
        cls,
        error: Optional[BaseException] = None,
        message: Optional[str] = None,
    ) -> "CheckResult":
        return cls(code=StatusCode.CRITICAL, error=error, error_message=message)

    @classmethod
    def from_value(cls, value: Any) -> "CheckResult":
        """
        Convert a check function's return value.

        Raises:
            TypeError: If value is neither a CheckResult nor an int
        """
        if isinstance(value, cls):
            return value
        # bool is an int subclass; True/False are not status codes
        if isinstance(value, int) and not isinstance(value, bool):
            return cls(code=int(value))
        raise TypeError(
            f"Check returned {type(value).__name__}, expected CheckResult or int status code"
        )


CheckFunc = Callable[[], Union[CheckResult, int, Awaitable[Union[CheckResult, int]]]]


# ============================================================================
# CHECK DEFINITION
# ============================================================================

@dataclass(frozen=True)
class CheckDefinition:
    """
    A registered dependency check.

    Attributes:
        name: Unique identifier, used as cache key and metric label
        description: Human-readable description
        impact: What degrades if this dependency fails (also a metric label)
        check_fn: Callable returning CheckResult or int; coroutine functions preferred
        skip: Report OK without invoking check_fn
        contact: Optional contact map, e.g. {"slack": "#oncall"}
        details: Optional structured details (CheckDetails variant)
        cache_duration_ms: Per-check override of the cache TTL
        refresh_threshold_ms: Per-check override of the refresh window
        timeout_ms: Per-check timeout override

    Validation happens at registration (see health.registry).
    """
    name: str
    description: str = ""
    impact: str = ""
    check_fn: Optional[CheckFunc] = None
    skip: bool = False
    contact: Optional[Dict[str, str]] = None
    details: Optional[CheckDetails] = None
    cache_duration_ms: Optional[int] = None
    refresh_threshold_ms: Optional[int] = None
    timeout_ms: Optional[int] = None


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "GenericCheckDetails",
    "DatabaseCheckDetails",
    "RestCheckDetails",
    "SoapCheckDetails",
    "CheckDetails",
    "CheckResult",
    "CheckFunc",
    "CheckDefinition",
]
