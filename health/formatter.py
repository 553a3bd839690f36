# ============================================================================
# STATUS FORMATTER
# ============================================================================
# EPOCH: 1 - DEPENDENCY MONITORING
# STATUS: Infrastructure - Check outcome normalization
# PURPOSE: Map raw check outcomes to DependencyStatus snapshots
# CREATED: 19 OCT 2026
# ============================================================================
"""
Status Formatter

Pure mapping (definition, result, latency, skipped) -> DependencyStatus.

    skipped            -> healthy, OK, latency 0
    OK                 -> healthy, OK
    WARNING            -> healthy, WARNING
    CRITICAL / unknown -> unhealthy, CRITICAL, error details from the result
"""

import traceback
from typing import Optional

from core.contracts import HealthState, StatusCode
from core.models import (
    CheckDefinition,
    CheckResult,
    DependencyStatus,
    ErrorBlock,
    HealthBlock,
)


def build_error_block(error: BaseException) -> ErrorBlock:
    """Flatten an exception into name, message and stack."""
    stack: Optional[str] = None
    if error.__traceback__ is not None:
        stack = "".join(
            traceback.format_exception(type(error), error, error.__traceback__)
        )
    return ErrorBlock(
        name=type(error).__name__,
        message=str(error),
        stack=stack,
    )


def format_check_result(
    definition: CheckDefinition,
    result: CheckResult,
    latency_ms: float = 0.0,
    skipped: bool = False,
) -> DependencyStatus:
    """
    Build the status snapshot for one evaluation.

    Args:
        definition: The check that was evaluated
        result: What the check reported
        latency_ms: How long the check took
        skipped: Check was not invoked (definition.skip)

    Returns:
        New DependencyStatus
    """
    base = dict(
        name=definition.name,
        description=definition.description,
        impact=definition.impact,
        contact=definition.contact,
        details=definition.details,
    )

    if skipped:
        return DependencyStatus(
            **base,
            healthy=True,
            health=HealthBlock(
                state=HealthState.OK,
                code=StatusCode.OK,
                latency_ms=0.0,
                skipped=True,
            ),
        )

    latency_ms = max(0.0, float(latency_ms))

    if result.code == StatusCode.OK:
        return DependencyStatus(
            **base,
            healthy=True,
            health=HealthBlock(state=HealthState.OK, code=StatusCode.OK, latency_ms=latency_ms),
        )

    if result.code == StatusCode.WARNING:
        return DependencyStatus(
            **base,
            healthy=True,
            health=HealthBlock(
                state=HealthState.WARNING,
                code=StatusCode.WARNING,
                latency_ms=latency_ms,
            ),
            error_message=result.error_message,
        )

    # CRITICAL and anything unrecognized
    error_block = build_error_block(result.error) if result.error is not None else None
    error_message = result.error_message if result.error_message and result.error_message.strip() else None

    return DependencyStatus(
        **base,
        healthy=False,
        health=HealthBlock(
            state=HealthState.CRITICAL,
            code=StatusCode.CRITICAL,
            latency_ms=latency_ms,
        ),
        error=error_block,
        error_message=error_message,
    )


__all__ = [
    "build_error_block",
    "format_check_result",
]
