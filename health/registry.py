# ============================================================================
# CHECK REGISTRY
# ============================================================================
# EPOCH: 1 - DEPENDENCY MONITORING
# STATUS: Infrastructure - Dependency check registration
# PURPOSE: Validate and hold check definitions in registration order
# CREATED: 19 OCT 2026
# ============================================================================
"""
Check Registry

Holds the CheckDefinitions a monitor evaluates.

Rules:
- name must be non-blank
- check_fn must be callable unless skip=True
- description, impact, contact and details must fit DependencyStatus
- duplicate names are accepted with a warning; lookup returns the first match

Usage:
    registry = CheckRegistry()
    registry.register(CheckDefinition(name="redis", check_fn=ping_redis))

    definition = registry.get_or_raise("redis")
"""

from typing import Dict, List, Optional

from pydantic import TypeAdapter, ValidationError

from core.logging import ComponentType, get_logger
from core.models import CheckDefinition, CheckDetails

logger = get_logger(__name__, ComponentType.REGISTRY)

# Fields copied verbatim onto every DependencyStatus
_TEXT_ADAPTER = TypeAdapter(str)
_CONTACT_ADAPTER = TypeAdapter(Optional[Dict[str, str]])
_DETAILS_ADAPTER = TypeAdapter(Optional[CheckDetails])


# ============================================================================
# EXCEPTIONS
# ============================================================================

class MonitorError(Exception):
    """Base exception for dependency monitor errors."""
    pass


class CheckValidationError(MonitorError):
    """Raised when a check definition is malformed."""
    def __init__(self, message: str, field: Optional[str] = None, name: Optional[str] = None):
        self.field = field
        self.name = name
        super().__init__(message)


class DependencyNotFoundError(MonitorError):
    """Raised when no registered check matches a name."""
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Dependency {name} not found")


# ============================================================================
# REGISTRY
# ============================================================================

class CheckRegistry:
    """
    Insertion-ordered collection of check definitions.

    Not deduplicated by name: a list, not a dict, so registration
    order is evaluation and reporting order.
    """

    def __init__(self):
        self._checks: List[CheckDefinition] = []

    def register(self, definition: CheckDefinition) -> CheckDefinition:
        """
        Validate and register a check definition.

        Args:
            definition: Check to register

        Returns:
            The registered definition

        Raises:
            CheckValidationError: If name is blank, check_fn missing, or a
                field DependencyStatus copies has the wrong type
        """
        self.validate(definition)

        if any(c.name == definition.name for c in self._checks):
            logger.warning(
                f"Duplicate dependency name registered: {definition.name} "
                f"(lookups by name return the first registration)"
            )

        self._checks.append(definition)
        logger.debug(
            f"Registered dependency check: {definition.name} "
            f"(skip={definition.skip}, impact={definition.impact!r})"
        )
        return definition

    @staticmethod
    def validate(definition: CheckDefinition) -> None:
        """Raise CheckValidationError if definition cannot be registered."""
        if definition is None:
            raise CheckValidationError("Dependency definition is required", field="definition")

        name = definition.name
        if not isinstance(name, str) or not name.strip():
            raise CheckValidationError("Dependency name is required", field="name")

        if not definition.skip and not callable(definition.check_fn):
            raise CheckValidationError(
                f"Dependency check function is required for {name}",
                field="check_fn",
                name=name,
            )

        for attr in ("cache_duration_ms", "timeout_ms"):
            value = getattr(definition, attr)
            if value is not None and value <= 0:
                raise CheckValidationError(
                    f"{attr} must be positive for {name}", field=attr, name=name
                )
        if definition.refresh_threshold_ms is not None and definition.refresh_threshold_ms < 0:
            raise CheckValidationError(
                f"refresh_threshold_ms must not be negative for {name}",
                field="refresh_threshold_ms",
                name=name,
            )

        # Types DependencyStatus requires; details may also be given as a dict
        checks = (
            ("description", _TEXT_ADAPTER, True),
            ("impact", _TEXT_ADAPTER, True),
            ("contact", _CONTACT_ADAPTER, True),
            ("details", _DETAILS_ADAPTER, False),
        )
        for attr, adapter, strict in checks:
            try:
                adapter.validate_python(getattr(definition, attr), strict=strict)
            except ValidationError as e:
                raise CheckValidationError(
                    f"Invalid {attr} for {name}: {e.errors()[0]['msg']}",
                    field=attr,
                    name=name,
                ) from e

    def get(self, name: str) -> Optional[CheckDefinition]:
        """Get the first definition registered under name."""
        for check in self._checks:
            if check.name == name:
                return check
        return None

    def get_or_raise(self, name: str) -> CheckDefinition:
        """Get definition by name or raise DependencyNotFoundError."""
        check = self.get(name)
        if check is None:
            raise DependencyNotFoundError(name)
        return check

    def get_all(self) -> List[CheckDefinition]:
        """Get all definitions in registration order."""
        return list(self._checks)

    def names(self) -> List[str]:
        return [c.name for c in self._checks]

    def __len__(self) -> int:
        return len(self._checks)

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "MonitorError",
    "CheckValidationError",
    "DependencyNotFoundError",
    "CheckRegistry",
]
