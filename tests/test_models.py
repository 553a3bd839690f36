# ============================================================================
# MODEL TESTS
# ============================================================================
# EPOCH: 1 - DEPENDENCY MONITORING
# STATUS: Tests - Check and status models
# PURPOSE: Verify result conversion, details variants and status serialization
# CREATED: 19 OCT 2026
# ============================================================================
"""
Model Tests

Run with:
    pytest tests/test_models.py -v
"""

import pytest
from pydantic import TypeAdapter, ValidationError

from core.contracts import HealthState, StatusCode
from core.models import (
    CheckDetails,
    CheckResult,
    DatabaseCheckDetails,
    DependencyStatus,
    SoapCheckDetails,
)


# ============================================================================
# CHECK RESULT
# ============================================================================

class TestCheckResult:

    @pytest.mark.parametrize("value,code", [(0, 0), (1, 1), (2, 2), (7, 7), (StatusCode.WARNING, 2)])
    def test_from_int(self, value, code):
        assert CheckResult.from_value(value).code == code

    def test_from_result_passthrough(self):
        result = CheckResult.warning("slow")
        assert CheckResult.from_value(result) is result

    @pytest.mark.parametrize("value", [True, False, "0", None, 1.0, {"code": 0}])
    def test_rejects_other_types(self, value):
        with pytest.raises(TypeError):
            CheckResult.from_value(value)

    def test_constructors(self):
        error = RuntimeError("x")
        assert CheckResult.ok().code == StatusCode.OK
        assert CheckResult.warning("w").error_message == "w"
        critical = CheckResult.critical(error=error, message="m")
        assert critical.code == StatusCode.CRITICAL
        assert critical.error is error
        assert critical.error_message == "m"

    def test_status_code_known(self):
        assert StatusCode.is_known(2)
        assert not StatusCode.is_known(3)


# ============================================================================
# CHECK DETAILS
# ============================================================================

class TestCheckDetails:

    def test_discriminated_parse(self):
        adapter = TypeAdapter(CheckDetails)
        details = adapter.validate_python(
            {"type": "database", "server": "db01", "database": "orders", "db_type": "postgres"}
        )
        assert isinstance(details, DatabaseCheckDetails)
        assert details.server == "db01"

        soap = adapter.validate_python({"type": "soap", "endpoint": "https://x/ws", "action": "Ping"})
        assert isinstance(soap, SoapCheckDetails)

    def test_unknown_variant_rejected(self):
        with pytest.raises(ValidationError):
            TypeAdapter(CheckDetails).validate_python({"type": "grpc", "target": "x"})

    def test_status_parses_details_from_dict(self):
        status = DependencyStatus.model_validate({
            "name": "db",
            "details": {"type": "rest", "url": "https://svc/health"},
        })
        assert status.details.type == "rest"
        assert status.details.method == "GET"


# ============================================================================
# DEPENDENCY STATUS
# ============================================================================

class TestDependencyStatus:

    def test_defaults_to_critical(self):
        status = DependencyStatus(name="x")
        assert status.state == HealthState.CRITICAL
        assert status.healthy is False

    def test_frozen(self):
        status = DependencyStatus(name="x")
        with pytest.raises(ValidationError):
            status.name = "y"

    def test_health_state_healthy_flags(self):
        assert HealthState.OK.is_healthy()
        assert HealthState.WARNING.is_healthy()
        assert not HealthState.CRITICAL.is_healthy()

    def test_negative_latency_rejected(self):
        with pytest.raises(ValidationError):
            DependencyStatus.model_validate({"name": "x", "health": {"latency_ms": -1}})
