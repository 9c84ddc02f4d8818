"""
Test custom exception hierarchy
"""
import pytest

from core.exceptions import ConfigurationError, ForecastEngineError, ValidationError

pytestmark = pytest.mark.unit


class TestExceptions:
    def test_base_error_defaults(self):
        error = ForecastEngineError("Something failed")

        assert str(error) == "Something failed"
        assert error.error_code == "ForecastEngineError"
        assert error.to_dict() == {"error": "ForecastEngineError", "message": "Something failed", "details": {}}

    def test_validation_error_carries_field(self):
        error = ValidationError("Unknown deal stage: WON", field="stage")

        assert isinstance(error, ForecastEngineError)
        assert error.to_dict()["error"] == "VALIDATION_ERROR"
        assert error.details == {"field": "stage"}

    def test_validation_error_without_field(self):
        error = ValidationError("Invalid scoring criteria", value=3)
        assert error.details == {"value": 3}

    def test_configuration_error(self):
        error = ConfigurationError("Bad table", setting="STAGE_PROBABILITIES_PATH")

        assert error.error_code == "CONFIGURATION_ERROR"
        assert error.details == {"setting": "STAGE_PROBABILITIES_PATH"}
        assert ConfigurationError("Bad table").details == {}
