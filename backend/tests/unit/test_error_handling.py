"""
Unit tests for the service exception hierarchy and error responses.
"""

import json

import pytest

from neurolex.middleware.error_handling import (
    ConfigurationError,
    LLMError,
    NotFoundError,
    ServiceError,
    StorageError,
    ValidationError,
    service_error_response,
)


class TestServiceErrors:
    @pytest.mark.parametrize(
        "error_cls,status_code,error_code",
        [
            (LLMError, 502, "llm_error"),
            (ConfigurationError, 503, "configuration_error"),
            (NotFoundError, 404, "not_found"),
            (ValidationError, 422, "validation_error"),
            (StorageError, 500, "storage_error"),
        ],
    )
    def test_defaults(self, error_cls, status_code, error_code):
        error = error_cls("internal detail")

        assert isinstance(error, ServiceError)
        assert error.status_code == status_code
        assert error.error_code == error_code
        assert error.user_message == error_cls.default_user_message

    def test_overrides(self):
        error = ServiceError("boom", status_code=418, error_code="teapot", user_message="Short and stout.")
        assert error.status_code == 418
        assert error.error_code == "teapot"
        assert error.user_message == "Short and stout."
        assert str(error) == "boom"


class TestServiceErrorResponse:
    def test_hides_internal_message(self):
        response = service_error_response(NotFoundError("Term abc not found"), error_id="abcd1234")
        body = json.loads(response.body)

        assert response.status_code == 404
        assert body["error"] == "not_found"
        assert body["message"] == "The requested item no longer exists."
        assert body["error_id"] == "abcd1234"
        assert body["details"] is None
        assert "timestamp" in body

    def test_debug_includes_details(self):
        error = StorageError("disk full", details={"table": "progress"})
        body = json.loads(service_error_response(error, debug=True).body)

        assert body["details"] == {"internal_message": "disk full", "table": "progress"}
