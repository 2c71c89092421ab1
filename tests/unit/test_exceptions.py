"""Tests for the exception hierarchy.

Covers initialization, details and error codes, to_dict() serialization,
inheritance and the user-facing messages of AllModelsFailedError.
"""

import pytest

from gemini_studio.exceptions import (
    GENERIC_FAILURE_MESSAGE,
    QUOTA_REMEDIATION_MESSAGE,
    TRANSPORT_HINT_MESSAGE,
    AllModelsFailedError,
    EmptyRequestError,
    GenerationCallError,
    MissingCredentialError,
    NoImageInResponseError,
    QuotaExceededError,
    StudioError,
    TransportError,
    UpstreamAPIError,
    is_quota_signal,
)


class TestStudioError:
    """Tests for StudioError base exception class."""

    @pytest.mark.unit
    def test_basic_initialization(self) -> None:
        error = StudioError("Test error message")

        assert str(error) == "Test error message"
        assert error.message == "Test error message"
        assert error.details == {}
        assert error.error_code is None

    @pytest.mark.unit
    def test_to_dict_basic(self) -> None:
        assert StudioError("Basic error").to_dict() == {
            "error": "StudioError",
            "message": "Basic error",
        }

    @pytest.mark.unit
    def test_to_dict_with_code_and_details(self) -> None:
        error = StudioError("Detailed", details={"k": "v"}, error_code="ERR001")

        assert error.to_dict() == {
            "error": "StudioError",
            "message": "Detailed",
            "code": "ERR001",
            "details": {"k": "v"},
        }


class TestPreconditionErrors:
    """Tests for errors raised before any call."""

    @pytest.mark.unit
    def test_missing_credential_defaults(self) -> None:
        error = MissingCredentialError()

        assert error.error_code == "MISSING_CREDENTIAL"
        assert "API key" in error.message

    @pytest.mark.unit
    def test_empty_request_defaults(self) -> None:
        error = EmptyRequestError()

        assert error.error_code == "EMPTY_REQUEST"
        assert isinstance(error, StudioError)


class TestGenerationCallErrors:
    """Tests for per-call error types."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("error_class", "code"),
        [
            (NoImageInResponseError, "NO_IMAGE"),
            (TransportError, "TRANSPORT_FAILURE"),
            (UpstreamAPIError, "UPSTREAM_ERROR"),
        ],
    )
    def test_default_codes(self, error_class: type, code: str) -> None:
        error = error_class("failed", model="m1")

        assert isinstance(error, GenerationCallError)
        assert error.error_code == code
        assert error.model == "m1"
        assert error.details["model"] == "m1"

    @pytest.mark.unit
    def test_quota_defaults(self) -> None:
        error = QuotaExceededError(model="m1")

        assert error.status_code == 429
        assert error.error_code == "QUOTA_EXCEEDED"

    @pytest.mark.unit
    def test_upstream_str_includes_status(self) -> None:
        assert str(UpstreamAPIError("Boom", status_code=500)) == "Boom (status: 500)"


class TestAllModelsFailedError:
    """Tests for the terminal error."""

    @pytest.mark.unit
    def test_quota_message(self) -> None:
        error = AllModelsFailedError(["a"], QuotaExceededError(model="a"))

        assert error.user_message == QUOTA_REMEDIATION_MESSAGE
        assert error.error_code == "ALL_MODELS_FAILED"
        assert error.details["last_error"]["code"] == "QUOTA_EXCEEDED"

    @pytest.mark.unit
    def test_transport_message(self) -> None:
        error = AllModelsFailedError(["a"], TransportError("offline", model="a"))

        assert error.user_message == TRANSPORT_HINT_MESSAGE

    @pytest.mark.unit
    def test_other_error_uses_its_message(self) -> None:
        error = AllModelsFailedError(["a"], NoImageInResponseError("No image data", model="a"))

        assert error.user_message == "No image data"

    @pytest.mark.unit
    def test_no_error_uses_generic_message(self) -> None:
        error = AllModelsFailedError(["a", "b"])

        assert error.user_message == GENERIC_FAILURE_MESSAGE
        assert error.details == {"models": ["a", "b"]}


class TestIsQuotaSignal:
    """Tests for quota signal detection."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("status_code", "text", "expected"),
        [
            (429, None, True),
            (400, "RESOURCE_EXHAUSTED", True),
            (None, "Error 429 Too Many Requests", True),
            (500, "Internal error", False),
            (None, None, False),
        ],
    )
    def test_is_quota_signal(self, status_code, text, expected) -> None:
        assert is_quota_signal(status_code, text) is expected
