"""Exception hierarchy for Gemini Studio.

All errors raised by the orchestration core inherit from StudioError so the
caller can present a single human-readable message.

Exception Hierarchy:
    StudioError (base for all studio exceptions)
    ├── MissingCredentialError (no API key configured)
    ├── EmptyRequestError (no prompt and no enabled reference image)
    ├── ResourceNotFoundError (unknown reference slot)
    ├── GenerationCallError (a single generation call failed)
    │   ├── NoImageInResponseError (call succeeded but carried no image)
    │   ├── QuotaExceededError (HTTP 429 / RESOURCE_EXHAUSTED)
    │   ├── TransportError (network/connectivity failure)
    │   └── UpstreamAPIError (any other upstream HTTP error)
    └── AllModelsFailedError (every model exhausted with zero images)

Usage:
    from gemini_studio.exceptions import AllModelsFailedError

    try:
        result = await generator.generate(request, models, credential)
    except AllModelsFailedError as e:
        show_error(e.user_message)
"""

from __future__ import annotations

from typing import Any

QUOTA_REMEDIATION_MESSAGE = (
    "Error 429: the API key has hit its rate limit or quota. "
    "Reduce the number of images to 1, wait a few minutes and try again, "
    "or switch to a different API key."
)

TRANSPORT_HINT_MESSAGE = (
    "Could not reach the image generation API. Check your network connection "
    "and disable ad blockers, VPNs or proxies that may block the request."
)

GENERIC_FAILURE_MESSAGE = "Could not generate images. Please try again later."


class StudioError(Exception):
    """Base exception for all Gemini Studio errors.

    Attributes:
        message: Human-readable error message.
        details: Additional context about the error (optional).
        error_code: Machine-readable error code (optional).
    """

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        error_code: str | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            details: Additional context as key-value pairs.
            error_code: Machine-readable error code.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.error_code = error_code

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses.

        Returns:
            Dictionary with error details suitable for JSON serialization.
        """
        result: dict[str, Any] = {
            "error": self.__class__.__name__,
            "message": self.message,
        }
        if self.error_code:
            result["code"] = self.error_code
        if self.details:
            result["details"] = self.details
        return result


class MissingCredentialError(StudioError):
    """No API key is configured.

    The caller is expected to run the credential setup before retrying.
    """

    def __init__(
        self,
        message: str = "No API key configured. Please enter your Gemini API key in the settings.",
        *,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details, error_code="MISSING_CREDENTIAL")


class EmptyRequestError(StudioError):
    """The request carries neither prompt text nor an enabled reference image."""

    def __init__(
        self,
        message: str = "A prompt and/or at least one reference image is required.",
        *,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details, error_code="EMPTY_REQUEST")


class ResourceNotFoundError(StudioError):
    """A referenced slot or file does not exist."""

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details, error_code="NOT_FOUND")


class GenerationCallError(StudioError):
    """A single generation call against one model failed.

    Attributes:
        model: Identifier of the model the call was issued against.
    """

    default_code = "CALL_FAILED"

    def __init__(
        self,
        message: str,
        *,
        model: str | None = None,
        details: dict[str, Any] | None = None,
        error_code: str | None = None,
    ) -> None:
        details = details or {}
        if model:
            details["model"] = model
        super().__init__(
            message, details=details, error_code=error_code or self.default_code
        )
        self.model = model


class NoImageInResponseError(GenerationCallError):
    """The call succeeded but the response contained no inline image."""

    default_code = "NO_IMAGE"


class QuotaExceededError(GenerationCallError):
    """Rate limit or quota exhausted for the credential.

    Attributes:
        status_code: HTTP status reported by the upstream (usually 429).
    """

    default_code = "QUOTA_EXCEEDED"

    def __init__(
        self,
        message: str = "Quota exceeded (RESOURCE_EXHAUSTED)",
        *,
        status_code: int | None = 429,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.status_code = status_code


class TransportError(GenerationCallError):
    """The request never produced an HTTP response (DNS, connect, timeout)."""

    default_code = "TRANSPORT_FAILURE"


class UpstreamAPIError(GenerationCallError):
    """The upstream API answered with a non-quota error status.

    Attributes:
        status_code: HTTP status code of the failed response.
        body: Decoded response body, if any.
    """

    default_code = "UPSTREAM_ERROR"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: Any = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        if self.status_code:
            return f"{self.message} (status: {self.status_code})"
        return self.message


class AllModelsFailedError(StudioError):
    """Every configured model was tried and none produced an image.

    Attributes:
        models: The model identifiers that were attempted, in order.
        last_error: The most recent per-call error, kept for diagnostics.
    """

    def __init__(
        self,
        models: list[str],
        last_error: GenerationCallError | None = None,
    ) -> None:
        self.models = models
        self.last_error = last_error
        details: dict[str, Any] = {"models": list(models)}
        if last_error is not None:
            details["last_error"] = last_error.to_dict()
        super().__init__(
            self._describe(last_error),
            details=details,
            error_code="ALL_MODELS_FAILED",
        )

    @staticmethod
    def _describe(last_error: GenerationCallError | None) -> str:
        if isinstance(last_error, QuotaExceededError):
            return QUOTA_REMEDIATION_MESSAGE
        if isinstance(last_error, TransportError):
            return TRANSPORT_HINT_MESSAGE
        if last_error is not None and last_error.message:
            return str(last_error)
        return GENERIC_FAILURE_MESSAGE

    @property
    def user_message(self) -> str:
        """Message suitable for showing to the end user."""
        return self.message


def is_quota_signal(status_code: int | None, text: str | None) -> bool:
    """Return True if a status code or error text denotes a quota/rate limit."""
    if status_code == 429:
        return True
    if not text:
        return False
    return "RESOURCE_EXHAUSTED" in text or "429" in text
