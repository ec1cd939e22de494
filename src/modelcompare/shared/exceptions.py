"""Custom exception hierarchy for modelcompare."""

from typing import Any


class ModelCompareError(Exception):
    """Base exception for all modelcompare errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


# ----- Validation Errors -----


class ValidationError(ModelCompareError):
    """Request is malformed. Raised before any provider is called."""

    pass


class PromptRequiredError(ValidationError):
    """Prompt is missing or blank."""

    def __init__(self) -> None:
        super().__init__(message="Prompt is required")


class PromptTooLongError(ValidationError):
    """Prompt exceeds the configured character limit."""

    def __init__(self, max_chars: int) -> None:
        super().__init__(
            message=f"Prompt too long (max {max_chars} chars)",
            details={"max_chars": max_chars},
        )


class FileTooLargeError(ValidationError):
    """Uploaded file exceeds size limit."""

    def __init__(self, max_bytes: int) -> None:
        super().__init__(
            message=f"File too large. Maximum size: {max_bytes // (1024 * 1024)} MB",
            details={"max_bytes": max_bytes},
        )


class UnsupportedFileTypeError(ValidationError):
    """File type is not supported."""

    def __init__(self, file_type: str | None, supported: list[str]) -> None:
        super().__init__(
            message="Invalid image format. Supported formats are: JPEG, PNG, GIF, and WebP",
            details={"file_type": file_type, "supported_types": supported},
        )


# ----- Configuration Errors -----


class ConfigurationError(ModelCompareError):
    """Server is misconfigured, e.g. provider clients were never initialized."""

    pass


# ----- Provider Errors -----


class ProviderError(ModelCompareError):
    """A single provider call failed.

    Always carries the provider name; ``status`` is the upstream HTTP status
    code when one is known.
    """

    def __init__(
        self,
        provider: str,
        message: str,
        status: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.provider = provider
        self.status = status
        super().__init__(message, details)


class ProviderOverloadedError(ProviderError):
    """Provider reported a transient overload (HTTP 503/529)."""

    pass


class ProviderTimeoutError(ProviderError):
    """Provider did not answer within the per-call deadline."""

    def __init__(self, provider: str, timeout_seconds: float) -> None:
        timeout_ms = int(timeout_seconds * 1000)
        super().__init__(
            provider=provider,
            message=f"Timeout: {provider} did not respond within {timeout_ms}ms",
            details={"timeout_ms": timeout_ms},
        )
