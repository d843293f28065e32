"""Error types raised by the comparison pipeline.

Every error carries the HTTP status code the API layer reports it with.
"""

from __future__ import annotations


class CompareError(Exception):
    """Base class for comparison pipeline errors."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(CompareError):
    """No usable provider credentials or an empty model catalog."""

    status_code = 500


class ValidationError(CompareError):
    """The request is missing a prompt or a model selection."""

    status_code = 400


class ProviderError(CompareError):
    """A provider call failed (auth, quota, network, timeout, malformed reply).

    Args:
        provider: Provider family that failed.
        error_code: Stable machine-readable error code.
        message: Human-readable description, free of credentials.
    """

    status_code = 500

    def __init__(self, provider: str, error_code: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.error_code = error_code


class PartialCatalogError(CompareError):
    """Live model listing failed for one provider.

    Recovered inside the catalog by falling back to static descriptors.
    """

    def __init__(self, provider: str, cause: Exception) -> None:
        super().__init__(f"Listing {provider} models failed: {cause}")
        self.provider = provider
        self.cause = cause
