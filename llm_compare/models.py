"""Core data types shared across the comparison pipeline.

Provides provider tags, model descriptors, request-scoped credentials and the
normalized response returned by every provider adapter.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, SecretStr


class ProviderFamily(StrEnum):
    """Backend provider families, one adapter per family."""

    OPENAI = "openai"
    GEMINI = "gemini"


class Provider(StrEnum):
    """Provider tag carried by every model descriptor.

    Built-in tags use the server's configured keys, custom tags use keys
    supplied with the request.
    """

    OPENAI = "openai"
    GEMINI = "gemini"
    OPENAI_CUSTOM = "openai-custom"
    GEMINI_CUSTOM = "gemini-custom"

    @property
    def family(self) -> ProviderFamily:
        """The provider family serving this tag."""
        return ProviderFamily(self.value.removesuffix("-custom"))

    @property
    def is_custom(self) -> bool:
        """Whether this tag resolves to a request-supplied key."""
        return self.value.endswith("-custom")

    @classmethod
    def for_family(cls, family: ProviderFamily, custom: bool = False) -> Provider:
        """Return the built-in or custom tag for a family."""
        return cls(f"{family.value}-custom" if custom else family.value)


class ModelDescriptor(BaseModel):
    """A selectable model.

    Attributes:
        provider: Provider tag used to pick the adapter and the credential.
        id: Provider-specific model identifier.
        name: Display name shown to users.
    """

    model_config = ConfigDict(frozen=True)

    provider: Provider
    id: str = Field(min_length=1)
    name: str


class CustomCredential(BaseModel):
    """A user-supplied API key for one provider family."""

    model_config = ConfigDict(frozen=True)

    provider: ProviderFamily
    key: SecretStr


@dataclass(frozen=True)
class CredentialSet:
    """API keys available to a single request.

    Built fresh for every request and passed down the call chain; never
    stored beyond it.

    Attributes:
        defaults: Server-wide keys per provider family.
        custom: Request-supplied keys, in submission order.
    """

    defaults: Mapping[ProviderFamily, SecretStr] = field(default_factory=dict)
    custom: tuple[CustomCredential, ...] = ()

    def key_for(self, provider: Provider) -> str | None:
        """Resolve the API key for a provider tag.

        Custom tags use the first custom key of the family, built-in tags use
        the configured default.
        """
        if provider.is_custom:
            for credential in self.custom:
                if credential.provider == provider.family:
                    return credential.key.get_secret_value()
            return None

        secret = self.defaults.get(provider.family)
        return secret.get_secret_value() if secret else None

    def with_custom(self, custom: Iterable[CustomCredential]) -> CredentialSet:
        """Return a copy carrying the given custom credentials."""
        return CredentialSet(defaults=self.defaults, custom=tuple(custom))


@dataclass(frozen=True)
class ModelResponse:
    """Normalized result of one provider call.

    Attributes:
        output: Primary text returned by the model.
        elapsed_ms: Wall-clock duration of the call in milliseconds.
        token_count: Total tokens reported by the provider, or None when the
            provider does not report usage.
    """

    output: str
    elapsed_ms: int
    token_count: int | None = None

    def __post_init__(self) -> None:
        if self.elapsed_ms < 0:
            raise ValueError(f"elapsed_ms must be >= 0, got {self.elapsed_ms}")
        if self.token_count is not None and self.token_count < 0:
            raise ValueError(f"token_count must be >= 0, got {self.token_count}")
