"""Configuration loading for the comparison service.

Settings come from an optional YAML file, then environment variables override
individual values. API keys only ever live in memory as SecretStr.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, SecretStr

from llm_compare.models import CredentialSet, ModelDescriptor, Provider, ProviderFamily

DEFAULT_EXCLUDED_KEYWORDS = ["audio", "transcribe", "tts", "instruct", "image", "codex"]

CONFIG_PATH_ENV = "LLM_COMPARE_CONFIG"
LOG_LEVEL_ENV = "LLM_COMPARE_LOG_LEVEL"
API_KEY_ENVS = {
    ProviderFamily.OPENAI: "OPENAI_API_KEY",
    ProviderFamily.GEMINI: "GEMINI_API_KEY",
}


class FallbackModel(BaseModel):
    """A static model entry used when live listing fails."""

    id: str
    name: str


class ProviderSettings(BaseModel):
    """Configuration for a single provider family.

    Attributes:
        api_key: Server-wide key. The provider is disabled when unset.
        fallback_models: Models offered when the live listing fails.
    """

    api_key: SecretStr | None = None
    fallback_models: list[FallbackModel] = Field(default_factory=list)


def _openai_defaults() -> ProviderSettings:
    return ProviderSettings(
        fallback_models=[
            FallbackModel(id="gpt-4", name="GPT-4"),
            FallbackModel(id="gpt-3.5-turbo", name="GPT-3.5 Turbo"),
        ]
    )


def _gemini_defaults() -> ProviderSettings:
    return ProviderSettings(
        fallback_models=[FallbackModel(id="gemini-2.5-flash", name="Gemini 2.5 Flash")]
    )


class Settings(BaseModel):
    """Service configuration.

    Attributes:
        openai: OpenAI provider settings.
        gemini: Gemini provider settings.
        timeout_seconds: Ceiling for a single provider call.
        excluded_keywords: Model id fragments that mark non-chat models.
        host: Interface the HTTP server binds to.
        port: Port the HTTP server listens on.
        log_level: Root logging level.
    """

    openai: ProviderSettings = Field(default_factory=_openai_defaults)
    gemini: ProviderSettings = Field(default_factory=_gemini_defaults)
    timeout_seconds: float = Field(default=60.0, gt=0)
    excluded_keywords: list[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDED_KEYWORDS))
    host: str = "127.0.0.1"
    port: int = 3000
    log_level: str = "INFO"

    def provider(self, family: ProviderFamily) -> ProviderSettings:
        """Return the settings section of a provider family."""
        return getattr(self, family.value)

    def fallback_descriptors(self, family: ProviderFamily) -> list[ModelDescriptor]:
        """Static descriptors for a family, tagged as built-in."""
        provider = Provider.for_family(family)
        return [
            ModelDescriptor(provider=provider, id=m.id, name=m.name)
            for m in self.provider(family).fallback_models
        ]

    def credentials(self) -> CredentialSet:
        """Build a credential set holding the configured default keys."""
        defaults = {
            family: self.provider(family).api_key
            for family in ProviderFamily
            if self.provider(family).api_key is not None
        }
        return CredentialSet(defaults=defaults)


def load_settings(
    config_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Load settings from YAML and the environment.

    Args:
        config_path: Optional YAML file. Defaults to $LLM_COMPARE_CONFIG.
        environ: Environment mapping, defaults to os.environ.

    Returns:
        Settings with environment overrides applied.
    """
    env = os.environ if environ is None else environ
    path = config_path or env.get(CONFIG_PATH_ENV)

    raw: dict = {}
    if path:
        with Path(path).open() as f:
            raw = yaml.safe_load(f) or {}

    settings = Settings(**raw)

    for family, env_name in API_KEY_ENVS.items():
        key = env.get(env_name)
        if key:
            settings.provider(family).api_key = SecretStr(key)

    if env.get("PORT"):
        settings.port = int(env["PORT"])
    if env.get(LOG_LEVEL_ENV):
        settings.log_level = env[LOG_LEVEL_ENV].upper()

    return settings
