"""Shared fixtures."""

from __future__ import annotations

import pytest
from pydantic import SecretStr

from llm_compare.config import Settings, load_settings
from llm_compare.models import CredentialSet, ModelDescriptor, Provider, ProviderFamily


@pytest.fixture
def openai_model() -> ModelDescriptor:
    """Built-in OpenAI model descriptor."""
    return ModelDescriptor(provider=Provider.OPENAI, id="gpt-4o", name="GPT-4o")


@pytest.fixture
def gemini_model() -> ModelDescriptor:
    """Built-in Gemini model descriptor."""
    return ModelDescriptor(provider=Provider.GEMINI, id="gemini-2.5-flash", name="Gemini 2.5 Flash")


@pytest.fixture
def server_credentials() -> CredentialSet:
    """Credentials holding only the configured server keys."""
    return CredentialSet(
        defaults={
            ProviderFamily.OPENAI: SecretStr("sk-server-openai"),
            ProviderFamily.GEMINI: SecretStr("server-gemini"),
        }
    )


@pytest.fixture
def settings() -> Settings:
    """Settings with both server keys set, isolated from the real environment."""
    return load_settings(
        environ={"OPENAI_API_KEY": "sk-server-openai", "GEMINI_API_KEY": "server-gemini"}
    )
