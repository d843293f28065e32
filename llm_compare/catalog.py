"""Model catalog assembly.

Builds the list of selectable models from the configured provider keys and
any custom keys supplied with the request, with static fallbacks for
providers whose live listing fails.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping

from llm_compare.config import Settings
from llm_compare.errors import ConfigurationError, PartialCatalogError, ProviderError
from llm_compare.models import CredentialSet, CustomCredential, ModelDescriptor, ProviderFamily
from llm_compare.providers import ProviderAdapter, default_adapters

logger = logging.getLogger(__name__)


def filter_chat_models(
    models: list[ModelDescriptor],
    excluded_keywords: list[str],
) -> list[ModelDescriptor]:
    """Drop models whose id marks them as non-chat models.

    Args:
        models: Candidate descriptors.
        excluded_keywords: Fragments matched case-insensitively against ids.

    Returns:
        Descriptors without any excluded fragment, in the original order.
    """
    keywords = [k.lower() for k in excluded_keywords]
    return [m for m in models if not any(k in m.id.lower() for k in keywords)]


class ModelCatalog:
    """Lists the models a request may compare.

    Args:
        settings: Service settings with fallbacks and exclusion keywords.
        adapters: Adapter registry keyed by provider family.
    """

    def __init__(
        self,
        settings: Settings,
        adapters: Mapping[ProviderFamily, ProviderAdapter] | None = None,
    ) -> None:
        self.settings = settings
        self.adapters = adapters or default_adapters(settings.timeout_seconds)

    async def list_models(self, credentials: CredentialSet) -> list[ModelDescriptor]:
        """Build the catalog for one request.

        Built-in providers come first in declaration order, then custom
        credentials in the order they were submitted.

        Args:
            credentials: Default and custom keys available to the request.

        Returns:
            Chat model descriptors.

        Raises:
            ConfigurationError: If no provider yields any model.
        """
        default_families = [
            family
            for family in ProviderFamily
            if family in self.adapters and credentials.defaults.get(family) is not None
        ]

        listings = await asyncio.gather(
            *(self._list_default(family, credentials) for family in default_families),
            *(self._list_custom(credential) for credential in credentials.custom),
        )

        models = [descriptor for listing in listings for descriptor in listing]
        models = filter_chat_models(models, self.settings.excluded_keywords)

        if not models:
            raise ConfigurationError(
                "No API keys configured. Set OPENAI_API_KEY and/or GEMINI_API_KEY "
                "or supply a custom API key."
            )
        return models

    async def _list_default(
        self,
        family: ProviderFamily,
        credentials: CredentialSet,
    ) -> list[ModelDescriptor]:
        secret = credentials.defaults[family]
        try:
            return await self._list_live(family, secret.get_secret_value())
        except PartialCatalogError as exc:
            logger.warning("%s; using fallback models", exc)
            return self.settings.fallback_descriptors(family)

    async def _list_custom(self, credential: CustomCredential) -> list[ModelDescriptor]:
        if credential.provider not in self.adapters:
            logger.warning("No adapter for custom provider %s, skipping", credential.provider)
            return []
        if not credential.key.get_secret_value():
            return []
        try:
            return await self._list_live(
                credential.provider, credential.key.get_secret_value(), custom=True
            )
        except PartialCatalogError as exc:
            logger.warning("%s; skipping custom key", exc)
            return []

    async def _list_live(
        self,
        family: ProviderFamily,
        api_key: str,
        custom: bool = False,
    ) -> list[ModelDescriptor]:
        try:
            return await self.adapters[family].list_models(api_key, custom=custom)
        except ProviderError as exc:
            raise PartialCatalogError(family, exc) from exc
