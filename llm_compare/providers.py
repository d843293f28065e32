"""Provider adapters that isolate vendor SDK differences.

Every adapter exposes the same coroutine contract,
``call(prompt, model_id, api_key) -> ModelResponse``, plus live model listing
for the catalog. Adapters are registered per provider family; the comparator
only looks them up by the family carried on each model descriptor.
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx
import openai
from google import genai
from google.genai import errors as genai_errors
from openai import AsyncOpenAI

from llm_compare.errors import ProviderError
from llm_compare.models import ModelDescriptor, ModelResponse, Provider, ProviderFamily

logger = logging.getLogger(__name__)

T = TypeVar("T")

ClientFactory = Callable[[str], Any]

DEFAULT_TIMEOUT_SECONDS = 60.0

GENERATE_ACTION = "generateContent"

_STATUS_ERROR_CODES = {
    400: "bad_request",
    401: "authentication_error",
    403: "permission_denied",
    404: "model_not_found",
    429: "rate_limit",
}


def _redact(message: str, api_key: str) -> str:
    if api_key:
        return message.replace(api_key, "***")
    return message


class ProviderAdapter(ABC):
    """Base class for provider adapters.

    Subclasses implement the vendor request and response parsing; the base
    class handles timing, the timeout ceiling and error translation.

    Args:
        timeout_seconds: Ceiling for a single provider request.
        client_factory: Callable building an SDK client from an API key.
            Defaults to the vendor SDK client.
    """

    family: ProviderFamily
    model_filter: str = ""

    def __init__(
        self,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self._client_factory = client_factory or self._default_client

    async def call(self, prompt: str, model_id: str, api_key: str) -> ModelResponse:
        """Send a single-turn prompt to a model.

        Args:
            prompt: User prompt.
            model_id: Provider-specific model identifier.
            api_key: Key to authenticate the request with.

        Returns:
            ModelResponse with the output text, elapsed time and token usage.

        Raises:
            ProviderError: On any transport, auth, quota, timeout or response
                shape failure.
        """
        start = time.perf_counter()
        output, token_count = await self._guard(
            self._generate(prompt, model_id, api_key), model_id, api_key
        )
        elapsed_ms = max(0, round((time.perf_counter() - start) * 1000))
        logger.debug("%s/%s answered in %dms", self.family, model_id, elapsed_ms)
        return ModelResponse(output=output, elapsed_ms=elapsed_ms, token_count=token_count)

    async def list_models(self, api_key: str, custom: bool = False) -> list[ModelDescriptor]:
        """List the chat models available to a key.

        Args:
            api_key: Key to list models with.
            custom: Tag the descriptors with the custom provider variant.

        Returns:
            Descriptors in the order the provider returned them.

        Raises:
            ProviderError: If the listing request fails.
        """
        provider = Provider.for_family(self.family, custom=custom)
        entries = await self._guard(self._list(api_key), "model listing", api_key)
        return [
            ModelDescriptor(provider=provider, id=model_id, name=name)
            for model_id, name in entries
            if self.model_filter in model_id
        ]

    async def _guard(self, operation: Awaitable[T], target: str, api_key: str) -> T:
        try:
            return await asyncio.wait_for(operation, timeout=self.timeout_seconds)
        except ProviderError:
            raise
        except TimeoutError as exc:
            raise ProviderError(
                self.family,
                "timeout",
                f"{target} did not answer within {self.timeout_seconds:g}s",
            ) from exc
        except Exception as exc:
            error = self._map_error(exc, api_key) or ProviderError(
                self.family, "api_error", _redact(str(exc), api_key)
            )
            logger.warning("%s request for %s failed: %s", self.family, target, error.error_code)
            raise error from exc

    def _status_error(self, status: int | None, message: str) -> ProviderError:
        code = _STATUS_ERROR_CODES.get(status or 0, "api_error")
        return ProviderError(self.family, code, message)

    def _malformed(self, model_id: str, detail: str) -> ProviderError:
        return ProviderError(self.family, "malformed_response", f"{model_id} {detail}")

    @abstractmethod
    def _default_client(self, api_key: str) -> Any:
        """Build the vendor SDK client."""

    @abstractmethod
    async def _generate(self, prompt: str, model_id: str, api_key: str) -> tuple[str, int | None]:
        """Issue the request and return (output, token_count)."""

    @abstractmethod
    async def _list(self, api_key: str) -> list[tuple[str, str]]:
        """Return (model_id, display_name) pairs from the live listing."""

    @abstractmethod
    def _map_error(self, exc: Exception, api_key: str) -> ProviderError | None:
        """Translate an SDK exception, or return None to report it as api_error."""


class OpenAIAdapter(ProviderAdapter):
    """Adapter for OpenAI chat completions."""

    family = ProviderFamily.OPENAI
    model_filter = "gpt"

    def _default_client(self, api_key: str) -> AsyncOpenAI:
        # Retries stay off; the comparator never retries a provider call.
        return AsyncOpenAI(api_key=api_key, timeout=self.timeout_seconds, max_retries=0)

    async def _generate(self, prompt: str, model_id: str, api_key: str) -> tuple[str, int | None]:
        async with self._client_factory(api_key) as client:
            response = await client.chat.completions.create(
                model=model_id,
                messages=[{"role": "user", "content": prompt}],
            )

        choices = getattr(response, "choices", None)
        if not choices:
            raise self._malformed(model_id, "returned no choices")
        content = choices[0].message.content
        if content is None:
            raise self._malformed(model_id, "returned an empty message")

        usage = getattr(response, "usage", None)
        return content, getattr(usage, "total_tokens", None)

    async def _list(self, api_key: str) -> list[tuple[str, str]]:
        async with self._client_factory(api_key) as client:
            return [(model.id, model.id) async for model in client.models.list()]

    def _map_error(self, exc: Exception, api_key: str) -> ProviderError | None:
        message = _redact(str(exc), api_key)
        if isinstance(exc, openai.APITimeoutError):
            return ProviderError(self.family, "timeout", message)
        if isinstance(exc, openai.APIConnectionError):
            return ProviderError(self.family, "connection_error", message)
        if isinstance(exc, openai.APIStatusError):
            return self._status_error(exc.status_code, message)
        if isinstance(exc, openai.APIError):
            return ProviderError(self.family, "api_error", message)
        return None


class GeminiAdapter(ProviderAdapter):
    """Adapter for Google Gemini via the google-genai SDK."""

    family = ProviderFamily.GEMINI
    model_filter = "gemini"

    def _default_client(self, api_key: str) -> genai.Client:
        return genai.Client(api_key=api_key)

    async def _generate(self, prompt: str, model_id: str, api_key: str) -> tuple[str, int | None]:
        async with self._client_factory(api_key).aio as client:
            response = await client.models.generate_content(model=model_id, contents=prompt)

        text = getattr(response, "text", None)
        if text is None:
            raise self._malformed(model_id, "returned no text")

        usage = getattr(response, "usage_metadata", None)
        return text, getattr(usage, "total_token_count", None)

    async def _list(self, api_key: str) -> list[tuple[str, str]]:
        entries = []
        async with self._client_factory(api_key).aio as client:
            async for model in await client.models.list():
                # Embedding and other non-chat models cannot serve generate_content.
                if GENERATE_ACTION not in (model.supported_actions or ()):
                    continue
                model_id = (model.name or "").removeprefix("models/")
                entries.append((model_id, model.display_name or model_id))
        return entries

    def _map_error(self, exc: Exception, api_key: str) -> ProviderError | None:
        message = _redact(str(exc), api_key)
        if isinstance(exc, genai_errors.UnknownApiResponseError):
            return ProviderError(self.family, "malformed_response", message)
        if isinstance(exc, genai_errors.APIError):
            return self._status_error(exc.code, message)
        if isinstance(exc, httpx.TimeoutException):
            return ProviderError(self.family, "timeout", message)
        if isinstance(exc, httpx.TransportError):
            return ProviderError(self.family, "connection_error", message)
        return None


def default_adapters(
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> dict[ProviderFamily, ProviderAdapter]:
    """Build the adapter registry for every supported provider family."""
    return {
        ProviderFamily.OPENAI: OpenAIAdapter(timeout_seconds=timeout_seconds),
        ProviderFamily.GEMINI: GeminiAdapter(timeout_seconds=timeout_seconds),
    }
