"""Comparison orchestration.

Provides the ResponseComparator that dispatches one prompt to two models
concurrently, then merges their responses with text metrics and a similarity
score into a ComparisonResult.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from llm_compare.errors import ConfigurationError, ValidationError
from llm_compare.metrics import MetricDifferences, TextMetrics, metric_differences, text_metrics
from llm_compare.models import CredentialSet, ModelDescriptor, ModelResponse, ProviderFamily
from llm_compare.providers import DEFAULT_TIMEOUT_SECONDS, ProviderAdapter, default_adapters
from llm_compare.similarity import similarity

logger = logging.getLogger(__name__)

MISSING_INPUT_MESSAGE = "Missing prompt or model selection"


@dataclass(frozen=True)
class ModelReport:
    """One side of a comparison.

    Attributes:
        name: Display name of the model.
        response: Normalized provider response.
        metrics: Text metrics of the response output.
    """

    name: str
    response: ModelResponse
    metrics: TextMetrics

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON shape used by the HTTP API."""
        return {
            "output": self.response.output,
            "time": self.response.elapsed_ms,
            "tokens": self.response.token_count,
            "name": self.name,
            "metrics": self.metrics.to_dict(),
        }


@dataclass(frozen=True)
class ComparisonResult:
    """Side-by-side comparison of two model responses.

    Attributes:
        prompt: The prompt both models answered.
        model1: First model report.
        model2: Second model report.
        similarity: Bigram similarity of the two outputs, from 0.0 to 1.0.
        differences: Absolute metric differences between the two reports.
    """

    prompt: str
    model1: ModelReport
    model2: ModelReport
    similarity: float
    differences: MetricDifferences

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON shape used by the HTTP API."""
        return {
            "model1": self.model1.to_dict(),
            "model2": self.model2.to_dict(),
            "similarity": self.similarity,
            "differences": self.differences.to_dict(),
        }


class ResponseComparator:
    """Runs single-model chats and two-model comparisons.

    Args:
        adapters: Adapter registry keyed by provider family.
        timeout_seconds: Per-call ceiling used when building default adapters.
    """

    def __init__(
        self,
        adapters: Mapping[ProviderFamily, ProviderAdapter] | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.adapters = adapters or default_adapters(timeout_seconds)

    async def compare(
        self,
        prompt: str | None,
        model1: ModelDescriptor | None,
        model2: ModelDescriptor | None,
        credentials: CredentialSet,
    ) -> ComparisonResult:
        """Send a prompt to two models and compare their answers.

        Both provider calls run concurrently. The first failure cancels the
        other call and is raised on its own; nothing is retried.

        Args:
            prompt: User prompt. Blank prompts are rejected.
            model1: First model.
            model2: Second model.
            credentials: Keys available to this request.

        Returns:
            ComparisonResult with both reports, similarity and differences.

        Raises:
            ValidationError: If the prompt or a model is missing.
            ConfigurationError: If a built-in model has no configured key.
            ProviderError: If either provider call fails.
        """
        if not prompt or not prompt.strip() or model1 is None or model2 is None:
            raise ValidationError(MISSING_INPUT_MESSAGE)

        response1, response2 = await self._call_both(prompt, model1, model2, credentials)

        metrics1 = text_metrics(response1.output)
        metrics2 = text_metrics(response2.output)

        return ComparisonResult(
            prompt=prompt,
            model1=ModelReport(name=model1.name, response=response1, metrics=metrics1),
            model2=ModelReport(name=model2.name, response=response2, metrics=metrics2),
            similarity=similarity(response1.output, response2.output),
            differences=metric_differences(response1, metrics1, response2, metrics2),
        )

    async def chat(
        self,
        prompt: str | None,
        model: ModelDescriptor | None,
        credentials: CredentialSet,
    ) -> ModelResponse:
        """Send a single-turn prompt to one model.

        Raises:
            ValidationError: If the prompt or the model is missing.
            ConfigurationError: If a built-in model has no configured key.
            ProviderError: If the provider call fails.
        """
        if not prompt or not prompt.strip() or model is None:
            raise ValidationError(MISSING_INPUT_MESSAGE)
        return await self._call(prompt, model, credentials)

    async def _call_both(
        self,
        prompt: str,
        model1: ModelDescriptor,
        model2: ModelDescriptor,
        credentials: CredentialSet,
    ) -> tuple[ModelResponse, ModelResponse]:
        # Both models must be dispatchable before either paid request is sent.
        resolved = [self._resolve(model, credentials) for model in (model1, model2)]
        tasks = [
            asyncio.create_task(self._dispatch(adapter, prompt, model, api_key))
            for model, (adapter, api_key) in zip((model1, model2), resolved)
        ]
        try:
            await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        finally:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        failures = [
            task.exception()
            for task in tasks
            if not task.cancelled() and task.exception() is not None
        ]
        if failures:
            raise failures[0]  # type: ignore[misc]

        return tasks[0].result(), tasks[1].result()

    async def _call(
        self,
        prompt: str,
        model: ModelDescriptor,
        credentials: CredentialSet,
    ) -> ModelResponse:
        adapter, api_key = self._resolve(model, credentials)
        return await self._dispatch(adapter, prompt, model, api_key)

    def _resolve(
        self, model: ModelDescriptor, credentials: CredentialSet
    ) -> tuple[ProviderAdapter, str]:
        """Find the adapter and key for a model without contacting the provider."""
        adapter = self.adapters.get(model.provider.family)
        if adapter is None:
            raise ConfigurationError(f"No adapter registered for provider {model.provider}")

        api_key = credentials.key_for(model.provider)
        if not api_key:
            if model.provider.is_custom:
                raise ValidationError(f"No custom API key supplied for {model.provider}")
            raise ConfigurationError(f"No API key configured for {model.provider}")
        return adapter, api_key

    @staticmethod
    async def _dispatch(
        adapter: ProviderAdapter, prompt: str, model: ModelDescriptor, api_key: str
    ) -> ModelResponse:
        logger.info("Calling %s model %s", model.provider, model.id)
        return await adapter.call(prompt, model.id, api_key)
