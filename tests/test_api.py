"""Tests for the HTTP surface."""

from __future__ import annotations

import pytest
from fakes import StubAdapter
from fastapi.testclient import TestClient

from llm_compare.api import create_app, parse_custom_credentials
from llm_compare.catalog import ModelCatalog
from llm_compare.comparator import ResponseComparator
from llm_compare.config import Settings, load_settings
from llm_compare.errors import ProviderError
from llm_compare.models import ProviderFamily

GRAVITY_A = "Gravity pulls objects together."
GRAVITY_B = "Gravity is attraction between masses."

OPENAI_MODEL = {"provider": "openai", "id": "gpt-4o", "name": "GPT-4o"}
GEMINI_MODEL = {"provider": "gemini", "id": "gemini-2.5-flash", "name": "Gemini 2.5 Flash"}


@pytest.fixture
def adapters() -> dict[ProviderFamily, StubAdapter]:
    """Stub adapters answering the gravity prompt."""
    return {
        ProviderFamily.OPENAI: StubAdapter(
            ProviderFamily.OPENAI,
            outputs={"gpt-4o": GRAVITY_A},
            models=["gpt-4o", "gpt-4o-mini-tts"],
            tokens=12,
        ),
        ProviderFamily.GEMINI: StubAdapter(
            ProviderFamily.GEMINI,
            outputs={"gemini-2.5-flash": GRAVITY_B},
            models=["gemini-2.5-flash"],
            tokens=None,
        ),
    }


def _client(settings: Settings, adapters: dict[ProviderFamily, StubAdapter]) -> TestClient:
    app = create_app(
        settings,
        comparator=ResponseComparator(adapters),
        catalog=ModelCatalog(settings, adapters),
    )
    return TestClient(app)


class TestParseCustomCredentials:
    """Tests for parse_custom_credentials function."""

    def test_indexed_pairs(self) -> None:
        credentials = parse_custom_credentials(
            {
                "customProvider0": "openai",
                "customApiKey0": "sk-one",
                "customProvider1": "gemini",
                "customApiKey1": "g-two",
            }
        )

        assert [(c.provider, c.key.get_secret_value()) for c in credentials] == [
            (ProviderFamily.OPENAI, "sk-one"),
            (ProviderFamily.GEMINI, "g-two"),
        ]

    def test_stops_at_first_gap(self) -> None:
        credentials = parse_custom_credentials(
            {
                "customProvider0": "openai",
                "customApiKey0": "",
                "customProvider1": "gemini",
                "customApiKey1": "g-two",
            }
        )

        assert credentials == []

    def test_unknown_provider_skipped(self) -> None:
        credentials = parse_custom_credentials(
            {
                "customProvider0": "mystery",
                "customApiKey0": "m-key",
                "customProvider1": "openai",
                "customApiKey1": "sk-one",
            }
        )

        assert [c.provider for c in credentials] == [ProviderFamily.OPENAI]


class TestModelsEndpoint:
    """Tests for GET /models."""

    def test_lists_filtered_models(
        self, settings: Settings, adapters: dict[ProviderFamily, StubAdapter]
    ) -> None:
        response = _client(settings, adapters).get("/models")

        assert response.status_code == 200
        assert response.json() == {
            "models": [
                {"provider": "openai", "id": "gpt-4o", "name": "gpt-4o"},
                {"provider": "gemini", "id": "gemini-2.5-flash", "name": "gemini-2.5-flash"},
            ]
        }

    def test_custom_keys_from_query(
        self, settings: Settings, adapters: dict[ProviderFamily, StubAdapter]
    ) -> None:
        response = _client(settings, adapters).get(
            "/models", params={"customProvider0": "openai", "customApiKey0": "sk-user"}
        )

        providers = [m["provider"] for m in response.json()["models"]]
        assert providers == ["openai", "gemini", "openai-custom"]
        assert ("sk-user", True) in adapters[ProviderFamily.OPENAI].list_calls
        assert "sk-user" not in response.text

    def test_custom_keys_do_not_leak_between_requests(
        self, settings: Settings, adapters: dict[ProviderFamily, StubAdapter]
    ) -> None:
        client = _client(settings, adapters)
        client.get("/models", params={"customProvider0": "openai", "customApiKey0": "sk-user"})

        response = client.get("/models")

        providers = [m["provider"] for m in response.json()["models"]]
        assert "openai-custom" not in providers

    def test_no_configuration_is_500(self, adapters: dict[ProviderFamily, StubAdapter]) -> None:
        response = _client(load_settings(environ={}), adapters).get("/models")

        assert response.status_code == 500
        assert "No API keys configured" in response.json()["error"]


class TestCompareEndpoint:
    """Tests for POST /compare."""

    def test_compare(self, settings: Settings, adapters: dict[ProviderFamily, StubAdapter]) -> None:
        response = _client(settings, adapters).post(
            "/compare",
            json={"prompt": "Explain gravity", "model1": OPENAI_MODEL, "model2": GEMINI_MODEL},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["similarity"] == pytest.approx(16 / 59)
        assert data["model1"]["name"] == "GPT-4o"
        assert data["model1"]["output"] == GRAVITY_A
        assert data["model1"]["tokens"] == 12
        assert data["model2"]["tokens"] is None
        assert data["model1"]["metrics"]["wordCount"] == 4
        assert data["differences"]["wordCount"] == 1

    def test_missing_prompt_is_400(
        self, settings: Settings, adapters: dict[ProviderFamily, StubAdapter]
    ) -> None:
        response = _client(settings, adapters).post(
            "/compare", json={"model1": OPENAI_MODEL, "model2": GEMINI_MODEL}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Missing prompt or model selection"}

    def test_missing_model_is_400(
        self, settings: Settings, adapters: dict[ProviderFamily, StubAdapter]
    ) -> None:
        response = _client(settings, adapters).post(
            "/compare", json={"prompt": "Hi", "model1": OPENAI_MODEL}
        )

        assert response.status_code == 400

    def test_invalid_descriptor_is_400(
        self, settings: Settings, adapters: dict[ProviderFamily, StubAdapter]
    ) -> None:
        response = _client(settings, adapters).post(
            "/compare",
            json={
                "prompt": "Hi",
                "model1": {"provider": "mystery", "id": "x", "name": "x"},
                "model2": GEMINI_MODEL,
            },
        )

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid request")

    def test_provider_failure_is_500(
        self, settings: Settings, adapters: dict[ProviderFamily, StubAdapter]
    ) -> None:
        adapters[ProviderFamily.GEMINI].error = ProviderError(
            ProviderFamily.GEMINI, "rate_limit", "quota exceeded"
        )

        response = _client(settings, adapters).post(
            "/compare",
            json={"prompt": "Hi", "model1": OPENAI_MODEL, "model2": GEMINI_MODEL},
        )

        assert response.status_code == 500
        assert response.json() == {"error": "gemini: quota exceeded"}

    def test_unexpected_failure_is_json_500(
        self, settings: Settings, adapters: dict[ProviderFamily, StubAdapter]
    ) -> None:
        adapters[ProviderFamily.OPENAI].error = RuntimeError("boom")
        app = create_app(
            settings,
            comparator=ResponseComparator(adapters),
            catalog=ModelCatalog(settings, adapters),
        )
        client = TestClient(app, raise_server_exceptions=False)

        response = client.post(
            "/compare",
            json={"prompt": "Hi", "model1": OPENAI_MODEL, "model2": GEMINI_MODEL},
        )

        assert response.status_code == 500
        assert response.headers["content-type"] == "application/json"
        assert response.json() == {"error": "boom"}

    def test_custom_keys_in_body(
        self, settings: Settings, adapters: dict[ProviderFamily, StubAdapter]
    ) -> None:
        response = _client(settings, adapters).post(
            "/compare",
            json={
                "prompt": "Hi",
                "model1": {"provider": "openai-custom", "id": "gpt-4o", "name": "Mine"},
                "model2": GEMINI_MODEL,
                "customKeys": [{"provider": "openai", "key": "sk-user"}],
            },
        )

        assert response.status_code == 200
        assert adapters[ProviderFamily.OPENAI].calls == [("Hi", "gpt-4o", "sk-user")]
        assert "sk-user" not in response.text

    def test_custom_model_without_key_is_400(
        self, settings: Settings, adapters: dict[ProviderFamily, StubAdapter]
    ) -> None:
        response = _client(settings, adapters).post(
            "/compare",
            json={
                "prompt": "Hi",
                "model1": {"provider": "openai-custom", "id": "gpt-4o", "name": "Mine"},
                "model2": GEMINI_MODEL,
            },
        )

        assert response.status_code == 400


class TestChatEndpoint:
    """Tests for POST /chat."""

    def test_chat(self, settings: Settings, adapters: dict[ProviderFamily, StubAdapter]) -> None:
        response = _client(settings, adapters).post(
            "/chat", json={"prompt": "Explain gravity", "model": GEMINI_MODEL}
        )

        assert response.status_code == 200
        assert response.json() == {
            "output": GRAVITY_B,
            "time": 0,
            "tokens": None,
            "modelName": "Gemini 2.5 Flash",
        }

    def test_missing_model_is_400(
        self, settings: Settings, adapters: dict[ProviderFamily, StubAdapter]
    ) -> None:
        response = _client(settings, adapters).post("/chat", json={"prompt": "Hi"})

        assert response.status_code == 400
        assert response.json() == {"error": "Missing prompt or model selection"}
