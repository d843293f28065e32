"""HTTP surface for model listing, comparison and single-model chat.

Every error is reported as ``{"error": message}`` with the status code of the
raised CompareError; malformed request bodies map to 400 and anything else
to 500.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, SecretStr

from llm_compare import __version__
from llm_compare.catalog import ModelCatalog
from llm_compare.comparator import ResponseComparator
from llm_compare.config import Settings, load_settings
from llm_compare.errors import CompareError
from llm_compare.models import CredentialSet, CustomCredential, ModelDescriptor, ProviderFamily
from llm_compare.providers import default_adapters

logger = logging.getLogger(__name__)

router = APIRouter()


class CompareRequest(BaseModel):
    """Body of POST /compare."""

    model_config = ConfigDict(populate_by_name=True)

    prompt: str | None = None
    model1: ModelDescriptor | None = None
    model2: ModelDescriptor | None = None
    custom_keys: list[CustomCredential] = Field(default_factory=list, alias="customKeys")


class ChatRequest(BaseModel):
    """Body of POST /chat."""

    model_config = ConfigDict(populate_by_name=True)

    prompt: str | None = None
    model: ModelDescriptor | None = None
    custom_keys: list[CustomCredential] = Field(default_factory=list, alias="customKeys")


def parse_custom_credentials(query: Mapping[str, str]) -> list[CustomCredential]:
    """Read indexed ``customProviderN``/``customApiKeyN`` query parameter pairs.

    Parsing stops at the first index where either value is missing or empty.
    Pairs naming an unknown provider are skipped.
    """
    credentials: list[CustomCredential] = []
    index = 0
    while query.get(f"customProvider{index}") and query.get(f"customApiKey{index}"):
        provider = query[f"customProvider{index}"]
        try:
            family = ProviderFamily(provider)
        except ValueError:
            logger.warning("Ignoring custom key for unknown provider %r", provider)
        else:
            credentials.append(
                CustomCredential(provider=family, key=SecretStr(query[f"customApiKey{index}"]))
            )
        index += 1
    return credentials


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_catalog(request: Request) -> ModelCatalog:
    return request.app.state.catalog


def get_comparator(request: Request) -> ResponseComparator:
    return request.app.state.comparator


def request_credentials(settings: Settings, custom: list[CustomCredential]) -> CredentialSet:
    """Credentials scoped to one request: configured defaults plus its custom keys."""
    return settings.credentials().with_custom(custom)


@router.get("/models")
async def list_models(
    request: Request,
    settings: Settings = Depends(get_settings),
    catalog: ModelCatalog = Depends(get_catalog),
) -> dict[str, Any]:
    custom = parse_custom_credentials(request.query_params)
    models = await catalog.list_models(request_credentials(settings, custom))
    return {"models": [m.model_dump(mode="json") for m in models]}


@router.post("/compare")
async def compare(
    body: CompareRequest,
    settings: Settings = Depends(get_settings),
    comparator: ResponseComparator = Depends(get_comparator),
) -> dict[str, Any]:
    result = await comparator.compare(
        body.prompt,
        body.model1,
        body.model2,
        request_credentials(settings, body.custom_keys),
    )
    return result.to_dict()


@router.post("/chat")
async def chat(
    body: ChatRequest,
    settings: Settings = Depends(get_settings),
    comparator: ResponseComparator = Depends(get_comparator),
) -> dict[str, Any]:
    response = await comparator.chat(
        body.prompt,
        body.model,
        request_credentials(settings, body.custom_keys),
    )
    return {
        "output": response.output,
        "time": response.elapsed_ms,
        "tokens": response.token_count,
        "modelName": body.model.name if body.model else None,
    }


async def handle_compare_error(request: Request, exc: CompareError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("%s %s failed unexpectedly", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": str(exc) or "Internal server error"})


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'][1:])}: {error['msg']}"
        for error in exc.errors()
    )
    return JSONResponse(status_code=400, content={"error": f"Invalid request: {details}"})


def create_app(
    settings: Settings | None = None,
    comparator: ResponseComparator | None = None,
    catalog: ModelCatalog | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Service settings, loaded from the environment when omitted.
        comparator: Comparator to serve, built from default adapters when omitted.
        catalog: Model catalog to serve, built from default adapters when omitted.

    Returns:
        Configured FastAPI application.
    """
    settings = settings or load_settings()
    if comparator is None or catalog is None:
        adapters = default_adapters(settings.timeout_seconds)
        comparator = comparator or ResponseComparator(adapters)
        catalog = catalog or ModelCatalog(settings, adapters)

    app = FastAPI(title="LLM Output Compare", version=__version__)
    app.state.settings = settings
    app.state.comparator = comparator
    app.state.catalog = catalog

    app.add_exception_handler(CompareError, handle_compare_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, handle_unexpected_error)
    app.include_router(router)
    return app
