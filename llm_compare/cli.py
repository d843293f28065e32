"""Command line entry point.

``llm-compare serve`` runs the HTTP API, ``llm-compare models`` prints the
model catalog and ``llm-compare compare`` runs one comparison and prints a
Markdown report.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import uvicorn
from pydantic import SecretStr

from llm_compare.api import create_app
from llm_compare.catalog import ModelCatalog
from llm_compare.comparator import ResponseComparator
from llm_compare.config import Settings, load_settings
from llm_compare.errors import CompareError
from llm_compare.models import CustomCredential, ModelDescriptor, Provider, ProviderFamily
from llm_compare.providers import default_adapters
from llm_compare.report_generator import ReportGenerator

logger = logging.getLogger(__name__)


def parse_model(value: str) -> ModelDescriptor:
    """Parse ``provider:model_id`` into a descriptor."""
    provider, sep, model_id = value.partition(":")
    if not sep or not model_id:
        raise argparse.ArgumentTypeError(f"expected PROVIDER:MODEL_ID, got {value!r}")
    try:
        tag = Provider(provider)
    except ValueError as exc:
        choices = ", ".join(p.value for p in Provider)
        raise argparse.ArgumentTypeError(f"unknown provider {provider!r} ({choices})") from exc
    return ModelDescriptor(provider=tag, id=model_id, name=model_id)


def parse_custom_key(value: str) -> CustomCredential:
    """Parse ``provider=key`` into a custom credential."""
    provider, sep, key = value.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError("expected PROVIDER=API_KEY")
    try:
        family = ProviderFamily(provider)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"unknown provider {provider!r}") from exc
    return CustomCredential(provider=family, key=SecretStr(key))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="llm-compare",
        description="Compare LLM responses side by side",
    )
    parser.add_argument("--config", help="Path to a YAML configuration file")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", help="Interface to bind (default from config)")
    serve.add_argument("--port", type=int, help="Port to listen on (default from config)")

    models = subparsers.add_parser("models", help="List selectable models")
    models.add_argument(
        "--custom-key",
        action="append",
        type=parse_custom_key,
        default=[],
        metavar="PROVIDER=API_KEY",
        help="Extra API key to list models for (repeatable)",
    )

    compare = subparsers.add_parser("compare", help="Compare two models on one prompt")
    compare.add_argument("prompt", help="Prompt to send to both models")
    compare.add_argument("--model1", required=True, type=parse_model, metavar="PROVIDER:MODEL_ID")
    compare.add_argument("--model2", required=True, type=parse_model, metavar="PROVIDER:MODEL_ID")
    compare.add_argument(
        "--custom-key",
        action="append",
        type=parse_custom_key,
        default=[],
        metavar="PROVIDER=API_KEY",
        help="API key for *-custom providers (repeatable)",
    )
    compare.add_argument(
        "--html", type=Path, metavar="FILE", help="Also write an HTML report to this file"
    )
    return parser


async def _list_models(settings: Settings, custom: list[CustomCredential]) -> list[ModelDescriptor]:
    catalog = ModelCatalog(settings, default_adapters(settings.timeout_seconds))
    return await catalog.list_models(settings.credentials().with_custom(custom))


async def _compare(settings: Settings, args: argparse.Namespace) -> str:
    comparator = ResponseComparator(default_adapters(settings.timeout_seconds))
    result = await comparator.compare(
        args.prompt,
        args.model1,
        args.model2,
        settings.credentials().with_custom(args.custom_key),
    )
    if args.html:
        generator = ReportGenerator(output_dir=args.html.parent)
        path = generator.save_html(result, filename=args.html.name)
        logger.info("HTML report saved to %s", path)
    else:
        generator = ReportGenerator()
    return generator.generate_markdown(result)


def main(argv: list[str] | None = None) -> int:
    """Run the command line interface."""
    args = build_parser().parse_args(argv)
    settings = load_settings(args.config)
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        uvicorn.run(
            create_app(settings),
            host=args.host or settings.host,
            port=args.port or settings.port,
            log_level=settings.log_level.lower(),
        )
        return 0

    try:
        if args.command == "models":
            for model in asyncio.run(_list_models(settings, args.custom_key)):
                print(f"{model.provider}:{model.id}\t{model.name}")
        else:
            print(asyncio.run(_compare(settings, args)))
    except CompareError as exc:
        logger.error("%s", exc.message)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
