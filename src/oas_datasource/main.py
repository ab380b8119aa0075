"""CLI entry point for the OpenAPI data source generator."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

import httpx
import uvicorn

from .config import Settings, get_settings
from .generator import DataSourceGenerator
from .logging import configure_logging
from .openapi import OpenAPILoader
from .schema_generation import SchemaGenerationError
from .server import build_app, build_schema_generator

logger = logging.getLogger(__name__)


def parse_headers(values: Optional[List[str]]) -> Dict[str, str]:
    headers: Dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise argparse.ArgumentTypeError(f"Header must look like KEY=VALUE: {item}")
        headers[key.strip()] = value.strip()
    return headers


async def _read_spec(source: str, settings: Settings) -> str:
    if source.startswith(("http://", "https://")):
        loader = OpenAPILoader(
            cache_seconds=settings.openapi_cache_seconds,
            timeout_seconds=settings.schema_service_timeout_seconds,
        )
        text = await loader.load_text(source)
        if text is None:
            raise RuntimeError(f"Unable to fetch OpenAPI document from {source}")
        return text
    return Path(source).read_text(encoding="utf-8")


async def _schema(args: argparse.Namespace, settings: Settings) -> str:
    text = await _read_spec(args.spec, settings)
    generator = DataSourceGenerator(text, schema_generator=build_schema_generator(settings))
    return await generator.print_graphql_schema()


async def _generate(args: argparse.Namespace, settings: Settings, headers: Dict[str, str]) -> str:
    text = await _read_spec(args.spec, settings)
    generator = DataSourceGenerator(
        text,
        schema_generator=build_schema_generator(settings),
        parity_mode=args.parity_mode or settings.parity_mode,
    )
    config = await generator.generate_data_source(args.name, args.url, headers or None)
    return json.dumps(config.to_dict(), indent=4)


def _serve(settings: Settings) -> None:
    app = build_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="oas-datasource",
        description="Generate GraphQL data source configuration from OpenAPI documents",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    schema_parser = subparsers.add_parser("schema", help="Print the GraphQL schema for an OpenAPI document")
    schema_parser.add_argument("spec", help="Path or http(s) URL of the OpenAPI document")
    schema_parser.add_argument("--output", help="Write the result to this file instead of stdout")

    generate_parser = subparsers.add_parser("generate", help="Generate an engine configuration")
    generate_parser.add_argument("spec", help="Path or http(s) URL of the OpenAPI document")
    generate_parser.add_argument("--name", required=True, help="Data source name")
    generate_parser.add_argument("--url", required=True, help="Upstream GraphQL endpoint URL")
    generate_parser.add_argument(
        "--header",
        action="append",
        help="Extra upstream header as KEY=VALUE; may be repeated",
    )
    generate_parser.add_argument(
        "--parity-mode",
        action="store_true",
        help="Emit one field config per argument node instead of one per field",
    )
    generate_parser.add_argument("--output", help="Write the result to this file instead of stdout")

    subparsers.add_parser("serve", help="Run the HTTP service")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.log_level)

    if args.command == "serve":
        _serve(settings)
        return 0

    headers: Dict[str, str] = {}
    if args.command == "generate":
        try:
            headers = parse_headers(args.header)
        except argparse.ArgumentTypeError as exc:
            parser.error(str(exc))

    try:
        if args.command == "schema":
            result = asyncio.run(_schema(args, settings))
        else:
            result = asyncio.run(_generate(args, settings, headers))
    except json.JSONDecodeError as exc:
        logger.error("OpenAPI document is not valid JSON: %s", exc)
        return 1
    except SchemaGenerationError as exc:
        logger.error("Schema generation failed: %s", exc)
        return 1
    except (OSError, RuntimeError, httpx.HTTPError) as exc:
        logger.error("%s", exc)
        return 1

    if args.output:
        Path(args.output).write_text(result + "\n", encoding="utf-8")
        logger.info("Wrote %s", args.output)
    else:
        sys.stdout.write(result + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
