"""HTTP service exposing schema and data source generation."""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Optional

import httpx
from pydantic import BaseModel, Field, ValidationError, model_validator
from starlette.applications import Starlette
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from .config import Settings
from .generator import DataSourceGenerator
from .openapi import OpenAPILoader
from .schema_generation import (
    OpenAPISchemaGenerator,
    RemoteSchemaGenerator,
    SchemaGenerationError,
    SchemaGenerator,
)

logger = logging.getLogger(__name__)


class OpenAPISource(BaseModel):
    openapi: Optional[Dict[str, Any]] = None
    openapi_url: Optional[str] = None

    @model_validator(mode="after")
    def _one_source(self) -> "OpenAPISource":
        if (self.openapi is None) == (self.openapi_url is None):
            raise ValueError("Provide exactly one of openapi or openapi_url")
        return self


class SchemaRequest(OpenAPISource):
    pass


class DataSourceRequest(OpenAPISource):
    name: str
    url: str
    headers: Dict[str, str] = Field(default_factory=dict)
    parity_mode: Optional[bool] = None


def build_schema_generator(settings: Settings) -> SchemaGenerator:
    if settings.uses_remote_schema_service():
        return RemoteSchemaGenerator(
            service_url=settings.schema_service_url or "",
            timeout_seconds=settings.schema_service_timeout_seconds,
        )
    return OpenAPISchemaGenerator()


def build_app(
    settings: Settings,
    schema_generator_factory: Optional[Callable[[], SchemaGenerator]] = None,
) -> Starlette:
    factory = schema_generator_factory or (lambda: build_schema_generator(settings))
    loader = OpenAPILoader(
        cache_seconds=settings.openapi_cache_seconds,
        timeout_seconds=settings.schema_service_timeout_seconds,
    )

    async def resolve_document(data: OpenAPISource) -> Optional[Dict[str, Any]]:
        if data.openapi is not None:
            return data.openapi
        try:
            return await loader.load_spec(data.openapi_url or "")
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Failed to load OpenAPI document from %s: %s", data.openapi_url, exc)
            return None

    async def healthcheck(_request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok"})

    async def generate_schema(request: Request) -> JSONResponse:
        payload = await _read_json(request)
        if payload is None:
            return JSONResponse({"error": "Request body must be JSON"}, status_code=400)
        try:
            data = SchemaRequest(**payload)
        except ValidationError as exc:
            return JSONResponse(
                {"error": "Invalid payload", "details": exc.errors(include_context=False)}, status_code=422
            )

        document = await resolve_document(data)
        if document is None:
            return JSONResponse({"error": "Unable to fetch OpenAPI document"}, status_code=502)

        generator = DataSourceGenerator(json.dumps(document), schema_generator=factory())
        try:
            sdl = await generator.print_graphql_schema()
        except SchemaGenerationError as exc:
            logger.warning("Schema generation failed: %s", exc)
            return JSONResponse({"error": "Schema generation failed", "details": str(exc)}, status_code=422)
        return JSONResponse({"schema": sdl})

    async def generate_data_source(request: Request) -> JSONResponse:
        payload = await _read_json(request)
        if payload is None:
            return JSONResponse({"error": "Request body must be JSON"}, status_code=400)
        try:
            data = DataSourceRequest(**payload)
        except ValidationError as exc:
            return JSONResponse(
                {"error": "Invalid payload", "details": exc.errors(include_context=False)}, status_code=422
            )

        document = await resolve_document(data)
        if document is None:
            return JSONResponse({"error": "Unable to fetch OpenAPI document"}, status_code=502)

        parity_mode = settings.parity_mode if data.parity_mode is None else data.parity_mode
        generator = DataSourceGenerator(
            json.dumps(document), schema_generator=factory(), parity_mode=parity_mode
        )
        try:
            config = await generator.generate_data_source(data.name, data.url, data.headers or None)
        except SchemaGenerationError as exc:
            logger.warning("Schema generation failed for data source %s: %s", data.name, exc)
            return JSONResponse({"error": "Schema generation failed", "details": str(exc)}, status_code=422)
        return JSONResponse(config.to_dict())

    app = Starlette(
        routes=[
            Route("/health", healthcheck, methods=["GET"]),
            Route("/schema", generate_schema, methods=["POST"]),
            Route("/data-sources", generate_data_source, methods=["POST"]),
        ]
    )
    _attach_auth(app, settings)
    _attach_cors(app)
    return app


async def _read_json(request: Request) -> Optional[Dict[str, Any]]:
    try:
        payload = await request.json()
    except ValueError:
        return None
    return payload if isinstance(payload, dict) else None


def _attach_auth(app: Starlette, settings: Settings) -> None:
    if not settings.auth_token:
        logger.warning("No auth token configured; HTTP service accepts anonymous requests")
        return

    async def auth_middleware(request, call_next):  # type: ignore[no-untyped-def]
        if request.method == "OPTIONS":
            return await call_next(request)
        if request.url.path.endswith("/health"):
            return await call_next(request)

        auth_header = request.headers.get("authorization", "")
        token = auth_header.replace("Bearer", "").strip()
        if token == settings.auth_token:
            return await call_next(request)

        return JSONResponse({"error": "Unauthorized"}, status_code=401)

    app.add_middleware(BaseHTTPMiddleware, dispatch=auth_middleware)


def _attach_cors(app: Starlette) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
