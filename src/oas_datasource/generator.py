"""Data source generator: OpenAPI document to engine configuration."""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from graphql import GraphQLSchema

from .accumulator import ConfigurationAccumulator
from .logging import redact_payload
from .models import DataSourceKind, EngineConfiguration
from .openapi import load_document
from .schema_ast import SchemaAST, SchemaASTProvider
from .schema_generation import OpenAPISchemaGenerator, SchemaGenerator
from .traversal import ResolverBuilder


logger = logging.getLogger(__name__)


class DataSourceGenerator:
    """
    Builds a GraphQL data source configuration for an OpenAPI described API.

    The OpenAPI text is parsed on construction; a malformed document raises
    ``json.JSONDecodeError`` right away. The GraphQL schema is generated on the
    first call that needs it and reused for the lifetime of the instance.

    Example:
        generator = DataSourceGenerator(open("petstore.json").read())
        config = await generator.generate_data_source("petStore", "http://example.com")
    """

    def __init__(
        self,
        oas: str,
        schema_generator: Optional[SchemaGenerator] = None,
        parity_mode: bool = False,
    ) -> None:
        self.oas = load_document(oas)
        self.parity_mode = parity_mode
        self.schema_provider = SchemaASTProvider(self.oas, schema_generator or OpenAPISchemaGenerator())

    async def ensure_schema_ast(self) -> SchemaAST:
        return await self.schema_provider.ensure_schema_ast()

    async def generate_graphql_schema_ast(self) -> GraphQLSchema:
        schema_ast = await self.ensure_schema_ast()
        return schema_ast.schema

    async def print_graphql_schema(self) -> str:
        await self.ensure_schema_ast()
        return self.schema_provider.print_schema()

    async def generate_data_source(
        self,
        data_source_name: str,
        url: str,
        extra_headers: Optional[Mapping[str, str]] = None,
    ) -> EngineConfiguration:
        schema_ast = await self.ensure_schema_ast()

        logger.info(
            "Generating data source name=%s url=%s headers=%s",
            data_source_name,
            url,
            redact_payload(extra_headers or {}),
        )

        accumulator = ConfigurationAccumulator()
        accumulator.create_data_source(data_source_name, DataSourceKind.GRAPHQL, url, extra_headers)

        builder = ResolverBuilder(url, data_source_index=0, parity_mode=self.parity_mode)
        builder.build(schema_ast.document, accumulator)

        config = accumulator.finalize()
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Engine configuration %s", redact_payload(config.to_dict()))
        return config
