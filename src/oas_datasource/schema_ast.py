"""Memoized GraphQL schema and syntax tree derived from an OpenAPI document."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from graphql import DocumentNode, GraphQLSchema, parse, print_schema

from .schema_generation import SchemaGenerator


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchemaAST:
    schema: GraphQLSchema
    document: DocumentNode


class SchemaASTProvider:
    """Derives the schema once per provider and serves the cached copy after that.

    The document is re-parsed from the printed schema so the traversal walks the
    canonical SDL rather than whatever AST the generator may have attached.
    There is no lock around the first derivation: two concurrent first calls
    can both reach the generator.
    """

    def __init__(self, document: Dict[str, Any], schema_generator: SchemaGenerator) -> None:
        self.document = document
        self.schema_generator = schema_generator
        self._schema: Optional[GraphQLSchema] = None
        self._schema_document: Optional[DocumentNode] = None

    async def ensure_schema_ast(self) -> SchemaAST:
        if self._schema is None:
            logger.info("Generating GraphQL schema with %s", type(self.schema_generator).__name__)
            self._schema = await self.schema_generator.generate(self.document)

        if self._schema_document is None:
            self._schema_document = parse(print_schema(self._schema))

        return SchemaAST(schema=self._schema, document=self._schema_document)

    def print_schema(self) -> str:
        if self._schema is None:
            raise RuntimeError("Schema has not been generated yet")
        return print_schema(self._schema)
