"""OpenAPI to GraphQL schema generation.

Two generators share the same contract: given a parsed OpenAPI 3 document,
return a ``GraphQLSchema`` whose root types are ``Query`` and, when the
document has non-GET operations, ``Mutation``.

- ``OpenAPISchemaGenerator`` converts the document in process.
- ``RemoteSchemaGenerator`` delegates to an HTTP conversion service that
  answers with schema SDL.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import httpx
from graphql import (
    GraphQLArgument,
    GraphQLBoolean,
    GraphQLError,
    GraphQLField,
    GraphQLFloat,
    GraphQLInputField,
    GraphQLInputObjectType,
    GraphQLInt,
    GraphQLList,
    GraphQLNonNull,
    GraphQLObjectType,
    GraphQLScalarType,
    GraphQLSchema,
    GraphQLString,
    build_schema,
    get_named_type,
)
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .openapi import (
    OpenAPIOperation,
    camel_case,
    extract_operations,
    field_name_for,
    pascal_case,
    ref_name,
    resolve_ref,
    sanitize_name,
)


logger = logging.getLogger(__name__)

_SCALARS = {
    "string": GraphQLString,
    "integer": GraphQLInt,
    "number": GraphQLFloat,
    "boolean": GraphQLBoolean,
}


class SchemaGenerationError(Exception):
    pass


class SchemaGenerator(ABC):
    @abstractmethod
    async def generate(self, document: Dict[str, Any]) -> GraphQLSchema:
        ...


class OpenAPISchemaGenerator(SchemaGenerator):
    async def generate(self, document: Dict[str, Any]) -> GraphQLSchema:
        if not isinstance(document, dict):
            raise SchemaGenerationError("OpenAPI document must be an object")
        version = str(document.get("openapi") or "")
        if not version.startswith("3."):
            raise SchemaGenerationError(f"Unsupported OpenAPI version: {version or 'missing'}")
        if not isinstance(document.get("paths"), dict):
            raise SchemaGenerationError("OpenAPI document has no paths")

        try:
            operations = extract_operations(document)
        except (KeyError, AttributeError, TypeError) as exc:
            raise SchemaGenerationError(f"Malformed OpenAPI document: {exc}") from exc

        return _SchemaBuilder(document).build(operations)


class SchemaServiceResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    schema_sdl: str = Field(alias="schema")


class RemoteSchemaGenerator(SchemaGenerator):
    def __init__(
        self,
        service_url: str,
        timeout_seconds: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.service_url = service_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    async def generate(self, document: Dict[str, Any]) -> GraphQLSchema:
        url = f"{self.service_url}/schema"
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self.transport) as client:
                response = await client.post(url, json={"openapi": document})
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise SchemaGenerationError(
                f"Schema service rejected document ({exc.response.status_code}): {exc.response.text}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise SchemaGenerationError(f"Schema service unavailable: {exc}") from exc

        try:
            result = SchemaServiceResponse.model_validate(payload)
        except ValidationError as exc:
            raise SchemaGenerationError("Unexpected schema service response shape") from exc

        try:
            return build_schema(result.schema_sdl)
        except (GraphQLError, TypeError) as exc:
            raise SchemaGenerationError(f"Schema service returned invalid SDL: {exc}") from exc


class _SchemaBuilder:
    def __init__(self, spec: Dict[str, Any]) -> None:
        self.spec = spec
        self._object_types: Dict[str, GraphQLObjectType] = {}
        self._input_types: Dict[str, GraphQLInputObjectType] = {}
        self._json_scalar: Optional[GraphQLScalarType] = None

    def build(self, operations: List[OpenAPIOperation]) -> GraphQLSchema:
        query_fields: Dict[str, GraphQLField] = {}
        mutation_fields: Dict[str, GraphQLField] = {}

        for operation in operations:
            name = field_name_for(operation)
            target = query_fields if operation.is_query else mutation_fields
            if name in target:
                logger.warning(
                    "Field %s already defined; %s %s replaces it", name, operation.method, operation.path
                )
            target[name] = self._root_field(name, operation)

        if not query_fields and not mutation_fields:
            raise SchemaGenerationError("OpenAPI document defines no operations")

        query_type = GraphQLObjectType("Query", query_fields) if query_fields else None
        mutation_type = GraphQLObjectType("Mutation", mutation_fields) if mutation_fields else None
        try:
            schema = GraphQLSchema(query=query_type, mutation=mutation_type)
        except (GraphQLError, TypeError) as exc:
            raise SchemaGenerationError(f"Generated schema is invalid: {exc}") from exc

        logger.debug(
            "Generated schema with %s query and %s mutation fields", len(query_fields), len(mutation_fields)
        )
        return schema

    def _root_field(self, name: str, operation: OpenAPIOperation) -> GraphQLField:
        type_hint = pascal_case(name)
        args: Dict[str, GraphQLArgument] = {}

        for parameter in operation.parameters:
            arg_type = self._input_type(parameter.schema, type_hint + pascal_case(parameter.name))
            if parameter.required:
                arg_type = GraphQLNonNull(arg_type)
            args[sanitize_name(parameter.name)] = GraphQLArgument(arg_type, description=parameter.description)

        if operation.request_body_schema is not None:
            body_type = self._input_type(operation.request_body_schema, f"{type_hint}Body")
            named = get_named_type(body_type).name
            arg_name = camel_case(named) if named.endswith("Input") else camel_case(f"{named}Input")
            args[arg_name] = GraphQLArgument(GraphQLNonNull(body_type))

        if operation.response_schema is not None:
            return_type = self._output_type(operation.response_schema, type_hint)
        else:
            return_type = GraphQLString

        return GraphQLField(return_type, args=args, description=operation.description or None)

    def _output_type(self, schema: Dict[str, Any], hint: str) -> Any:
        schema, name = self._deref(schema, hint)
        schema_type = self._schema_type(schema)

        if schema_type == "array":
            return GraphQLList(self._output_type(schema.get("items") or {}, f"{name}Item"))
        if schema_type == "object":
            properties = self._properties(schema)
            if not properties:
                return self._json()
            existing = self._object_types.get(name)
            if existing is not None:
                return existing
            fields: Dict[str, GraphQLField] = {}
            object_type = GraphQLObjectType(name, lambda: fields, description=schema.get("description"))
            self._object_types[name] = object_type
            for prop, prop_schema in properties.items():
                fields[sanitize_name(prop)] = GraphQLField(
                    self._output_type(prop_schema or {}, name + pascal_case(prop)),
                    description=(prop_schema or {}).get("description"),
                )
            return object_type
        return _SCALARS.get(schema_type, GraphQLString)

    def _input_type(self, schema: Dict[str, Any], hint: str) -> Any:
        schema, name = self._deref(schema, hint)
        schema_type = self._schema_type(schema)

        if schema_type == "array":
            return GraphQLList(self._input_type(schema.get("items") or {}, f"{name}Item"))
        if schema_type == "object":
            properties = self._properties(schema)
            if not properties:
                return self._json()
            input_name = name if name.endswith("Input") else f"{name}Input"
            existing = self._input_types.get(input_name)
            if existing is not None:
                return existing
            fields: Dict[str, GraphQLInputField] = {}
            input_type = GraphQLInputObjectType(input_name, lambda: fields, description=schema.get("description"))
            self._input_types[input_name] = input_type
            required = set(schema.get("required") or [])
            for prop, prop_schema in properties.items():
                field_type = self._input_type(prop_schema or {}, name + pascal_case(prop))
                if prop in required:
                    field_type = GraphQLNonNull(field_type)
                fields[sanitize_name(prop)] = GraphQLInputField(
                    field_type, description=(prop_schema or {}).get("description")
                )
            return input_type
        return _SCALARS.get(schema_type, GraphQLString)

    def _deref(self, schema: Dict[str, Any], hint: str) -> tuple[Dict[str, Any], str]:
        if "$ref" in schema:
            ref = schema["$ref"]
            try:
                target = resolve_ref(self.spec, ref)
            except KeyError as exc:
                raise SchemaGenerationError(str(exc.args[0])) from exc
            return target, pascal_case(ref_name(ref))
        title = schema.get("title")
        if title:
            return schema, pascal_case(title)
        return schema, hint

    def _schema_type(self, schema: Dict[str, Any]) -> Optional[str]:
        schema_type = schema.get("type")
        if isinstance(schema_type, list):
            # OpenAPI 3.1 nullable form, e.g. ["string", "null"]
            schema_type = next((item for item in schema_type if item != "null"), None)
        if schema_type:
            return schema_type
        if "properties" in schema or "allOf" in schema:
            return "object"
        if "items" in schema:
            return "array"
        return None

    def _properties(self, schema: Dict[str, Any]) -> Dict[str, Any]:
        properties: Dict[str, Any] = {}
        for part in schema.get("allOf") or []:
            part, _ = self._deref(part, "")
            properties.update(self._properties(part))
        properties.update(schema.get("properties") or {})
        return properties

    def _json(self) -> GraphQLScalarType:
        if self._json_scalar is None:
            self._json_scalar = GraphQLScalarType(
                "JSON", description="Arbitrary JSON value for schemas without declared properties."
            )
        return self._json_scalar
