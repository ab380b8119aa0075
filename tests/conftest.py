"""Shared pytest fixtures for data source generator tests."""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Dict

import pytest
from graphql import GraphQLSchema, build_schema

from oas_datasource.schema_generation import SchemaGenerator


PETS_DOCUMENT: Dict[str, Any] = {
    "openapi": "3.0.0",
    "info": {"title": "Pets", "version": "1.0.0"},
    "paths": {
        "/pets": {
            "get": {
                "responses": {
                    "200": {
                        "description": "A list of pets",
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "array",
                                    "items": {
                                        "type": "object",
                                        "properties": {"name": {"type": "string"}},
                                    },
                                }
                            }
                        },
                    }
                }
            }
        }
    },
}


class StaticSchemaGenerator(SchemaGenerator):
    """Schema generator stand-in that builds a fixed SDL and counts calls."""

    def __init__(self, sdl: str) -> None:
        self.sdl = sdl
        self.calls = 0

    async def generate(self, document: Dict[str, Any]) -> GraphQLSchema:
        self.calls += 1
        return build_schema(self.sdl)


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def petstore_text(fixtures_dir: Path) -> str:
    """Return the petstore OpenAPI document as text."""
    return (fixtures_dir / "petstore.json").read_text(encoding="utf-8")


@pytest.fixture
def pets_document() -> Dict[str, Any]:
    """Minimal document: one GET /pets returning a list of named objects."""
    return copy.deepcopy(PETS_DOCUMENT)


@pytest.fixture
def pets_with_limit_document(pets_document: Dict[str, Any]) -> Dict[str, Any]:
    """Same document with a `limit` query parameter on GET /pets."""
    pets_document["paths"]["/pets"]["get"]["parameters"] = [
        {"name": "limit", "in": "query", "required": False, "schema": {"type": "integer"}}
    ]
    return pets_document


@pytest.fixture
def pets_text(pets_document: Dict[str, Any]) -> str:
    return json.dumps(pets_document)


@pytest.fixture
def pets_with_limit_text(pets_with_limit_document: Dict[str, Any]) -> str:
    return json.dumps(pets_with_limit_document)


@pytest.fixture
def static_generator():
    """Return the StaticSchemaGenerator class for building stand-in generators."""
    return StaticSchemaGenerator
