"""OpenAPI document loader and operation parser."""

from __future__ import annotations

import json
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import httpx


logger = logging.getLogger(__name__)

OPERATION_METHODS = ("get", "post", "put", "patch", "delete")
ARGUMENT_LOCATIONS = {"path", "query", "header"}
RESPONSE_CODES = ("200", "201", "2XX", "2xx", "default")


def load_document(text: str) -> Dict[str, Any]:
    """Parse OpenAPI text. Decoding errors propagate to the caller."""
    return json.loads(text)


@dataclass(frozen=True)
class OpenAPIParameter:
    name: str
    location: str
    required: bool
    schema: Dict[str, Any]
    description: Optional[str] = None


@dataclass(frozen=True)
class OpenAPIOperation:
    operation_id: Optional[str]
    method: str
    path: str
    description: str
    parameters: Tuple[OpenAPIParameter, ...] = ()
    request_body_schema: Optional[Dict[str, Any]] = None
    response_schema: Optional[Dict[str, Any]] = None

    @property
    def is_query(self) -> bool:
        return self.method == "get"


class OpenAPILoader:
    def __init__(self, cache_seconds: int = 3600, timeout_seconds: float = 30) -> None:
        self.cache_seconds = cache_seconds
        self.timeout_seconds = timeout_seconds
        self._cache: Dict[str, Tuple[float, Dict[str, Any]]] = {}

    async def load_spec(self, url: str) -> Optional[Dict[str, Any]]:
        cached = self._cache.get(url)
        if cached and time.time() - cached[0] < self.cache_seconds:
            return cached[1]

        text = await self.load_text(url)
        if text is None:
            return None
        data = load_document(text)

        self._cache[url] = (time.time(), data)
        return data

    async def load_text(self, url: str) -> Optional[str]:
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            response = await client.get(url)
            if response.status_code != 200:
                logger.warning("Failed to fetch OpenAPI spec: %s (%s)", url, response.status_code)
                return None
            return response.text


def extract_operations(spec: Dict[str, Any]) -> List[OpenAPIOperation]:
    operations: List[OpenAPIOperation] = []
    paths = spec.get("paths") or {}

    for path, methods in paths.items():
        shared_parameters = (methods or {}).get("parameters") or []
        for method, operation in (methods or {}).items():
            if method.lower() not in OPERATION_METHODS:
                continue
            operation = operation or {}
            description = operation.get("description") or operation.get("summary") or ""
            parameters = _merge_parameters(spec, shared_parameters, operation.get("parameters") or [])

            operations.append(
                OpenAPIOperation(
                    operation_id=operation.get("operationId"),
                    method=method.lower(),
                    path=path,
                    description=description,
                    parameters=tuple(parameters),
                    request_body_schema=_extract_body_schema(spec, operation.get("requestBody") or {}),
                    response_schema=_extract_response_schema(spec, operation.get("responses") or {}),
                )
            )

    return operations


def resolve_ref(spec: Dict[str, Any], ref: str) -> Dict[str, Any]:
    if not ref.startswith("#/"):
        raise KeyError(f"Unsupported reference: {ref}")
    node: Any = spec
    for part in ref[2:].split("/"):
        part = part.replace("~1", "/").replace("~0", "~")
        if not isinstance(node, dict) or part not in node:
            raise KeyError(f"Unresolved reference: {ref}")
        node = node[part]
    return node


def ref_name(ref: str) -> str:
    return ref.rsplit("/", 1)[-1]


def field_name_for(operation: OpenAPIOperation) -> str:
    """GraphQL field name for an operation.

    ``operationId`` wins when present. Otherwise GET operations are named after
    their static path segments (``/pets/{petId}`` -> ``petsByPetId``) and other
    methods get the method as prefix (``post /pets`` -> ``postPets``).
    """
    if operation.operation_id:
        return camel_case(operation.operation_id)

    segments = [segment for segment in operation.path.split("/") if segment]
    static = [segment for segment in segments if not segment.startswith("{")]
    params = [segment.strip("{}") for segment in segments if segment.startswith("{")]

    words = static or ["root"]
    if not operation.is_query:
        words = [operation.method, *words]
    name = camel_case(" ".join(words))
    if params:
        name += "By" + "And".join(pascal_case(param) for param in params)
    return name


def sanitize_name(name: str) -> str:
    cleaned = re.sub(r"[^_0-9A-Za-z]", "_", name)
    if not cleaned or cleaned[0].isdigit():
        cleaned = f"_{cleaned}"
    return cleaned


def camel_case(name: str) -> str:
    words = [word for word in re.split(r"[^0-9A-Za-z]+", name) if word]
    if not words:
        return sanitize_name(name)
    head, *rest = words
    result = head[0].lower() + head[1:] + "".join(word[0].upper() + word[1:] for word in rest)
    return sanitize_name(result)


def pascal_case(name: str) -> str:
    camel = camel_case(name)
    return camel[0].upper() + camel[1:]


def _merge_parameters(
    spec: Dict[str, Any],
    shared_parameters: List[Dict[str, Any]],
    operation_parameters: List[Dict[str, Any]],
) -> List[OpenAPIParameter]:
    merged: Dict[Tuple[str, str], OpenAPIParameter] = {}

    for parameter in [*shared_parameters, *operation_parameters]:
        if "$ref" in parameter:
            parameter = resolve_ref(spec, parameter["$ref"])
        name = parameter.get("name")
        location = parameter.get("in", "query")
        if not name or location not in ARGUMENT_LOCATIONS:
            continue
        # operation-level parameters override path-level ones with the same name and location
        merged[(name, location)] = OpenAPIParameter(
            name=name,
            location=location,
            required=bool(parameter.get("required", location == "path")),
            schema=parameter.get("schema") or {},
            description=parameter.get("description"),
        )

    return list(merged.values())


def _extract_body_schema(spec: Dict[str, Any], request_body: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    if "$ref" in request_body:
        request_body = resolve_ref(spec, request_body["$ref"])
    return _json_schema(request_body.get("content") or {})


def _extract_response_schema(spec: Dict[str, Any], responses: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    for code in RESPONSE_CODES:
        response = responses.get(code)
        if response is None:
            continue
        if "$ref" in response:
            response = resolve_ref(spec, response["$ref"])
        schema = _json_schema(response.get("content") or {})
        if schema is not None:
            return schema
    return None


def _json_schema(content: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    for media_type, body in content.items():
        if media_type == "application/json" or media_type.endswith("+json"):
            return (body or {}).get("schema")
    return None
