"""Engine configuration models produced by the data source generator."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class DataSourceKind(str, Enum):
    HTTP_JSON = "http_json"
    FAST_HTTP_JSON = "fast_http_json"
    GRAPHQL = "graphql"
    STATIC = "static"


class ArgumentSource(str, Enum):
    OBJECT_FIELD = "object_field"
    FIELD_ARGUMENT = "field_argument"


@dataclass
class Argument:
    name: str
    source: ArgumentSource
    source_path: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "source": self.source.value}
        if self.source_path is not None:
            data["source_path"] = list(self.source_path)
        return data


@dataclass
class FieldConfig:
    field_name: str
    arguments: List[Argument] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field_name": self.field_name,
            "arguments": [argument.to_dict() for argument in self.arguments],
        }


@dataclass
class ArgumentsConfig:
    fields: List[FieldConfig] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"fields": [field_config.to_dict() for field_config in self.fields]}


@dataclass
class Attribute:
    key: str
    value: Any

    def to_dict(self) -> Dict[str, Any]:
        value = self.value
        if isinstance(value, ArgumentsConfig):
            value = value.to_dict()
        elif isinstance(value, dict):
            value = dict(value)
        return {"key": self.key, "value": value}


@dataclass
class DataSource:
    name: str
    kind: DataSourceKind
    default_attributes: List[Attribute] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "name": self.name,
            "default_attributes": [attribute.to_dict() for attribute in self.default_attributes],
        }


@dataclass
class Resolver:
    type_name: str
    data_source: int
    field_names: List[str] = field(default_factory=list)
    attributes: List[Attribute] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type_name": self.type_name,
            "data_source": self.data_source,
            "field_names": list(self.field_names),
            "attributes": [attribute.to_dict() for attribute in self.attributes],
        }


@dataclass
class Mapping:
    type_name: str
    field_name: str
    disable_default_mapping: Optional[bool] = None
    path: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type_name": self.type_name, "field_name": self.field_name}
        if self.disable_default_mapping is not None:
            data["disable_default_mapping"] = self.disable_default_mapping
        if self.path is not None:
            data["path"] = list(self.path)
        return data


@dataclass
class EngineConfiguration:
    data_sources: List[DataSource] = field(default_factory=list)
    resolvers: List[Resolver] = field(default_factory=list)
    mappings: List[Mapping] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data_sources": [data_source.to_dict() for data_source in self.data_sources],
            "resolvers": [resolver.to_dict() for resolver in self.resolvers],
            "mappings": [mapping.to_dict() for mapping in self.mappings],
        }
