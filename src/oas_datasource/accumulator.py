"""In-progress engine configuration and resolver attribute helpers."""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional

from .models import (
    ArgumentsConfig,
    Attribute,
    DataSource,
    DataSourceKind,
    EngineConfiguration,
    Resolver,
)


logger = logging.getLogger(__name__)

URL_KEY = "url"
HEADERS_KEY = "headers"
ARGUMENTS_KEY = "arguments"

ROOT_TYPE_ORDER = ("Query", "Mutation")


def locate_or_create_arguments_slot(resolver: Resolver) -> int:
    for index, attribute in enumerate(resolver.attributes):
        if attribute.key == ARGUMENTS_KEY:
            return index

    resolver.attributes.append(Attribute(key=ARGUMENTS_KEY, value=ArgumentsConfig()))
    return len(resolver.attributes) - 1


def init_resolver(type_name: str, data_source_index: int, url: str) -> Resolver:
    return Resolver(
        type_name=type_name,
        data_source=data_source_index,
        field_names=[],
        attributes=[Attribute(key=URL_KEY, value=url)],
    )


class ConfigurationAccumulator:
    def __init__(self) -> None:
        self.configuration = EngineConfiguration()
        self._resolvers: Dict[str, Resolver] = {}

    def create_data_source(
        self,
        name: str,
        kind: DataSourceKind,
        url: str,
        extra_headers: Optional[Mapping[str, str]] = None,
    ) -> DataSource:
        default_attributes: List[Attribute] = [Attribute(key=URL_KEY, value=url)]

        if extra_headers:
            headers: Dict[str, str] = dict(extra_headers.items())
            default_attributes.append(Attribute(key=HEADERS_KEY, value=headers))

        data_source = DataSource(name=name, kind=kind, default_attributes=default_attributes)
        self.configuration.data_sources.insert(0, data_source)
        return data_source

    def add_resolver(self, resolver: Resolver) -> None:
        # never recreated within one generation call
        if resolver.type_name in self._resolvers:
            logger.warning("Resolver for %s already registered; keeping the first one", resolver.type_name)
            return
        self._resolvers[resolver.type_name] = resolver

    def finalize(self) -> EngineConfiguration:
        self.configuration.resolvers = [
            self._resolvers[type_name] for type_name in ROOT_TYPE_ORDER if type_name in self._resolvers
        ]
        return self.configuration
