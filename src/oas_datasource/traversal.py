"""Single-pass resolver builder over a GraphQL schema document.

The walk is pre-order and keeps one ``RootState`` per root type. Object type
definitions named ``Query`` or ``Mutation`` open a resolver, field definitions
directly under a recorded root node are appended to that resolver, and input
value definitions directly under the root's current field add a field config
to the resolver's ``arguments`` attribute.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from graphql import (
    DocumentNode,
    FieldDefinitionNode,
    InputValueDefinitionNode,
    ObjectTypeDefinitionNode,
    Visitor,
    visit,
)

from .accumulator import (
    ROOT_TYPE_ORDER,
    ConfigurationAccumulator,
    init_resolver,
    locate_or_create_arguments_slot,
)
from .models import Argument, ArgumentsConfig, ArgumentSource, FieldConfig, Resolver


logger = logging.getLogger(__name__)

NOT_FOUND = -1


@dataclass
class RootState:
    node: Optional[ObjectTypeDefinitionNode] = None
    resolver: Optional[Resolver] = None
    current_field: Optional[FieldDefinitionNode] = None
    arguments_index: int = NOT_FOUND
    configured_field: Optional[FieldDefinitionNode] = None


@dataclass
class TraversalContext:
    url: str
    data_source_index: int = 0
    parity_mode: bool = False
    roots: Dict[str, RootState] = field(
        default_factory=lambda: {type_name: RootState() for type_name in ROOT_TYPE_ORDER}
    )

    def resolvers(self) -> List[Resolver]:
        return [state.resolver for state in self.roots.values() if state.resolver is not None]


def collect_argument_names(argument_nodes: Optional[Iterable[InputValueDefinitionNode]]) -> List[str]:
    if argument_nodes is None:
        return []
    return [node.name.value for node in argument_nodes]


def add_resolver_field_arguments(
    resolver: Resolver, arguments_index: int, field_name: str, argument_names: List[str]
) -> None:
    if arguments_index < 0:
        return

    arguments_config: ArgumentsConfig = resolver.attributes[arguments_index].value
    arguments_config.fields.append(
        FieldConfig(
            field_name=field_name,
            arguments=[Argument(name=name, source=ArgumentSource.FIELD_ARGUMENT) for name in argument_names],
        )
    )


def _enclosing_node(ancestors: List[Any]) -> Any:
    # ancestors excludes the immediate parent list, so the last entry is the owning node
    return ancestors[-1] if ancestors else None


class ResolverVisitor(Visitor):
    def __init__(self, context: TraversalContext) -> None:
        super().__init__()
        self.context = context

    def enter_object_type_definition(self, node: ObjectTypeDefinitionNode, *_args: Any) -> None:
        state = self.context.roots.get(node.name.value)
        if state is None:
            return
        if state.node is not None:
            logger.warning("Root type %s defined more than once; ignoring repeat", node.name.value)
            return

        state.node = node
        state.resolver = init_resolver(node.name.value, self.context.data_source_index, self.context.url)

    def enter_field_definition(
        self, node: FieldDefinitionNode, _key: Any, _parent: Any, _path: Any, ancestors: List[Any]
    ) -> None:
        enclosing = _enclosing_node(ancestors)
        for state in self.context.roots.values():
            if state.node is None or enclosing is not state.node:
                continue
            state.current_field = node
            if state.resolver is not None:
                state.resolver.field_names.append(node.name.value)
            return

    def enter_input_value_definition(
        self, node: InputValueDefinitionNode, _key: Any, _parent: Any, _path: Any, ancestors: List[Any]
    ) -> None:
        enclosing = _enclosing_node(ancestors)
        for state in self.context.roots.values():
            if state.current_field is None or enclosing is not state.current_field:
                continue
            if state.resolver is not None:
                self._add_field_arguments(state, state.resolver, state.current_field)
            return

    def _add_field_arguments(
        self, state: RootState, resolver: Resolver, current_field: FieldDefinitionNode
    ) -> None:
        if state.arguments_index < 0:
            state.arguments_index = locate_or_create_arguments_slot(resolver)

        # outside parity mode a field gets one config, on its first argument
        if not self.context.parity_mode and state.configured_field is current_field:
            return

        argument_names = collect_argument_names(current_field.arguments)
        add_resolver_field_arguments(
            resolver, state.arguments_index, current_field.name.value, argument_names
        )
        state.configured_field = current_field


class ResolverBuilder:
    def __init__(self, url: str, data_source_index: int = 0, parity_mode: bool = False) -> None:
        self.url = url
        self.data_source_index = data_source_index
        self.parity_mode = parity_mode

    def build(self, document: DocumentNode, accumulator: ConfigurationAccumulator) -> TraversalContext:
        context = TraversalContext(
            url=self.url,
            data_source_index=self.data_source_index,
            parity_mode=self.parity_mode,
        )
        visit(document, ResolverVisitor(context))

        resolvers = context.resolvers()
        if not resolvers:
            logger.warning("Schema defines neither Query nor Mutation; no resolvers generated")
        for resolver in resolvers:
            logger.debug("Resolver %s covers %s fields", resolver.type_name, len(resolver.field_names))
            accumulator.add_resolver(resolver)
        return context
