"""Node type registry.

Maps a node type tag to its shared NodeDefinition.
"""

from __future__ import annotations

from typing import Callable, TypeVar

from nodeflow.core.definition import NodeDefinition
from nodeflow.errors.exceptions import UnknownNodeTypeError

D = TypeVar("D", bound=type[NodeDefinition])


class NodeRegistry:
    """Lookup table from type tag to node definition.

    Example:
        >>> registry = NodeRegistry()
        >>> registry.register(TextNode())
        >>> registry.resolve("text")
        TextNode(type='text')
    """

    def __init__(self) -> None:
        self._definitions: dict[str, NodeDefinition] = {}

    def register(self, definition: NodeDefinition, *, type_name: str | None = None) -> None:
        """Register a definition under its type tag (or an explicit one)."""
        name = type_name or definition.type_name
        if not name:
            raise ValueError(f"{definition!r} has no type_name")
        self._definitions[name] = definition

    def node(self, type_name: str | None = None) -> Callable[[D], D]:
        """Class decorator that registers one instance of the decorated type.

        Usage:
            @registry.node()
            class MyNode(NodeDefinition):
                ...
        """

        def decorator(cls: D) -> D:
            self.register(cls(), type_name=type_name)
            return cls

        return decorator

    def unregister(self, type_name: str) -> bool:
        """Remove a type. Returns True if found."""
        return self._definitions.pop(type_name, None) is not None

    def resolve(self, type_name: str) -> NodeDefinition | None:
        """Definition for ``type_name``, or None if unknown."""
        return self._definitions.get(type_name)

    def get(self, type_name: str) -> NodeDefinition:
        """Definition for ``type_name``.

        Raises:
            UnknownNodeTypeError: If the type is not registered.
        """
        definition = self._definitions.get(type_name)
        if definition is None:
            raise UnknownNodeTypeError(type_name, self.list_types())
        return definition

    def list_types(self) -> list[str]:
        """All registered type tags."""
        return list(self._definitions.keys())

    def describe_all(self) -> dict[str, dict]:
        return {name: d.describe() for name, d in self._definitions.items()}

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)


_default_registry: NodeRegistry | None = None


def get_registry() -> NodeRegistry:
    """Get the default registry, creating it lazily with the built-in node types."""
    global _default_registry
    if _default_registry is None:
        _default_registry = NodeRegistry()
        _register_defaults(_default_registry)
    return _default_registry


def _register_defaults(registry: NodeRegistry) -> None:
    """Register built-in node types."""
    from nodeflow.nodes import BUILTIN_NODES

    for node_cls in BUILTIN_NODES:
        registry.register(node_cls())
