"""Edge and graph validation for the editor.

The engine trusts the snapshot it is given; these checks are what the
editor runs when a connection is drawn or before a run is started.
"""

from __future__ import annotations

from typing import Any, Mapping

from nodeflow.core.graph import GraphEdge, GraphSnapshot
from nodeflow.core.registry import NodeRegistry, get_registry
from nodeflow.errors.exceptions import InvalidConnectionError


def validate_connection(
    snapshot: GraphSnapshot,
    edge: GraphEdge,
    registry: NodeRegistry | None = None,
    configs: Mapping[str, Mapping[str, Any]] | None = None,
) -> None:
    """Check that ``edge`` joins a declared output to a compatible declared input.

    Args:
        snapshot: Graph containing both endpoints.
        edge: Connection to check. It need not be part of ``snapshot`` yet.
        registry: Node type registry. Defaults to the built-in registry.
        configs: Current configuration per node id, used to resolve
            configuration-dependent input ports. Falls back to node ``data``.

    Raises:
        InvalidConnectionError: If an endpoint or port is unknown or the
            port data types do not match.
        UnknownNodeTypeError: If an endpoint's type is not registered.
    """
    if registry is None:
        registry = get_registry()

    source = snapshot.get_node(edge.source)
    target = snapshot.get_node(edge.target)
    if source is None:
        raise InvalidConnectionError(edge.id, f"source node '{edge.source}' does not exist")
    if target is None:
        raise InvalidConnectionError(edge.id, f"target node '{edge.target}' does not exist")

    source_def = registry.get(source.type)
    target_def = registry.get(target.type)

    outputs = source_def.output_ports()
    if edge.source_handle not in outputs:
        raise InvalidConnectionError(
            edge.id,
            f"'{source.type}' has no output port '{edge.source_handle}'",
        )

    target_config = (configs or {}).get(target.id, target.data)
    inputs = target_def.current_input_ports(target_config)
    if edge.target_handle not in inputs:
        raise InvalidConnectionError(
            edge.id,
            f"'{target.type}' has no input port '{edge.target_handle}'",
        )

    out_type = outputs[edge.source_handle]
    in_type = inputs[edge.target_handle]
    if not in_type.accepts(out_type):
        raise InvalidConnectionError(
            edge.id,
            f"cannot connect {out_type.value} output to {in_type.value} input",
        )


def validate_graph(
    snapshot: GraphSnapshot,
    registry: NodeRegistry | None = None,
    configs: Mapping[str, Mapping[str, Any]] | None = None,
) -> None:
    """Validate every node type and edge in ``snapshot``.

    Raises:
        UnknownNodeTypeError: If a node's type is not registered.
        InvalidConnectionError: On the first invalid edge.
    """
    if registry is None:
        registry = get_registry()
    for node in snapshot.nodes:
        registry.get(node.type)
    for edge in snapshot.edges:
        validate_connection(snapshot, edge, registry, configs)


def has_cycle(snapshot: GraphSnapshot) -> bool:
    """Check whether the edges form a cycle.

    Cycles are allowed; a graph with one relies on nodes that reactivate
    their upstream to keep iterating, and on those nodes to stop.
    """
    visited: set[str] = set()
    rec_stack: set[str] = set()

    def dfs(node_id: str) -> bool:
        visited.add(node_id)
        rec_stack.add(node_id)

        for neighbor in snapshot.successors(node_id):
            if neighbor not in visited:
                if dfs(neighbor):
                    return True
            elif neighbor in rec_stack:
                return True

        rec_stack.remove(node_id)
        return False

    for node_id in snapshot.node_ids:
        if node_id not in visited:
            if dfs(node_id):
                return True

    return False
