"""Pytest configuration and fixtures for NodeFlow tests."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from nodeflow.core.cancellation import CancellationSignal
from nodeflow.core.config_cell import ConfigCell
from nodeflow.core.definition import NodeDefinition
from nodeflow.core.graph import GraphSnapshot
from nodeflow.core.instance import NodeContext, NodeInstance
from nodeflow.core.registry import NodeRegistry
from nodeflow.core.types import DataType, NodeStatus, PortSpec, RuntimeState
from nodeflow.logging import config as logging_config
from nodeflow.logging import configure_logging
from nodeflow.nodes import BUILTIN_NODES


class StaticNode(NodeDefinition):
    """Source node emitting ``config["value"]`` on port ``value``."""

    type_name = "static"
    OUTPUTS = {"value": PortSpec(dtype=DataType.ANY)}

    def __init__(self) -> None:
        self.calls: list[str] = []

    async def compute(self, inputs, config, context):
        self.calls.append(context.node_id)
        return {"value": config.get("value")}


class EchoNode(NodeDefinition):
    """Copies required input ``in`` to output ``out``."""

    type_name = "echo"
    INPUTS = {"in": PortSpec(dtype=DataType.ANY)}
    OUTPUTS = {"out": PortSpec(dtype=DataType.ANY)}

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.seen: list[dict[str, Any]] = []

    async def compute(self, inputs, config, context):
        self.calls.append(context.node_id)
        self.seen.append(dict(inputs))
        return {"out": inputs.get("in")}


class FailingNode(NodeDefinition):
    """Raises ValueError with ``config["message"]``."""

    type_name = "fail"
    INPUTS = {"in": PortSpec(dtype=DataType.ANY, required=False)}
    OUTPUTS = {"out": PortSpec(dtype=DataType.ANY)}

    async def compute(self, inputs, config, context):
        raise ValueError(config.get("message", "boom"))


class GateNode(NodeDefinition):
    """Blocks until ``release`` is set, honoring cancellation."""

    type_name = "gate"
    INPUTS = {"in": PortSpec(dtype=DataType.ANY, required=False)}
    OUTPUTS = {"out": PortSpec(dtype=DataType.ANY)}

    def __init__(self) -> None:
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.calls: list[str] = []

    async def compute(self, inputs, config, context):
        self.calls.append(context.node_id)
        self.started.set()
        await context.signal.run(self.release.wait())
        return {"out": config.get("value", "released")}


class RecordingSink:
    """State sink that records every transition."""

    def __init__(self) -> None:
        self.events: list[tuple[str, RuntimeState]] = []

    def __call__(self, node_id: str, state: RuntimeState) -> None:
        self.events.append((node_id, state))

    def statuses(self, node_id: str) -> list[NodeStatus]:
        return [state.status for nid, state in self.events if nid == node_id]

    def last(self, node_id: str) -> RuntimeState | None:
        states = [state for nid, state in self.events if nid == node_id]
        return states[-1] if states else None


@pytest.fixture(autouse=True)
def quiet_logging():
    """Keep the rich console quiet during tests."""
    configure_logging(enabled=False)
    yield
    logging_config._logger = None


@pytest.fixture
def registry() -> NodeRegistry:
    """Registry with the built-in types plus test-only types."""
    reg = NodeRegistry()
    for node_cls in BUILTIN_NODES:
        reg.register(node_cls())
    for node_cls in (StaticNode, EchoNode, FailingNode, GateNode):
        reg.register(node_cls())
    return reg


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def graph_factory():
    """Factory building a snapshot from compact node and edge tuples.

    Nodes are ``(id, type)`` or ``(id, type, data)``; edges are
    ``(source, source_port, target, target_port)``.
    """

    def _factory(nodes: list[tuple], edges: list[tuple] = ()) -> GraphSnapshot:
        return GraphSnapshot.build(
            nodes=[
                {"id": n[0], "type": n[1], "data": n[2] if len(n) > 2 else {}}
                for n in nodes
            ],
            edges=[
                {
                    "id": f"e{i}",
                    "source": src,
                    "sourceHandle": src_port,
                    "target": tgt,
                    "targetHandle": tgt_port,
                }
                for i, (src, src_port, tgt, tgt_port) in enumerate(edges, start=1)
            ],
        )

    return _factory


@pytest.fixture
def instances_factory(registry):
    """Factory building NodeInstances for every node in a snapshot."""

    def _factory(snapshot: GraphSnapshot, sink=None) -> dict[str, NodeInstance]:
        return {
            node.id: NodeInstance(
                node.id,
                node.type,
                registry.get(node.type),
                ConfigCell({**registry.get(node.type).default_config(), **node.data}),
                sink,
            )
            for node in snapshot.nodes
        }

    return _factory


@pytest.fixture
def context_factory():
    """Factory for a NodeContext around a single running instance."""

    def _factory(
        definition: NodeDefinition,
        config: dict[str, Any] | None = None,
        signal: CancellationSignal | None = None,
        sink=None,
        node_id: str = "n1",
    ) -> NodeContext:
        instance = NodeInstance(
            node_id, definition.type_name, definition, ConfigCell(config or {}), sink
        )
        instance.set_status(NodeStatus.RUNNING)
        graph = GraphSnapshot.build([{"id": node_id, "type": definition.type_name}])
        return NodeContext(instance, signal or CancellationSignal(), graph, {node_id: instance})

    return _factory
