"""NodeFlow core components."""

from nodeflow.core.types import (
    DataType,
    PortSpec,
    NodeStatus,
    RuntimeState,
    RunStatus,
    RunResult,
)
from nodeflow.core.config import EngineConfig
from nodeflow.core.config_cell import ConfigCell
from nodeflow.core.cancellation import CancellationSignal
from nodeflow.core.graph import GraphNode, GraphEdge, GraphSnapshot
from nodeflow.core.definition import NodeDefinition
from nodeflow.core.registry import NodeRegistry, get_registry
from nodeflow.core.instance import NodeContext, NodeInstance
from nodeflow.core.scheduler import ActiveRun, ExecutionHandle, Orchestrator
from nodeflow.core.bridge import ConfigBridge
from nodeflow.core.validation import has_cycle, validate_connection, validate_graph

__all__ = [
    "DataType",
    "PortSpec",
    "NodeStatus",
    "RuntimeState",
    "RunStatus",
    "RunResult",
    "EngineConfig",
    "ConfigCell",
    "CancellationSignal",
    "GraphNode",
    "GraphEdge",
    "GraphSnapshot",
    "NodeDefinition",
    "NodeRegistry",
    "get_registry",
    "NodeContext",
    "NodeInstance",
    "ActiveRun",
    "ExecutionHandle",
    "Orchestrator",
    "ConfigBridge",
    "has_cycle",
    "validate_connection",
    "validate_graph",
]
