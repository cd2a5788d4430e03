"""NodeFlow - execution engine for visual node-graph workflows.

NodeFlow runs a graph of text, LLM and API processing nodes: it resolves
readiness along edges, executes ready nodes concurrently, accepts live
configuration edits while a run is active and supports cooperative
cancellation.

Example:
    >>> from nodeflow import GraphSnapshot, Orchestrator
    >>> snapshot = GraphSnapshot.build(
    ...     nodes=[
    ...         {"id": "a", "type": "text", "data": {"text": "foo"}},
    ...         {"id": "b", "type": "text", "data": {"text": "bar"}},
    ...         {"id": "c", "type": "concat"},
    ...     ],
    ...     edges=[
    ...         {"id": "e1", "source": "a", "sourceHandle": "out_text",
    ...          "target": "c", "targetHandle": "in_1"},
    ...         {"id": "e2", "source": "b", "sourceHandle": "out_text",
    ...          "target": "c", "targetHandle": "in_2"},
    ...     ],
    ... )
    >>> result = await Orchestrator().run(snapshot)
    >>> result.states["c"].output
    {'text': 'foo\\nbar'}
"""

__version__ = "0.1.0"

# Core exports
from nodeflow.core.types import (
    DataType,
    NodeStatus,
    PortSpec,
    RunResult,
    RunStatus,
    RuntimeState,
)
from nodeflow.core.config import EngineConfig
from nodeflow.core.config_cell import ConfigCell
from nodeflow.core.cancellation import CancellationSignal
from nodeflow.core.graph import GraphEdge, GraphNode, GraphSnapshot
from nodeflow.core.definition import NodeDefinition
from nodeflow.core.registry import NodeRegistry, get_registry
from nodeflow.core.instance import NodeContext, NodeInstance
from nodeflow.core.scheduler import ExecutionHandle, Orchestrator
from nodeflow.core.bridge import ConfigBridge
from nodeflow.core.validation import validate_connection, validate_graph

# Error exports
from nodeflow.errors.exceptions import (
    ConfigurationError,
    DuplicateNodeError,
    ExternalCallError,
    GraphError,
    InvalidConfigError,
    InvalidConnectionError,
    MissingFieldError,
    NodeCancelledError,
    NodeExecutionError,
    NodeFlowError,
    RunStateError,
    UnknownNodeTypeError,
)

__all__ = [
    # Version
    "__version__",
    # Types
    "DataType",
    "NodeStatus",
    "PortSpec",
    "RunResult",
    "RunStatus",
    "RuntimeState",
    # Graph
    "GraphEdge",
    "GraphNode",
    "GraphSnapshot",
    # Engine
    "CancellationSignal",
    "ConfigBridge",
    "ConfigCell",
    "EngineConfig",
    "ExecutionHandle",
    "NodeContext",
    "NodeDefinition",
    "NodeInstance",
    "NodeRegistry",
    "Orchestrator",
    "get_registry",
    "validate_connection",
    "validate_graph",
    # Errors
    "NodeFlowError",
    "ConfigurationError",
    "MissingFieldError",
    "InvalidConfigError",
    "ExternalCallError",
    "NodeCancelledError",
    "NodeExecutionError",
    "GraphError",
    "UnknownNodeTypeError",
    "DuplicateNodeError",
    "InvalidConnectionError",
    "RunStateError",
]


def __getattr__(name: str):
    """Lazy import for node types and settings."""
    if name in ("TextNode", "ConcatNode", "DisplayNode", "DelayNode", "LLMNode", "ApiNode"):
        import nodeflow.nodes

        return getattr(nodeflow.nodes, name)
    elif name in ("Settings", "get_settings"):
        import nodeflow.settings

        return getattr(nodeflow.settings, name)
    elif name in ("configure_logging", "get_logger"):
        import nodeflow.logging

        return getattr(nodeflow.logging, name)

    raise AttributeError(f"module 'nodeflow' has no attribute '{name}'")
