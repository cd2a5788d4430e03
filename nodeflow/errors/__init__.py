"""Error types for NodeFlow."""

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
