"""NodeFlow exception hierarchy.

All exceptions inherit from NodeFlowError for easy catching.
Each exception includes a `retryable` flag to indicate if the operation can be retried.
The engine itself never retries; the flag is informational for callers
deciding whether a fresh run is worth starting.
"""

from __future__ import annotations


class NodeFlowError(Exception):
    """Base exception for all NodeFlow errors."""

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


# Configuration Errors
class ConfigurationError(NodeFlowError):
    """A node's configuration cannot be used to run it."""

    def __init__(self, message: str) -> None:
        super().__init__(message, retryable=False)


class MissingFieldError(ConfigurationError):
    """A required configuration field or input value is empty."""

    def __init__(self, node_type: str, field: str, message: str | None = None) -> None:
        super().__init__(message or f"'{field}' is missing for node type '{node_type}'.")
        self.node_type = node_type
        self.field = field


class InvalidConfigError(ConfigurationError):
    """Invalid configuration value."""

    def __init__(self, field: str, value: object, reason: str) -> None:
        super().__init__(f"Invalid config for '{field}': {value}. {reason}")
        self.field = field
        self.value = value


# External call errors
class ExternalCallError(NodeFlowError):
    """An outbound call made by a node failed or returned garbage."""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, retryable=True)
        self.url = url
        self.status_code = status_code


# Execution errors
class NodeCancelledError(NodeFlowError):
    """Node execution was interrupted by the run's cancellation signal.

    Not a failure: the node returns to ``pending`` and may run again.
    """

    def __init__(self, message: str = "Cancelled") -> None:
        super().__init__(message, retryable=True)


class NodeExecutionError(NodeFlowError):
    """A node failed and aborted its run."""

    def __init__(self, message: str, *, node_id: str | None = None) -> None:
        super().__init__(message, retryable=False)
        self.node_id = node_id


# Graph errors
class GraphError(NodeFlowError):
    """Base class for graph structure errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message, retryable=False)


class UnknownNodeTypeError(GraphError):
    """Node type tag is not registered."""

    def __init__(self, type_tag: str, available: list[str]) -> None:
        super().__init__(
            f"Unknown node type '{type_tag}'. "
            f"Available types: {', '.join(available) or '(none)'}"
        )
        self.type_tag = type_tag
        self.available = available


class DuplicateNodeError(GraphError):
    """Two nodes in one snapshot share an id."""

    def __init__(self, node_id: str) -> None:
        super().__init__(f"Node id '{node_id}' appears more than once in the graph.")
        self.node_id = node_id


class InvalidConnectionError(GraphError):
    """An edge does not connect two compatible, declared ports."""

    def __init__(self, edge_id: str, reason: str) -> None:
        super().__init__(f"Invalid edge '{edge_id}': {reason}")
        self.edge_id = edge_id
        self.reason = reason


class RunStateError(NodeFlowError):
    """Operation is not valid for the run's current state."""

    def __init__(self, message: str) -> None:
        super().__init__(message, retryable=False)
