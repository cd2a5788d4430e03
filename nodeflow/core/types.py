"""Core type definitions for NodeFlow.

This module defines the port, status and runtime-state types shared by the
registry, node instances and the orchestrator.
All types use Pydantic for validation and serialization.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DataType(str, Enum):
    """Data type carried by a port."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    JSON = "json"
    ANY = "any"

    def accepts(self, other: DataType) -> bool:
        """Whether a value of type ``other`` may flow into a port of this type."""
        return self is other or DataType.ANY in (self, other)


class PortSpec(BaseModel):
    """Declaration of a single input or output port."""

    dtype: DataType = Field(default=DataType.STRING, description="Data type of the port")
    required: bool = Field(
        default=True,
        description="Whether the port must be connected before the node is ready",
    )

    model_config = ConfigDict(frozen=True)


class NodeStatus(str, Enum):
    """Runtime status of a node instance."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


class RuntimeState(BaseModel):
    """Runtime record reported to the state sink on every transition.

    ``extra`` holds in-progress values reported while running
    (e.g. a delay countdown).
    """

    status: NodeStatus = Field(default=NodeStatus.PENDING)
    output: dict[str, Any] | None = Field(default=None)
    error: str | None = Field(default=None)
    extra: dict[str, Any] = Field(default_factory=dict)

    def merged(self, status: NodeStatus, patch: dict[str, Any]) -> RuntimeState:
        """Return a new state with ``status`` and ``patch`` applied."""
        update: dict[str, Any] = {"status": status}
        extra = dict(self.extra)
        for key, value in patch.items():
            if key in ("output", "error"):
                update[key] = value
            elif value is None:
                extra.pop(key, None)
            else:
                extra[key] = value
        update["extra"] = extra
        return self.model_copy(update=update)


class RunStatus(str, Enum):
    """Status of a single run."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class RunResult(BaseModel):
    """Terminal result of a run.

    Example:
        >>> handle = orchestrator.start(snapshot)
        >>> result = await handle.wait()
        >>> print(result.status, result.states["c"].output)
    """

    run_id: str = Field(..., description="Identifier of the run")
    status: RunStatus = Field(..., description="Terminal status")
    error: str | None = Field(None, description="Failure message if the run failed")
    failed_node_id: str | None = Field(None, description="Node whose failure aborted the run")
    states: dict[str, RuntimeState] = Field(
        default_factory=dict,
        description="Final runtime state of every node instance",
    )
    duration_ms: int = Field(0, ge=0, description="Wall-clock duration of the run")

    @property
    def is_success(self) -> bool:
        """Check if the run completed without error or cancellation."""
        return self.status == RunStatus.COMPLETED

    def outputs(self) -> dict[str, dict[str, Any]]:
        """Outputs of every completed node, keyed by node id."""
        return {
            node_id: state.output or {}
            for node_id, state in self.states.items()
            if state.status == NodeStatus.COMPLETED
        }
