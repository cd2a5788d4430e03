"""Engine configuration."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class EngineConfig(BaseModel):
    """Configuration for an Orchestrator.

    Example:
        >>> config = EngineConfig(max_concurrency=4)
        >>> orchestrator = Orchestrator(config=config)
    """

    max_concurrency: int | None = Field(
        default=None,
        gt=0,
        description="Maximum node executions in flight at once. None means unbounded.",
    )
    log_transitions: bool = Field(
        default=False,
        description="Emit a debug record for every runtime state transition",
    )

    model_config = ConfigDict(frozen=True)
