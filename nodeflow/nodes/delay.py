"""Timed delay node."""

from __future__ import annotations

import math
from typing import Any

from nodeflow.core.definition import NodeDefinition
from nodeflow.core.instance import NodeContext
from nodeflow.core.types import DataType, PortSpec
from nodeflow.errors.exceptions import InvalidConfigError
from nodeflow.settings import get_settings

STEP_SECONDS = 1.0


class DelayNode(NodeDefinition):
    """Waits ``delay`` seconds, then passes ``in_trigger`` through.

    The wait runs in one-second steps. Each step reports the remaining
    whole seconds as ``countdown`` and can be interrupted by cancellation.
    """

    type_name = "delay"
    display_name = "Delay"
    INPUTS = {"in_trigger": PortSpec(dtype=DataType.STRING)}
    OUTPUTS = {"out_flow": PortSpec(dtype=DataType.STRING)}

    def default_config(self) -> dict[str, Any]:
        return {"delay": get_settings().default_delay_seconds}

    async def compute(
        self,
        inputs: dict[str, Any],
        config: dict[str, Any],
        context: NodeContext,
    ) -> dict[str, Any]:
        remaining = _delay_seconds(config.get("delay"))

        while remaining > 1e-9:
            context.report(countdown=math.ceil(remaining))
            step = min(STEP_SECONDS, remaining)
            await context.signal.sleep(step)
            remaining -= step

        context.report(countdown=None)
        return {"out_flow": inputs.get("in_trigger") or ""}


def _delay_seconds(raw: Any) -> float:
    if raw is None or raw == "":
        return get_settings().default_delay_seconds
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise InvalidConfigError("delay", raw, "Must be a number of seconds.")
    if value < 0 or math.isnan(value):
        raise InvalidConfigError("delay", raw, "Must not be negative.")
    return value
