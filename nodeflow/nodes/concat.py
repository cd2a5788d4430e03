"""Variable-arity concatenation node."""

from __future__ import annotations

import math
from typing import Any, Mapping

from nodeflow.core.definition import NodeDefinition
from nodeflow.core.instance import NodeContext
from nodeflow.core.types import DataType, PortSpec
from nodeflow.errors.exceptions import InvalidConfigError

DEFAULT_NUM_INPUTS = 2


def input_count(config: Mapping[str, Any]) -> int:
    """Number of ``in_N`` ports declared by the configuration.

    Reads ``num_inputs``, or the editor's ``numInputs`` when that is the
    only one set. Fractional counts are floored and the result is at
    least 1.

    Raises:
        InvalidConfigError: If the count is not a finite number.
    """
    key = "num_inputs" if config.get("num_inputs") is not None else "numInputs"
    raw = config.get(key)
    if raw is None:
        return DEFAULT_NUM_INPUTS
    if isinstance(raw, bool):
        raise InvalidConfigError(key, raw, "Must be a number.")
    try:
        count = math.floor(float(raw))
    except (TypeError, ValueError, OverflowError):
        raise InvalidConfigError(key, raw, "Must be a number.")
    return max(1, count)


def _port_index(port: str) -> int:
    _, _, suffix = port.partition("_")
    return int(suffix) if suffix.isdigit() else 0


class ConcatNode(NodeDefinition):
    """Joins ``in_1 .. in_N`` in numeric port order.

    The port set follows ``num_inputs`` in the live configuration, so
    adding an input while a run is active takes effect at the next
    readiness check.
    """

    type_name = "concat"
    display_name = "Concatenate Text"
    OUTPUTS = {"text": PortSpec(dtype=DataType.STRING)}

    def default_config(self) -> dict[str, Any]:
        # No num_inputs default: it would shadow an editor-supplied numInputs.
        return {"separator": "\n"}

    def input_specs(self, config: Mapping[str, Any]) -> dict[str, PortSpec]:
        return {
            f"in_{i}": PortSpec(dtype=DataType.STRING)
            for i in range(1, input_count(config) + 1)
        }

    async def compute(
        self,
        inputs: dict[str, Any],
        config: dict[str, Any],
        context: NodeContext,
    ) -> dict[str, Any]:
        separator = config.get("separator", "\n")
        if separator is None:
            separator = "\n"
        ordered = sorted(inputs, key=_port_index)
        return {"text": str(separator).join(str(inputs[port]) for port in ordered)}
