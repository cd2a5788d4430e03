"""Display sink node."""

from __future__ import annotations

from typing import Any

from nodeflow.core.definition import NodeDefinition
from nodeflow.core.instance import NodeContext
from nodeflow.core.types import DataType, PortSpec


class DisplayNode(NodeDefinition):
    """Terminal node that exposes its input for the editor to show.

    It declares no outputs, so nothing can be wired after it, but its
    runtime output carries ``text`` for rendering.
    """

    type_name = "display"
    display_name = "Text Display"
    INPUTS = {"in_text": PortSpec(dtype=DataType.STRING)}
    OUTPUTS = {}

    async def compute(
        self,
        inputs: dict[str, Any],
        config: dict[str, Any],
        context: NodeContext,
    ) -> dict[str, Any]:
        value = inputs.get("in_text")
        return {"text": "" if value is None else value}
