"""Text source node."""

from __future__ import annotations

from typing import Any

from nodeflow.core.definition import NodeDefinition
from nodeflow.core.instance import NodeContext
from nodeflow.core.types import DataType, PortSpec


class TextNode(NodeDefinition):
    """Emits its configured text, prefixed by incoming text when connected."""

    type_name = "text"
    display_name = "Text"
    INPUTS = {"in_text": PortSpec(dtype=DataType.STRING, required=False)}
    OUTPUTS = {"out_text": PortSpec(dtype=DataType.STRING)}

    def default_config(self) -> dict[str, Any]:
        return {"text": ""}

    async def compute(
        self,
        inputs: dict[str, Any],
        config: dict[str, Any],
        context: NodeContext,
    ) -> dict[str, Any]:
        incoming = str(inputs.get("in_text") or "")
        own = str(config.get("text") or "")
        separator = "\n" if incoming and own else ""
        return {"out_text": f"{incoming}{separator}{own}"}
