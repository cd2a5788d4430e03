"""Generic HTTP processing node."""

from __future__ import annotations

from typing import Any

from nodeflow.core.definition import NodeDefinition
from nodeflow.core.instance import NodeContext
from nodeflow.core.types import DataType, PortSpec
from nodeflow.errors.exceptions import MissingFieldError
from nodeflow.nodes.transport import post_json
from nodeflow.settings import get_settings


class ApiNode(NodeDefinition):
    """POSTs ``{"input": <value>}`` to ``url`` and emits the decoded JSON reply."""

    type_name = "api"
    display_name = "API Call"
    INPUTS = {"input": PortSpec(dtype=DataType.ANY)}
    OUTPUTS = {"output": PortSpec(dtype=DataType.ANY)}

    def default_config(self) -> dict[str, Any]:
        return {"url": get_settings().default_api_url}

    async def compute(
        self,
        inputs: dict[str, Any],
        config: dict[str, Any],
        context: NodeContext,
    ) -> dict[str, Any]:
        url = config.get("url")
        if not url:
            raise MissingFieldError(self.type_name, "url", "API url is missing.")

        body = await post_json(
            url,
            {"input": inputs.get("input")},
            timeout=get_settings().http_timeout,
            signal=context.signal,
        )
        return {"output": body}
