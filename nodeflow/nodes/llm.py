"""Ollama chat node."""

from __future__ import annotations

from typing import Any

from nodeflow.core.definition import NodeDefinition
from nodeflow.core.instance import NodeContext
from nodeflow.core.types import DataType, PortSpec
from nodeflow.errors.exceptions import (
    ExternalCallError,
    InvalidConfigError,
    MissingFieldError,
)
from nodeflow.nodes.transport import post_json
from nodeflow.settings import get_settings


class LLMNode(NodeDefinition):
    """Sends ``prompt`` to an Ollama chat endpoint and emits the reply.

    Configuration:
        endpoint: Ollama ``/api/chat`` URL.
        model: Model name (e.g. ``llama3``).
        temperature, top_p, top_k: Sampling options.
        reactivate_upstream: When true, reset and re-queue the parent
            nodes after each reply so the graph can iterate. Off by
            default: with it on, a prompt source feeding this node
            re-runs after every reply and the loop has no iteration cap,
            so only enable it where a parent ends the loop itself.

    Example:
        >>> node = GraphNode(id="llm", type="llm", data={"model": "mistral"})
    """

    type_name = "llm"
    display_name = "LLM (Ollama)"
    INPUTS = {"prompt": PortSpec(dtype=DataType.STRING)}
    OUTPUTS = {"text": PortSpec(dtype=DataType.STRING)}

    def default_config(self) -> dict[str, Any]:
        settings = get_settings()
        return {
            "endpoint": settings.ollama_endpoint,
            "model": settings.default_llm_model,
            "temperature": settings.llm_temperature,
            "top_p": settings.llm_top_p,
            "top_k": settings.llm_top_k,
            "reactivate_upstream": False,
        }

    async def compute(
        self,
        inputs: dict[str, Any],
        config: dict[str, Any],
        context: NodeContext,
    ) -> dict[str, Any]:
        """Call the chat endpoint.

        Raises:
            MissingFieldError: If the prompt, model or endpoint is empty.
            InvalidConfigError: If a sampling option is not numeric.
            ExternalCallError: On a failed call or a reply without text.
        """
        prompt = inputs.get("prompt")
        model = config.get("model")
        endpoint = config.get("endpoint")

        if not prompt:
            raise MissingFieldError(self.type_name, "prompt", "Input prompt is empty.")
        if not model:
            raise MissingFieldError(self.type_name, "model", "Ollama model name is missing.")
        if not endpoint:
            raise MissingFieldError(
                self.type_name, "endpoint", "Ollama API endpoint is missing."
            )

        settings = get_settings()
        payload = {
            "model": model,
            "messages": [{"role": "user", "content": str(prompt)}],
            "stream": False,
            "options": {
                "temperature": _number(config, "temperature", float, settings.llm_temperature),
                "top_p": _number(config, "top_p", float, settings.llm_top_p),
                "top_k": _number(config, "top_k", int, settings.llm_top_k),
            },
        }

        result = await post_json(
            endpoint,
            payload,
            timeout=settings.http_timeout,
            signal=context.signal,
            service="Ollama API",
        )

        message = result.get("message") if isinstance(result, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise ExternalCallError(
                "Invalid response structure from Ollama API.", url=endpoint
            )

        if config.get("reactivate_upstream"):
            context.reactivate_upstream()

        return {"text": content}


def _number(config: dict[str, Any], key: str, cast: type, default: Any) -> Any:
    raw = config.get(key)
    if raw is None or raw == "":
        return default
    try:
        return cast(float(raw)) if cast is int else cast(raw)
    except (TypeError, ValueError):
        raise InvalidConfigError(key, raw, f"Must be {'an integer' if cast is int else 'a number'}.")
