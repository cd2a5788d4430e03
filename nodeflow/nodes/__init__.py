"""Built-in node types."""

from nodeflow.nodes.api import ApiNode
from nodeflow.nodes.concat import ConcatNode
from nodeflow.nodes.delay import DelayNode
from nodeflow.nodes.display import DisplayNode
from nodeflow.nodes.llm import LLMNode
from nodeflow.nodes.text import TextNode

BUILTIN_NODES = (
    TextNode,
    ConcatNode,
    DisplayNode,
    DelayNode,
    LLMNode,
    ApiNode,
)

__all__ = [
    "BUILTIN_NODES",
    "ApiNode",
    "ConcatNode",
    "DelayNode",
    "DisplayNode",
    "LLMNode",
    "TextNode",
]
