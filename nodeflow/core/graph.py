"""Graph snapshot handed to the orchestrator at run start.

Nodes and edges are frozen for the duration of a run. Field aliases accept
the camelCase keys emitted by the graph editor (``sourceHandle`` etc.).
"""

from __future__ import annotations

from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from nodeflow.errors.exceptions import DuplicateNodeError


class GraphNode(BaseModel):
    """A node as drawn in the editor."""

    id: str = Field(..., description="Unique node id")
    type: str = Field(..., description="Node type tag resolved through the registry")
    data: dict[str, Any] = Field(
        default_factory=dict,
        description="Initial configuration for the node",
    )
    position: dict[str, float] | None = Field(
        default=None,
        description="Canvas position, owned by the editor",
    )

    model_config = ConfigDict(frozen=True)


class GraphEdge(BaseModel):
    """A port-to-port connection."""

    id: str = Field(..., description="Unique edge id")
    source: str = Field(..., description="Source node id")
    source_handle: str = Field(..., alias="sourceHandle", description="Source output port")
    target: str = Field(..., description="Target node id")
    target_handle: str = Field(..., alias="targetHandle", description="Target input port")

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class GraphSnapshot(BaseModel):
    """Read-only view of nodes and edges for one run.

    Edge lookups by source and target are indexed once on construction.

    Example:
        >>> snapshot = GraphSnapshot(
        ...     nodes=[GraphNode(id="a", type="text", data={"text": "hi"})],
        ...     edges=[],
        ... )
        >>> snapshot.incoming_edges("a")
        []
    """

    nodes: tuple[GraphNode, ...] = Field(default_factory=tuple)
    edges: tuple[GraphEdge, ...] = Field(default_factory=tuple)

    model_config = ConfigDict(frozen=True)

    _nodes_by_id: dict[str, GraphNode] = PrivateAttr(default_factory=dict)
    _incoming: dict[str, list[GraphEdge]] = PrivateAttr(default_factory=dict)
    _outgoing: dict[str, list[GraphEdge]] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        for node in self.nodes:
            if node.id in self._nodes_by_id:
                raise DuplicateNodeError(node.id)
            self._nodes_by_id[node.id] = node
        for edge in self.edges:
            self._incoming.setdefault(edge.target, []).append(edge)
            self._outgoing.setdefault(edge.source, []).append(edge)

    @classmethod
    def build(
        cls,
        nodes: Iterable[GraphNode | dict[str, Any]],
        edges: Iterable[GraphEdge | dict[str, Any]] = (),
    ) -> GraphSnapshot:
        """Create a snapshot from models or plain editor dicts."""
        return cls(
            nodes=tuple(
                n if isinstance(n, GraphNode) else GraphNode.model_validate(n) for n in nodes
            ),
            edges=tuple(
                e if isinstance(e, GraphEdge) else GraphEdge.model_validate(e) for e in edges
            ),
        )

    @property
    def node_ids(self) -> list[str]:
        return [n.id for n in self.nodes]

    def get_node(self, node_id: str) -> GraphNode | None:
        return self._nodes_by_id.get(node_id)

    def incoming_edges(self, node_id: str) -> list[GraphEdge]:
        """Edges whose target is ``node_id``."""
        return list(self._incoming.get(node_id, ()))

    def outgoing_edges(self, node_id: str) -> list[GraphEdge]:
        """Edges whose source is ``node_id``."""
        return list(self._outgoing.get(node_id, ()))

    def predecessors(self, node_id: str) -> list[str]:
        """Distinct source node ids feeding ``node_id``, in edge order."""
        return list(dict.fromkeys(e.source for e in self._incoming.get(node_id, ())))

    def successors(self, node_id: str) -> list[str]:
        """Distinct target node ids fed by ``node_id``, in edge order."""
        return list(dict.fromkeys(e.target for e in self._outgoing.get(node_id, ())))
