"""Per-run node instance.

A NodeInstance combines a shared NodeDefinition, the node's live
ConfigCell and a mutable RuntimeState. It answers readiness queries and
runs the single-node execution protocol; every transition is reported to
the state sink through :meth:`NodeInstance.set_status`.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any, Callable, Mapping, Protocol

from nodeflow.core.cancellation import CancellationSignal
from nodeflow.core.config_cell import ConfigCell
from nodeflow.core.definition import NodeDefinition
from nodeflow.core.graph import GraphSnapshot
from nodeflow.core.types import NodeStatus, RuntimeState
from nodeflow.errors.exceptions import NodeCancelledError, NodeExecutionError
from nodeflow.logging import get_logger

if TYPE_CHECKING:
    from nodeflow.core.types import DataType

logger = logging.getLogger(__name__)

StateSink = Callable[[str, RuntimeState], None]


class ReadyQueue(Protocol):
    """What an instance needs from the scheduler to re-queue itself or others."""

    def enqueue(self, instance: NodeInstance) -> bool:
        ...


class NodeContext:
    """Execution context handed to ``NodeDefinition.compute``.

    Attributes:
        node_id: Id of the executing node.
        node_type: Its type tag.
        signal: The run's cancellation signal. Long waits and outbound
            calls should go through ``signal.sleep`` / ``signal.run``.
    """

    def __init__(
        self,
        instance: NodeInstance,
        signal: CancellationSignal,
        graph: GraphSnapshot,
        instances: Mapping[str, NodeInstance],
        scheduler: ReadyQueue | None = None,
    ) -> None:
        self._instance = instance
        self._graph = graph
        self._instances = instances
        self._scheduler = scheduler
        self.signal = signal

    @property
    def node_id(self) -> str:
        return self._instance.node_id

    @property
    def node_type(self) -> str:
        return self._instance.node_type

    def report(self, **patch: Any) -> None:
        """Publish in-progress values (status stays ``running``).

        A value of None removes the key, e.g. ``report(countdown=None)``.
        """
        if self._instance.status == NodeStatus.RUNNING:
            self._instance.set_status(NodeStatus.RUNNING, **patch)

    def reactivate_upstream(self) -> list[str]:
        """Reset direct parents to pending and queue them for another pass."""
        return self._instance.reactivate_upstream(
            self._graph, self._instances, self._scheduler
        )


class NodeInstance:
    """Runtime wrapper for one graph node within one run.

    Example:
        >>> instance = NodeInstance("a", "text", TextNode(), ConfigCell({"text": "hi"}))
        >>> instance.is_input_ready(snapshot, {"a": instance})
        True
        >>> await instance.execute(CancellationSignal(), snapshot, {"a": instance})
        >>> instance.state.output
        {'out_text': 'hi'}
    """

    def __init__(
        self,
        node_id: str,
        node_type: str,
        definition: NodeDefinition,
        config: ConfigCell,
        on_state_change: StateSink | None = None,
    ) -> None:
        self.node_id = node_id
        self.node_type = node_type
        self.definition = definition
        self.config = config
        self._on_state_change = on_state_change
        self._state = RuntimeState()

        # Scheduler bookkeeping: O(1) queue dedupe, deferred re-run requests.
        self.queued = False
        self.rerun_requested = False

    @property
    def state(self) -> RuntimeState:
        return self._state

    @property
    def status(self) -> NodeStatus:
        return self._state.status

    def is_output_ready(self) -> bool:
        """True iff the instance has completed."""
        return self._state.status == NodeStatus.COMPLETED

    def required_input_ports(self) -> dict[str, DataType]:
        return self.definition.required_input_ports(self.config.snapshot())

    def is_input_ready(
        self,
        graph: GraphSnapshot,
        instances: Mapping[str, NodeInstance],
    ) -> bool:
        """Check the readiness precondition.

        A node with no required ports is always ready. Otherwise every
        required port needs at least one incoming edge, and every parent
        on an incoming edge must be completed. Edges into ports that are
        not currently declared still count as parents.
        """
        required = self.required_input_ports()
        if not required:
            return True

        incoming = graph.incoming_edges(self.node_id)
        connected = {edge.target_handle for edge in incoming}
        if any(port not in connected for port in required):
            return False

        for edge in incoming:
            parent = instances.get(edge.source)
            if parent is None or not parent.is_output_ready():
                return False
        return True

    def set_status(self, status: NodeStatus, **patch: Any) -> None:
        """Apply a transition and report it to the state sink.

        ``patch`` may carry ``output`` or ``error``; other keys are kept as
        in-progress extras. Safe to call repeatedly with the same values.
        """
        self._state = self._state.merged(status, patch)
        if self._on_state_change is not None:
            self._on_state_change(self.node_id, self._state)

    def collect_inputs(
        self,
        graph: GraphSnapshot,
        instances: Mapping[str, NodeInstance],
    ) -> dict[str, Any]:
        """Gather input values from completed parents.

        Edges whose parent is not completed, or whose parent output lacks
        the edge's source port, are skipped.
        """
        inputs: dict[str, Any] = {}
        for edge in graph.incoming_edges(self.node_id):
            parent = instances.get(edge.source)
            if parent is None or not parent.is_output_ready():
                continue
            output = parent.state.output or {}
            if edge.source_handle in output:
                inputs[edge.target_handle] = output[edge.source_handle]
        return inputs

    def reactivate_upstream(
        self,
        graph: GraphSnapshot,
        instances: Mapping[str, NodeInstance],
        scheduler: ReadyQueue | None = None,
    ) -> list[str]:
        """Force direct parents back to pending and queue them.

        Parents that are currently running are not touched; the scheduler
        re-queues them once they settle.

        Returns:
            Ids of the parents that were reactivated.
        """
        reactivated: list[str] = []
        for parent_id in graph.predecessors(self.node_id):
            parent = instances.get(parent_id)
            if parent is None:
                continue
            if parent.status != NodeStatus.RUNNING:
                parent.set_status(NodeStatus.PENDING)
            if scheduler is not None:
                scheduler.enqueue(parent)
            reactivated.append(parent_id)

        get_logger().reactivation(self.node_id, reactivated)
        return reactivated

    async def execute(
        self,
        signal: CancellationSignal,
        graph: GraphSnapshot,
        instances: Mapping[str, NodeInstance],
        scheduler: ReadyQueue | None = None,
    ) -> None:
        """Run the node once.

        No-op unless the instance is pending. Cancellation returns the
        instance to pending with a ``note``; any other failure sets
        ``error`` and is re-raised as NodeExecutionError.

        Raises:
            NodeExecutionError: If compute fails for a reason other than
                cancellation.
        """
        if self._state.status != NodeStatus.PENDING:
            return

        if signal.is_cancelled:
            self.set_status(NodeStatus.PENDING, note=f"{signal.reason} before start")
            get_logger().node_cancelled(self.node_id, f"{signal.reason} before start")
            return

        self.set_status(NodeStatus.RUNNING, error=None, note=None)
        get_logger().node_start(self.node_id, self.node_type)
        started = time.monotonic()

        inputs = self.collect_inputs(graph, instances)
        context = NodeContext(self, signal, graph, instances, scheduler)
        logger.debug("Executing node %s (%s) with inputs %s", self.node_id, self.node_type, list(inputs))

        try:
            output = await signal.run(
                self.definition.compute(inputs, self.config.snapshot(), context)
            )
        except NodeCancelledError as e:
            self.set_status(NodeStatus.PENDING, note=str(e))
            get_logger().node_cancelled(self.node_id, str(e))
            return
        except asyncio.CancelledError:
            self.set_status(NodeStatus.PENDING, note="Cancelled")
            raise
        except Exception as e:
            self._fail(str(e))
            raise NodeExecutionError(str(e), node_id=self.node_id) from e

        if not isinstance(output, Mapping):
            message = (
                f"Node type '{self.node_type}' returned {type(output).__name__}, "
                f"expected a mapping of output ports"
            )
            self._fail(message)
            raise NodeExecutionError(message, node_id=self.node_id)

        self.set_status(NodeStatus.COMPLETED, output=dict(output))
        get_logger().node_end(self.node_id, int((time.monotonic() - started) * 1000))

    def _fail(self, message: str) -> None:
        self.set_status(NodeStatus.ERROR, error=message)
        get_logger().node_error(self.node_id, message)

    def __repr__(self) -> str:
        return f"NodeInstance(id={self.node_id!r}, type={self.node_type!r}, status={self.status.value})"
