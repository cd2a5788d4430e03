"""Run orchestration.

The Orchestrator turns a GraphSnapshot into a run: it builds one
NodeInstance per node, seeds the ready-queue with nodes whose inputs are
already satisfied, launches executions concurrently and propagates each
completion to the node's dependents. A single CancellationSignal per run
is raised by an explicit cancel or by the first fatal node failure.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections import deque
from typing import Callable, Mapping

from nodeflow.core.cancellation import CancellationSignal
from nodeflow.core.config import EngineConfig
from nodeflow.core.config_cell import ConfigCell
from nodeflow.core.graph import GraphSnapshot
from nodeflow.core.instance import NodeInstance, StateSink
from nodeflow.core.registry import NodeRegistry, get_registry
from nodeflow.core.types import NodeStatus, RunResult, RunStatus, RuntimeState
from nodeflow.errors.exceptions import NodeExecutionError, NodeFlowError, RunStateError
from nodeflow.logging import get_logger

logger = logging.getLogger(__name__)

RunFinishedCallback = Callable[[RunResult], None]


def generate_run_id() -> str:
    """Generate a short run id."""
    return uuid.uuid4().hex[:12]


class ExecutionHandle:
    """Reference to a started run.

    Example:
        >>> handle = orchestrator.start(snapshot)
        >>> result = await handle.wait()
    """

    def __init__(self, run_id: str, future: asyncio.Future[RunResult]) -> None:
        self.run_id = run_id
        self._future = future

    @property
    def done(self) -> bool:
        """Whether the run has terminated."""
        return self._future.done()

    def result(self) -> RunResult | None:
        """Terminal result, or None while the run is still going."""
        return self._future.result() if self._future.done() else None

    async def wait(self) -> RunResult:
        """Wait for the run to terminate."""
        return await asyncio.shield(self._future)

    def __repr__(self) -> str:
        return f"ExecutionHandle(run_id={self.run_id!r}, done={self.done})"


class ActiveRun:
    """Mutable state of the run in progress.

    Owns the node instances, the FIFO ready-queue and the set of in-flight
    execution tasks. Only touched from the run's event loop.
    """

    def __init__(
        self,
        run_id: str,
        graph: GraphSnapshot,
        instances: dict[str, NodeInstance],
        loop: asyncio.AbstractEventLoop,
    ) -> None:
        self.run_id = run_id
        self.graph = graph
        self.instances = instances
        self.loop = loop
        self.signal = CancellationSignal()
        self.ready: deque[NodeInstance] = deque()
        self.in_flight: dict[asyncio.Task[None], NodeInstance] = {}
        self.wakeup = asyncio.Event()
        self.failure: NodeExecutionError | None = None
        self.cancel_requested = False
        self.started = time.monotonic()

    @property
    def stopping(self) -> bool:
        """True once no new work may be admitted."""
        return self.failure is not None or self.signal.is_cancelled

    def enqueue(self, instance: NodeInstance) -> bool:
        """Admit a pending instance to the ready-queue.

        A running instance is flagged to run again once it settles instead.

        Returns:
            True if the instance was queued now.
        """
        if self.stopping:
            return False
        if instance.status == NodeStatus.RUNNING:
            instance.rerun_requested = True
            return False
        if instance.status != NodeStatus.PENDING or instance.queued:
            return False
        instance.queued = True
        self.ready.append(instance)
        self.wakeup.set()
        return True

    def requeue(self, instance: NodeInstance) -> bool:
        """Reset an instance to pending and queue it for another pass."""
        if self.stopping:
            return False
        if instance.status == NodeStatus.RUNNING:
            instance.rerun_requested = True
            return False
        if instance.status != NodeStatus.PENDING:
            instance.set_status(NodeStatus.PENDING)
        return self.enqueue(instance)

    def record_failure(self, error: NodeExecutionError) -> None:
        """Keep the first fatal error and stop admitting work."""
        if self.failure is None:
            self.failure = error
            logger.warning(
                "Run %s aborting: node %s failed: %s",
                self.run_id,
                error.node_id,
                error,
            )
        self.signal.cancel()
        self.wakeup.set()

    def fail(self, instance: NodeInstance, error: Exception) -> None:
        """Abort the run on a failure raised outside the node's own compute.

        Used for configuration errors found while re-checking readiness.
        An instance whose execution is still in flight is left to the
        cancellation, which returns it to pending.
        """
        message = str(error)
        self.record_failure(NodeExecutionError(message, node_id=instance.node_id))
        if any(running is instance for running in self.in_flight.values()):
            return
        instance.set_status(NodeStatus.ERROR, error=message)
        get_logger().node_error(instance.node_id, message)

    def states(self) -> dict[str, RuntimeState]:
        return {node_id: inst.state for node_id, inst in self.instances.items()}


class Orchestrator:
    """Schedules node executions over a graph snapshot.

    One run may be active at a time. ``start`` returns immediately; the
    run is driven by a coordinator task on the current event loop.

    Example:
        >>> orchestrator = Orchestrator(on_state_change=ui.render)
        >>> handle = orchestrator.start(snapshot)
        >>> result = await handle.wait()
        >>> result.status
        <RunStatus.COMPLETED: 'completed'>
    """

    def __init__(
        self,
        registry: NodeRegistry | None = None,
        on_state_change: StateSink | None = None,
        on_run_finished: RunFinishedCallback | None = None,
        config: EngineConfig | None = None,
    ) -> None:
        """Initialize orchestrator.

        Args:
            registry: Node type registry. Defaults to the built-in registry.
            on_state_change: State sink called on every node transition.
            on_run_finished: Called exactly once with each run's result.
            config: Engine configuration.
        """
        self._registry = registry if registry is not None else get_registry()
        self._on_state_change = on_state_change
        self._on_run_finished = on_run_finished
        self._config = config or EngineConfig()
        self._active: ActiveRun | None = None
        self._handle: ExecutionHandle | None = None
        self._future: asyncio.Future[RunResult] | None = None
        self._coordinator: asyncio.Task[None] | None = None

    @property
    def registry(self) -> NodeRegistry:
        return self._registry

    @property
    def active_run(self) -> ActiveRun | None:
        """The run in progress, if any."""
        return self._active

    @property
    def handle(self) -> ExecutionHandle | None:
        """Handle of the run in progress, if any."""
        return self._handle if self._active is not None else None

    def start(
        self,
        snapshot: GraphSnapshot,
        configs: Mapping[str, ConfigCell] | None = None,
    ) -> ExecutionHandle:
        """Start a run over ``snapshot``.

        Must be called from within a running event loop.

        Args:
            snapshot: Nodes and edges, read-only for the run.
            configs: Externally owned configuration cells keyed by node id.
                Instances share these cells by reference. Nodes without a
                cell get a fresh one seeded from the node's ``data``.

        Returns:
            Handle for waiting on or cancelling the run.

        Raises:
            RunStateError: If a run is already active.
            UnknownNodeTypeError: If a node's type is not registered.
        """
        if self._active is not None:
            raise RunStateError(
                f"Run '{self._active.run_id}' is still active; cancel it before starting another."
            )
        loop = asyncio.get_running_loop()

        instances: dict[str, NodeInstance] = {}
        for node in snapshot.nodes:
            definition = self._registry.get(node.type)
            cell = configs.get(node.id) if configs is not None else None
            if cell is None:
                cell = ConfigCell({**definition.default_config(), **node.data})
            instances[node.id] = NodeInstance(
                node.id, node.type, definition, cell, self._report_state
            )

        run = ActiveRun(generate_run_id(), snapshot, instances, loop)

        for instance in instances.values():
            instance.set_status(NodeStatus.PENDING, output=None, error=None)
        for instance in instances.values():
            try:
                ready = instance.is_input_ready(snapshot, instances)
            except NodeFlowError as e:
                run.fail(instance, e)
                continue
            if ready:
                run.enqueue(instance)

        self._active = run
        self._future = loop.create_future()
        self._handle = ExecutionHandle(run.run_id, self._future)

        get_logger().run_start(run.run_id, len(instances), len(run.ready))
        logger.debug(
            "Run %s seeded with %s", run.run_id, [i.node_id for i in run.ready]
        )

        self._coordinator = loop.create_task(
            self._drive(run), name=f"nodeflow-run-{run.run_id}"
        )
        return self._handle

    async def run(
        self,
        snapshot: GraphSnapshot,
        configs: Mapping[str, ConfigCell] | None = None,
    ) -> RunResult:
        """Start a run and wait for it to terminate."""
        return await self.start(snapshot, configs).wait()

    def cancel(self, handle: ExecutionHandle | None = None) -> None:
        """Cancel a run.

        Raises the run's shared cancellation signal. In-flight executions
        return to pending; nothing new is admitted. Cancelling a run that
        already finished is a no-op.

        Raises:
            RunStateError: If ``handle`` does not belong to this orchestrator.
        """
        run = self._active
        if handle is None:
            if run is None:
                return
        elif run is None or handle.run_id != run.run_id:
            if handle.done:
                return
            raise RunStateError(f"Unknown run '{handle.run_id}'")

        logger.info("Cancelling run %s", run.run_id)
        run.cancel_requested = True
        run.signal.cancel()
        run.wakeup.set()

    def _report_state(self, node_id: str, state: RuntimeState) -> None:
        if self._config.log_transitions:
            logger.debug("Node %s -> %s", node_id, state.status.value)
        if self._on_state_change is not None:
            self._on_state_change(node_id, state)

    async def _drive(self, run: ActiveRun) -> None:
        """Coordinator loop for one run."""
        try:
            while True:
                run.wakeup.clear()
                self._launch_ready(run)
                if not run.in_flight and not run.ready:
                    break

                waiter = asyncio.ensure_future(run.wakeup.wait())
                try:
                    done, _ = await asyncio.wait(
                        {*run.in_flight, waiter},
                        return_when=asyncio.FIRST_COMPLETED,
                    )
                finally:
                    waiter.cancel()

                for task in done:
                    if task is waiter:
                        continue
                    instance = run.in_flight.pop(task)
                    self._settle(run, instance, task)
        except asyncio.CancelledError:
            run.cancel_requested = True
            raise
        except Exception as e:
            logger.exception("Run %s coordinator failed", run.run_id)
            run.record_failure(NodeExecutionError(str(e)))
        finally:
            if run.in_flight:
                run.signal.cancel()
                for task in run.in_flight:
                    task.cancel()
                await asyncio.gather(*run.in_flight, return_exceptions=True)
                run.in_flight.clear()
            self._finalize(run)

    def _launch_ready(self, run: ActiveRun) -> None:
        if run.stopping:
            for instance in run.ready:
                instance.queued = False
            run.ready.clear()
            return

        limit = self._config.max_concurrency
        while run.ready and (limit is None or len(run.in_flight) < limit):
            instance = run.ready.popleft()
            instance.queued = False
            if instance.status != NodeStatus.PENDING:
                continue
            task = run.loop.create_task(
                instance.execute(run.signal, run.graph, run.instances, run),
                name=f"nodeflow-{run.run_id}-{instance.node_id}",
            )
            run.in_flight[task] = instance

    def _settle(
        self,
        run: ActiveRun,
        instance: NodeInstance,
        task: asyncio.Task[None],
    ) -> None:
        """Handle one finished execution task."""
        if task.cancelled():
            return

        exc = task.exception()
        if exc is not None:
            if isinstance(exc, NodeExecutionError):
                run.record_failure(exc)
            elif instance.status == NodeStatus.RUNNING:
                run.fail(instance, exc)
            else:
                run.record_failure(NodeExecutionError(str(exc), node_id=instance.node_id))
            return

        if instance.rerun_requested:
            instance.rerun_requested = False
            run.requeue(instance)
            return

        if not instance.is_output_ready():
            return

        for target_id in run.graph.successors(instance.node_id):
            target = run.instances.get(target_id)
            if target is None or target.status != NodeStatus.PENDING or target.queued:
                continue
            try:
                ready = target.is_input_ready(run.graph, run.instances)
            except NodeFlowError as e:
                run.fail(target, e)
                return
            if ready:
                run.enqueue(target)

    def _finalize(self, run: ActiveRun) -> None:
        """Release the run and notify the owner exactly once."""
        if self._active is not run:
            return

        for instance in run.instances.values():
            instance.queued = False
            instance.rerun_requested = False

        if run.failure is not None:
            status = RunStatus.FAILED
        elif run.cancel_requested:
            status = RunStatus.CANCELLED
        else:
            status = RunStatus.COMPLETED

        result = RunResult(
            run_id=run.run_id,
            status=status,
            error=str(run.failure) if run.failure is not None else None,
            failed_node_id=run.failure.node_id if run.failure is not None else None,
            states=run.states(),
            duration_ms=int((time.monotonic() - run.started) * 1000),
        )

        self._active = None
        self._coordinator = None
        get_logger().run_end(run.run_id, status.value, result.duration_ms)

        future = self._future
        if future is not None and not future.done():
            future.set_result(result)
        if self._on_run_finished is not None:
            self._on_run_finished(result)
