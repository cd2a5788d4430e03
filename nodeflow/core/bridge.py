"""Live reconfiguration.

The ConfigBridge owns the configuration cells the editor writes to and
routes every edit into the active run, re-arming instances whose inputs
are satisfied so that editing a source node triggers a fresh pass
without restarting the run.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping

from nodeflow.core.config_cell import ConfigCell
from nodeflow.core.graph import GraphSnapshot
from nodeflow.core.scheduler import ActiveRun, ExecutionHandle, Orchestrator
from nodeflow.errors.exceptions import NodeFlowError

logger = logging.getLogger(__name__)


class ConfigBridge:
    """Routes configuration edits from the editor into the running engine.

    Example:
        >>> bridge = ConfigBridge(orchestrator)
        >>> handle = bridge.start(snapshot)
        >>> bridge.apply_config_change("text_1", {"text": "new prompt"})
    """

    def __init__(
        self,
        orchestrator: Orchestrator,
        snapshot: GraphSnapshot | None = None,
    ) -> None:
        self._orchestrator = orchestrator
        self.cells: dict[str, ConfigCell] = {}
        if snapshot is not None:
            self.load(snapshot)

    def load(self, snapshot: GraphSnapshot) -> None:
        """Create cells for nodes that do not have one yet, seeded from ``data``."""
        for node in snapshot.nodes:
            if node.id in self.cells:
                continue
            definition = self._orchestrator.registry.resolve(node.type)
            defaults = definition.default_config() if definition is not None else {}
            self.cells[node.id] = ConfigCell({**defaults, **node.data})

    def cell(self, node_id: str) -> ConfigCell:
        """The cell for ``node_id``, created empty if missing."""
        cell = self.cells.get(node_id)
        if cell is None:
            cell = self.cells[node_id] = ConfigCell()
        return cell

    def start(self, snapshot: GraphSnapshot) -> ExecutionHandle:
        """Start a run whose instances share this bridge's cells."""
        self.load(snapshot)
        return self._orchestrator.start(snapshot, self.cells)

    def apply_config_change(self, node_id: str, patch: Mapping[str, Any]) -> None:
        """Apply a partial configuration update.

        The patch always lands in the node's cell. If a run is active and
        has an instance for ``node_id`` that is input-ready under the new
        configuration, the instance is reset to pending and queued. Safe
        to call from a thread other than the run's event loop.
        """
        patch = dict(patch)
        self.cell(node_id).merge(patch)

        run = self._orchestrator.active_run
        if run is None:
            return

        try:
            on_loop = asyncio.get_running_loop() is run.loop
        except RuntimeError:
            on_loop = False

        if on_loop:
            self._rearm(run, node_id, patch)
        else:
            run.loop.call_soon_threadsafe(self._rearm, run, node_id, patch)

    def _rearm(self, run: ActiveRun, node_id: str, patch: dict[str, Any]) -> None:
        if self._orchestrator.active_run is not run:
            return
        instance = run.instances.get(node_id)
        if instance is None:
            return

        if instance.config is not self.cells.get(node_id):
            instance.config.merge(patch)

        try:
            ready = instance.is_input_ready(run.graph, run.instances)
        except NodeFlowError as e:
            run.fail(instance, e)
            return

        if ready:
            queued = run.requeue(instance)
            logger.debug(
                "Config change on %s re-armed it (queued=%s)", node_id, queued
            )
