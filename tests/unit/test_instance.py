"""Unit tests for NodeInstance."""

from __future__ import annotations

import asyncio

import pytest

from nodeflow.core.cancellation import CancellationSignal
from nodeflow.core.config_cell import ConfigCell
from nodeflow.core.definition import NodeDefinition
from nodeflow.core.instance import NodeInstance
from nodeflow.core.types import NodeStatus
from nodeflow.errors.exceptions import NodeExecutionError


class FakeQueue:
    """Minimal ready-queue recording enqueued instances."""

    def __init__(self) -> None:
        self.queued: list[str] = []

    def enqueue(self, instance: NodeInstance) -> bool:
        self.queued.append(instance.node_id)
        return True


def complete(instance: NodeInstance, output: dict) -> None:
    instance.set_status(NodeStatus.COMPLETED, output=output)


@pytest.fixture
def concat_graph(graph_factory):
    return graph_factory(
        [("a", "static", {"value": "foo"}), ("b", "static", {"value": "bar"}), ("c", "concat")],
        [("a", "value", "c", "in_1"), ("b", "value", "c", "in_2")],
    )


class TestReadiness:
    """Tests for is_output_ready / is_input_ready."""

    def test_output_ready_only_when_completed(self, graph_factory, instances_factory) -> None:
        graph = graph_factory([("a", "static")])
        a = instances_factory(graph)["a"]

        assert not a.is_output_ready()
        a.set_status(NodeStatus.RUNNING)
        assert not a.is_output_ready()
        complete(a, {"value": 1})
        assert a.is_output_ready()

    def test_no_required_ports_always_ready(self, graph_factory, instances_factory) -> None:
        graph = graph_factory([("a", "static"), ("t", "text")], [("a", "value", "t", "in_text")])
        instances = instances_factory(graph)

        assert instances["a"].is_input_ready(graph, instances)
        # text's only input is optional
        assert instances["t"].is_input_ready(graph, instances)

    def test_unconnected_required_port_not_ready(self, graph_factory, instances_factory) -> None:
        graph = graph_factory([("a", "static"), ("c", "concat")], [("a", "value", "c", "in_1")])
        instances = instances_factory(graph)
        complete(instances["a"], {"value": "x"})

        assert not instances["c"].is_input_ready(graph, instances)

    def test_ready_when_all_parents_completed(self, concat_graph, instances_factory) -> None:
        instances = instances_factory(concat_graph)
        complete(instances["a"], {"value": "foo"})

        assert not instances["c"].is_input_ready(concat_graph, instances)

        complete(instances["b"], {"value": "bar"})
        assert instances["c"].is_input_ready(concat_graph, instances)

    def test_parent_on_undeclared_port_still_counts(self, graph_factory, instances_factory) -> None:
        """An edge into a port no longer declared still has to complete."""
        graph = graph_factory(
            [("a", "static"), ("b", "static"), ("c", "concat", {"num_inputs": 1})],
            [("a", "value", "c", "in_1"), ("b", "value", "c", "in_2")],
        )
        instances = instances_factory(graph)
        complete(instances["a"], {"value": "x"})

        assert not instances["c"].is_input_ready(graph, instances)
        complete(instances["b"], {"value": "y"})
        assert instances["c"].is_input_ready(graph, instances)

    def test_readiness_follows_live_config(self, graph_factory, instances_factory) -> None:
        graph = graph_factory(
            [("a", "static"), ("b", "static"), ("c", "concat")],
            [("a", "value", "c", "in_1"), ("b", "value", "c", "in_2")],
        )
        instances = instances_factory(graph)
        complete(instances["a"], {"value": "x"})
        complete(instances["b"], {"value": "y"})

        instances["c"].config.merge({"num_inputs": 3})
        assert not instances["c"].is_input_ready(graph, instances)

        instances["c"].config.merge({"num_inputs": 2})
        assert instances["c"].is_input_ready(graph, instances)

    def test_parent_reset_makes_child_not_ready(self, concat_graph, instances_factory) -> None:
        instances = instances_factory(concat_graph)
        complete(instances["a"], {"value": "foo"})
        complete(instances["b"], {"value": "bar"})
        assert instances["c"].is_input_ready(concat_graph, instances)

        instances["a"].set_status(NodeStatus.PENDING)
        assert not instances["c"].is_input_ready(concat_graph, instances)


class TestCollectInputs:
    """Tests for collect_inputs."""

    def test_collects_by_target_port(self, concat_graph, instances_factory) -> None:
        instances = instances_factory(concat_graph)
        complete(instances["a"], {"value": "foo"})
        complete(instances["b"], {"value": "bar"})

        assert instances["c"].collect_inputs(concat_graph, instances) == {
            "in_1": "foo",
            "in_2": "bar",
        }

    def test_skips_missing_port_values(self, concat_graph, instances_factory) -> None:
        instances = instances_factory(concat_graph)
        complete(instances["a"], {"other": "foo"})
        complete(instances["b"], {"value": "bar"})

        assert instances["c"].collect_inputs(concat_graph, instances) == {"in_2": "bar"}

    def test_skips_incomplete_parents(self, concat_graph, instances_factory) -> None:
        instances = instances_factory(concat_graph)
        complete(instances["a"], {"value": "foo"})
        instances["a"].set_status(NodeStatus.PENDING)

        assert instances["c"].collect_inputs(concat_graph, instances) == {}


class TestSetStatus:
    """Tests for set_status."""

    def test_reports_to_sink(self, graph_factory, instances_factory, sink) -> None:
        graph = graph_factory([("a", "static")])
        a = instances_factory(graph, sink)["a"]

        a.set_status(NodeStatus.RUNNING)
        a.set_status(NodeStatus.RUNNING)

        assert sink.statuses("a") == [NodeStatus.RUNNING, NodeStatus.RUNNING]
        assert sink.last("a") is a.state


class TestExecute:
    """Tests for execute."""

    @pytest.mark.asyncio
    async def test_success(self, concat_graph, instances_factory, sink) -> None:
        instances = instances_factory(concat_graph, sink)
        complete(instances["a"], {"value": "foo"})
        complete(instances["b"], {"value": "bar"})

        await instances["c"].execute(CancellationSignal(), concat_graph, instances)

        assert instances["c"].status == NodeStatus.COMPLETED
        assert instances["c"].state.output == {"text": "foo\nbar"}
        assert sink.statuses("c") == [NodeStatus.RUNNING, NodeStatus.COMPLETED]

    @pytest.mark.asyncio
    async def test_noop_unless_pending(self, graph_factory, instances_factory, registry) -> None:
        graph = graph_factory([("a", "static", {"value": 1})])
        instances = instances_factory(graph)
        complete(instances["a"], {"value": 0})

        await instances["a"].execute(CancellationSignal(), graph, instances)

        assert registry.get("static").calls == []
        assert instances["a"].state.output == {"value": 0}

    @pytest.mark.asyncio
    async def test_concurrent_execute_runs_once(self, graph_factory, instances_factory, registry) -> None:
        graph = graph_factory([("g", "gate")])
        instances = instances_factory(graph)
        gate = registry.get("gate")
        signal = CancellationSignal()

        first = asyncio.create_task(instances["g"].execute(signal, graph, instances))
        second = asyncio.create_task(instances["g"].execute(signal, graph, instances))
        await asyncio.wait_for(gate.started.wait(), timeout=1)
        gate.release.set()
        await asyncio.gather(first, second)

        assert gate.calls == ["g"]
        assert instances["g"].status == NodeStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_cancelled_before_start(self, graph_factory, instances_factory, registry) -> None:
        graph = graph_factory([("a", "static")])
        instances = instances_factory(graph)
        signal = CancellationSignal()
        signal.cancel()

        await instances["a"].execute(signal, graph, instances)

        assert instances["a"].status == NodeStatus.PENDING
        assert "Cancelled" in instances["a"].state.extra["note"]
        assert registry.get("static").calls == []

    @pytest.mark.asyncio
    async def test_cancel_mid_run_returns_to_pending(self, graph_factory, instances_factory, registry) -> None:
        graph = graph_factory([("g", "gate")])
        instances = instances_factory(graph)
        signal = CancellationSignal()

        task = asyncio.create_task(instances["g"].execute(signal, graph, instances))
        await asyncio.wait_for(registry.get("gate").started.wait(), timeout=1)
        signal.cancel()
        await task

        state = instances["g"].state
        assert state.status == NodeStatus.PENDING
        assert state.error is None
        assert state.extra["note"] == "Cancelled"

    @pytest.mark.asyncio
    async def test_failure_sets_error_and_raises(self, graph_factory, instances_factory) -> None:
        graph = graph_factory([("f", "fail", {"message": "bad config"})])
        instances = instances_factory(graph)

        with pytest.raises(NodeExecutionError) as exc_info:
            await instances["f"].execute(CancellationSignal(), graph, instances)

        assert exc_info.value.node_id == "f"
        assert str(exc_info.value) == "bad config"
        assert instances["f"].status == NodeStatus.ERROR
        assert instances["f"].state.error == "bad config"
        assert isinstance(exc_info.value.__cause__, ValueError)

    @pytest.mark.asyncio
    async def test_non_mapping_output_is_error(self, graph_factory) -> None:
        class Broken(NodeDefinition):
            type_name = "broken"

            async def compute(self, inputs, config, context):
                return "not a mapping"

        graph = graph_factory([("x", "broken")])
        instance = NodeInstance("x", "broken", Broken(), ConfigCell())
        instances = {"x": instance}

        with pytest.raises(NodeExecutionError, match="expected a mapping"):
            await instance.execute(CancellationSignal(), graph, instances)

        assert instance.status == NodeStatus.ERROR

    @pytest.mark.asyncio
    async def test_rerun_clears_previous_error(self, graph_factory, instances_factory) -> None:
        graph = graph_factory([("a", "static", {"value": 1})])
        instances = instances_factory(graph)
        instances["a"].set_status(NodeStatus.PENDING, error="old", note="Cancelled")

        await instances["a"].execute(CancellationSignal(), graph, instances)

        assert instances["a"].state.error is None
        assert "note" not in instances["a"].state.extra

    @pytest.mark.asyncio
    async def test_config_is_read_at_execution(self, graph_factory, instances_factory) -> None:
        graph = graph_factory([("a", "static", {"value": "old"})])
        instances = instances_factory(graph)
        instances["a"].config.merge({"value": "new"})

        await instances["a"].execute(CancellationSignal(), graph, instances)

        assert instances["a"].state.output == {"value": "new"}


class TestReactivateUpstream:
    """Tests for reactivate_upstream."""

    def test_resets_parents_and_enqueues(self, concat_graph, instances_factory) -> None:
        instances = instances_factory(concat_graph)
        complete(instances["a"], {"value": "foo"})
        complete(instances["b"], {"value": "bar"})
        complete(instances["c"], {"text": "foo\nbar"})
        queue = FakeQueue()

        reactivated = instances["c"].reactivate_upstream(concat_graph, instances, queue)

        assert reactivated == ["a", "b"]
        assert queue.queued == ["a", "b"]
        assert instances["a"].status == NodeStatus.PENDING
        assert instances["b"].status == NodeStatus.PENDING
        # the caller itself is untouched
        assert instances["c"].status == NodeStatus.COMPLETED

    def test_root_has_nothing_to_reactivate(self, graph_factory, instances_factory) -> None:
        graph = graph_factory([("a", "static")])
        instances = instances_factory(graph)

        assert instances["a"].reactivate_upstream(graph, instances, FakeQueue()) == []

    def test_running_parent_left_running(self, concat_graph, instances_factory) -> None:
        instances = instances_factory(concat_graph)
        instances["a"].set_status(NodeStatus.RUNNING)
        queue = FakeQueue()

        instances["c"].reactivate_upstream(concat_graph, instances, queue)

        assert instances["a"].status == NodeStatus.RUNNING
        assert "a" in queue.queued


class TestNodeContext:
    """Tests for NodeContext.report."""

    def test_report_while_running(self, context_factory, registry, sink) -> None:
        context = context_factory(registry.get("static"), sink=sink)

        context.report(countdown=3)
        assert sink.last("n1").extra == {"countdown": 3}
        assert sink.last("n1").status == NodeStatus.RUNNING

        context.report(countdown=None)
        assert sink.last("n1").extra == {}
