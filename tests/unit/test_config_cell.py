"""Unit tests for ConfigCell."""

from __future__ import annotations

import threading

from nodeflow.core.config_cell import ConfigCell


class TestConfigCell:
    """Tests for ConfigCell."""

    def test_initial_data(self) -> None:
        cell = ConfigCell({"text": "hello"})

        assert cell["text"] == "hello"
        assert "text" in cell
        assert len(cell) == 1
        assert cell.version == 0

    def test_merge_replaces_fields(self) -> None:
        cell = ConfigCell({"text": "hello", "keep": 1})
        cell.merge({"text": "bye"})

        assert cell.snapshot() == {"text": "bye", "keep": 1}
        assert cell.version == 1

    def test_snapshot_is_a_copy(self) -> None:
        """Mutating a snapshot does not affect the cell."""
        cell = ConfigCell({"text": "hello"})
        snap = cell.snapshot()
        snap["text"] = "changed"

        assert cell.get("text") == "hello"

    def test_get_default(self) -> None:
        assert ConfigCell().get("missing", 5) == 5

    def test_iteration(self) -> None:
        cell = ConfigCell({"a": 1, "b": 2})

        assert sorted(cell) == ["a", "b"]

    def test_concurrent_merges(self) -> None:
        """Merges from many threads are all applied."""
        cell = ConfigCell()

        def writer(i: int) -> None:
            for j in range(100):
                cell.merge({f"k{i}": j})

        threads = [threading.Thread(target=writer, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        snap = cell.snapshot()
        assert len(snap) == 8
        assert all(value == 99 for value in snap.values())
        assert cell.version == 800
