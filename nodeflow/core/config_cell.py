"""Shared, mutable node configuration.

A ConfigCell is owned by whoever edits the graph (the UI) and is handed to
the running node instance by reference, so edits made mid-run are visible
to the next execution of that node.
"""

from __future__ import annotations

import threading
from typing import Any, Iterator, Mapping


class ConfigCell:
    """Lock-guarded key/value configuration for one node.

    Writers replace whole fields (last write wins per field); readers take
    a point-in-time copy with :meth:`snapshot`.

    Example:
        >>> cell = ConfigCell({"text": "hello"})
        >>> cell.merge({"text": "bye", "extra": 1})
        >>> cell.snapshot()
        {'text': 'bye', 'extra': 1}
    """

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(data or {})
        self._lock = threading.Lock()
        self._version = 0

    @property
    def version(self) -> int:
        """Number of merges applied so far."""
        with self._lock:
            return self._version

    def merge(self, patch: Mapping[str, Any]) -> None:
        """Apply a partial update."""
        with self._lock:
            self._data.update(patch)
            self._version += 1

    def snapshot(self) -> dict[str, Any]:
        """Copy of the current configuration."""
        with self._lock:
            return dict(self._data)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._data.get(key, default)

    def __getitem__(self, key: str) -> Any:
        with self._lock:
            return self._data[key]

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __repr__(self) -> str:
        return f"ConfigCell({self.snapshot()!r})"
