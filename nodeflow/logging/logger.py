"""NodeFlow logger implementation."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from rich.console import Console
from rich.markup import escape


class LogLevel(str, Enum):
    """Log levels."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        """Get numeric rank for comparison."""
        ranks = {"debug": 0, "info": 1, "warning": 2, "error": 3}
        return ranks[self.value]


class NodeFlowLogger:
    """Structured logger for NodeFlow.

    Provides Rich-formatted logging for run and node execution tracking.

    Example:
        >>> logger = NodeFlowLogger(level=LogLevel.DEBUG)
        >>> logger.info("Graph loaded", nodes=4)
        >>> logger.node_start("llm_1", "llm")
    """

    def __init__(
        self,
        level: LogLevel = LogLevel.INFO,
        console: Console | None = None,
        show_timestamps: bool = True,
        show_level: bool = True,
        enabled: bool = True,
    ) -> None:
        """Initialize logger.

        Args:
            level: Minimum log level to display.
            console: Rich console instance (created if None).
            show_timestamps: Whether to show timestamps.
            show_level: Whether to show log level.
            enabled: Whether logging is enabled.
        """
        self._level = level
        self._console = console or Console(stderr=True)
        self._show_timestamps = show_timestamps
        self._show_level = show_level
        self._enabled = enabled

    @property
    def level(self) -> LogLevel:
        """Current log level."""
        return self._level

    @level.setter
    def level(self, value: LogLevel) -> None:
        self._level = value

    @property
    def enabled(self) -> bool:
        """Whether logging is enabled."""
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = value

    def _should_log(self, level: LogLevel) -> bool:
        return self._enabled and level.rank >= self._level.rank

    def _format_prefix(self, level: LogLevel) -> str:
        """Format log prefix with timestamp and level."""
        parts = []

        if self._show_timestamps:
            timestamp = datetime.now().strftime("%H:%M:%S")
            parts.append(f"[dim]{timestamp}[/]")

        if self._show_level:
            level_colors = {
                LogLevel.DEBUG: "dim",
                LogLevel.INFO: "blue",
                LogLevel.WARNING: "yellow",
                LogLevel.ERROR: "red bold",
            }
            color = level_colors.get(level, "white")
            parts.append(f"[{color}]{level.value.upper():7}[/]")

        return " ".join(parts)

    def _emit(self, level: LogLevel, body: str) -> None:
        if not self._should_log(level):
            return
        prefix = self._format_prefix(level)
        self._console.print(f"{prefix} {body}" if prefix else body)

    def _log(self, level: LogLevel, message: str, **context: Any) -> None:
        if context:
            context_str = " ".join(
                f"[dim]{k}=[/]{escape(str(v))}" for k, v in context.items()
            )
            message = f"{escape(message)} {context_str}"
        else:
            message = escape(message)
        self._emit(level, message)

    def debug(self, message: str, **context: Any) -> None:
        """Log debug message."""
        self._log(LogLevel.DEBUG, message, **context)

    def info(self, message: str, **context: Any) -> None:
        """Log info message."""
        self._log(LogLevel.INFO, message, **context)

    def warning(self, message: str, **context: Any) -> None:
        """Log warning message."""
        self._log(LogLevel.WARNING, message, **context)

    def error(self, message: str, **context: Any) -> None:
        """Log error message."""
        self._log(LogLevel.ERROR, message, **context)

    # Run and node events

    def run_start(self, run_id: str, node_count: int, ready_count: int) -> None:
        """Log run start."""
        self._emit(
            LogLevel.INFO,
            f"[bold cyan]◆ Run {run_id}[/] starting with {node_count} nodes "
            f"({ready_count} ready)",
        )

    def run_end(self, run_id: str, status: str, duration_ms: int) -> None:
        """Log run termination."""
        colors = {"completed": "green", "cancelled": "yellow", "failed": "red"}
        color = colors.get(status, "white")
        level = LogLevel.ERROR if status == "failed" else LogLevel.INFO
        self._emit(
            level,
            f"[bold cyan]◆ Run {run_id}[/] [{color}]{status}[/] ({duration_ms}ms)",
        )

    def node_start(self, node_id: str, node_type: str) -> None:
        self._emit(
            LogLevel.DEBUG,
            f"  [bold blue]▶ {escape(node_id)}[/] [dim]({escape(node_type)})[/] running",
        )

    def node_end(self, node_id: str, duration_ms: int) -> None:
        self._emit(
            LogLevel.DEBUG,
            f"  [bold green]✓ {escape(node_id)}[/] completed ({duration_ms}ms)",
        )

    def node_cancelled(self, node_id: str, note: str) -> None:
        self._emit(
            LogLevel.WARNING,
            f"  [yellow]⏸ {escape(node_id)}[/] back to pending: {escape(note)}",
        )

    def node_error(self, node_id: str, error: str) -> None:
        """Log node failure."""
        self._emit(
            LogLevel.ERROR,
            f"  [bold red]✗ {escape(node_id)}[/] failed: {escape(error)}",
        )

    def reactivation(self, node_id: str, upstream: list[str]) -> None:
        """Log a feedback request re-queuing upstream nodes."""
        self._emit(
            LogLevel.DEBUG,
            f"  [magenta]↺ {escape(node_id)}[/] reactivating "
            f"{escape(', '.join(upstream)) or '(none)'}",
        )
