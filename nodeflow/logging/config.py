"""Process-wide engine logger.

The orchestrator and node instances report run and node events through
the logger returned by :func:`get_logger`. Its level defaults to
``Settings.log_level`` (``NODEFLOW_LOG_LEVEL``).
"""

from __future__ import annotations

from rich.console import Console

from nodeflow.logging.logger import LogLevel, NodeFlowLogger

_logger: NodeFlowLogger | None = None


def _resolve_level(level: LogLevel | str | None) -> LogLevel:
    if level is None:
        from nodeflow.settings import get_settings

        level = get_settings().log_level
    if isinstance(level, str):
        return LogLevel(level.lower())
    return level


def get_logger() -> NodeFlowLogger:
    """Return the engine logger, creating it from settings on first use."""
    global _logger
    if _logger is None:
        _logger = NodeFlowLogger(level=_resolve_level(None))
    return _logger


def configure_logging(
    level: LogLevel | str | None = None,
    *,
    enabled: bool = True,
    show_timestamps: bool = True,
    show_level: bool = True,
    console: Console | None = None,
) -> NodeFlowLogger:
    """Replace the engine logger.

    Run start and end lines are INFO (ERROR for a failed run), node
    start and end are DEBUG, a node sent back to pending is WARNING and
    a node error is ERROR.

    Args:
        level: Minimum level, as a LogLevel or its name. None uses
            ``Settings.log_level``.
        enabled: Whether anything is printed at all.
        show_timestamps: Prefix lines with the time.
        show_level: Prefix lines with the level name.
        console: Rich console to print to. Defaults to stderr.

    Returns:
        The new engine logger.

    Example:
        >>> configure_logging("debug", show_timestamps=False)
        >>> get_logger().node_start("text_1", "text")
    """
    global _logger
    _logger = NodeFlowLogger(
        level=_resolve_level(level),
        console=console,
        enabled=enabled,
        show_timestamps=show_timestamps,
        show_level=show_level,
    )
    return _logger


def disable_logging() -> None:
    """Silence the engine logger."""
    get_logger().enabled = False


def enable_logging() -> None:
    get_logger().enabled = True
