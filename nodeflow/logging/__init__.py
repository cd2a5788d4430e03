"""Logging module for NodeFlow.

Provides structured logging with Rich console support.
"""

from nodeflow.logging.logger import LogLevel, NodeFlowLogger
from nodeflow.logging.config import (
    configure_logging,
    disable_logging,
    enable_logging,
    get_logger,
)

__all__ = [
    "LogLevel",
    "NodeFlowLogger",
    "get_logger",
    "configure_logging",
    "disable_logging",
    "enable_logging",
]
