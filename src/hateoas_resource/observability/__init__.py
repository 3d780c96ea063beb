"""Observability - logging and metrics."""

from .logger import (
    LogContext,
    add_context,
    clear_all_context,
    clear_context,
    configure_from_config,
    configure_logging,
)
from .metrics import LoggerBackend, MetricsCollector, get_global_collector

__all__ = [
    "MetricsCollector",
    "LoggerBackend",
    "get_global_collector",
    "configure_logging",
    "configure_from_config",
    "add_context",
    "clear_context",
    "clear_all_context",
    "LogContext",
]
