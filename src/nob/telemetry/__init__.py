"""Logging for nob."""

from nob.telemetry.logger import (
    LoggerMixin,
    bind_context,
    clear_context,
    get_logger,
    setup_logging,
    unbind_context,
)

__all__ = [
    "LoggerMixin",
    "bind_context",
    "clear_context",
    "get_logger",
    "setup_logging",
    "unbind_context",
]
