"""Public observability primitives: structured logging and progress broadcasting."""

from sandbox_bootstrap.observability.logging import (
    LoggingConfig,
    LoggingHandle,
    flush_logging,
    get_active_logging_handle,
    setup_logging,
    shutdown_logging,
)
from sandbox_bootstrap.observability.progress import DispatchError, ProgressChannel, Subscriber

__all__ = [
    "DispatchError",
    "LoggingConfig",
    "LoggingHandle",
    "ProgressChannel",
    "Subscriber",
    "flush_logging",
    "get_active_logging_handle",
    "setup_logging",
    "shutdown_logging",
]
