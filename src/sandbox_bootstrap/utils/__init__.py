"""Utility exports for filesystem and background-task helpers."""

from sandbox_bootstrap.utils.concurrency import TaskSupervisor
from sandbox_bootstrap.utils.fs import (
    delete_recursively,
    ensure_directory,
    is_lexically_within,
    path_exists,
)

__all__ = [
    "TaskSupervisor",
    "delete_recursively",
    "ensure_directory",
    "is_lexically_within",
    "path_exists",
]
