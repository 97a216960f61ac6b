"""
sandbox-bootstrap — filesystem utilities

File: src/sandbox_bootstrap/utils/fs.py
Last updated: 2026-10-18

Purpose
- Idempotent directory creation, symlink-safe recursive deletion, and lexical
  containment checks shared by the installer and the storage linker.

Functional requirements
- Deletion never descends through a symlinked directory; the link itself is removed.
- Any single removal failure aborts the whole deletion with ``DeletionError``.

Non-functional requirements
- Standard library only; POSIX semantics assumed for symlinks and permission bits.
"""

from __future__ import annotations

import os
import stat
from pathlib import Path

from sandbox_bootstrap.errors import DeletionError, DirectoryCreationError, PathLike

__all__ = [
    "delete_recursively",
    "ensure_directory",
    "is_lexically_within",
    "path_exists",
]


def ensure_directory(path: PathLike) -> Path:
    """
    Make sure ``path`` is a directory, creating missing parents.

    An existing directory is not an error. Anything else that prevents the
    directory from existing afterwards raises ``DirectoryCreationError``.
    """

    directory = Path(path)
    if directory.is_dir():
        return directory
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        # Lost a race with another creator; the outcome is what matters.
        if directory.is_dir():
            return directory
        raise DirectoryCreationError(directory) from exc
    return directory


def path_exists(path: PathLike) -> bool:
    """Return ``True`` if ``path`` exists, counting dangling symlinks as existing."""

    return os.path.lexists(path)


def delete_recursively(path: PathLike) -> None:
    """
    Delete a file, symlink, or directory tree rooted at ``path``.

    A directory is only descended into when it is not itself a symlink, so the
    contents of a symlinked directory are never touched. The first removal
    that fails raises ``DeletionError``; nothing is reported as partially done.
    """

    target = Path(os.path.abspath(path))
    try:
        mode = os.lstat(target).st_mode
    except OSError as exc:
        raise DeletionError(f"unable to stat {target!s}", path=target) from exc

    if stat.S_ISDIR(mode):
        try:
            with os.scandir(target) as entries:
                children = [Path(entry.path) for entry in entries]
        except OSError as exc:
            raise DeletionError(f"unable to list directory {target!s}", path=target) from exc
        for child in children:
            delete_recursively(child)
        try:
            os.rmdir(target)
        except OSError as exc:
            raise DeletionError(f"unable to delete directory {target!s}", path=target) from exc
        return

    try:
        os.unlink(target)
    except OSError as exc:
        raise DeletionError(f"unable to delete file {target!s}", path=target) from exc


def is_lexically_within(child: PathLike, parent: PathLike) -> bool:
    """
    Return ``True`` if normalized ``child`` lies within normalized ``parent``.

    Purely lexical: symlinks are not resolved, so this is safe to use on paths
    that do not exist yet.
    """

    normalized_parent = os.path.normpath(os.path.abspath(parent))
    normalized_child = os.path.normpath(os.path.abspath(child))
    try:
        common = os.path.commonpath([normalized_parent, normalized_child])
    except ValueError:
        return False
    return common == normalized_parent
