"""Transient values produced while extracting the bootstrap archive."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO


@dataclass(frozen=True, slots=True)
class SymlinkEntry:
    """One manifest line: create ``link_path`` pointing at ``target``."""

    target: str
    link_path: Path


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    """A streamed archive member. ``content`` is only readable until the next entry."""

    name: str
    is_directory: bool
    content: BinaryIO


__all__ = ["ArchiveEntry", "SymlinkEntry"]
