"""Domain values: install steps, progress snapshots, and archive/manifest entries."""

from sandbox_bootstrap.domain.models import ArchiveEntry, SymlinkEntry
from sandbox_bootstrap.domain.progress import InstallStep, ProgressState

__all__ = ["ArchiveEntry", "InstallStep", "ProgressState", "SymlinkEntry"]
