"""
sandbox-bootstrap — prefix installer.

File: src/sandbox_bootstrap/install/installer.py
Last updated: 2026-10-18

Purpose
- Install the bootstrap archive into the prefix when the prefix is missing.

Procedure
1. A prefix that already is a directory is assumed correct; nothing else
   happens. This relies on the prefix only ever appearing through step 6.
2. A staging directory left over from an interrupted run is deleted.
3. The archive bytes are obtained from the archive provider.
4. Entries are extracted into staging; ``SYMLINKS.txt`` is parsed instead.
5. Manifest symlinks are created in staging, in manifest order.
6. Staging is renamed onto the prefix in a single ``os.rename``.

Every step outcome is published on the progress channel. Failures abort the
run, are logged, and surface only as ``False`` step flags.
"""

from __future__ import annotations

import asyncio
import os
import threading
import uuid
from typing import TYPE_CHECKING, Any

import structlog

from sandbox_bootstrap.domain.progress import InstallStep, ProgressState
from sandbox_bootstrap.errors import (
    ArchiveUnavailableError,
    ManifestCorruptionError,
    RenameError,
    SymlinkCreationError,
)
from sandbox_bootstrap.install.archive import ArchiveExtractor
from sandbox_bootstrap.utils.fs import delete_recursively, path_exists

if TYPE_CHECKING:
    from sandbox_bootstrap.config.schema import PathsConfig
    from sandbox_bootstrap.domain.models import SymlinkEntry
    from sandbox_bootstrap.install.providers import ArchiveProvider
    from sandbox_bootstrap.observability.progress import ProgressChannel
    from sandbox_bootstrap.utils.concurrency import TaskSupervisor


class _InstallRun:
    """Mutable bookkeeping for one run: the snapshot so far and the step in flight."""

    __slots__ = ("run_id", "state", "step")

    def __init__(self, state: ProgressState) -> None:
        self.run_id = uuid.uuid4().hex
        self.state = state
        self.step = InstallStep.INIT


class BootstrapInstaller:
    """Install the prefix from the bootstrap archive if it is not installed yet."""

    def __init__(
        self,
        paths: PathsConfig,
        *,
        archive_provider: ArchiveProvider,
        progress: ProgressChannel,
        supervisor: TaskSupervisor,
        extractor: ArchiveExtractor | None = None,
        strict_done_outcome: bool = False,
        logger: Any | None = None,
    ) -> None:
        self._paths = paths
        self._archive_provider = archive_provider
        self._progress = progress
        self._supervisor = supervisor
        self._extractor = extractor if extractor is not None else ArchiveExtractor()
        self._strict_done_outcome = strict_done_outcome
        self._logger = logger if logger is not None else structlog.get_logger(__name__)
        self._lock = threading.Lock()
        self._active: asyncio.Task[ProgressState] | None = None

    @property
    def progress(self) -> ProgressChannel:
        return self._progress

    @property
    def paths(self) -> PathsConfig:
        return self._paths

    def setup_if_needed(self) -> asyncio.Task[ProgressState] | None:
        """Start an install unless the prefix exists.

        Returns ``None`` when the prefix is already a directory (after
        publishing ``INIT=False``). Otherwise publishes ``INIT=True`` and
        returns the background task running the install. A call made while a
        run is in flight returns that run's task.
        """

        with self._lock:
            if self._active is not None and not self._active.done():
                self._logger.info("bootstrap_already_running", prefix=str(self._paths.prefix))
                return self._active

            state = ProgressState().record(InstallStep.INIT, True)
            if self._paths.prefix.is_dir():
                self._progress.publish(state.record(InstallStep.INIT, False))
                return None

            self._progress.publish(state)
            self._active = self._supervisor.spawn("bootstrap-install", self.run_install, state)
            return self._active

    def run_install(self, state: ProgressState | None = None) -> ProgressState:
        """Run the install synchronously on the calling thread and return the final snapshot."""

        if state is None:
            state = ProgressState().record(InstallStep.INIT, True)
        run = _InstallRun(state)
        with structlog.contextvars.bound_contextvars(run_id=run.run_id):
            self._logger.info(
                "bootstrap_started",
                prefix=str(self._paths.prefix),
                staging=str(self._paths.staging),
            )
            try:
                self._install(run)
            except Exception as exc:  # noqa: BLE001 - background run boundary.
                self._logger.exception(
                    "bootstrap_failed",
                    step=run.step.name,
                    error_type=exc.__class__.__name__,
                )
                if run.state.get(run.step) is not False:
                    self._record(run, run.step, False)
                self._record(run, InstallStep.DONE, False)
            finally:
                if not self._strict_done_outcome:
                    # Observers watching only DONE always end on True; step flags carry the outcome.
                    self._record(run, InstallStep.DONE, True)
            self._logger.info(
                "bootstrap_finished",
                succeeded=run.state.succeeded,
                failed_steps=[step.name for step in run.state.failed_steps],
            )
        return run.state

    def _install(self, run: _InstallRun) -> None:
        staging = self._paths.staging
        prefix = self._paths.prefix

        run.step = InstallStep.CHECK_STAGING_DIRECTORY
        if path_exists(staging):
            delete_recursively(staging)
            self._logger.info("bootstrap_stale_staging_removed", staging=str(staging))
        self._record(run, InstallStep.CHECK_STAGING_DIRECTORY, True)

        run.step = InstallStep.GET_ARCHIVE
        data = self._load_archive()
        self._record(run, InstallStep.GET_ARCHIVE, True)

        run.step = InstallStep.UNZIP_ARCHIVE
        symlinks = self._extractor.extract(data, staging)
        self._record(run, InstallStep.UNZIP_ARCHIVE, True)

        run.step = InstallStep.CREATE_SYMLINKS
        if not symlinks:
            raise ManifestCorruptionError("no SYMLINKS.txt encountered")
        for entry in symlinks:
            _create_symlink(entry)
            self._record(run, InstallStep.CREATE_SYMLINKS, True)
        self._logger.info("bootstrap_symlinks_created", count=len(symlinks))

        run.step = InstallStep.COMMIT_RENAME
        try:
            os.rename(staging, prefix)
        except OSError as exc:
            raise RenameError(
                f"unable to rename staging folder {staging!s} to {prefix!s}: {exc}",
                path=staging,
            ) from exc
        self._record(run, InstallStep.COMMIT_RENAME, True)

        run.step = InstallStep.DONE
        self._record(run, InstallStep.DONE, True)
        self._logger.info("bootstrap_installed", prefix=str(prefix))

    def _load_archive(self) -> bytes:
        try:
            data = self._archive_provider()
        except ArchiveUnavailableError:
            raise
        except Exception as exc:
            raise ArchiveUnavailableError(f"archive provider failed: {exc}") from exc
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise ArchiveUnavailableError(
                f"archive provider returned {type(data).__name__}, expected bytes"
            )
        return bytes(data)

    def _record(self, run: _InstallRun, step: InstallStep, outcome: bool) -> None:
        run.state = run.state.record(step, outcome)
        self._progress.publish(run.state)


def _create_symlink(entry: SymlinkEntry) -> None:
    try:
        os.symlink(entry.target, entry.link_path)
    except OSError as exc:
        raise SymlinkCreationError(entry.target, entry.link_path) from exc


__all__ = ["BootstrapInstaller"]
