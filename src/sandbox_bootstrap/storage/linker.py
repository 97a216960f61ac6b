"""Rebuild ``$HOME/storage`` as a set of symlinks into host storage."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any

import structlog

from sandbox_bootstrap.constants import EXTERNAL_LINK_PREFIX, SHARED_LINK_NAME, STORAGE_DIR_NAME
from sandbox_bootstrap.errors import DeletionError, SymlinkCreationError
from sandbox_bootstrap.storage.host import PublicDirectory
from sandbox_bootstrap.utils.fs import delete_recursively, path_exists

if TYPE_CHECKING:
    import asyncio
    from pathlib import Path

    from sandbox_bootstrap.storage.host import HostStorage
    from sandbox_bootstrap.utils.concurrency import TaskSupervisor


class StorageLinker:
    """Delete and recreate the storage directory, then link host locations into it.

    Independent of the installer: it only touches ``<home>/storage``.
    """

    def __init__(
        self,
        home: Path,
        *,
        host: HostStorage,
        supervisor: TaskSupervisor,
        logger: Any | None = None,
    ) -> None:
        self._storage_dir = home / STORAGE_DIR_NAME
        self._host = host
        self._supervisor = supervisor
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    @property
    def storage_dir(self) -> Path:
        return self._storage_dir

    def link_storage(self) -> asyncio.Task[tuple[Path, ...]]:
        """Start relinking in the background and return its task immediately."""

        return self._supervisor.spawn("storage-link", self.run_link_storage)

    def run_link_storage(self) -> tuple[Path, ...]:
        """Relink synchronously. Returns the links created; never raises for filesystem errors."""

        storage_dir = self._storage_dir
        if path_exists(storage_dir):
            try:
                delete_recursively(storage_dir)
            except DeletionError as exc:
                self._logger.error(
                    "storage_reset_failed", storage_dir=str(storage_dir), error=str(exc)
                )
                return ()

        try:
            storage_dir.mkdir(parents=True)
        except OSError as exc:
            self._logger.error("storage_mkdir_failed", storage_dir=str(storage_dir), error=str(exc))
            return ()

        created: list[Path] = []
        try:
            self._link(self._host.shared_root(), SHARED_LINK_NAME, created)
            for kind in PublicDirectory:
                self._link(self._host.public_directory(kind), kind.value, created)

            volumes = list(self._host.external_volumes())
            for index, volume in enumerate(volumes[1:], start=1):
                if volume is None:
                    continue
                self._link(volume, f"{EXTERNAL_LINK_PREFIX}{index}", created)
        except Exception:  # noqa: BLE001 - partial linking is an accepted end state.
            self._logger.exception(
                "storage_link_failed", storage_dir=str(storage_dir), created=len(created)
            )
        else:
            self._logger.info("storage_linked", storage_dir=str(storage_dir), links=len(created))
        return tuple(created)

    def _link(self, target: Path, name: str, created: list[Path]) -> None:
        link_path = self._storage_dir / name
        try:
            os.symlink(os.path.abspath(target), link_path)
        except OSError as exc:
            raise SymlinkCreationError(str(target), link_path) from exc
        created.append(link_path)


__all__ = ["StorageLinker"]
