"""Application lifecycle owner wiring the installer, storage linker, and progress channel."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any

from sandbox_bootstrap.install.archive import ArchiveExtractor
from sandbox_bootstrap.install.installer import BootstrapInstaller
from sandbox_bootstrap.install.providers import FileArchiveProvider
from sandbox_bootstrap.observability.progress import ProgressChannel
from sandbox_bootstrap.storage.host import ConfiguredHostStorage
from sandbox_bootstrap.storage.linker import StorageLinker
from sandbox_bootstrap.utils.concurrency import TaskSupervisor

if TYPE_CHECKING:
    import asyncio
    from pathlib import Path
    from types import TracebackType

    from sandbox_bootstrap.config.schema import BootstrapConfig
    from sandbox_bootstrap.domain.progress import ProgressState
    from sandbox_bootstrap.install.providers import ArchiveProvider
    from sandbox_bootstrap.storage.host import HostStorage


class BootstrapRuntime:
    """Construct-once services for one application lifetime.

    Use as ``async with BootstrapRuntime(config) as runtime:``. Leaving the
    block waits for every install and storage-link run started inside it, then
    closes the progress channel when the runtime created it.
    """

    def __init__(
        self,
        config: BootstrapConfig,
        *,
        archive_provider: ArchiveProvider | None = None,
        host_storage: HostStorage | None = None,
        progress: ProgressChannel | None = None,
        logger: Any | None = None,
    ) -> None:
        self._config = config
        self._archive_provider = archive_provider
        self._host_storage = host_storage
        self._owns_progress = progress is None
        self._progress = progress if progress is not None else ProgressChannel()
        self._logger = logger
        self._supervisor = TaskSupervisor()
        self._init_lock = threading.Lock()
        self._installer: BootstrapInstaller | None = None
        self._storage_linker: StorageLinker | None = None

    async def __aenter__(self) -> BootstrapRuntime:
        await self._supervisor.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool | None:
        try:
            return await self._supervisor.__aexit__(exc_type, exc, tb)
        finally:
            if self._owns_progress:
                self._progress.close()

    @property
    def config(self) -> BootstrapConfig:
        return self._config

    @property
    def progress(self) -> ProgressChannel:
        return self._progress

    @property
    def supervisor(self) -> TaskSupervisor:
        return self._supervisor

    @property
    def installer(self) -> BootstrapInstaller:
        """The installer, built on first access and shared afterwards."""

        installer = self._installer
        if installer is None:
            with self._init_lock:
                installer = self._installer
                if installer is None:
                    installer = self._build_installer()
                    self._installer = installer
        return installer

    @property
    def storage_linker(self) -> StorageLinker:
        linker = self._storage_linker
        if linker is None:
            with self._init_lock:
                linker = self._storage_linker
                if linker is None:
                    linker = StorageLinker(
                        self._config.paths.home,
                        host=self._resolve_host_storage(),
                        supervisor=self._supervisor,
                        logger=self._logger,
                    )
                    self._storage_linker = linker
        return linker

    def setup_if_needed(self) -> asyncio.Task[ProgressState] | None:
        return self.installer.setup_if_needed()

    def link_storage(self) -> asyncio.Task[tuple[Path, ...]]:
        return self.storage_linker.link_storage()

    def _build_installer(self) -> BootstrapInstaller:
        return BootstrapInstaller(
            self._config.paths,
            archive_provider=self._resolve_archive_provider(),
            progress=self._progress,
            supervisor=self._supervisor,
            extractor=ArchiveExtractor(
                executable_prefixes=self._config.install.executable_prefixes,
                logger=self._logger,
            ),
            strict_done_outcome=self._config.install.strict_done_outcome,
            logger=self._logger,
        )

    def _resolve_archive_provider(self) -> ArchiveProvider:
        if self._archive_provider is not None:
            return self._archive_provider
        if self._config.archive.path is None:
            raise ValueError("no archive provider given and archive.path is not configured")
        return FileArchiveProvider(self._config.archive.path)

    def _resolve_host_storage(self) -> HostStorage:
        if self._host_storage is not None:
            return self._host_storage
        return ConfiguredHostStorage.from_config(self._config.storage)


__all__ = ["BootstrapRuntime"]
