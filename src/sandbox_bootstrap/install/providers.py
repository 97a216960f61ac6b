"""Archive providers: the boundary that hands the installer raw archive bytes."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Protocol

from sandbox_bootstrap.errors import ArchiveUnavailableError, PathLike


class ArchiveProvider(Protocol):
    """No-argument callable returning the complete bootstrap archive."""

    def __call__(self) -> bytes: ...


class StaticArchiveProvider:
    """Serve archive bytes that are already in memory."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)

    def __call__(self) -> bytes:
        return self._data


class FileArchiveProvider:
    """Read the archive from disk on first use and keep it for later calls.

    Nothing is read at construction time, so building a runtime whose prefix
    is already installed never touches the archive.
    """

    def __init__(self, path: PathLike) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()
        self._data: bytes | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def loaded(self) -> bool:
        return self._data is not None

    def __call__(self) -> bytes:
        with self._lock:
            if self._data is None:
                try:
                    self._data = self._path.read_bytes()
                except OSError as exc:
                    raise ArchiveUnavailableError(
                        f"unable to read bootstrap archive {self._path!s}: {exc}",
                        path=self._path,
                    ) from exc
            return self._data


__all__ = ["ArchiveProvider", "FileArchiveProvider", "StaticArchiveProvider"]
