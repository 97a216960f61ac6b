"""Host storage locations exposed to the sandbox home directory."""

from __future__ import annotations

from collections.abc import Sequence
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from sandbox_bootstrap.constants import PUBLIC_DIRECTORY_LINKS

if TYPE_CHECKING:
    from sandbox_bootstrap.config.schema import StorageConfig
    from sandbox_bootstrap.errors import PathLike

_DIRECTORY_NAMES: dict[str, str] = dict(PUBLIC_DIRECTORY_LINKS)


class PublicDirectory(StrEnum):
    """Well-known public directories, valued by the link name used for them."""

    DOWNLOADS = "downloads"
    DCIM = "dcim"
    PICTURES = "pictures"
    MUSIC = "music"
    MOVIES = "movies"

    @property
    def directory_name(self) -> str:
        return _DIRECTORY_NAMES[self.value]


class HostStorage(Protocol):
    """Host-provided storage locations."""

    def shared_root(self) -> Path: ...

    def public_directory(self, kind: PublicDirectory) -> Path: ...

    def external_volumes(self) -> Sequence[Path | None]:
        """All storage volumes in host order; the primary volume comes first."""
        ...


class ConfiguredHostStorage:
    """Host storage described by static paths.

    Public directories are the conventional subdirectories of the shared root
    (``Download``, ``DCIM``, ``Pictures``, ``Music``, ``Movies``).
    """

    def __init__(self, shared_root: PathLike, volumes: Sequence[PathLike | None] = ()) -> None:
        self._shared_root = Path(shared_root)
        self._volumes = tuple(Path(volume) if volume is not None else None for volume in volumes)

    @classmethod
    def from_config(cls, config: StorageConfig) -> ConfiguredHostStorage:
        if config.shared_root is None:
            raise ValueError("storage.shared_root is not configured")
        return cls(config.shared_root, config.external_volumes)

    def shared_root(self) -> Path:
        return self._shared_root

    def public_directory(self, kind: PublicDirectory) -> Path:
        return self._shared_root / PublicDirectory(kind).directory_name

    def external_volumes(self) -> Sequence[Path | None]:
        return self._volumes


__all__ = ["ConfiguredHostStorage", "HostStorage", "PublicDirectory"]
