"""Host storage links under the sandbox home directory."""

from sandbox_bootstrap.storage.host import ConfiguredHostStorage, HostStorage, PublicDirectory
from sandbox_bootstrap.storage.linker import StorageLinker

__all__ = ["ConfiguredHostStorage", "HostStorage", "PublicDirectory", "StorageLinker"]
