"""Unit tests for archive providers."""

from __future__ import annotations

from pathlib import Path

import pytest

from sandbox_bootstrap.errors import ArchiveUnavailableError
from sandbox_bootstrap.install.providers import FileArchiveProvider, StaticArchiveProvider

from . import sample_archive


@pytest.mark.unit
def test_static_provider_returns_its_bytes() -> None:
    data = sample_archive()

    assert StaticArchiveProvider(bytearray(data))() == data


@pytest.mark.unit
def test_file_provider_reads_lazily_and_caches(tmp_path: Path) -> None:
    archive_path = tmp_path / "bootstrap.zip"
    archive_path.write_bytes(b"first")
    provider = FileArchiveProvider(archive_path)

    assert not provider.loaded
    assert provider() == b"first"
    archive_path.write_bytes(b"second")
    assert provider() == b"first"
    assert provider.loaded
    assert provider.path == archive_path


@pytest.mark.unit
def test_file_provider_missing_file_is_unavailable(tmp_path: Path) -> None:
    provider = FileArchiveProvider(tmp_path / "missing.zip")

    with pytest.raises(ArchiveUnavailableError) as excinfo:
        provider()

    assert excinfo.value.path == tmp_path / "missing.zip"
    assert not provider.loaded
