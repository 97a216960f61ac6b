"""
sandbox-bootstrap — bootstrap archive extraction.

File: src/sandbox_bootstrap/install/archive.py
Last updated: 2026-10-18

Purpose
- Stream zip entries into a destination root, one entry at a time.
- Parse the ``SYMLINKS.txt`` manifest instead of writing it, since zip cannot
  carry symlinks portably.
- Apply the owner-only executable mode to files under the executable prefixes.

Functional requirements
- Each manifest line is ``target←relative_path``; any other shape is fatal.
- Link parents are created while parsing so later symlink creation cannot
  fail on a missing directory.
- Entry names and link paths must stay inside the destination root.
"""

from __future__ import annotations

import contextlib
import io
import os
import shutil
import zipfile
import zlib
from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any, BinaryIO

import structlog

from sandbox_bootstrap.constants import (
    COPY_BUFFER_SIZE,
    DEFAULT_EXECUTABLE_PREFIXES,
    EXECUTABLE_FILE_MODE,
    MANIFEST_ENCODING,
    SYMLINK_FIELD_DELIMITER,
    SYMLINKS_MANIFEST_NAME,
)
from sandbox_bootstrap.domain.models import ArchiveEntry, SymlinkEntry
from sandbox_bootstrap.errors import (
    ArchiveFormatError,
    FileWriteError,
    ManifestCorruptionError,
    UnsafeArchiveEntryError,
)
from sandbox_bootstrap.utils.fs import ensure_directory, is_lexically_within

if TYPE_CHECKING:
    from sandbox_bootstrap.errors import PathLike

_CORRUPT_STREAM_ERRORS = (zipfile.BadZipFile, zlib.error, EOFError)


def iter_archive_entries(data: bytes) -> Iterator[ArchiveEntry]:
    """Yield archive members in archive order, opening one content stream at a time."""

    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as exc:
        raise ArchiveFormatError(f"bootstrap archive is not a valid zip: {exc}") from exc

    with archive:
        for info in archive.infolist():
            try:
                stream = archive.open(info)
            except (*_CORRUPT_STREAM_ERRORS, NotImplementedError) as exc:
                raise ArchiveFormatError(
                    f"unable to open archive entry {info.filename!r}: {exc}"
                ) from exc
            with stream:
                yield ArchiveEntry(name=info.filename, is_directory=info.is_dir(), content=stream)


def parse_symlink_manifest(content: BinaryIO, destination: PathLike) -> list[SymlinkEntry]:
    """Parse manifest lines into symlink entries rooted at ``destination``.

    Lines are split with universal newlines. The parent directory of every
    link path is created before returning.
    """

    root = Path(destination)
    text = io.TextIOWrapper(content, encoding=MANIFEST_ENCODING, newline=None)
    entries: list[SymlinkEntry] = []
    try:
        for raw_line in text:
            entries.append(_parse_manifest_line(raw_line.removesuffix("\n"), root))
    except UnicodeDecodeError as exc:
        raise ManifestCorruptionError(f"{SYMLINKS_MANIFEST_NAME} is not valid UTF-8") from exc
    except _CORRUPT_STREAM_ERRORS as exc:
        raise ArchiveFormatError(f"corrupt {SYMLINKS_MANIFEST_NAME} entry: {exc}") from exc
    finally:
        # Leave the underlying archive stream to its owner.
        text.detach()
    return entries


def _parse_manifest_line(line: str, root: Path) -> SymlinkEntry:
    parts = line.split(SYMLINK_FIELD_DELIMITER)
    if len(parts) != 2:
        raise ManifestCorruptionError(f"malformed symlink line: {line!r}", line=line)

    target, relative_path = parts
    link_path = Path(f"{root}/{relative_path}")
    if not is_lexically_within(link_path.parent, root):
        raise UnsafeArchiveEntryError(relative_path)

    ensure_directory(link_path.parent)
    return SymlinkEntry(target=target, link_path=link_path)


class ArchiveExtractor:
    """Extract a bootstrap zip into a destination root and collect its symlink manifest."""

    def __init__(
        self,
        *,
        executable_prefixes: Sequence[str] = DEFAULT_EXECUTABLE_PREFIXES,
        logger: Any | None = None,
    ) -> None:
        self._executable_prefixes = tuple(executable_prefixes)
        self._logger = logger if logger is not None else structlog.get_logger(__name__)

    @property
    def executable_prefixes(self) -> tuple[str, ...]:
        return self._executable_prefixes

    def extract(self, data: bytes, destination: PathLike) -> list[SymlinkEntry]:
        """Write every non-manifest entry under ``destination`` and return manifest symlinks."""

        root = Path(destination)
        symlinks: list[SymlinkEntry] = []
        written = 0
        with contextlib.closing(iter_archive_entries(data)) as entries:
            for entry in entries:
                if entry.name == SYMLINKS_MANIFEST_NAME:
                    symlinks.extend(parse_symlink_manifest(entry.content, root))
                    continue
                self._extract_entry(entry, root)
                written += 1

        self._logger.debug(
            "archive_extracted",
            destination=str(root),
            entries=written,
            symlinks=len(symlinks),
        )
        return symlinks

    def is_executable_entry(self, name: str) -> bool:
        return name.startswith(self._executable_prefixes) if self._executable_prefixes else False

    def _extract_entry(self, entry: ArchiveEntry, root: Path) -> None:
        target = _entry_path(root, entry.name)
        if entry.is_directory:
            ensure_directory(target)
            return

        ensure_directory(target.parent)
        try:
            with open(target, "wb") as out:
                shutil.copyfileobj(entry.content, out, COPY_BUFFER_SIZE)
        except _CORRUPT_STREAM_ERRORS as exc:
            raise ArchiveFormatError(
                f"corrupt archive entry {entry.name!r}: {exc}", path=target
            ) from exc
        except OSError as exc:
            raise FileWriteError(f"unable to write {target!s}: {exc}", path=target) from exc

        if self.is_executable_entry(entry.name):
            try:
                os.chmod(target, EXECUTABLE_FILE_MODE)
            except OSError as exc:
                raise FileWriteError(f"unable to chmod {target!s}: {exc}", path=target) from exc


def _entry_path(root: Path, name: str) -> Path:
    if not name or os.path.isabs(name):
        raise UnsafeArchiveEntryError(name)
    target = root / name
    if not is_lexically_within(target, root):
        raise UnsafeArchiveEntryError(name)
    return target


__all__ = [
    "ArchiveExtractor",
    "iter_archive_entries",
    "parse_symlink_manifest",
]
