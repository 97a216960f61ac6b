"""
sandbox-bootstrap — unit tests for archive extraction

File: tests/unit/install/test_archive_extraction.py
Last updated: 2026-10-18

Purpose
- Validate zip streaming into a destination root and SYMLINKS.txt manifest parsing.

What this test file should cover
- Manifest lines are split on the leftwards arrow and returned in file order.
- Executable prefixes receive mode 0700; other files keep the default mode.
- Malformed, non-UTF-8, and escaping entries are rejected.

Functional requirements
- Offline; every archive is built in memory.

Non-functional requirements
- Deterministic and non-flaky.
"""

from __future__ import annotations

import contextlib
import io
import os
import stat
import tempfile
from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

import sandbox_bootstrap.install.archive as archive_module
from sandbox_bootstrap.domain.models import ArchiveEntry
from sandbox_bootstrap.errors import (
    ArchiveFormatError,
    FileWriteError,
    ManifestCorruptionError,
    UnsafeArchiveEntryError,
)
from sandbox_bootstrap.install.archive import (
    ArchiveExtractor,
    iter_archive_entries,
    parse_symlink_manifest,
)

from . import DELIMITER, SAMPLE_FILES, SAMPLE_SYMLINKS, build_archive, manifest_text

_SEGMENT = st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789_-", min_size=1, max_size=8)
_RELATIVE = st.lists(_SEGMENT, min_size=1, max_size=3).map("/".join)
_TARGET = st.text(
    alphabet=st.characters(
        blacklist_categories=("Cs",),
        blacklist_characters=f"\n\r{DELIMITER}",
    ),
    max_size=24,
)


def _mode(path: Path) -> int:
    return stat.S_IMODE(path.stat().st_mode)


def _default_file_mode(directory: Path) -> int:
    sample = directory / ".mode-sample"
    with open(sample, "wb"):
        pass
    mode = _mode(sample)
    sample.unlink()
    return mode


@pytest.mark.unit
def test_extract_writes_entries_and_returns_manifest_in_order(tmp_path: Path) -> None:
    destination = tmp_path / "staging"
    extractor = ArchiveExtractor()

    symlinks = extractor.extract(build_archive(SAMPLE_FILES, symlinks=SAMPLE_SYMLINKS), destination)

    assert [(entry.target, entry.link_path) for entry in symlinks] == [
        ("sh-tool", destination / "bin" / "sh"),
        ("libexample.so.1", destination / "lib" / "libexample.so"),
        ("../../doc/README", destination / "share" / "man" / "man1" / "README"),
    ]
    assert (destination / "bin").is_dir()
    assert (destination / "bin" / "sh-tool").read_bytes() == SAMPLE_FILES["bin/sh-tool"]
    assert (destination / "share" / "doc" / "README").read_bytes() == b"documentation\n"
    assert not (destination / "SYMLINKS.txt").exists()


@pytest.mark.unit
def test_manifest_parsing_creates_link_parent_directories(tmp_path: Path) -> None:
    destination = tmp_path / "staging"
    archive = build_archive({"etc/profile": b"x"}, symlinks=[("target", "./a/b/c/link")])

    symlinks = ArchiveExtractor().extract(archive, destination)

    assert (destination / "a" / "b" / "c").is_dir()
    assert not os.path.lexists(destination / "a" / "b" / "c" / "link")
    assert symlinks[0].link_path == destination / "a" / "b" / "c" / "link"


@pytest.mark.unit
def test_executable_prefixes_get_owner_only_mode(tmp_path: Path) -> None:
    destination = tmp_path / "staging"
    destination.mkdir()
    default_mode = _default_file_mode(destination)

    ArchiveExtractor().extract(
        build_archive(
            {
                **SAMPLE_FILES,
                "libexec-extra/tool": b"prefix match",
                "binary/not-bin": b"x",
            },
            symlinks=SAMPLE_SYMLINKS,
        ),
        destination,
    )

    assert _mode(destination / "bin" / "sh-tool") == 0o700
    assert _mode(destination / "libexec" / "helper") == 0o700
    assert _mode(destination / "lib" / "apt" / "methods" / "http") == 0o700
    assert _mode(destination / "libexec-extra" / "tool") == 0o700
    assert _mode(destination / "lib" / "libexample.so.1") == default_mode
    assert _mode(destination / "share" / "doc" / "README") == default_mode
    assert _mode(destination / "binary" / "not-bin") == default_mode


@pytest.mark.unit
def test_executable_prefixes_are_configurable() -> None:
    extractor = ArchiveExtractor(executable_prefixes=("tools/",))
    empty = ArchiveExtractor(executable_prefixes=())

    assert extractor.is_executable_entry("tools/run")
    assert not extractor.is_executable_entry("bin/sh")
    assert not empty.is_executable_entry("bin/sh")
    assert ArchiveExtractor().executable_prefixes == ("bin/", "libexec", "lib/apt/methods")


@pytest.mark.unit
def test_manifest_accepts_crlf_line_endings(tmp_path: Path) -> None:
    content = io.BytesIO(manifest_text(SAMPLE_SYMLINKS, newline="\r\n").encode("utf-8"))

    entries = parse_symlink_manifest(content, tmp_path)

    assert [entry.target for entry in entries] == [target for target, _ in SAMPLE_SYMLINKS]
    assert entries[0].link_path == tmp_path / "bin" / "sh"


@pytest.mark.unit
def test_manifest_without_trailing_newline_keeps_last_line(tmp_path: Path) -> None:
    content = io.BytesIO(f"a{DELIMITER}./x\nb{DELIMITER}./y".encode())

    entries = parse_symlink_manifest(content, tmp_path)

    assert [(entry.target, entry.link_path.name) for entry in entries] == [("a", "x"), ("b", "y")]


@pytest.mark.unit
@pytest.mark.parametrize(
    "line",
    [
        "no-delimiter-here",
        f"a{DELIMITER}b{DELIMITER}c",
        "",
    ],
)
def test_malformed_manifest_line_is_fatal(tmp_path: Path, line: str) -> None:
    content = io.BytesIO(f"ok{DELIMITER}./fine\n{line}\n".encode())

    with pytest.raises(ManifestCorruptionError, match="malformed symlink line") as excinfo:
        parse_symlink_manifest(content, tmp_path)

    assert excinfo.value.line == line


@pytest.mark.unit
def test_manifest_must_be_utf8(tmp_path: Path) -> None:
    content = io.BytesIO(b"\xff\xfe" + f"{DELIMITER}./x\n".encode())

    with pytest.raises(ManifestCorruptionError, match="UTF-8"):
        parse_symlink_manifest(content, tmp_path)


@pytest.mark.unit
@pytest.mark.parametrize("relative", ["../outside", "./../../etc/link", "a/../../escape"])
def test_manifest_link_outside_root_is_rejected(tmp_path: Path, relative: str) -> None:
    root = tmp_path / "staging"
    root.mkdir()
    content = io.BytesIO(f"target{DELIMITER}{relative}\n".encode())

    with pytest.raises(UnsafeArchiveEntryError):
        parse_symlink_manifest(content, root)

    assert sorted(path.name for path in tmp_path.iterdir()) == ["staging"]


@pytest.mark.unit
def test_entry_escaping_destination_is_rejected(tmp_path: Path) -> None:
    destination = tmp_path / "staging"
    archive = build_archive({"../evil": b"payload"}, symlinks=[("x", "./y")])

    with pytest.raises(UnsafeArchiveEntryError) as excinfo:
        ArchiveExtractor().extract(archive, destination)

    assert excinfo.value.name == "../evil"
    assert not (tmp_path / "evil").exists()


@pytest.mark.unit
def test_unsafe_entry_counts_as_manifest_corruption() -> None:
    assert issubclass(UnsafeArchiveEntryError, ManifestCorruptionError)


@pytest.mark.unit
def test_invalid_zip_raises_archive_format_error(tmp_path: Path) -> None:
    with pytest.raises(ArchiveFormatError):
        ArchiveExtractor().extract(b"definitely not a zip archive", tmp_path / "staging")

    assert not (tmp_path / "staging").exists()


@pytest.mark.unit
def test_iter_archive_entries_reports_directories_in_archive_order() -> None:
    archive = build_archive({"bin/": b"", "bin/tool": b"abc"}, symlinks=[("a", "./b")])

    seen = [(entry.name, entry.is_directory) for entry in iter_archive_entries(archive)]

    assert seen == [("bin/", True), ("bin/tool", False), ("SYMLINKS.txt", False)]


@pytest.mark.unit
def test_failed_extraction_closes_the_archive_immediately(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    opened: list[BinaryIO] = []
    finished: list[bool] = []

    def recording_entries(data: bytes) -> Iterator[ArchiveEntry]:
        try:
            with contextlib.closing(iter_archive_entries(data)) as entries:
                for entry in entries:
                    opened.append(entry.content)
                    yield entry
        finally:
            finished.append(True)

    monkeypatch.setattr(archive_module, "iter_archive_entries", recording_entries)
    destination = tmp_path / "staging"
    # A directory where the first file should go makes the write fail.
    (destination / "etc" / "profile").mkdir(parents=True)
    archive = build_archive({"etc/profile": b"x", "bin/tool": b"y"}, symlinks=[("a", "./b")])

    with pytest.raises(FileWriteError) as excinfo:
        ArchiveExtractor().extract(archive, destination)

    # excinfo keeps the extract frame alive; cleanup must already have run.
    assert excinfo.traceback
    assert finished == [True]
    assert len(opened) == 1
    assert opened[0].closed
    assert not (destination / "bin").exists()


@pytest.mark.unit
def test_archive_without_manifest_returns_no_symlinks(tmp_path: Path) -> None:
    symlinks = ArchiveExtractor().extract(build_archive({"etc/profile": b"x"}), tmp_path / "out")

    assert symlinks == []
    assert (tmp_path / "out" / "etc" / "profile").read_bytes() == b"x"


@settings(max_examples=60, deadline=None)
@given(
    pairs=st.lists(st.tuples(_TARGET, _RELATIVE), min_size=1, max_size=8),
    crlf=st.booleans(),
)
def test_manifest_parsing_preserves_every_line(pairs: list[tuple[str, str]], crlf: bool) -> None:
    text = manifest_text(pairs, newline="\r\n" if crlf else "\n")
    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp)

        entries = parse_symlink_manifest(io.BytesIO(text.encode("utf-8")), root)

        assert [entry.target for entry in entries] == [target for target, _ in pairs]
        assert [entry.link_path for entry in entries] == [root / relative for _, relative in pairs]
