"""Shared deterministic builders for bootstrap archive tests."""

from __future__ import annotations

import io
import zipfile
from collections.abc import Mapping, Sequence
from typing import Final

DELIMITER: Final[str] = "←"

SAMPLE_FILES: Final[dict[str, bytes]] = {
    "bin/": b"",
    "bin/sh-tool": b"#!/bin/sh\necho tool\n",
    "libexec/helper": b"\x7fELF-helper",
    "lib/apt/methods/http": b"method",
    "lib/libexample.so.1": b"\x7fELF-library",
    "share/doc/README": b"documentation\n",
    "etc/profile": b"export PATH=$PREFIX/bin\n",
}

SAMPLE_SYMLINKS: Final[tuple[tuple[str, str], ...]] = (
    ("sh-tool", "./bin/sh"),
    ("libexample.so.1", "./lib/libexample.so"),
    ("../../doc/README", "./share/man/man1/README"),
)


def manifest_text(symlinks: Sequence[tuple[str, str]], *, newline: str = "\n") -> str:
    """Render ``(target, relative_path)`` pairs as manifest lines."""

    return "".join(f"{target}{DELIMITER}{relative}{newline}" for target, relative in symlinks)


def build_archive(
    files: Mapping[str, bytes] | None = None,
    *,
    symlinks: Sequence[tuple[str, str]] | None = None,
    manifest: str | bytes | None = None,
) -> bytes:
    """Build a zip in memory.

    Names ending in ``/`` become directory entries. ``manifest`` wins over
    ``symlinks`` when both are given; with neither, no manifest is written.
    """

    if manifest is None and symlinks is not None:
        manifest = manifest_text(symlinks)

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, content in (files or {}).items():
            archive.writestr(name, b"" if name.endswith("/") else content)
        if manifest is not None:
            payload = manifest.encode("utf-8") if isinstance(manifest, str) else manifest
            archive.writestr("SYMLINKS.txt", payload)
    return buffer.getvalue()


def sample_archive() -> bytes:
    return build_archive(SAMPLE_FILES, symlinks=SAMPLE_SYMLINKS)


__all__ = [
    "DELIMITER",
    "SAMPLE_FILES",
    "SAMPLE_SYMLINKS",
    "build_archive",
    "manifest_text",
    "sample_archive",
]
