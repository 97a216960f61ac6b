"""Stable constants shared by the installer, archive extractor, and storage linker."""

from __future__ import annotations

from typing import Final

# Reserved archive entry holding the symlink manifest. Never written to disk.
SYMLINKS_MANIFEST_NAME: Final[str] = "SYMLINKS.txt"
SYMLINK_FIELD_DELIMITER: Final[str] = "\u2190"  # LEFTWARDS ARROW
MANIFEST_ENCODING: Final[str] = "utf-8"

# File entries under these name prefixes are made owner-executable after extraction.
DEFAULT_EXECUTABLE_PREFIXES: Final[tuple[str, ...]] = ("bin/", "libexec", "lib/apt/methods")
EXECUTABLE_FILE_MODE: Final[int] = 0o700

STAGING_SUFFIX: Final[str] = "-staging"
STORAGE_DIR_NAME: Final[str] = "storage"
SHARED_LINK_NAME: Final[str] = "shared"
EXTERNAL_LINK_PREFIX: Final[str] = "external-"

# Link name -> conventional public directory below the shared storage root.
PUBLIC_DIRECTORY_LINKS: Final[tuple[tuple[str, str], ...]] = (
    ("downloads", "Download"),
    ("dcim", "DCIM"),
    ("pictures", "Pictures"),
    ("music", "Music"),
    ("movies", "Movies"),
)

COPY_BUFFER_SIZE: Final[int] = 8096

__all__ = [
    "COPY_BUFFER_SIZE",
    "DEFAULT_EXECUTABLE_PREFIXES",
    "EXECUTABLE_FILE_MODE",
    "EXTERNAL_LINK_PREFIX",
    "MANIFEST_ENCODING",
    "PUBLIC_DIRECTORY_LINKS",
    "SHARED_LINK_NAME",
    "STAGING_SUFFIX",
    "STORAGE_DIR_NAME",
    "SYMLINKS_MANIFEST_NAME",
    "SYMLINK_FIELD_DELIMITER",
]
