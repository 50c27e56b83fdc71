"""Destinations that rendered template files are written to."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from draftkit.osutil import ensure_directory

_DEFAULT_MODE = 0o644


@runtime_checkable
class TemplateWriter(Protocol):
    """Something that can store files and prepare directories for them."""

    def write_file(self, path: str, data: bytes) -> None:
        """Store ``data`` as the file at ``path``."""

    def ensure_directory(self, path: str) -> None:
        """Make sure ``path`` can hold files."""


@dataclass
class FileMapWriter:
    """Collects written files in memory, keyed by path."""

    file_map: dict[str, bytes] = field(default_factory=dict)
    directories: set[str] = field(default_factory=set)

    def write_file(self, path: str, data: bytes) -> None:
        """Record ``data`` under ``path``."""
        self.file_map[path] = data

    def ensure_directory(self, path: str) -> None:
        """Note ``path`` as a directory; nothing is created on disk."""
        self.directories.add(path)


@dataclass
class LocalFSWriter:
    """Writes files to the local filesystem."""

    write_mode: int = 0

    def write_file(self, path: str, data: bytes) -> None:
        """Write ``data`` to ``path``, creating it with ``write_mode`` (0o644 if unset)."""
        mode = self.write_mode or _DEFAULT_MODE
        flags = os.O_WRONLY | os.O_CREAT | os.O_TRUNC | getattr(os, "O_BINARY", 0)
        fd = os.open(path, flags, mode)
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)

    def ensure_directory(self, path: str) -> None:
        """Create ``path`` if it does not exist."""
        ensure_directory(path)