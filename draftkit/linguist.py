"""Lightweight file classification helpers."""

from __future__ import annotations

import posixpath
import re

CONFIGURATION_SUFFIXES = (".yaml", ".yml", ".xml", ".toml")
BINARY_SCAN_LIMIT = 512

_SHEBANG_RE = re.compile(r"^#!\s*(\S+)(?:\s+(\S+))?.*")
_SCRIPT_VERSION_RE = re.compile(r"((?:\d+\.?)+)")
_TEXT_CONTROL_BYTES = frozenset({0, 9, 10, 13})


def _first_line(contents: bytes) -> str:
    line = contents.split(b"\n", 1)[0]
    if line.endswith(b"\r"):
        line = line[:-1]
    return line.decode("utf-8", "replace")


def _base_name(path: str) -> str:
    stripped = path.rstrip("/")
    return posixpath.basename(stripped) if stripped else "/"


def detect_interpreter(contents: bytes) -> str:
    """Return the interpreter named by a shebang line, without version digits.

    Returns the empty string when the first line is not a shebang.
    """
    match = _SHEBANG_RE.match(_first_line(contents))
    if match is None:
        return ""
    base = _base_name(match.group(1))
    argument = match.group(2) or ""
    if base == "env" and argument:
        base = argument
    return _SCRIPT_VERSION_RE.sub("", base)


def is_configuration(path: str) -> bool:
    """Whether ``path`` names a configuration file."""
    return path.endswith(CONFIGURATION_SUFFIXES)


def is_binary(contents: bytes) -> bool:
    """Whether the first bytes of ``contents`` hold control codes unusual in text."""
    return any(
        byte < 32 and byte not in _TEXT_CONTROL_BYTES
        for byte in contents[:BINARY_SCAN_LIMIT]
    )