"""Log formatting and output routing for the command line."""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional, TextIO, Union

_BOLD_CYAN = "\x1b[1;36m"
_BOLD_RED = "\x1b[1;31m"
_RESET = "\x1b[0m"

_LEVEL_NAMES = {
    "CRITICAL": "Fatal",
    "ERROR": "Error",
    "WARNING": "Warning",
    "INFO": "Info",
    "DEBUG": "Debug",
}
_SEVERE_LEVELS = frozenset({"Error", "Fatal", "Panic"})
_SEVERE_MARKERS = ("Error", "Fatal", "Panic")


def _colors_enabled() -> bool:
    if "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb":
        return False
    isatty = getattr(sys.stdout, "isatty", None)
    return bool(isatty and isatty())


class DraftFormatter(logging.Formatter):
    """Formats records as ``[Draft] message``, or ``Level: message`` for errors."""

    def __init__(self, use_color: Optional[bool] = None) -> None:
        super().__init__()
        self.use_color = use_color

    def _paint(self, code: str, text: str) -> str:
        enabled = _colors_enabled() if self.use_color is None else self.use_color
        return f"{code}{text}{_RESET}" if enabled else text

    def format(self, record: logging.LogRecord) -> str:
        level = _LEVEL_NAMES.get(record.levelname, record.levelname.title())
        message = record.getMessage()
        if level in _SEVERE_LEVELS:
            return f"{self._paint(_BOLD_RED, level)}: {message}"
        return f"{self._paint(_BOLD_CYAN, '[Draft]')} {message}"


class OutputSplitter:
    """A stream that sends error output to stderr and the rest to stdout."""

    def __init__(self, stdout: Optional[TextIO] = None, stderr: Optional[TextIO] = None) -> None:
        self._stdout = stdout
        self._stderr = stderr

    def _target(self, text: str) -> TextIO:
        if any(marker in text for marker in _SEVERE_MARKERS):
            return self._stderr or sys.stderr
        return self._stdout or sys.stdout

    def write(self, data: Union[str, bytes]) -> int:
        """Write ``data`` to the stream it belongs to and return its length."""
        text = data.decode("utf-8", "replace") if isinstance(data, bytes) else data
        self._target(text).write(text)
        return len(data)

    def flush(self) -> None:
        """Flush both underlying streams."""
        (self._stdout or sys.stdout).flush()
        (self._stderr or sys.stderr).flush()