"""A terminal progress spinner."""

from __future__ import annotations

import itertools
import os
import sys
import threading
from typing import Optional, Sequence, TextIO

CHARSET = ("⣾", "⣽", "⣻", "⢿", "⡿", "⣟", "⣯", "⣷")
DELAY = 0.1

_BOLD_CYAN = "\x1b[1;36m"
_RESET = "\x1b[0m"
_ERASE_LINE = "\r\x1b[K"


def _cyan(text: str) -> str:
    if "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb":
        return text
    isatty = getattr(sys.stdout, "isatty", None)
    return f"{_BOLD_CYAN}{text}{_RESET}" if isatty and isatty() else text


class Spinner:
    """Draws a spinning character on one line until stopped."""

    def __init__(
        self,
        chars: Sequence[str] = CHARSET,
        delay: float = DELAY,
        prefix: str = "",
        suffix: str = "",
        stream: Optional[TextIO] = None,
    ) -> None:
        self.chars = tuple(chars)
        self.delay = delay
        self.prefix = prefix
        self.suffix = suffix
        self.stream = stream
        self._halt = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def active(self) -> bool:
        """Whether the spinner is currently running."""
        return self._thread is not None

    def _out(self) -> TextIO:
        return self.stream or sys.stdout

    def _spin(self) -> None:
        for char in itertools.cycle(self.chars):
            out = self._out()
            out.write(f"\r{self.prefix}{char}{self.suffix}")
            out.flush()
            if self._halt.wait(self.delay):
                return

    def start(self) -> None:
        """Begin drawing; does nothing if already running."""
        if self._thread is not None:
            return
        self._halt.clear()
        self._thread = threading.Thread(target=self._spin, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop drawing and clear the line; does nothing if not running."""
        if self._thread is None:
            return
        self._halt.set()
        self._thread.join()
        self._thread = None
        out = self._out()
        out.write(_ERASE_LINE)
        out.flush()

    def __enter__(self) -> "Spinner":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()


def create_spinner(msg: str) -> Spinner:
    """Return a spinner labelled ``[Draft] msg``."""
    return Spinner(prefix=f"{_cyan('[Draft]')} {msg} ", suffix=" ")