"""Rough source-code tokenizer used for language classification.

Comments, string literals and numeric literals are dropped; what remains
are the significant symbols and words of a piece of source code.
"""

from __future__ import annotations

import re
from typing import Iterator, Optional, Pattern, Union

BYTE_LIMIT = 100_000
"""Maximum number of input bytes looked at by :func:`tokenize`."""

START_LINE_COMMENTS = (
    '"',  # Vim
    "%",  # TeX
)
SINGLE_LINE_COMMENTS = (
    "//",  # C
    "--",  # Ada, Haskell, AppleScript
    "#",  # Perl, Bash, Ruby
)
MULTI_LINE_COMMENTS = (
    ("/*", "*/"),  # C
    ("<!--", "-->"),  # XML
    ("{-", "-}"),  # Haskell
    ("(*", "*)"),  # Coq
    ('"""', '"""'),  # Python
    ("'''", "'''"),  # Python
    ("#`(", ")"),  # Perl 6
)

_LEADING_SPACE = rb"^[\t\n\f\r ]*"

_START_LINE_COMMENT = [
    re.compile(_LEADING_SPACE + re.escape(marker.encode()))
    for marker in START_LINE_COMMENTS + SINGLE_LINE_COMMENTS
]
_SINGLE_LINE_COMMENT = [
    re.compile(re.escape(marker.encode())) for marker in SINGLE_LINE_COMMENTS
]
_MULTI_LINE_COMMENT = [
    (re.compile(re.escape(begin.encode())), re.compile(re.escape(end.encode())))
    for begin, end in MULTI_LINE_COMMENTS
]
_STRING_RE = re.compile(rb"[^\\]*([\"'`])")
_NUMBER_RE = re.compile(
    rb"(0x[0-9a-f]([0-9a-f]|\.)*|\d(\d|\.)*)([uU][lL]{0,2}|([eE][-+]\d*)?[fFlL]*)"
)


def _as_bytes(data: Union[bytes, str]) -> bytes:
    return data.encode() if isinstance(data, str) else bytes(data)


def _lines(data: bytes) -> Iterator[bytes]:
    """Yield lines split on newlines, dropping one trailing carriage return."""
    parts = data.split(b"\n")
    if parts and parts[-1] == b"":
        parts.pop()
    for part in parts:
        yield part[:-1] if part.endswith(b"\r") else part


def find_multi_line_comment(token: Union[bytes, str]) -> Optional[Pattern[bytes]]:
    """Return the terminator pattern if ``token`` opens a multi-line comment."""
    token = _as_bytes(token)
    for begin, end in _MULTI_LINE_COMMENT:
        if begin.search(token):
            return end
    return None


def tokenize(data: Union[bytes, str]) -> list[str]:
    """Split source code into significant tokens."""
    data = _as_bytes(data)[:BYTE_LIMIT]
    tokens: list[str] = []
    comment_end: Optional[Pattern[bytes]] = None
    string_end: Optional[int] = None

    for line in _lines(data):
        if any(pattern.match(line) for pattern in _START_LINE_COMMENT):
            continue
        for word in line.split():
            if comment_end is not None:
                if comment_end.search(word):
                    comment_end = None
                continue

            if string_end is not None:
                match = _STRING_RE.search(word)
                if match and match.group(1)[0] == string_end:
                    string_end = None
                continue

            if any(pattern.search(word) for pattern in _SINGLE_LINE_COMMENT):
                break

            terminator = find_multi_line_comment(word)
            if terminator is not None:
                comment_end = terminator
                continue

            match = _STRING_RE.search(word)
            if match:
                string_end = match.group(1)[0]
                continue

            if _NUMBER_RE.search(word):
                continue

            tokens.append(word.decode("utf-8", "replace"))
    return tokens