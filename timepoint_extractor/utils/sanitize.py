"""Filename sanitization and the fallback-name hash."""

from __future__ import annotations

import re

from ..config import FILENAME_SEPARATOR

__all__ = ["sanitize_filename", "sanitize_identifier", "rolling_hash"]

# whitespace, control characters and \ / : * ? " < > |
_UNSAFE_FILENAME = re.compile(r'[\s\x00-\x1f\x7f\\/:*?"<>|]')
# anything outside the portable filename set
_UNSAFE_IDENTIFIER = re.compile(r"[^A-Za-z0-9._-]")


def _collapse(text: str) -> str:
    sep = re.escape(FILENAME_SEPARATOR)
    text = re.sub(f"{sep}+", FILENAME_SEPARATOR, text)
    return text.strip(FILENAME_SEPARATOR)


def sanitize_filename(name: str | None) -> str:
    """Make a label or remark safe to use inside a file or directory name.

    >>> sanitize_filename("  test run? ")
    'test_run'
    """
    return _collapse(_UNSAFE_FILENAME.sub(FILENAME_SEPARATOR, name or ""))


def sanitize_identifier(identifier: str) -> str:
    """Reduce a full media location (URI or path) to ``[A-Za-z0-9._-]``."""
    return _collapse(_UNSAFE_IDENTIFIER.sub(FILENAME_SEPARATOR, identifier))


def rolling_hash(text: str) -> str:
    """32-bit multiply-by-33 hash of the UTF-8 bytes, as 8 hex digits."""
    h = 5381
    for byte in text.encode("utf-8"):
        h = (h * 33 + byte) & 0xFFFFFFFF
    return f"{h:08x}"
