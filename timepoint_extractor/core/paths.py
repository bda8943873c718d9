"""Metadata path resolution.

Each media file gets two candidate metadata locations:
 - preferred: next to the media file, extension replaced by ``.tp``
 - fallback: ``<app dir>/timepoints/<sanitized location>.tp``

The fallback name is derived from the whole location identifier so two media
files with the same name in different folders never share metadata. Names that
would exceed the length cap are cut and suffixed with a hash of the original
identifier.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from PySide6.QtCore import QUrl

from ..config import (
    FALLBACK_EMPTY_NAME,
    FALLBACK_NAME_MAX,
    FILENAME_SEPARATOR,
    TIMEPOINT_EXT,
)
from ..utils.sanitize import rolling_hash, sanitize_identifier


def local_path_from_uri(location: str | None) -> Optional[str]:
    """Return the local file path for a ``file://`` URI or plain path.

    Non-local URIs (http, rtsp, ...) have no local path and yield None.
    """
    if not location:
        return None
    url = QUrl(location)
    if url.isLocalFile():
        return url.toLocalFile() or None
    # plain paths (including Windows drive paths, which QUrl reads as a scheme)
    if not url.scheme() or len(url.scheme()) == 1:
        return location
    return None


def fallback_name(identifier: str) -> str:
    name = sanitize_identifier(identifier) or FALLBACK_EMPTY_NAME
    if len(name) > FALLBACK_NAME_MAX:
        name = name[:FALLBACK_NAME_MAX] + FILENAME_SEPARATOR + rolling_hash(identifier)
    return name + TIMEPOINT_EXT


def preferred_path(media_path: str) -> str:
    root, ext = os.path.splitext(media_path)
    return (root if ext else media_path) + TIMEPOINT_EXT


@dataclass(frozen=True)
class ResolvedPaths:
    preferred: Optional[Path]
    fallback: Path


class PathResolver:
    def __init__(self, fallback_dir: Path, *, windows: bool = os.name == "nt"):
        self.fallback_dir = Path(fallback_dir)
        self.windows = windows

    def resolve(self, media_location: str) -> ResolvedPaths:
        local = local_path_from_uri(media_location)
        preferred = Path(preferred_path(local)) if local else None
        return ResolvedPaths(
            preferred=preferred,
            fallback=self.fallback_dir / fallback_name(media_location),
        )

    def force_fallback(self, preferred: Optional[Path | str]) -> bool:
        if preferred is None:
            return True
        if not self.windows:
            return False
        return any(ord(ch) > 127 for ch in str(preferred))


__all__ = [
    "PathResolver",
    "ResolvedPaths",
    "local_path_from_uri",
    "fallback_name",
    "preferred_path",
]
