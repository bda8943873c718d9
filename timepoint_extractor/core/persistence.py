"""Save and load timepoint stores with preferred/fallback path semantics.

Save writes the preferred path (next to the media) and falls back to the
application data directory when that fails. Load tries the same order and
treats missing, unreadable or malformed files as "no timepoints yet". When the
preferred path is unsafe on this platform (see ``PathResolver.force_fallback``)
only the fallback is ever touched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..exceptions import MetadataFormatError
from . import tpformat
from .paths import PathResolver, ResolvedPaths
from .timepoints import TimepointStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaveResult:
    path: Optional[Path]
    ok: bool


class PersistenceEngine:
    def __init__(self, resolver: PathResolver):
        self.resolver = resolver

    def _candidates(self, paths: ResolvedPaths) -> list[Path]:
        if self.resolver.force_fallback(paths.preferred):
            return [paths.fallback]
        return [paths.preferred, paths.fallback]

    def save(self, store: TimepointStore, media_location: str) -> SaveResult:
        # lone surrogates (undecodable argv bytes) become "?" instead of failing
        data = tpformat.dumps(store).encode("utf-8", errors="replace")
        paths = self.resolver.resolve(media_location)
        for path in self._candidates(paths):
            try:
                if path == paths.fallback:
                    path.parent.mkdir(parents=True, exist_ok=True)
                path.write_bytes(data)
            except OSError as e:
                logger.warning("Could not write timepoints to %s: %s", path, e)
                continue
            logger.debug("Saved %d timepoints to %s", len(store), path)
            return SaveResult(path=path, ok=True)
        logger.error("Failed to save timepoints for %s", media_location)
        return SaveResult(path=None, ok=False)

    def load(self, media_location: str) -> TimepointStore:
        paths = self.resolver.resolve(media_location)
        for path in self._candidates(paths):
            try:
                text = path.read_bytes().decode("utf-8", errors="replace")
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning("Could not read timepoints from %s: %s", path, e)
                continue
            try:
                store = tpformat.loads(text)
            except MetadataFormatError as e:
                logger.warning("Ignoring malformed timepoint file %s: %s", path, e)
                continue
            logger.debug("Loaded %d timepoints from %s", len(store), path)
            return store
        return TimepointStore()


__all__ = ["PersistenceEngine", "SaveResult"]
