"""Top-level controller tying the store, persistence, host and runner together.

All state lives in one ``ExtractorContext`` owned by the controller. UI code
(or the CLI) calls ``dispatch`` (or one of the shortcuts) with the current
selection and input values and listens to ``statusChanged`` /
``timepointsChanged``.

Flow for every action:
 1. pick up a media change from the host (fresh load of its timepoints)
 2. refuse extraction when ffmpeg is not available
 3. run the pure action function
 4. apply its effect: save, seek, or build + launch an extraction
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from PySide6.QtCore import QObject, Signal

from .actions import (
    ACTIONS,
    EXTRACT_ACTIONS,
    Action,
    ActionInputs,
    ActionResult,
    Extract,
    Save,
    Seek,
)
from .config import Settings
from .core.paths import PathResolver
from .core.persistence import PersistenceEngine
from .core.timepoints import TimepointStore
from .exceptions import LaunchError
from .media.player import HostPlayer
from .services.commands import CommandBuilder, ExtractionParams
from .services.runner import (
    AsyncRunner,
    Launcher,
    LaunchResult,
    probe_tool,
    start_detached,
)

logger = logging.getLogger(__name__)

STATUS_NO_MEDIA = "No media loaded."
STATUS_TOOL_MISSING = "FFmpeg not found."
STATUS_SAVE_FAILED = "Failed to save timepoints."
STATUS_NOT_LOCAL = "Media is not a local file."
STATUS_LAUNCH_FAILED = "Failed to start FFmpeg. See the extraction log."


@dataclass
class ExtractorContext:
    settings: Settings
    host: HostPlayer
    resolver: PathResolver
    persistence: PersistenceEngine
    builder: CommandBuilder
    runner: AsyncRunner
    media_uri: Optional[str] = None
    store: TimepointStore = field(default_factory=TimepointStore)
    tool_available: Optional[bool] = None
    status: str = ""
    last_launch: Optional[LaunchResult] = None

    @classmethod
    def create(
        cls,
        host: HostPlayer,
        settings: Settings,
        launcher: Launcher = start_detached,
    ) -> "ExtractorContext":
        resolver = PathResolver(settings.fallback_dir, windows=settings.windows)
        return cls(
            settings=settings,
            host=host,
            resolver=resolver,
            persistence=PersistenceEngine(resolver),
            builder=CommandBuilder(settings.ffmpeg, windows=settings.windows),
            runner=AsyncRunner(settings, launcher),
        )


class TimepointController(QObject):
    statusChanged = Signal(str)
    timepointsChanged = Signal()

    def __init__(
        self,
        host: HostPlayer,
        settings: Optional[Settings] = None,
        *,
        launcher: Launcher = start_detached,
        probe: Callable[[str], bool] = probe_tool,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        settings = settings or Settings.from_env()
        self._ctx = ExtractorContext.create(host, settings, launcher)
        self._probe = probe

    @property
    def context(self) -> ExtractorContext:
        return self._ctx

    @property
    def store(self) -> TimepointStore:
        return self._ctx.store

    def activate(self) -> None:
        """Probe ffmpeg and load the timepoints of the current media."""
        if not self.external_tool_available():
            self._set_status("FFmpeg not found in PATH")
        self.sync_with_host()

    def sync_with_host(self) -> bool:
        """Reload the store when the host switched media. Returns True on switch."""
        uri = self._ctx.host.current_media_location()
        if uri == self._ctx.media_uri:
            return False
        self._ctx.media_uri = uri
        self._ctx.store = self._ctx.persistence.load(uri) if uri else TimepointStore()
        logger.info("Media changed to %s (%d timepoints)", uri, len(self._ctx.store))
        self.timepointsChanged.emit()
        return True

    def external_tool_available(self) -> bool:
        available = self._probe(self._ctx.settings.ffmpeg)
        self._ctx.tool_available = available
        return available

    # Action shortcuts
    def add(self, remark: str = "") -> ActionResult:
        return self.dispatch(Action.ADD, remark=remark)

    def remove(self, selection: Optional[int]) -> ActionResult:
        return self.dispatch(Action.REMOVE, selection)

    def update_remark(self, selection: Optional[int], remark: str) -> ActionResult:
        return self.dispatch(Action.UPDATE, selection, remark=remark)

    def jump(self, selection: Optional[int]) -> ActionResult:
        return self.dispatch(Action.JUMP, selection)

    def extract_frames(
        self, selection: Optional[int], params: Optional[ExtractionParams] = None
    ) -> ActionResult:
        return self.dispatch(Action.EXTRACT_FRAMES, selection, params=params)

    def extract_lossless(
        self, selection: Optional[int], params: Optional[ExtractionParams] = None
    ) -> ActionResult:
        return self.dispatch(Action.EXTRACT_LOSSLESS, selection, params=params)

    def extract_encoded(
        self, selection: Optional[int], params: Optional[ExtractionParams] = None
    ) -> ActionResult:
        return self.dispatch(Action.EXTRACT_ENCODED, selection, params=params)

    def dispatch(
        self,
        action: Action,
        selection: Optional[int] = None,
        *,
        remark: str = "",
        params: Optional[ExtractionParams] = None,
    ) -> ActionResult:
        ctx = self._ctx
        self.sync_with_host()

        if action is Action.ADD and ctx.media_uri is None:
            return self._finish(
                ActionResult(store=ctx.store, status=STATUS_NO_MEDIA, ok=False)
            )
        if action in EXTRACT_ACTIONS and not self.external_tool_available():
            return self._finish(
                ActionResult(store=ctx.store, status=STATUS_TOOL_MISSING, ok=False)
            )

        inputs = ActionInputs(
            position_micros=(
                max(0, ctx.host.current_position_micros())
                if action is Action.ADD
                else 0
            ),
            remark=remark,
            params=params or ExtractionParams(),
        )
        result = ACTIONS[action](ctx.store, selection, inputs)
        if result.store is not ctx.store:
            ctx.store = result.store
            self.timepointsChanged.emit()
        return self._finish(self._apply(result))

    def _apply(self, result: ActionResult) -> ActionResult:
        ctx = self._ctx
        effect = result.effect
        if isinstance(effect, Save):
            saved = ctx.persistence.save(ctx.store, ctx.media_uri)
            if not saved.ok:
                result.status = STATUS_SAVE_FAILED
                result.ok = False
        elif isinstance(effect, Seek):
            ctx.host.set_position_micros(effect.micros)
        elif isinstance(effect, Extract):
            media_path = None
            if ctx.media_uri:
                media_path = ctx.host.local_path_from_uri(ctx.media_uri)
            if not media_path:
                result.status = STATUS_NOT_LOCAL
                result.ok = False
                return result
            command = ctx.builder.build(
                effect.timepoint, media_path, effect.params, effect.mode
            )
            try:
                ctx.last_launch = ctx.runner.run(command)
            except LaunchError as e:
                logger.error("Extraction not started: %s", e)
                result.status = STATUS_LAUNCH_FAILED
                result.ok = False
        return result

    def _finish(self, result: ActionResult) -> ActionResult:
        self._set_status(result.status)
        return result

    def _set_status(self, message: str) -> None:
        self._ctx.status = message
        self.statusChanged.emit(message)


__all__ = ["TimepointController", "ExtractorContext"]
