"""Media host adapters.

The extractor never drives playback itself; it asks a host for the current
media and position and tells it where to seek. ``HostPlayer`` is that
interface. Two implementations ship here:

ClipPlayerHost
    Wraps a MoviePy clip the way the preview controller does: position is kept
    on the frame grid and seeks are clamped to the clip duration. Emits Qt
    signals so a UI can follow along.
StaticHost
    Fixed media location and position, used by the command line where the
    "current position" is a value the user typed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from moviepy import VideoFileClip
from PySide6.QtCore import QObject, QUrl, Signal

from ..config import TIME_BASE
from ..core.paths import local_path_from_uri


class HostPlayer(Protocol):
    def current_media_location(self) -> Optional[str]: ...

    def current_position_micros(self) -> int: ...

    def set_position_micros(self, micros: int) -> None: ...

    def local_path_from_uri(self, uri: str) -> Optional[str]: ...


@dataclass
class PlaybackState:
    uri: Optional[str] = None
    current_frame: int = 0
    total_frames: int = 0
    duration: float = 0.0
    fps: float = 0.0


class ClipPlayerHost(QObject):
    positionChanged = Signal(int)  # microseconds
    mediaChanged = Signal(str)  # uri

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._clip = None
        self._state = PlaybackState()

    def load(self, path: str) -> None:
        if self._clip is not None:
            self._clip.close()
        clip = VideoFileClip(path)
        fps = float(getattr(clip, "fps", 0.0) or 24.0)
        duration = float(getattr(clip, "duration", 0.0) or 0.0)
        self._clip = clip
        self._state = PlaybackState(
            uri=QUrl.fromLocalFile(path).toString(),
            current_frame=0,
            total_frames=int(round(fps * duration)) if duration > 0 else 0,
            duration=duration,
            fps=fps,
        )
        self.mediaChanged.emit(self._state.uri)
        self.positionChanged.emit(0)

    def close(self) -> None:
        if self._clip is not None:
            self._clip.close()
            self._clip = None
        self._state = PlaybackState()

    @property
    def duration(self) -> float:
        return self._state.duration

    def current_media_location(self) -> Optional[str]:
        return self._state.uri

    def current_position_micros(self) -> int:
        if self._clip is None or self._state.total_frames <= 0:
            return 0
        return int(round(self._state.current_frame / self._state.fps * TIME_BASE))

    def set_position_micros(self, micros: int) -> None:
        if self._clip is None:
            return
        t = max(0, micros) / TIME_BASE
        frame = int(t * self._state.fps)
        self._state.current_frame = max(0, min(frame, self._state.total_frames - 1))
        self.positionChanged.emit(self.current_position_micros())

    def local_path_from_uri(self, uri: str) -> Optional[str]:
        return local_path_from_uri(uri)


@dataclass
class StaticHost:
    media_location: Optional[str] = None
    position_micros: int = 0

    def current_media_location(self) -> Optional[str]:
        return self.media_location

    def current_position_micros(self) -> int:
        return self.position_micros

    def set_position_micros(self, micros: int) -> None:
        self.position_micros = max(0, int(micros))

    def local_path_from_uri(self, uri: str) -> Optional[str]:
        return local_path_from_uri(uri)


__all__ = ["HostPlayer", "ClipPlayerHost", "StaticHost", "PlaybackState"]
