"""ffmpeg command synthesis for timepoint extraction.

Three shapes are produced, all windowed around a timepoint:
 - FRAMES: numbered PNG sequence (fps + scale filters), or a single frame when
   the window is empty
 - LOSSLESS_CLIP: stream copy, no re-encode
 - ENCODED_CLIP: re-encode with fps + scale filters and a fast x264 profile

The builder is pure: it returns the argument list, a display string for logs
and the directories the caller must create. Untrusted text (labels, remarks)
only reaches a file name after ``sanitize_filename``.
"""

from __future__ import annotations

import enum
import math
import os
import shlex
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional

from ..config import (
    DEFAULT_AFTER_SEC,
    DEFAULT_BEFORE_SEC,
    DEFAULT_FPS,
    DEFAULT_HEIGHT,
    DEFAULT_WIDTH,
    DIR_SUFFIX_FRAMES,
    DIR_SUFFIX_MOVIES,
    ENCODE_AUDIO_ARGS,
    ENCODE_VIDEO_ARGS,
    ENCODED_SUFFIX,
    FALLBACK_EXTENSION,
    FALLBACK_VIDEO_NAME,
    FILENAME_SEPARATOR,
    FRAME_PATTERN,
    SINGLE_FRAME_NAME,
    TIME_BASE,
)
from ..core.timepoints import Timepoint
from ..utils.sanitize import sanitize_filename


class ExtractionMode(enum.Enum):
    FRAMES = "frames"
    LOSSLESS_CLIP = "lossless"
    ENCODED_CLIP = "encoded"


def _number(value: Any, default: float) -> float:
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


@dataclass
class ExtractionParams:
    before_sec: float = DEFAULT_BEFORE_SEC
    after_sec: float = DEFAULT_AFTER_SEC
    fps: int = DEFAULT_FPS
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT

    @classmethod
    def from_raw(
        cls,
        before_sec: Any = None,
        after_sec: Any = None,
        fps: Any = None,
        width: Any = None,
        height: Any = None,
    ) -> "ExtractionParams":
        """Build params from loosely typed input (text fields, CLI args).

        Each value falls back to its default independently when missing or not
        numeric. Window lengths clamp at 0; fps and sizes must be positive.
        """

        def positive_int(value: Any, default: int) -> int:
            number = int(_number(value, default))
            return number if number > 0 else default

        return cls(
            before_sec=max(0.0, _number(before_sec, DEFAULT_BEFORE_SEC)),
            after_sec=max(0.0, _number(after_sec, DEFAULT_AFTER_SEC)),
            fps=positive_int(fps, DEFAULT_FPS),
            width=positive_int(width, DEFAULT_WIDTH),
            height=positive_int(height, DEFAULT_HEIGHT),
        )

    @property
    def duration(self) -> float:
        return self.before_sec + self.after_sec

    def start_for(self, time_micros: int) -> float:
        return max(0.0, time_micros / TIME_BASE - self.before_sec)


@dataclass
class ExtractionCommand:
    args: List[str]
    display: str
    mode: ExtractionMode
    output: Path
    output_dirs: List[Path] = field(default_factory=list)


# cmd.exe splits or redirects on these outside double quotes
_CMD_SPECIAL = frozenset(' \t&^()<>|,;=')


def cmd_quote(arg: str) -> str:
    """Quote one argument for a cmd.exe command line (batch file)."""
    if '"' in arg:
        # not a valid Windows path character; keep the CRT escaping
        return subprocess.list2cmdline([arg])
    if not arg or any(ch in _CMD_SPECIAL for ch in arg):
        return f'"{arg}"'
    return arg


def display_string(args: List[str], *, windows: bool = os.name == "nt") -> str:
    if windows:
        return " ".join(cmd_quote(arg) for arg in args)
    return shlex.join(args)


def media_name_parts(media_path: str | Path) -> tuple[Path, str, str]:
    """Return (directory, base name, extension) with the usual fallbacks."""
    p = Path(media_path)
    return p.parent, p.stem or FALLBACK_VIDEO_NAME, p.suffix or FALLBACK_EXTENSION


def clip_filename(tp: Timepoint, extension: str, suffix: str = "") -> str:
    remark = sanitize_filename(tp.remark)
    name = tp.label + (FILENAME_SEPARATOR + remark if remark else "")
    return name + suffix + extension


class CommandBuilder:
    def __init__(self, ffmpeg: str = "ffmpeg", *, windows: bool = os.name == "nt"):
        self.ffmpeg = ffmpeg
        self.windows = windows

    def build(
        self,
        tp: Timepoint,
        media_path: str | Path,
        params: Optional[ExtractionParams] = None,
        mode: ExtractionMode = ExtractionMode.FRAMES,
    ) -> ExtractionCommand:
        params = params or ExtractionParams()
        if mode is ExtractionMode.FRAMES:
            return self.frames(tp, media_path, params)
        if mode is ExtractionMode.LOSSLESS_CLIP:
            return self.lossless_clip(tp, media_path, params)
        return self.encoded_clip(tp, media_path, params)

    def _window(self, tp: Timepoint, params: ExtractionParams) -> tuple[str, str]:
        return f"{params.start_for(tp.time):.3f}", f"{params.duration:.3f}"

    def _command(
        self,
        args: List[str],
        mode: ExtractionMode,
        output: Path,
        output_dirs: List[Path],
    ) -> ExtractionCommand:
        full = [self.ffmpeg, "-y", *args]
        return ExtractionCommand(
            args=full,
            display=display_string(full, windows=self.windows),
            mode=mode,
            output=output,
            output_dirs=output_dirs,
        )

    def frames(
        self, tp: Timepoint, media_path: str | Path, params: ExtractionParams
    ) -> ExtractionCommand:
        directory, base, _ = media_name_parts(media_path)
        frame_dir = directory / f"{base}{DIR_SUFFIX_FRAMES}"
        sub_dir = frame_dir / sanitize_filename(tp.label)
        start, duration = self._window(tp, params)
        scale = f"scale={params.width}:{params.height}"
        if params.duration > 0:
            output = sub_dir / FRAME_PATTERN
            args = [
                "-ss", start,
                "-t", duration,
                "-i", str(media_path),
                "-vf", f"fps={params.fps},{scale}",
                str(output),
            ]
        else:
            output = sub_dir / SINGLE_FRAME_NAME
            args = [
                "-ss", start,
                "-i", str(media_path),
                "-frames:v", "1",
                "-vf", scale,
                str(output),
            ]
        return self._command(args, ExtractionMode.FRAMES, output, [frame_dir, sub_dir])

    def lossless_clip(
        self, tp: Timepoint, media_path: str | Path, params: ExtractionParams
    ) -> ExtractionCommand:
        directory, base, ext = media_name_parts(media_path)
        export_dir = directory / f"{base}{DIR_SUFFIX_MOVIES}"
        output = export_dir / clip_filename(tp, ext)
        start, duration = self._window(tp, params)
        args = [
            "-ss", start,
            "-t", duration,
            "-i", str(media_path),
            "-c", "copy",
            str(output),
        ]
        return self._command(args, ExtractionMode.LOSSLESS_CLIP, output, [export_dir])

    def encoded_clip(
        self, tp: Timepoint, media_path: str | Path, params: ExtractionParams
    ) -> ExtractionCommand:
        directory, base, ext = media_name_parts(media_path)
        export_dir = directory / f"{base}{DIR_SUFFIX_MOVIES}"
        output = export_dir / clip_filename(tp, ext, ENCODED_SUFFIX)
        start, duration = self._window(tp, params)
        args = [
            "-ss", start,
            "-t", duration,
            "-i", str(media_path),
            "-vf", f"fps={params.fps},scale={params.width}:{params.height}",
            *ENCODE_VIDEO_ARGS,
            *ENCODE_AUDIO_ARGS,
            str(output),
        ]
        return self._command(args, ExtractionMode.ENCODED_CLIP, output, [export_dir])


__all__ = [
    "CommandBuilder",
    "ExtractionCommand",
    "ExtractionMode",
    "ExtractionParams",
    "clip_filename",
    "cmd_quote",
    "display_string",
    "media_name_parts",
]
