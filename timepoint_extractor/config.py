"""Settings and fixed names for the timepoint extractor.

Environment overrides:
 - TIMEPOINT_EXTRACTOR_HOME: application data directory (fallback metadata,
   diagnostic files, log file)
 - TIMEPOINT_EXTRACTOR_FFMPEG: ffmpeg executable name or path
 - TIMEPOINT_EXTRACTOR_LOG_LEVEL: logging level name (default INFO)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from PySide6.QtCore import QStandardPaths

from .exceptions import ConfigError

APP_NAME = "timepoint-extractor"

# Timepoint metadata
TIMEPOINT_EXT = ".tp"
TIME_BASE = 1_000_000  # microseconds per second
POINT_LABEL_PREFIX = "Point"
POINT_LABEL_FORMAT = POINT_LABEL_PREFIX + "{:04d}"

# Fallback metadata naming
FALLBACK_SUBDIR = "timepoints"
FALLBACK_NAME_MAX = 120
FALLBACK_EMPTY_NAME = "media"

# Extraction defaults
DEFAULT_BEFORE_SEC = 0.0
DEFAULT_AFTER_SEC = 0.0
DEFAULT_FPS = 5
DEFAULT_WIDTH = 640
DEFAULT_HEIGHT = 480

# Output naming
DIR_SUFFIX_FRAMES = "_extracted_frames"
DIR_SUFFIX_MOVIES = "_extracted_movies"
FALLBACK_VIDEO_NAME = "video"
FALLBACK_EXTENSION = ".mp4"
FILENAME_SEPARATOR = "_"
ENCODED_SUFFIX = "_encoded"
FRAME_PATTERN = "frame_%04d.png"
SINGLE_FRAME_NAME = "frame_0001.png"

# Re-encode profile
ENCODE_VIDEO_ARGS = ["-c:v", "libx264", "-preset", "veryfast", "-crf", "23"]
ENCODE_AUDIO_ARGS = ["-c:a", "aac"]

# Diagnostic artifacts (overwritten per run)
LAST_COMMAND_FILE = "last_command.txt"
RUN_SCRIPT_FILE = "run_extract.bat"
EXTRACT_LOG_FILE = "extract.log"
APP_LOG_FILE = "timepoint_extractor.log"

PROBE_TIMEOUT_MS = 5000


def default_app_dir() -> Path:
    base = QStandardPaths.writableLocation(
        QStandardPaths.StandardLocation.GenericDataLocation
    )
    if not base:
        base = str(Path.home() / ".local" / "share")
    return Path(base) / APP_NAME


@dataclass
class Settings:
    app_dir: Path
    ffmpeg: str = "ffmpeg"
    log_level: str = "INFO"
    windows: bool = os.name == "nt"

    @property
    def fallback_dir(self) -> Path:
        return self.app_dir / FALLBACK_SUBDIR

    @property
    def last_command_path(self) -> Path:
        return self.app_dir / LAST_COMMAND_FILE

    @property
    def run_script_path(self) -> Path:
        return self.app_dir / RUN_SCRIPT_FILE

    @property
    def extract_log_path(self) -> Path:
        return self.app_dir / EXTRACT_LOG_FILE

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        home = env.get("TIMEPOINT_EXTRACTOR_HOME")
        app_dir = Path(home).expanduser() if home else default_app_dir()
        level = env.get("TIMEPOINT_EXTRACTOR_LOG_LEVEL", "INFO").upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ConfigError(f"Unknown log level '{level}'")
        return cls(
            app_dir=app_dir,
            ffmpeg=env.get("TIMEPOINT_EXTRACTOR_FFMPEG") or "ffmpeg",
            log_level=level,
        )


__all__ = ["Settings", "default_app_dir"]
