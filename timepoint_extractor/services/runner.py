"""Fire-and-forget execution of extraction commands.

Every run rewrites three diagnostic files in the application data directory:
 - ``last_command.txt``: the display form of the command
 - ``extract.log``: combined stdout/stderr of the tool
 - ``run_extract.bat``: Windows only, see below

On Windows the command line of a detached process goes through the ANSI code
page, which mangles non-ASCII paths. The command is therefore written into a
UTF-8 (BOM) batch file that switches the console to code page 65001 before
running it. ``%`` is doubled because cmd expands it inside batch files, which
would eat the ``%04d`` of frame patterns.

The runner never waits for the tool. Success or failure of the extraction is
only visible in ``extract.log``; a process that cannot be started at all is
reported as a LaunchError.
"""

from __future__ import annotations

import enum
import logging
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Tuple

from PySide6.QtCore import QProcess

from ..config import PROBE_TIMEOUT_MS, Settings
from ..exceptions import LaunchError
from .commands import ExtractionCommand

logger = logging.getLogger(__name__)

Launcher = Callable[[str, List[str]], Tuple[bool, int]]


class RunState(enum.Enum):
    IDLE = "idle"
    LAUNCHING = "launching"
    DETACHED = "detached"
    FAILED = "failed"


@dataclass
class LaunchResult:
    state: RunState
    pid: int = 0
    program: str = ""
    arguments: List[str] = field(default_factory=list)


def start_detached(program: str, arguments: List[str]) -> Tuple[bool, int]:
    """Start a process that outlives us; returns (started, pid)."""
    result = QProcess.startDetached(program, arguments)
    # PySide6 returns (ok, pid); older bindings return a bare bool
    if isinstance(result, tuple):
        return bool(result[0]), int(result[1] or 0)
    return bool(result), 0


def probe_tool(executable: str, timeout_ms: int = PROBE_TIMEOUT_MS) -> bool:
    """Run ``<executable> -version`` and report whether it exited cleanly."""
    proc = QProcess()
    proc.setProcessChannelMode(QProcess.ProcessChannelMode.MergedChannels)
    proc.start(executable, ["-version"])
    if not proc.waitForStarted(timeout_ms):
        logger.debug("Probe of %s failed to start: %s", executable, proc.errorString())
        return False
    if not proc.waitForFinished(timeout_ms):
        proc.kill()
        proc.waitForFinished(1000)
        logger.debug("Probe of %s timed out", executable)
        return False
    return (
        proc.exitStatus() == QProcess.ExitStatus.NormalExit and proc.exitCode() == 0
    )


def escape_percent(line: str) -> str:
    return line.replace("%", "%%")


def write_run_script(path: Path, command_line: str) -> None:
    # first line is left empty: cmd reads the BOM as part of it
    lines = ["", "@echo off", "chcp 65001 > nul", escape_percent(command_line), ""]
    with open(path, "w", encoding="utf-8-sig", newline="\r\n") as fh:
        fh.write("\n".join(lines))


class AsyncRunner:
    def __init__(self, settings: Settings, launcher: Launcher = start_detached):
        self.settings = settings
        self._launcher = launcher
        self.state = RunState.IDLE

    def _prepare(self, command: ExtractionCommand) -> Tuple[str, List[str]]:
        s = self.settings
        s.app_dir.mkdir(parents=True, exist_ok=True)
        s.last_command_path.write_text(command.display, encoding="utf-8")
        for directory in command.output_dirs:
            directory.mkdir(parents=True, exist_ok=True)
        log = s.extract_log_path
        if s.windows:
            write_run_script(s.run_script_path, f'{command.display} > "{log}" 2>&1')
            return "cmd.exe", ["/c", str(s.run_script_path)]
        line = f"{command.display} > {shlex.quote(str(log))} 2>&1"
        return "/bin/sh", ["-c", line]

    def run(self, command: ExtractionCommand) -> LaunchResult:
        self.state = RunState.LAUNCHING
        try:
            program, arguments = self._prepare(command)
        except OSError as e:
            self.state = RunState.FAILED
            logger.error("Could not prepare extraction: %s", e)
            raise LaunchError(f"could not prepare extraction: {e}") from e

        logger.info("Launching: %s", command.display)
        started, pid = self._launcher(program, arguments)
        if not started:
            self.state = RunState.FAILED
            logger.error("Failed to start %s", program)
            raise LaunchError(f"failed to start {program}")

        self.state = RunState.DETACHED
        logger.debug("Detached pid=%s, output in %s", pid, self.settings.extract_log_path)
        return LaunchResult(
            state=self.state, pid=pid, program=program, arguments=arguments
        )


__all__ = [
    "AsyncRunner",
    "LaunchResult",
    "RunState",
    "escape_percent",
    "probe_tool",
    "start_detached",
    "write_run_script",
]
