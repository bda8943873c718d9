import shlex

import pytest
from PySide6.QtCore import QCoreApplication

from timepoint_extractor.config import Settings
from timepoint_extractor.core.timepoints import Timepoint
from timepoint_extractor.exceptions import LaunchError
from timepoint_extractor.services.commands import CommandBuilder, ExtractionParams
from timepoint_extractor.services.runner import (
    AsyncRunner,
    RunState,
    escape_percent,
    probe_tool,
)

_app = None


def _ensure_app():
    global _app
    if _app is None:
        _app = QCoreApplication.instance() or QCoreApplication([])


class FakeLauncher:
    def __init__(self, started=True):
        self.started = started
        self.calls = []

    def __call__(self, program, arguments):
        self.calls.append((program, list(arguments)))
        return self.started, 4242 if self.started else 0


def _command(tmp_path, windows):
    tp = Timepoint(time=10_000_000, label="Point0001")
    params = ExtractionParams(before_sec=1, after_sec=1)
    media = tmp_path / "media dir" / "clip.mp4"
    return CommandBuilder(windows=windows).build(tp, str(media), params)


def test_posix_run_redirects_to_log(tmp_path):
    settings = Settings(app_dir=tmp_path / "app", windows=False)
    launcher = FakeLauncher()
    runner = AsyncRunner(settings, launcher)
    cmd = _command(tmp_path, windows=False)

    result = runner.run(cmd)

    assert result.state is RunState.DETACHED
    assert runner.state is RunState.DETACHED
    assert result.pid == 4242
    assert settings.last_command_path.read_text(encoding="utf-8") == cmd.display
    for directory in cmd.output_dirs:
        assert directory.is_dir()
    log = shlex.quote(str(settings.extract_log_path))
    assert launcher.calls == [("/bin/sh", ["-c", f"{cmd.display} > {log} 2>&1"])]
    assert not settings.run_script_path.exists()


def test_windows_run_uses_utf8_script(tmp_path):
    settings = Settings(app_dir=tmp_path / "app", windows=True)
    launcher = FakeLauncher()
    runner = AsyncRunner(settings, launcher)
    cmd = _command(tmp_path, windows=True)

    runner.run(cmd)

    script = settings.run_script_path
    assert launcher.calls == [("cmd.exe", ["/c", str(script)])]
    data = script.read_bytes()
    assert data.startswith(b"\xef\xbb\xbf\r\n@echo off\r\nchcp 65001 > nul\r\n")
    text = data.decode("utf-8-sig")
    assert "frame_%%04d.png" in text
    assert f'> "{settings.extract_log_path}" 2>&1' in text
    assert settings.last_command_path.read_text(encoding="utf-8") == cmd.display


def test_failed_start_raises(tmp_path):
    settings = Settings(app_dir=tmp_path / "app", windows=False)
    runner = AsyncRunner(settings, FakeLauncher(started=False))
    with pytest.raises(LaunchError):
        runner.run(_command(tmp_path, windows=False))
    assert runner.state is RunState.FAILED
    # diagnostics are still written for inspection
    assert settings.last_command_path.exists()


def test_unwritable_app_dir_raises(tmp_path):
    blocker = tmp_path / "app"
    blocker.write_text("file")
    launcher = FakeLauncher()
    runner = AsyncRunner(Settings(app_dir=blocker / "sub", windows=False), launcher)
    with pytest.raises(LaunchError):
        runner.run(_command(tmp_path, windows=False))
    assert runner.state is RunState.FAILED
    assert launcher.calls == []


def test_escape_percent():
    assert escape_percent("frame_%04d.png 100%") == "frame_%%04d.png 100%%"


def test_probe_missing_tool():
    _ensure_app()
    assert probe_tool("timepoint-extractor-no-such-tool", timeout_ms=2000) is False


def test_windows_script_keeps_ampersand_paths_quoted(tmp_path):
    settings = Settings(app_dir=tmp_path / "app", windows=True)
    runner = AsyncRunner(settings, FakeLauncher())
    media = tmp_path / "Tom&Jerry.mp4"
    tp = Timepoint(time=10_000_000, label="Point0001")
    cmd = CommandBuilder(windows=True).build(tp, str(media))

    runner.run(cmd)

    line = settings.run_script_path.read_text(encoding="utf-8-sig").splitlines()[3]
    assert f'-i "{media}"' in line
    assert f'"{cmd.output}"' in line
    assert line.endswith(f'> "{settings.extract_log_path}" 2>&1')
