from PySide6.QtCore import QCoreApplication
from moviepy import ColorClip

from timepoint_extractor.controller import TimepointController
from timepoint_extractor.config import Settings
from timepoint_extractor.media.player import ClipPlayerHost, StaticHost

_app = None


def _ensure_app():
    global _app
    if _app is None:
        _app = QCoreApplication.instance() or QCoreApplication([])


def _make_clip(path, duration=1.0, fps=10):
    clip = ColorClip(size=(32, 32), color=(10, 20, 30), duration=duration)
    clip.write_videofile(str(path), fps=fps)
    clip.close()


def test_clip_host_position_on_frame_grid(tmp_path):
    _ensure_app()
    video_path = tmp_path / "grid.mp4"
    _make_clip(video_path)

    host = ClipPlayerHost()
    media = []
    positions = []
    host.mediaChanged.connect(media.append)
    host.positionChanged.connect(positions.append)
    host.load(str(video_path))
    try:
        uri = host.current_media_location()
        assert media == [uri]
        assert uri.startswith("file://")
        assert host.local_path_from_uri(uri) == str(video_path)
        assert host.current_position_micros() == 0

        host.set_position_micros(450_000)
        assert host.current_position_micros() == 400_000
        assert positions[-1] == 400_000

        host.set_position_micros(60_000_000)  # past the end clamps to last frame
        last = host.current_position_micros()
        assert 800_000 <= last < 1_000_000
        assert positions[-1] == last

        host.set_position_micros(-5)
        assert host.current_position_micros() == 0
    finally:
        host.close()
    assert host.current_media_location() is None


def test_controller_follows_clip_host(tmp_path):
    _ensure_app()
    video_path = tmp_path / "follow.mp4"
    _make_clip(video_path)
    host = ClipPlayerHost()
    host.load(str(video_path))
    try:
        controller = TimepointController(
            host,
            Settings(app_dir=tmp_path / "app", windows=False),
            probe=lambda exe: True,
        )
        host.set_position_micros(500_000)
        assert controller.add("mid").ok
        host.set_position_micros(0)
        assert controller.jump(0).ok
        assert host.current_position_micros() == 500_000
        assert (tmp_path / "follow.tp").exists()
    finally:
        host.close()


def test_static_host_clamps():
    host = StaticHost("file:///tmp/a.mp4")
    host.set_position_micros(-10)
    assert host.position_micros == 0
    assert host.local_path_from_uri(host.current_media_location()) == "/tmp/a.mp4"
