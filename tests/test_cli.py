import pytest

from timepoint_extractor.cli import main, media_location


@pytest.fixture
def env(tmp_path, monkeypatch):
    monkeypatch.setenv("TIMEPOINT_EXTRACTOR_HOME", str(tmp_path / "home"))
    monkeypatch.setenv("TIMEPOINT_EXTRACTOR_FFMPEG", "timepoint-extractor-no-such-tool")
    monkeypatch.delenv("TIMEPOINT_EXTRACTOR_LOG_LEVEL", raising=False)
    return tmp_path


def test_add_list_remark_remove(env, capsys):
    media = str(env / "clip.mp4")
    assert main(["add", media, "--at", "00:00:20", "--remark", "second"]) == 0
    assert main(["add", media, "--at", "1.5s"]) == 0
    assert (env / "clip.tp").exists()
    capsys.readouterr()

    assert main(["list", media]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out == ["[00:00:01.500] Point0001", "[00:00:20.000] Point0002 second"]

    assert main(["remark", media, "1", "first"]) == 0
    assert main(["remove", media, "2"]) == 0
    capsys.readouterr()
    main(["list", media])
    assert capsys.readouterr().out.splitlines() == ["[00:00:01.500] Point0001 first"]


def test_out_of_range_number(env, capsys):
    media = str(env / "clip.mp4")
    assert main(["remove", media, "3"]) == 1
    assert "Select a point first." in capsys.readouterr().out


def test_list_empty(env, capsys):
    assert main(["list", str(env / "none.mp4")]) == 0
    assert capsys.readouterr().out.strip() == "No timepoints."


def test_extract_without_tool(env, capsys):
    media = str(env / "clip.mp4")
    main(["add", media, "--at", "5"])
    capsys.readouterr()
    assert main(["extract", media, "1", "--mode", "lossless", "--before", "1"]) == 1
    assert "FFmpeg not found." in capsys.readouterr().out
    assert not (env / "clip_extracted_movies").exists()


def test_probe_without_tool(env):
    assert main(["probe"]) == 1


def test_bad_time_value(env):
    with pytest.raises(SystemExit):
        main(["add", str(env / "clip.mp4"), "--at", "soon"])


def test_bad_log_level(env, monkeypatch):
    monkeypatch.setenv("TIMEPOINT_EXTRACTOR_LOG_LEVEL", "LOUD")
    with pytest.raises(SystemExit):
        main(["list", str(env / "clip.mp4")])


def test_media_location_keeps_uris(tmp_path):
    assert media_location("http://example.com/a.mp4") == "http://example.com/a.mp4"
    assert media_location(str(tmp_path / "a.mp4")) == (tmp_path / "a.mp4").as_uri()
