from pathlib import Path

from timepoint_extractor.core.paths import (
    PathResolver,
    fallback_name,
    local_path_from_uri,
    preferred_path,
)
from timepoint_extractor.utils.sanitize import (
    rolling_hash,
    sanitize_filename,
    sanitize_identifier,
)


def test_local_path_from_uri():
    assert local_path_from_uri("file:///tmp/a.mp4") == "/tmp/a.mp4"
    assert local_path_from_uri("/tmp/a.mp4") == "/tmp/a.mp4"
    assert local_path_from_uri("C:/videos/a.mp4") == "C:/videos/a.mp4"
    assert local_path_from_uri("http://example.com/a.mp4") is None
    assert local_path_from_uri("") is None
    assert local_path_from_uri(None) is None


def test_preferred_path_replaces_extension():
    assert preferred_path("/media/clip.v1.mp4") == "/media/clip.v1.tp"
    assert preferred_path("/media/noext") == "/media/noext.tp"
    # dots in directory names are not an extension
    assert preferred_path("/media/dir.d/noext") == "/media/dir.d/noext.tp"


def test_rolling_hash_known_values():
    assert rolling_hash("") == "00001505"
    assert rolling_hash("a") == "0002b606"
    assert len(rolling_hash("x" * 1000)) == 8


def test_sanitize():
    assert sanitize_filename("  test run? ") == "test_run"
    assert sanitize_filename('a/b\\c:d*e"f<g>h|i') == "a_b_c_d_e_f_g_h_i"
    assert sanitize_filename(None) == ""
    assert sanitize_identifier("file:///tmp/a b.mp4") == "file_tmp_a_b.mp4"
    assert sanitize_identifier("///") == ""


def test_fallback_name_short():
    assert fallback_name("file:///tmp/a b.mp4") == "file_tmp_a_b.mp4.tp"
    assert fallback_name("???") == "media.tp"


def test_fallback_name_cap_and_hash():
    exact = "x" * 120
    assert fallback_name(exact) == exact + ".tp"

    long_id = "y" * 200
    name = fallback_name(long_id)
    assert name == "y" * 120 + "_" + rolling_hash(long_id) + ".tp"


def test_fallback_name_distinguishes_long_locations():
    a = "file:///" + "d" * 150 + "/one.mp4"
    b = "file:///" + "d" * 150 + "/two.mp4"
    assert fallback_name(a) != fallback_name(b)


def test_resolver_paths(tmp_path):
    resolver = PathResolver(tmp_path / "timepoints", windows=False)
    paths = resolver.resolve("file:///videos/match.mkv")
    assert paths.preferred == Path("/videos/match.tp")
    assert paths.fallback == tmp_path / "timepoints" / "file_videos_match.mkv.tp"

    remote = resolver.resolve("http://example.com/stream.mp4")
    assert remote.preferred is None
    assert resolver.force_fallback(remote.preferred)


def test_force_fallback_non_ascii_on_windows(tmp_path):
    windows = PathResolver(tmp_path, windows=True)
    posix = PathResolver(tmp_path, windows=False)
    assert windows.force_fallback("C:/Vidéos/a.tp")
    assert not windows.force_fallback("C:/Videos/a.tp")
    assert not posix.force_fallback("/home/user/Vidéos/a.tp")
