"""Tests for ffprobe metadata extraction."""

import json
import subprocess
from unittest.mock import patch

import pytest

from trimmark.config import Settings
from trimmark.errors import LaunchError, MetadataParseError, ProcessFailedError
from trimmark.export.ffprobe import (
    eval_fraction,
    extract_metadata,
    extract_video_meta,
    get_video_stream,
    probe,
)

PROBE_DATA = {
    "streams": [
        {"codec_type": "audio", "codec_name": "aac"},
        {
            "codec_type": "video",
            "codec_name": "h264",
            "width": 1920,
            "height": 1080,
            "avg_frame_rate": "30000/1001",
            "r_frame_rate": "30/1",
            "time_base": "1/30000",
            "duration": "9.500000",
        },
    ],
    "format": {"duration": "10.010000"},
}


def _completed(stdout="", stderr="", returncode=0):
    return subprocess.CompletedProcess(["ffprobe"], returncode, stdout=stdout, stderr=stderr)


@pytest.fixture()
def video_file(tmp_path):
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"\x00")
    return str(path)


class TestEvalFraction:
    def test_ntsc(self):
        assert eval_fraction("30000/1001") == pytest.approx(29.97, abs=0.01)

    def test_integer_rate(self):
        assert eval_fraction("25") == 25.0

    @pytest.mark.parametrize("value", [None, "", "0/0", "30/0", "abc/1", "1/2/3", "inf/1"])
    def test_unknown(self, value):
        assert eval_fraction(value) is None


class TestExtractVideoMeta:
    def test_full(self):
        meta = extract_video_meta(PROBE_DATA)
        assert meta.fps == pytest.approx(29.97, abs=0.01)
        assert meta.duration == pytest.approx(10.01)
        assert (meta.width, meta.height) == (1920, 1080)
        assert meta.codec == "h264"
        assert meta.timebase == "1/30000"

    def test_fps_falls_back_to_r_frame_rate(self):
        data = {"streams": [{"codec_type": "video", "avg_frame_rate": "0/0", "r_frame_rate": "24/1"}]}
        assert extract_video_meta(data).fps == 24.0

    def test_duration_falls_back_to_stream(self):
        data = {"streams": [{"codec_type": "video", "duration": "4.5"}], "format": {}}
        assert extract_video_meta(data).duration == 4.5

    def test_no_video_stream(self):
        meta = extract_video_meta({"streams": [{"codec_type": "audio"}], "format": {"duration": "3"}})
        assert meta.fps is None
        assert meta.width is None
        assert meta.duration == 3.0

    def test_empty(self):
        meta = extract_video_meta({})
        assert meta.duration is None
        assert get_video_stream({}) is None


class TestProbe:
    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            probe(str(tmp_path / "missing.mp4"))

    def test_parses_json(self, video_file):
        settings = Settings(ffprobe_path="/opt/ffprobe")
        with patch(
            "trimmark.export.ffprobe.subprocess.run",
            return_value=_completed(json.dumps(PROBE_DATA)),
        ) as run:
            assert probe(video_file, settings) == PROBE_DATA
        argv = run.call_args[0][0]
        assert argv[0] == "/opt/ffprobe"
        assert argv[-1] == video_file
        assert "-show_streams" in argv and "-show_format" in argv

    def test_nonzero_exit(self, video_file):
        with patch(
            "trimmark.export.ffprobe.subprocess.run",
            return_value=_completed(stderr="clip.mp4: Invalid data found\n", returncode=1),
        ):
            with pytest.raises(ProcessFailedError) as exc_info:
                probe(video_file)
        assert exc_info.value.tool == "ffprobe"
        assert exc_info.value.diagnostics == ["clip.mp4: Invalid data found"]

    def test_launch_failure(self, video_file):
        with patch(
            "trimmark.export.ffprobe.subprocess.run",
            side_effect=FileNotFoundError(2, "No such file or directory"),
        ):
            with pytest.raises(LaunchError) as exc_info:
                probe(video_file)
        assert exc_info.value.reason == "No such file or directory"

    @pytest.mark.parametrize("stdout", ["not json", "[1, 2]"])
    def test_bad_output(self, video_file, stdout):
        with patch("trimmark.export.ffprobe.subprocess.run", return_value=_completed(stdout)):
            with pytest.raises(MetadataParseError):
                probe(video_file)

    def test_extract_metadata(self, video_file):
        with patch(
            "trimmark.export.ffprobe.subprocess.run",
            return_value=_completed(json.dumps(PROBE_DATA)),
        ):
            meta = extract_metadata(video_file)
        assert meta.width == 1920
