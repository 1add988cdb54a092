"""
Tests for aspect classification and the ffprobe/ffmpeg bindings.
External processes are replaced with mocked subprocess.run results.
"""
import json
import os
import subprocess
from unittest.mock import patch

import pytest

from tubely.exceptions import ProbeError, TranscodeError
from tubely.media.aspect import (
    AspectClass,
    aspect_ratio,
    classify_dimensions,
    classify_ratio,
    reduce_ratio,
)
from tubely.media.ffmpeg import FFmpegFastStartTranscoder, FFprobeProbe, run_tool


def completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


def probe_output(*streams):
    return json.dumps({"streams": list(streams)})


class TestAspect:
    """Tests for ratio reduction and classification."""

    @pytest.mark.parametrize("width,height,expected", [
        (1920, 1080, AspectClass.LANDSCAPE),
        (3840, 2160, AspectClass.LANDSCAPE),
        (1080, 1920, AspectClass.PORTRAIT),
        (720, 1280, AspectClass.PORTRAIT),
        (1000, 1000, AspectClass.OTHER),
        (1280, 721, AspectClass.OTHER),
        (640, 480, AspectClass.OTHER),
    ])
    def test_classify_dimensions(self, width, height, expected):
        assert classify_dimensions(width, height) == expected

    def test_aspect_ratio_reduces(self):
        assert aspect_ratio(1920, 1080) == "16:9"
        assert aspect_ratio(1080, 1920) == "9:16"
        assert aspect_ratio(1000, 1000) == "1:1"

    def test_reduction_is_idempotent(self):
        once = reduce_ratio(3840, 2160)
        assert reduce_ratio(*once) == once == (16, 9)

    def test_zero_height_left_unreduced(self):
        assert reduce_ratio(1920, 0) == (1920, 0)
        assert classify_dimensions(1920, 0) == AspectClass.OTHER

    def test_zero_by_zero(self):
        assert aspect_ratio(0, 0) == "0:0"
        assert classify_dimensions(0, 0) == AspectClass.OTHER

    def test_classify_ratio_requires_exact_match(self):
        assert classify_ratio("16:9") == AspectClass.LANDSCAPE
        assert classify_ratio("32:18") == AspectClass.OTHER


class TestParseDimensions:
    """Tests for ffprobe JSON parsing."""

    def test_first_stream_dimensions(self):
        output = probe_output({"width": 1920, "height": 1080}, {"width": 1080, "height": 1920})
        assert FFprobeProbe.parse_dimensions(output) == (1920, 1080)

    def test_invalid_json(self):
        with pytest.raises(ProbeError):
            FFprobeProbe.parse_dimensions("not json")

    def test_empty_streams(self):
        with pytest.raises(ProbeError, match="no video streams found"):
            FFprobeProbe.parse_dimensions(probe_output())

    def test_missing_streams(self):
        with pytest.raises(ProbeError, match="no video streams found"):
            FFprobeProbe.parse_dimensions(json.dumps({"format": {}}))

    def test_non_integer_dimension(self):
        with pytest.raises(ProbeError):
            FFprobeProbe.parse_dimensions(probe_output({"width": "1920", "height": 1080}))

    def test_missing_dimensions_read_as_zero(self):
        assert FFprobeProbe.parse_dimensions(probe_output({"codec_type": "audio"})) == (0, 0)


class TestRunTool:
    """Tests for external process handling."""

    def test_probe_command(self):
        probe = FFprobeProbe(ffprobe_path="ffprobe", timeout=5)
        assert probe.build_probe_command("/tmp/in.mp4") == [
            "ffprobe", "-v", "error", "-print_format", "json", "-show_streams", "/tmp/in.mp4"
        ]

    def test_probe_classifies_from_process_output(self):
        probe = FFprobeProbe(timeout=5)
        output = probe_output({"width": 1080, "height": 1920})
        with patch("tubely.media.ffmpeg.subprocess.run", return_value=completed(stdout=output)) as run:
            assert probe.classify("/tmp/in.mp4") == AspectClass.PORTRAIT
        assert run.call_args.kwargs["timeout"] == 5

    def test_nonzero_exit_includes_stderr(self):
        with patch("tubely.media.ffmpeg.subprocess.run",
                   return_value=completed(returncode=1, stderr="moov atom not found")):
            with pytest.raises(ProbeError, match="moov atom not found"):
                run_tool(["ffprobe"], "ffprobe", "/tmp/in.mp4", 5, ProbeError)

    def test_timeout(self):
        with patch("tubely.media.ffmpeg.subprocess.run",
                   side_effect=subprocess.TimeoutExpired(cmd="ffmpeg", timeout=5)):
            with pytest.raises(TranscodeError, match="timed out"):
                run_tool(["ffmpeg"], "ffmpeg", "/tmp/in.mp4", 5, TranscodeError)

    def test_missing_binary(self):
        with patch("tubely.media.ffmpeg.subprocess.run", side_effect=FileNotFoundError("ffprobe")):
            with pytest.raises(ProbeError, match="failed to execute"):
                run_tool(["ffprobe"], "ffprobe", "/tmp/in.mp4", 5, ProbeError)


class TestFastStartTranscoder:
    """Tests for the ffmpeg fast-start rewrite."""

    def test_command_uses_stream_copy_and_faststart(self):
        transcoder = FFmpegFastStartTranscoder(ffmpeg_path="ffmpeg", timeout=5)
        cmd = transcoder.build_transcode_command("/tmp/in.mp4", "/tmp/in.mp4.processing")
        assert cmd == [
            "ffmpeg", "-y", "-i", "/tmp/in.mp4",
            "-codec", "copy", "-movflags", "faststart", "-f", "mp4",
            "/tmp/in.mp4.processing",
        ]

    def test_success_returns_processed_path(self, tmp_path):
        source = tmp_path / "in.mp4"
        source.write_bytes(b"original")
        transcoder = FFmpegFastStartTranscoder(timeout=5)

        def fake_run(cmd, **kwargs):
            with open(cmd[-1], "wb") as f:
                f.write(b"rewritten")
            return completed()

        with patch("tubely.media.ffmpeg.subprocess.run", side_effect=fake_run):
            output = transcoder.transcode(str(source))

        assert output == f"{source}.processing"
        assert open(output, "rb").read() == b"rewritten"
        # Input untouched
        assert source.read_bytes() == b"original"

    def test_empty_output_fails_and_is_removed(self, tmp_path):
        source = tmp_path / "in.mp4"
        source.write_bytes(b"original")
        transcoder = FFmpegFastStartTranscoder(timeout=5)

        def fake_run(cmd, **kwargs):
            open(cmd[-1], "wb").close()
            return completed()

        with patch("tubely.media.ffmpeg.subprocess.run", side_effect=fake_run):
            with pytest.raises(TranscodeError, match="empty"):
                transcoder.transcode(str(source))

        assert not os.path.exists(f"{source}.processing")

    def test_missing_output_fails(self, tmp_path):
        source = tmp_path / "in.mp4"
        source.write_bytes(b"original")
        transcoder = FFmpegFastStartTranscoder(timeout=5)

        with patch("tubely.media.ffmpeg.subprocess.run", return_value=completed()):
            with pytest.raises(TranscodeError):
                transcoder.transcode(str(source))

    def test_failed_run_removes_partial_output(self, tmp_path):
        source = tmp_path / "in.mp4"
        source.write_bytes(b"original")
        transcoder = FFmpegFastStartTranscoder(timeout=5)

        def fake_run(cmd, **kwargs):
            with open(cmd[-1], "wb") as f:
                f.write(b"half")
            return completed(returncode=1, stderr="Invalid data found")

        with patch("tubely.media.ffmpeg.subprocess.run", side_effect=fake_run):
            with pytest.raises(TranscodeError, match="Invalid data found"):
                transcoder.transcode(str(source))

        assert not os.path.exists(f"{source}.processing")
