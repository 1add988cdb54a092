"""
FFmpeg-based media tooling.

FFprobeProbe reads stream geometry with ffprobe; FFmpegFastStartTranscoder
rewrites an MP4 with the moov atom up front (stream copy, no re-encode).
Every process runs with an explicit timeout and is killed when it expires.
"""
import json
import logging
import os
import subprocess
import time
from typing import Optional, Tuple, Type

from tubely.config import settings
from tubely.exceptions import ProbeError, TranscodeError, VideoIngestError
from tubely.media.base import MediaProbe, MediaTranscoder
from tubely.utils.logging import log_tool_invocation, log_tool_failure
from tubely.utils.metrics import media_tool_invocations_total, media_tool_duration_seconds

logger = logging.getLogger(__name__)

# Keep error messages readable; ffmpeg stderr can be very long
STDERR_TAIL_CHARS = 500


def run_tool(
    cmd: list[str],
    tool: str,
    path: str,
    timeout: float,
    error_class: Type[VideoIngestError],
) -> subprocess.CompletedProcess:
    """
    Run an external media tool and return the completed process.

    Args:
        cmd: Command as list of arguments
        tool: Tool name for logs and metrics ("ffprobe", "ffmpeg")
        path: File the tool operates on
        timeout: Seconds before the process is killed
        error_class: Exception raised on failure

    Raises:
        error_class: On non-zero exit, timeout, or when the binary is missing
    """
    start_time = time.time()
    try:
        result = subprocess.run(
            cmd,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        error = f"{tool} timed out after {timeout:g}s"
        _record_failure(tool, path, error, start_time)
        raise error_class(error)
    except OSError as e:
        error = f"failed to execute {tool}: {e}"
        _record_failure(tool, path, error, start_time)
        raise error_class(error) from e

    duration = time.time() - start_time
    media_tool_duration_seconds.labels(tool=tool).observe(duration)

    if result.returncode != 0:
        stderr = (result.stderr or "").strip()[-STDERR_TAIL_CHARS:]
        error = f"{tool} exited with status {result.returncode}"
        if stderr:
            error += f": {stderr}"
        media_tool_invocations_total.labels(tool=tool, status="failed").inc()
        log_tool_failure(logger, tool=tool, path=path, error=error, duration_ms=duration * 1000)
        raise error_class(error)

    media_tool_invocations_total.labels(tool=tool, status="success").inc()
    log_tool_invocation(logger, tool=tool, path=path, duration_ms=duration * 1000)
    return result


def _record_failure(tool: str, path: str, error: str, start_time: float):
    duration = time.time() - start_time
    media_tool_duration_seconds.labels(tool=tool).observe(duration)
    media_tool_invocations_total.labels(tool=tool, status="failed").inc()
    log_tool_failure(logger, tool=tool, path=path, error=error, duration_ms=duration * 1000)


class FFprobeProbe(MediaProbe):
    """Media probe backed by the ffprobe binary."""

    def __init__(self, ffprobe_path: Optional[str] = None, timeout: Optional[float] = None):
        """
        Initialize probe.

        Args:
            ffprobe_path: Path to ffprobe binary (default from settings)
            timeout: Seconds before ffprobe is killed (default from settings)
        """
        self.ffprobe_path = ffprobe_path or settings.ffprobe_path
        self.timeout = timeout if timeout is not None else settings.media_tool_timeout_seconds

    def build_probe_command(self, path: str) -> list[str]:
        return [
            self.ffprobe_path,
            "-v", "error",
            "-print_format", "json",
            "-show_streams",
            path,
        ]

    def probe(self, path: str) -> Tuple[int, int]:
        result = run_tool(
            self.build_probe_command(path),
            tool="ffprobe",
            path=path,
            timeout=self.timeout,
            error_class=ProbeError,
        )
        return self.parse_dimensions(result.stdout)

    @staticmethod
    def parse_dimensions(output: str) -> Tuple[int, int]:
        """
        Parse width and height of the first stream from ffprobe JSON output.

        Missing dimensions read as 0, as ffprobe omits them for audio streams.

        Raises:
            ProbeError: If the output is not the expected JSON or has no streams
        """
        try:
            info = json.loads(output)
        except (json.JSONDecodeError, TypeError) as e:
            raise ProbeError(f"couldn't parse ffprobe output: {e}") from e

        if not isinstance(info, dict):
            raise ProbeError("couldn't parse ffprobe output: expected a JSON object")

        streams = info.get("streams")
        if not isinstance(streams, list) or not streams:
            raise ProbeError("no video streams found")

        first = streams[0]
        if not isinstance(first, dict):
            raise ProbeError("couldn't parse ffprobe output: malformed stream entry")

        width = first.get("width", 0)
        height = first.get("height", 0)
        # bool is an int subclass but never a valid dimension
        for value in (width, height):
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ProbeError(f"couldn't parse ffprobe output: invalid dimension {value!r}")

        return width, height


class FFmpegFastStartTranscoder(MediaTranscoder):
    """Fast-start rewrite backed by the ffmpeg binary."""

    def __init__(self, ffmpeg_path: Optional[str] = None, timeout: Optional[float] = None):
        """
        Initialize transcoder.

        Args:
            ffmpeg_path: Path to ffmpeg binary (default from settings)
            timeout: Seconds before ffmpeg is killed (default from settings)
        """
        self.ffmpeg_path = ffmpeg_path or settings.ffmpeg_path
        self.timeout = timeout if timeout is not None else settings.media_tool_timeout_seconds

    def build_transcode_command(self, input_path: str, output_path: str) -> list[str]:
        return [
            self.ffmpeg_path,
            "-y",  # Overwrite output
            "-i", input_path,
            "-codec", "copy",
            "-movflags", "faststart",
            "-f", "mp4",
            output_path,
        ]

    def transcode(self, path: str) -> str:
        output_path = self.output_path_for(path)
        try:
            run_tool(
                self.build_transcode_command(path, output_path),
                tool="ffmpeg",
                path=path,
                timeout=self.timeout,
                error_class=TranscodeError,
            )
            self._check_output(output_path)
        except TranscodeError:
            self._remove_partial(output_path)
            raise
        return output_path

    @staticmethod
    def _check_output(output_path: str):
        """Guard against a reported success with a missing or truncated file."""
        try:
            size = os.path.getsize(output_path)
        except OSError as e:
            raise TranscodeError(f"couldn't stat processed file: {e}") from e
        if size == 0:
            raise TranscodeError("processed file is empty")

    @staticmethod
    def _remove_partial(output_path: str):
        if os.path.exists(output_path):
            try:
                os.remove(output_path)
            except OSError as e:
                logger.warning(f"Failed to delete partial output {output_path}: {e}")
