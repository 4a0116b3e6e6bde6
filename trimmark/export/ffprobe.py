"""Video metadata extraction via ffprobe."""

import json
import math
import subprocess
from pathlib import Path

from trimmark.config import Settings
from trimmark.errors import LaunchError, MetadataParseError, ProcessFailedError
from trimmark.export.binaries import locate_binary
from trimmark.model.project import VideoMeta


def probe(video_path: str, settings: Settings | None = None) -> dict:
    """Run ffprobe and return its parsed JSON output (streams + format).

    Raises:
        FileNotFoundError: If video_path does not exist.
        LaunchError: If ffprobe could not be started.
        ProcessFailedError: If ffprobe exits with a nonzero status.
        MetadataParseError: If ffprobe output is not valid JSON.
    """
    path = Path(video_path)
    if not path.exists():
        raise FileNotFoundError(f"Video file not found: {video_path}")

    ffprobe = locate_binary("ffprobe", settings)
    try:
        result = subprocess.run(
            [
                ffprobe,
                "-hide_banner",
                "-v", "error",
                "-print_format", "json",
                "-show_streams",
                "-show_format",
                str(path),
            ],
            capture_output=True,
            text=True,
            timeout=30,
        )
    except OSError as e:
        raise LaunchError("ffprobe", ffprobe, e.strerror or str(e)) from e

    if result.returncode != 0:
        lines = [line for line in result.stderr.strip().splitlines() if line.strip()]
        raise ProcessFailedError("ffprobe", result.returncode, lines)

    try:
        data = json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise MetadataParseError(f"ffprobe returned invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MetadataParseError("ffprobe output is not a JSON object")

    return data


def get_video_stream(data: dict) -> dict | None:
    """Return the first video stream from ffprobe data, if any."""
    for stream in data.get("streams", []):
        if stream.get("codec_type") == "video":
            return stream
    return None


def eval_fraction(frac: str | None) -> float | None:
    """Evaluate an ffprobe rate such as "30000/1001".

    Returns None for a zero denominator (ffprobe's "0/0" means unknown)
    or anything that does not parse.
    """
    if not frac:
        return None
    parts = str(frac).split("/")
    if len(parts) == 1:
        parts.append("1")
    if len(parts) != 2:
        return None
    try:
        num, den = float(parts[0]), float(parts[1])
    except ValueError:
        return None
    if not (math.isfinite(num) and math.isfinite(den)) or den == 0:
        return None
    return num / den


def _float_or_none(raw) -> float | None:
    if raw is None:
        return None
    try:
        return float(raw)
    except (ValueError, TypeError):
        return None


def _int_or_none(raw) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw)
    except (ValueError, TypeError):
        return None


def extract_video_meta(data: dict) -> VideoMeta:
    """Build VideoMeta from ffprobe data; missing fields stay None."""
    stream = get_video_stream(data) or {}
    fmt = data.get("format") or {}

    # avg_frame_rate is "0/0" for some streams; r_frame_rate is the fallback
    fps = eval_fraction(stream.get("avg_frame_rate"))
    if fps is None:
        fps = eval_fraction(stream.get("r_frame_rate"))

    # Some containers omit the format duration
    duration = _float_or_none(fmt.get("duration"))
    if duration is None:
        duration = _float_or_none(stream.get("duration"))

    return VideoMeta(
        fps=fps,
        duration=duration,
        timebase=stream.get("time_base"),
        width=_int_or_none(stream.get("width")),
        height=_int_or_none(stream.get("height")),
        codec=stream.get("codec_name"),
    )


def extract_metadata(video_path: str, settings: Settings | None = None) -> VideoMeta:
    """Probe a video and return its metadata."""
    return extract_video_meta(probe(video_path, settings))
