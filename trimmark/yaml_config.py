"""YAML job configuration for headless/CLI exports."""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from pathlib import Path

import yaml

from trimmark.config import Settings
from trimmark.model.project import Anchor, Project

KNOWN_TOP_KEYS = {"input", "download", "output", "trim", "watermark", "export", "binaries"}
KNOWN_TRIM_KEYS = {"start", "end"}
KNOWN_WATERMARK_KEYS = {"text", "font", "size", "color", "opacity", "anchor", "offset"}
KNOWN_EXPORT_KEYS = {"quality", "hwaccel"}
KNOWN_BINARY_KEYS = {"ffmpeg", "ffprobe", "yt-dlp"}


@dataclass
class JobConfig:
    """All fields are None by default; unset means 'use the default'."""

    input_path: str | None = None
    download_url: str | None = None
    output_path: str | None = None

    # Trim window (seconds)
    trim_start: float | None = None
    trim_end: float | None = None

    # Watermark
    watermark_text: str | None = None
    watermark_font: str | None = None
    watermark_size: int | None = None
    watermark_color: str | None = None
    watermark_opacity: float | None = None
    watermark_anchor: Anchor | None = None
    watermark_offset_x: int | None = None
    watermark_offset_y: int | None = None

    # Encoding
    quality: int | None = None
    hwaccel: bool | None = None

    # Tool paths
    ffmpeg_path: str | None = None
    ffprobe_path: str | None = None
    ytdlp_path: str | None = None


def _warn_unknown_keys(keys: set[str], known: set[str], section: str) -> None:
    unknown = keys - known
    for key in sorted(unknown):
        warnings.warn(f"Unknown key '{key}' in {section} section of job config", stacklevel=3)


def _section(raw: dict, name: str, known: set[str]) -> dict:
    value = raw[name]
    if not isinstance(value, dict):
        raise ValueError(f"'{name}' must be a mapping")
    _warn_unknown_keys(set(value.keys()), known, name)
    return value


def _resolve(path: str, base_dir: Path) -> str:
    """Resolve a relative path against the YAML file's directory."""
    p = Path(path)
    if not p.is_absolute():
        p = base_dir / p
    return str(p)


def _parse_anchor(value) -> Anchor:
    try:
        return Anchor(str(value))
    except ValueError:
        choices = ", ".join(a.value for a in Anchor)
        raise ValueError(f"Unknown anchor '{value}' (expected one of: {choices})") from None


def _parse_offset(value) -> tuple[int, int]:
    if isinstance(value, dict):
        return int(value.get("x", 0)), int(value.get("y", 0))
    if isinstance(value, (list, tuple)) and len(value) == 2:
        return int(value[0]), int(value[1])
    if isinstance(value, (int, float)):
        return int(value), int(value)
    raise ValueError("'watermark.offset' must be a number, [x, y], or {x, y}")


def load_job_config(path: str | Path) -> JobConfig:
    """Load a YAML job file and return a JobConfig."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    raw = yaml.safe_load(path.read_text())
    if raw is None:
        # Empty YAML file
        return JobConfig()
    if not isinstance(raw, dict):
        raise ValueError(f"Job config must be a YAML mapping, got {type(raw).__name__}")

    _warn_unknown_keys(set(raw.keys()), KNOWN_TOP_KEYS, "top-level")

    base_dir = path.resolve().parent
    cfg = JobConfig()

    # --- input / download / output ---
    if "input" in raw:
        cfg.input_path = _resolve(str(raw["input"]), base_dir)
    if "download" in raw:
        cfg.download_url = str(raw["download"])
    if "output" in raw:
        cfg.output_path = _resolve(str(raw["output"]), base_dir)

    # --- trim ---
    if "trim" in raw:
        trim = _section(raw, "trim", KNOWN_TRIM_KEYS)
        if "start" in trim:
            cfg.trim_start = float(trim["start"])
        if "end" in trim:
            cfg.trim_end = float(trim["end"])

    # --- watermark ---
    if "watermark" in raw:
        wm = _section(raw, "watermark", KNOWN_WATERMARK_KEYS)
        if "text" in wm:
            cfg.watermark_text = "" if wm["text"] is None else str(wm["text"])
        if "font" in wm:
            cfg.watermark_font = str(wm["font"])
        if "size" in wm:
            cfg.watermark_size = int(wm["size"])
        if "color" in wm:
            cfg.watermark_color = str(wm["color"])
        if "opacity" in wm:
            cfg.watermark_opacity = float(wm["opacity"])
        if "anchor" in wm:
            cfg.watermark_anchor = _parse_anchor(wm["anchor"])
        if "offset" in wm:
            cfg.watermark_offset_x, cfg.watermark_offset_y = _parse_offset(wm["offset"])

    # --- export ---
    if "export" in raw:
        exp = _section(raw, "export", KNOWN_EXPORT_KEYS)
        if "quality" in exp:
            cfg.quality = int(exp["quality"])
        if "hwaccel" in exp:
            cfg.hwaccel = bool(exp["hwaccel"])

    # --- binaries ---
    if "binaries" in raw:
        bins = _section(raw, "binaries", KNOWN_BINARY_KEYS)
        cfg.ffmpeg_path = bins.get("ffmpeg")
        cfg.ffprobe_path = bins.get("ffprobe")
        cfg.ytdlp_path = bins.get("yt-dlp")

    return cfg


def apply_job_to_settings(config: JobConfig, settings: Settings | None = None) -> Settings:
    """Overlay the job's tool paths onto a Settings instance."""
    if settings is None:
        settings = Settings()

    field_map = {
        "ffmpeg_path": "ffmpeg_path",
        "ffprobe_path": "ffprobe_path",
        "ytdlp_path": "ytdlp_path",
    }

    for config_field, settings_field in field_map.items():
        value = getattr(config, config_field)
        if value is not None:
            setattr(settings, settings_field, value)

    return settings


def apply_job_to_project(config: JobConfig, project: Project) -> Project:
    """Overlay non-None JobConfig fields onto a Project.

    The trim window is applied last so it is clamped against the probed
    duration already stored on the project.
    """
    wm_map = {
        "watermark_text": "text",
        "watermark_font": "font_family",
        "watermark_size": "font_size_px",
        "watermark_color": "color",
        "watermark_opacity": "opacity",
        "watermark_anchor": "anchor",
        "watermark_offset_x": "offset_x",
        "watermark_offset_y": "offset_y",
    }
    for config_field, wm_field in wm_map.items():
        value = getattr(config, config_field)
        if value is not None:
            setattr(project.watermark, wm_field, value)

    if config.quality is not None:
        project.export.quality = config.quality
    if config.hwaccel is not None:
        project.export.use_hardware_accel = config.hwaccel
    if config.output_path is not None:
        project.export.output_path = config.output_path

    if config.trim_start is not None or config.trim_end is not None:
        start = config.trim_start if config.trim_start is not None else project.trim.start
        end = config.trim_end if config.trim_end is not None else project.trim.end
        project.set_trim(start, end)

    return project
