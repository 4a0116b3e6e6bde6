"""Settings dataclass with JSON persistence."""

import json
from dataclasses import asdict, dataclass
from pathlib import Path

from trimmark.model.project import Anchor, ExportSpec, WatermarkSpec

DEFAULT_CONFIG_DIR = Path.home() / ".trimmark"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "settings.json"


@dataclass
class Settings:
    # Watermark defaults for new projects
    watermark_text: str = "© Watermark"
    watermark_font_family: str = "Inter"
    watermark_font_size_px: int = 48
    watermark_color: str = "#FFFFFF"
    watermark_opacity: float = 0.5
    watermark_anchor: str = Anchor.BOTTOM_RIGHT.value
    watermark_offset_x: int = 24
    watermark_offset_y: int = 24

    # Encoding
    quality: int = 18  # CRF 0-51
    use_hardware_accel: bool = False

    # External tools; empty = bundled copy or PATH
    ffmpeg_path: str = ""
    ffprobe_path: str = ""
    ytdlp_path: str = ""

    # Font handed to ffmpeg drawtext when no raster watermark is used
    font_file: str = ""

    last_output_dir: str = ""

    def save(self, path: Path | None = None) -> None:
        path = path or DEFAULT_CONFIG_PATH
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(asdict(self), indent=2))

    @classmethod
    def load(cls, path: Path | None = None) -> "Settings":
        path = path or DEFAULT_CONFIG_PATH
        if not path.exists():
            return cls()
        try:
            data = json.loads(path.read_text())
            return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})
        except (json.JSONDecodeError, TypeError):
            return cls()

    @property
    def anchor(self) -> Anchor:
        try:
            return Anchor(self.watermark_anchor)
        except ValueError:
            return Anchor.BOTTOM_RIGHT

    def binary_override(self, name: str) -> str:
        return {
            "ffmpeg": self.ffmpeg_path,
            "ffprobe": self.ffprobe_path,
            "yt-dlp": self.ytdlp_path,
        }.get(name, "")

    def default_watermark(self) -> WatermarkSpec:
        return WatermarkSpec(
            text=self.watermark_text,
            font_family=self.watermark_font_family,
            font_size_px=self.watermark_font_size_px,
            color=self.watermark_color,
            opacity=self.watermark_opacity,
            anchor=self.anchor,
            offset_x=self.watermark_offset_x,
            offset_y=self.watermark_offset_y,
        )

    def default_export(self) -> ExportSpec:
        return ExportSpec(
            use_hardware_accel=self.use_hardware_accel,
            quality=self.quality,
        )
