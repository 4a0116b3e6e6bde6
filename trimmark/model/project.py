"""Project, VideoMeta, TrimWindow, WatermarkSpec, and ExportSpec data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Anchor(str, Enum):
    TOP_LEFT = "topLeft"
    TOP_RIGHT = "topRight"
    BOTTOM_LEFT = "bottomLeft"
    BOTTOM_RIGHT = "bottomRight"

    @property
    def is_left(self) -> bool:
        return self in (Anchor.TOP_LEFT, Anchor.BOTTOM_LEFT)

    @property
    def is_top(self) -> bool:
        return self in (Anchor.TOP_LEFT, Anchor.TOP_RIGHT)

    def place(
        self,
        offset_x: float,
        offset_y: float,
        frame_w: float,
        frame_h: float,
        item_w: float,
        item_h: float,
    ) -> tuple[float, float]:
        """Return the top-left pixel of an item placed relative to this corner.

        Mirrors the expressions emitted for ffmpeg: right/bottom anchors
        resolve to ``frame - item - offset``.
        """
        x = offset_x if self.is_left else frame_w - item_w - offset_x
        y = offset_y if self.is_top else frame_h - item_h - offset_y
        return x, y


@dataclass
class VideoMeta:
    fps: float | None = None
    duration: float | None = None
    timebase: str | None = None
    width: int | None = None
    height: int | None = None
    codec: str | None = None


@dataclass(frozen=True)
class TrimWindow:
    start: float = 0.0
    end: float = 0.0

    @property
    def duration(self) -> float:
        return max(0.0, self.end - self.start)

    def clamped(self, duration: float | None) -> "TrimWindow":
        """Return a window with 0 <= start <= end (<= duration when known)."""
        upper = duration if duration is not None and duration > 0 else float("inf")
        start = min(max(0.0, self.start), upper)
        end = min(max(start, self.end), upper)
        return TrimWindow(start, end)


@dataclass
class WatermarkSpec:
    text: str = "© Watermark"
    font_family: str = "Inter"
    font_size_px: int = 48
    color: str = "#FFFFFF"  # #RRGGBB
    opacity: float = 0.5
    anchor: Anchor = Anchor.BOTTOM_RIGHT
    offset_x: int = 24
    offset_y: int = 24


@dataclass
class ExportSpec:
    container: str = "mp4"
    video_codec: str = "h264"
    audio_codec: str = "aac"
    use_hardware_accel: bool = False
    quality: int = 18  # CRF / CQ, lower is better
    output_path: str | None = None


@dataclass
class Project:
    source_path: str | None = None
    video: VideoMeta = field(default_factory=VideoMeta)
    trim: TrimWindow = field(default_factory=TrimWindow)
    watermark: WatermarkSpec = field(default_factory=WatermarkSpec)
    export: ExportSpec = field(default_factory=ExportSpec)

    def set_source(self, path: str, meta: VideoMeta | None = None) -> None:
        """Point the project at a new source and select its full duration."""
        self.source_path = path
        self.video = meta or VideoMeta()
        self.trim = TrimWindow(0.0, self.video.duration or 0.0)

    def set_trim(self, start: float, end: float) -> TrimWindow:
        self.trim = TrimWindow(start, end).clamped(self.video.duration)
        return self.trim

    def reset(self) -> None:
        self.source_path = None
        self.video = VideoMeta()
        self.trim = TrimWindow()
