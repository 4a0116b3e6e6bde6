"""ffmpeg argument construction for trimmed, watermarked MP4 export.

Argument order matters: ffmpeg indexes filter-graph inputs by declaration
order (``[0:v]`` is the source, ``[1:v]`` the watermark image), and the
``-ss``/``-t`` pair placed after every ``-i`` applies to the output rather
than to a single input. Everything here is pure; callers validate requests
before building.
"""

from __future__ import annotations

from trimmark.model.project import ExportSpec, WatermarkSpec
from trimmark.model.requests import ExportRequest

GLOBAL_FLAGS = ["-hide_banner", "-y"]

# Drop shadow and soft box so the drawtext fallback resembles the raster
# watermark produced by trimmark.export.watermark.
SHADOW_COLOR = "000000@0.6"
SHADOW_OFFSET = 2
BOX_COLOR = "000000@0.35"
BOX_BORDER = 10

SOFTWARE_ENCODER = ["-c:v", "libx264", "-preset", "medium"]
HARDWARE_ENCODER = ["-c:v", "h264_nvenc", "-preset", "p5"]
OUTPUT_NORMALIZATION = ["-pix_fmt", "yuv420p", "-movflags", "+faststart", "-shortest"]
AUDIO_ENCODER = ["-c:a", "aac", "-b:a", "192k"]


def format_number(value: float) -> str:
    """Shortest decimal text for a number: 2.0 -> "2", 5.5 -> "5.5"."""
    if float(value).is_integer():
        return str(int(value))
    text = f"{value:.6f}".rstrip("0").rstrip(".")
    return text or "0"


def escape_filter_text(text: str) -> str:
    """Escape characters that would terminate a filter option value."""
    return text.replace("\\", "\\\\").replace(":", "\\:").replace("'", "\\'")


def _position(wm: WatermarkSpec, width_token: str, height_token: str) -> tuple[str, str]:
    ox = format_number(wm.offset_x)
    oy = format_number(wm.offset_y)
    x = ox if wm.anchor.is_left else f"{width_token}-{ox}"
    y = oy if wm.anchor.is_top else f"{height_token}-{oy}"
    return x, y


def overlay_position(wm: WatermarkSpec) -> tuple[str, str]:
    """x/y expressions for the overlay filter."""
    return _position(wm, "main_w-overlay_w", "main_h-overlay_h")


def drawtext_position(wm: WatermarkSpec) -> tuple[str, str]:
    """x/y expressions for the drawtext filter."""
    return _position(wm, "w-tw", "h-th")


def build_overlay_filter(wm: WatermarkSpec) -> str:
    """filter_complex graph compositing input 1 (the PNG) over input 0."""
    x, y = overlay_position(wm)
    return f"[1:v]format=rgba,setsar=1[wm];[0:v][wm]overlay={x}:{y}:shortest=1[v]"


def build_drawtext_filter(wm: WatermarkSpec, font_file: str | None = None) -> str:
    rgb = wm.color.lstrip("#")
    font_size = max(1, int(wm.font_size_px))
    x, y = drawtext_position(wm)
    font_param = f":fontfile='{escape_filter_text(font_file)}'" if font_file else ""
    style = (
        f":shadowcolor={SHADOW_COLOR}:shadowx={SHADOW_OFFSET}:shadowy={SHADOW_OFFSET}"
        f":box=1:boxcolor={BOX_COLOR}:boxborderw={BOX_BORDER}"
    )
    return (
        f"drawtext=text='{escape_filter_text(wm.text)}'{font_param}"
        f":fontsize={font_size}:fontcolor={rgb}@{format_number(wm.opacity)}"
        f"{style}:x={x}:y={y}"
    )


def encoder_args(export: ExportSpec) -> list[str]:
    quality = format_number(export.quality)
    if export.use_hardware_accel:
        # NVENC only; other hardware encoders are not probed for
        return HARDWARE_ENCODER + ["-cq", quality]
    return SOFTWARE_ENCODER + ["-crf", quality]


def build_ffmpeg_args(request: ExportRequest) -> list[str]:
    """Return the full ffmpeg argument vector (without the binary) for a request.

    Exactly one watermark strategy is used: the overlay graph when a
    pre-rendered image is supplied, drawtext otherwise. A blank watermark
    text without an image produces no watermark filter.
    """
    args = list(GLOBAL_FLAGS)

    args += ["-i", request.input_path]
    if request.watermark_image:
        # Single-frame PNG looped so it lasts as long as the video
        args += ["-stream_loop", "-1", "-i", request.watermark_image]

    args += ["-ss", format_number(request.start_sec), "-t", format_number(request.duration)]

    if request.watermark_image:
        args += [
            "-filter_complex", build_overlay_filter(request.watermark),
            "-map", "[v]",
            "-map", "0:a?",
        ]
    elif request.watermark.text.strip():
        args += ["-vf", build_drawtext_filter(request.watermark, request.font_file)]

    args += encoder_args(request.export)
    args += OUTPUT_NORMALIZATION
    args += AUDIO_ENCODER
    args.append(request.output_path)
    return args
