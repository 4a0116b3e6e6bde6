"""Tests for ffmpeg argument construction."""

import pytest

from trimmark.export.command import (
    build_drawtext_filter,
    build_ffmpeg_args,
    build_overlay_filter,
    drawtext_position,
    encoder_args,
    escape_filter_text,
    format_number,
    overlay_position,
)
from trimmark.model.project import Anchor, ExportSpec, WatermarkSpec

WM_PNG = "/tmp/wm.png"


def _wm(anchor=Anchor.BOTTOM_RIGHT, ox=24, oy=24, **kw) -> WatermarkSpec:
    return WatermarkSpec(anchor=anchor, offset_x=ox, offset_y=oy, **kw)


def _value_after(args: list[str], flag: str) -> str:
    return args[args.index(flag) + 1]


class TestFormatNumber:
    @pytest.mark.parametrize(
        "value, expected",
        [(2.0, "2"), (5.5, "5.5"), (0, "0"), (0.0, "0"), (18, "18"), (0.35, "0.35")],
    )
    def test_shortest_decimal(self, value, expected):
        assert format_number(value) == expected

    def test_float_noise_is_rounded(self):
        assert format_number(7.3 - 2.1) == "5.2"


class TestEscapeFilterText:
    def test_plain_text_unchanged(self):
        assert escape_filter_text("© Watermark") == "© Watermark"

    def test_colon(self):
        assert escape_filter_text("12:30") == "12\\:30"

    def test_single_quote(self):
        assert escape_filter_text("it's") == "it\\'s"

    def test_backslash_escaped_first(self):
        assert escape_filter_text("a\\:b") == "a\\\\\\:b"


class TestPositions:
    @pytest.mark.parametrize(
        "anchor, expected",
        [
            (Anchor.TOP_LEFT, ("24", "12")),
            (Anchor.TOP_RIGHT, ("main_w-overlay_w-24", "12")),
            (Anchor.BOTTOM_LEFT, ("24", "main_h-overlay_h-12")),
            (Anchor.BOTTOM_RIGHT, ("main_w-overlay_w-24", "main_h-overlay_h-12")),
        ],
    )
    def test_overlay(self, anchor, expected):
        assert overlay_position(_wm(anchor, 24, 12)) == expected

    @pytest.mark.parametrize(
        "anchor, expected",
        [
            (Anchor.TOP_LEFT, ("24", "12")),
            (Anchor.TOP_RIGHT, ("w-tw-24", "12")),
            (Anchor.BOTTOM_LEFT, ("24", "h-th-12")),
            (Anchor.BOTTOM_RIGHT, ("w-tw-24", "h-th-12")),
        ],
    )
    def test_drawtext(self, anchor, expected):
        assert drawtext_position(_wm(anchor, 24, 12)) == expected

    def test_zero_offset(self):
        assert overlay_position(_wm(Anchor.BOTTOM_RIGHT, 0, 0)) == (
            "main_w-overlay_w-0",
            "main_h-overlay_h-0",
        )


class TestAnchorPlacementSymmetry:
    """Left/right and top/bottom placements mirror around the frame center."""

    @pytest.mark.parametrize("offset", [0, 1, 24, 300])
    def test_horizontal_mirror(self, offset):
        frame_w, item_w = 1920, 310
        left_x, _ = Anchor.TOP_LEFT.place(offset, 0, frame_w, 1080, item_w, 60)
        right_x, _ = Anchor.TOP_RIGHT.place(offset, 0, frame_w, 1080, item_w, 60)
        assert (left_x + right_x + item_w) / 2 == pytest.approx(frame_w / 2)

    @pytest.mark.parametrize("offset", [0, 1, 24, 300])
    def test_vertical_mirror(self, offset):
        frame_h, item_h = 1080, 60
        _, top_y = Anchor.TOP_LEFT.place(0, offset, 1920, frame_h, 310, item_h)
        _, bottom_y = Anchor.BOTTOM_LEFT.place(0, offset, 1920, frame_h, 310, item_h)
        assert (top_y + bottom_y + item_h) / 2 == pytest.approx(frame_h / 2)

    def test_offset_moves_continuously(self):
        xs = [Anchor.BOTTOM_RIGHT.place(o, 0, 100, 100, 10, 10)[0] for o in range(5)]
        assert [a - b for a, b in zip(xs, xs[1:])] == [1, 1, 1, 1]


class TestDrawTextFilter:
    def test_default_watermark(self):
        f = build_drawtext_filter(_wm())
        assert f.startswith("drawtext=text='© Watermark'")
        assert ":fontsize=48:" in f
        assert ":fontcolor=FFFFFF@0.5" in f
        assert f.endswith(":x=w-tw-24:y=h-th-24")

    def test_shadow_and_box(self):
        f = build_drawtext_filter(_wm())
        assert "shadowcolor=000000@0.6" in f
        assert ":box=1:" in f
        assert "boxcolor=000000@0.35" in f

    def test_font_file_included_and_escaped(self):
        f = build_drawtext_filter(_wm(), font_file="C:/Fonts/Inter.ttf")
        assert ":fontfile='C\\:/Fonts/Inter.ttf'" in f

    def test_no_font_file(self):
        assert "fontfile" not in build_drawtext_filter(_wm())

    def test_text_escaped(self):
        f = build_drawtext_filter(_wm(text="It's 10:00"))
        assert "text='It\\'s 10\\:00'" in f

    def test_font_size_at_least_one(self):
        assert ":fontsize=1:" in build_drawtext_filter(_wm(font_size_px=0))


class TestOverlayFilter:
    def test_graph(self):
        assert build_overlay_filter(_wm(Anchor.TOP_LEFT, 10, 20)) == (
            "[1:v]format=rgba,setsar=1[wm];[0:v][wm]overlay=10:20:shortest=1[v]"
        )


class TestEncoderArgs:
    def test_software(self):
        assert encoder_args(ExportSpec(quality=23)) == [
            "-c:v", "libx264", "-preset", "medium", "-crf", "23",
        ]

    def test_hardware(self):
        assert encoder_args(ExportSpec(use_hardware_accel=True, quality=23)) == [
            "-c:v", "h264_nvenc", "-preset", "p5", "-cq", "23",
        ]


class TestBuildArgsOrdering:
    def test_global_flags_first(self, request_factory):
        args = build_ffmpeg_args(request_factory())
        assert args[:2] == ["-hide_banner", "-y"]

    def test_primary_input_first(self, request_factory):
        args = build_ffmpeg_args(request_factory())
        assert args[2:4] == ["-i", "/videos/in.mp4"]

    def test_raster_input_between_primary_and_trim(self, request_factory):
        args = build_ffmpeg_args(request_factory(watermark_image=WM_PNG))
        primary = args.index("/videos/in.mp4")
        image = args.index(WM_PNG)
        assert primary < image < args.index("-ss")

    def test_raster_loop_flag_precedes_its_input(self, request_factory):
        args = build_ffmpeg_args(request_factory(watermark_image=WM_PNG))
        image = args.index(WM_PNG)
        assert args[image - 3:image] == ["-stream_loop", "-1", "-i"]

    def test_trim_follows_all_inputs(self, request_factory):
        args = build_ffmpeg_args(request_factory(watermark_image=WM_PNG))
        last_input = max(i for i, a in enumerate(args) if a == "-i")
        assert args.index("-ss") > last_input
        assert args.index("-t") == args.index("-ss") + 2

    def test_encoder_after_filter(self, request_factory):
        for req in (request_factory(), request_factory(watermark_image=WM_PNG)):
            args = build_ffmpeg_args(req)
            filter_flag = "-filter_complex" if req.watermark_image else "-vf"
            assert args.index("-c:v") > args.index(filter_flag)

    def test_normalization_after_encoder(self, request_factory):
        args = build_ffmpeg_args(request_factory())
        crf = args.index("-crf")
        assert crf < args.index("-pix_fmt") < args.index("-movflags") < args.index("-shortest")
        assert _value_after(args, "-pix_fmt") == "yuv420p"
        assert _value_after(args, "-movflags") == "+faststart"

    def test_audio_and_output_last(self, request_factory):
        args = build_ffmpeg_args(request_factory())
        assert args[-5:] == ["-c:a", "aac", "-b:a", "192k", "/videos/out.mp4"]


class TestWatermarkStrategy:
    def test_drawtext_without_raster(self, request_factory):
        args = build_ffmpeg_args(request_factory())
        assert "-vf" in args
        assert "-filter_complex" not in args
        assert args.count("-i") == 1

    def test_overlay_with_raster(self, request_factory):
        args = build_ffmpeg_args(request_factory(watermark_image=WM_PNG))
        assert "-filter_complex" in args
        assert "-vf" not in args
        assert not any(a.startswith("drawtext") for a in args)

    def test_overlay_maps_video_and_optional_audio(self, request_factory):
        args = build_ffmpeg_args(request_factory(watermark_image=WM_PNG))
        fc = args.index("-filter_complex")
        assert args[fc + 2:fc + 6] == ["-map", "[v]", "-map", "0:a?"]

    def test_overlay_position_uses_anchor(self, request_factory):
        req = request_factory(
            watermark_image=WM_PNG, watermark=_wm(Anchor.TOP_RIGHT, 8, 9)
        )
        graph = _value_after(build_ffmpeg_args(req), "-filter_complex")
        assert "overlay=main_w-overlay_w-8:9:shortest=1" in graph

    def test_blank_text_without_raster_has_no_filter(self, request_factory):
        args = build_ffmpeg_args(request_factory(watermark=_wm(text="   ")))
        assert "-vf" not in args
        assert "-filter_complex" not in args


class TestTrimWindow:
    @pytest.mark.parametrize(
        "start, end, expected",
        [(0.0, 10.0, "10"), (2.0, 7.5, "5.5"), (1.25, 1.5, "0.25")],
    )
    def test_duration_is_end_minus_start(self, request_factory, start, end, expected):
        args = build_ffmpeg_args(request_factory(start_sec=start, end_sec=end))
        assert _value_after(args, "-ss") == format_number(start)
        assert _value_after(args, "-t") == expected

    def test_inverted_window_clamps_to_zero(self, request_factory):
        args = build_ffmpeg_args(request_factory(start_sec=5.0, end_sec=3.0))
        assert _value_after(args, "-t") == "0"


class TestEndToEnd:
    def test_default_project_scenario(self, request_factory):
        """Trim [2.0, 7.5], bottom-right text at (24, 24), libx264 CRF 18."""
        args = build_ffmpeg_args(request_factory())
        assert _value_after(args, "-t") == "5.5"
        vf = _value_after(args, "-vf")
        assert vf.startswith("drawtext=")
        assert ":x=w-tw-24:y=h-th-24" in vf
        assert _value_after(args, "-c:v") == "libx264"
        assert _value_after(args, "-crf") == "18"

    def test_hardware_scenario(self, request_factory):
        req = request_factory(export=ExportSpec(use_hardware_accel=True, quality=21))
        args = build_ffmpeg_args(req)
        assert _value_after(args, "-c:v") == "h264_nvenc"
        assert _value_after(args, "-cq") == "21"
        assert "-crf" not in args

    def test_idempotent(self, request_factory):
        req = request_factory(watermark_image=WM_PNG)
        assert build_ffmpeg_args(req) == build_ffmpeg_args(req)

    def test_does_not_mutate_request(self, request_factory):
        req = request_factory()
        before = repr(req)
        build_ffmpeg_args(req)
        assert repr(req) == before
