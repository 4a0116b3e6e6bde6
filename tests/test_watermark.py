"""Tests for watermark rasterization."""

import os

import pytest
from PySide6.QtGui import QFontMetrics, QImage

from trimmark.export.command import BOX_BORDER, SHADOW_OFFSET
from trimmark.export.watermark import prerendered_watermark, render_watermark, watermark_font
from trimmark.model.project import WatermarkSpec


class TestRenderWatermark:
    def test_blank_text(self, qapp):
        assert render_watermark(WatermarkSpec(text="  ")) is None

    def test_size_fits_text_box_and_shadow(self, qapp):
        spec = WatermarkSpec(text="© Watermark", font_size_px=48)
        image = render_watermark(spec)
        metrics = QFontMetrics(watermark_font(spec))
        text_w = max(1, metrics.horizontalAdvance(spec.text))
        text_h = max(1, metrics.height())
        assert image.width() == text_w + 2 * BOX_BORDER + SHADOW_OFFSET
        assert image.height() == text_h + 2 * BOX_BORDER + SHADOW_OFFSET

    def test_has_alpha(self, qapp):
        image = render_watermark(WatermarkSpec())
        assert image.hasAlphaChannel()

    def test_corners_transparent(self, qapp):
        image = render_watermark(WatermarkSpec())
        assert image.pixelColor(0, 0).alpha() == 0
        assert image.pixelColor(image.width() - 1, image.height() - 1).alpha() == 0

    def test_box_is_translucent(self, qapp):
        image = render_watermark(WatermarkSpec())
        alpha = image.pixelColor(2, image.height() // 2).alpha()
        assert 80 <= alpha <= 100

    def test_larger_font_gives_larger_image(self, qapp):
        small = render_watermark(WatermarkSpec(font_size_px=12))
        large = render_watermark(WatermarkSpec(font_size_px=96))
        assert large.height() > small.height()

    def test_invalid_color_falls_back(self, qapp, caplog):
        image = render_watermark(WatermarkSpec(color="not-a-color"))
        assert image is not None
        assert "Invalid watermark color" in caplog.text


class TestPrerenderedWatermark:
    def test_writes_and_removes_png(self, qapp, tmp_path):
        with prerendered_watermark(render_watermark(WatermarkSpec()), directory=str(tmp_path)) as path:
            assert path is not None
            assert os.path.basename(path).startswith("trimmark_wm_")
            assert path.endswith(".png")
            assert not QImage(path).isNull()
        assert not os.path.exists(path)

    def test_removed_when_block_raises(self, qapp, tmp_path):
        with pytest.raises(RuntimeError):
            with prerendered_watermark(render_watermark(WatermarkSpec()), directory=str(tmp_path)) as path:
                raise RuntimeError("ffmpeg blew up")
        assert not os.path.exists(path)
        assert list(tmp_path.iterdir()) == []

    def test_no_image_yields_none(self, qapp, tmp_path):
        with prerendered_watermark(None, directory=str(tmp_path)) as path:
            assert path is None
        assert list(tmp_path.iterdir()) == []
