"""Text watermark rasterization shared by the preview and the export.

The preview paints the same QImage that is written to PNG and overlaid by
ffmpeg, so both show identical pixels at identical anchor offsets.
"""

from __future__ import annotations

import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from PySide6.QtCore import QRectF, Qt
from PySide6.QtGui import QColor, QFont, QFontMetrics, QImage, QPainter, QPainterPath

from trimmark.export.command import BOX_BORDER, SHADOW_OFFSET
from trimmark.model.project import WatermarkSpec

logger = logging.getLogger(__name__)

BOX_ALPHA = 0.35
SHADOW_ALPHA = 0.6
BOX_RADIUS = 8.0


def watermark_font(spec: WatermarkSpec) -> QFont:
    font = QFont(spec.font_family)
    font.setPixelSize(max(1, int(spec.font_size_px)))
    return font


def render_watermark(spec: WatermarkSpec) -> QImage | None:
    """Rasterize the watermark text onto a transparent image.

    Returns None when the text is blank.
    """
    if not spec.text.strip():
        return None

    font = watermark_font(spec)
    metrics = QFontMetrics(font)
    text_w = max(1, metrics.horizontalAdvance(spec.text))
    text_h = max(1, metrics.height())
    box_w = text_w + 2 * BOX_BORDER
    box_h = text_h + 2 * BOX_BORDER

    image = QImage(box_w + SHADOW_OFFSET, box_h + SHADOW_OFFSET, QImage.Format.Format_ARGB32_Premultiplied)
    image.fill(Qt.GlobalColor.transparent)

    painter = QPainter(image)
    try:
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setRenderHint(QPainter.RenderHint.TextAntialiasing)

        box = QPainterPath()
        box.addRoundedRect(QRectF(0, 0, box_w, box_h), BOX_RADIUS, BOX_RADIUS)
        box_color = QColor(0, 0, 0)
        box_color.setAlphaF(BOX_ALPHA)
        painter.fillPath(box, box_color)

        painter.setFont(font)
        baseline = BOX_BORDER + metrics.ascent()

        shadow = QColor(0, 0, 0)
        shadow.setAlphaF(SHADOW_ALPHA)
        painter.setPen(shadow)
        painter.drawText(BOX_BORDER + SHADOW_OFFSET, baseline + SHADOW_OFFSET, spec.text)

        color = QColor(spec.color)
        if not color.isValid():
            logger.warning("Invalid watermark color %r, using white", spec.color)
            color = QColor(255, 255, 255)
        color.setAlphaF(min(1.0, max(0.0, spec.opacity)))
        painter.setPen(color)
        painter.drawText(BOX_BORDER, baseline, spec.text)
    finally:
        painter.end()

    return image


@contextmanager
def prerendered_watermark(
    image: QImage | None, directory: str | None = None
) -> Iterator[str | None]:
    """Write an already rendered watermark to a temporary PNG for the block.

    The image comes from render_watermark on the GUI thread; only the file
    write happens here, so this is safe to call from a worker thread.
    Yields None when there is no image. The file is removed on exit
    whether or not the block raised.
    """
    if image is None:
        yield None
        return

    fd, path = tempfile.mkstemp(prefix="trimmark_wm_", suffix=".png", dir=directory)
    os.close(fd)
    try:
        if not image.save(path, "PNG"):
            raise OSError(f"Could not write watermark image: {path}")
        logger.debug("Pre-rendered watermark %dx%d to %s", image.width(), image.height(), path)
        yield path
    finally:
        Path(path).unlink(missing_ok=True)
