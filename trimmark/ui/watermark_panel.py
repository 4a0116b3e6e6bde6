"""Watermark panel: text, font, color, opacity, anchor, and offsets."""

from __future__ import annotations

from PySide6.QtCore import Signal
from PySide6.QtGui import QColor, QFont
from PySide6.QtWidgets import (
    QColorDialog,
    QComboBox,
    QDoubleSpinBox,
    QFontComboBox,
    QFormLayout,
    QHBoxLayout,
    QLineEdit,
    QPushButton,
    QSpinBox,
    QVBoxLayout,
    QWidget,
)

from trimmark.model.project import Anchor, WatermarkSpec

ANCHOR_LABELS = {
    Anchor.TOP_LEFT: "Top left",
    Anchor.TOP_RIGHT: "Top right",
    Anchor.BOTTOM_LEFT: "Bottom left",
    Anchor.BOTTOM_RIGHT: "Bottom right",
}


class WatermarkPanel(QWidget):
    """Edits a WatermarkSpec in place and announces every change."""

    watermark_changed = Signal()

    def __init__(self, watermark: WatermarkSpec, parent: QWidget | None = None):
        super().__init__(parent)
        self.watermark = watermark
        self._setup_ui()
        self._load_watermark()
        self._connect_signals()

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)
        form = QFormLayout()

        self.text_edit = QLineEdit()
        form.addRow("Text:", self.text_edit)

        self.font_combo = QFontComboBox()
        form.addRow("Font:", self.font_combo)

        self.size_spin = QSpinBox()
        self.size_spin.setRange(1, 512)
        self.size_spin.setSuffix(" px")
        form.addRow("Size:", self.size_spin)

        self.color_button = QPushButton()
        form.addRow("Color:", self.color_button)

        self.opacity_spin = QDoubleSpinBox()
        self.opacity_spin.setRange(0.0, 1.0)
        self.opacity_spin.setSingleStep(0.05)
        self.opacity_spin.setDecimals(2)
        form.addRow("Opacity:", self.opacity_spin)

        self.anchor_combo = QComboBox()
        for anchor, label in ANCHOR_LABELS.items():
            self.anchor_combo.addItem(label, anchor.value)
        form.addRow("Anchor:", self.anchor_combo)

        offset_row = QHBoxLayout()
        self.offset_x_spin = QSpinBox()
        self.offset_y_spin = QSpinBox()
        for spin in (self.offset_x_spin, self.offset_y_spin):
            spin.setRange(0, 10000)
            spin.setSuffix(" px")
            offset_row.addWidget(spin)
        form.addRow("Offset X/Y:", offset_row)

        layout.addLayout(form)
        layout.addStretch()

    def _load_watermark(self) -> None:
        wm = self.watermark
        self.text_edit.setText(wm.text)
        self.font_combo.setCurrentFont(QFont(wm.font_family))
        self.size_spin.setValue(wm.font_size_px)
        self._show_color(wm.color)
        self.opacity_spin.setValue(wm.opacity)
        self.anchor_combo.setCurrentIndex(self.anchor_combo.findData(wm.anchor.value))
        self.offset_x_spin.setValue(wm.offset_x)
        self.offset_y_spin.setValue(wm.offset_y)

    def _connect_signals(self) -> None:
        self.text_edit.textChanged.connect(lambda v: self._set("text", v))
        self.font_combo.currentFontChanged.connect(
            lambda f: self._set("font_family", f.family())
        )
        self.size_spin.valueChanged.connect(lambda v: self._set("font_size_px", v))
        self.opacity_spin.valueChanged.connect(lambda v: self._set("opacity", v))
        self.anchor_combo.currentIndexChanged.connect(self._on_anchor_changed)
        self.offset_x_spin.valueChanged.connect(lambda v: self._set("offset_x", v))
        self.offset_y_spin.valueChanged.connect(lambda v: self._set("offset_y", v))
        self.color_button.clicked.connect(self._pick_color)

    def _set(self, name: str, value) -> None:
        setattr(self.watermark, name, value)
        self.watermark_changed.emit()

    def _on_anchor_changed(self, index: int) -> None:
        self._set("anchor", Anchor(self.anchor_combo.itemData(index)))

    def _show_color(self, color: str) -> None:
        self.color_button.setText(color.upper())
        self.color_button.setStyleSheet(f"QPushButton {{ background: {color}; }}")

    def _pick_color(self) -> None:
        color = QColorDialog.getColor(QColor(self.watermark.color), self, "Watermark Color")
        if color.isValid():
            self.set_color(color.name())

    def set_color(self, color: str) -> None:
        """Set the color from a #RRGGBB string."""
        self._show_color(color)
        self._set("color", color.upper())
