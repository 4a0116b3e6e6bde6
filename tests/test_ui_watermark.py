"""UI tests: watermark panel bindings."""

import pytest

from trimmark.model.project import Anchor, WatermarkSpec
from trimmark.ui.watermark_panel import WatermarkPanel


@pytest.fixture()
def panel(qtbot):
    p = WatermarkPanel(WatermarkSpec())
    qtbot.addWidget(p)
    return p


class TestInitialState:
    def test_loads_spec(self, panel):
        assert panel.text_edit.text() == "© Watermark"
        assert panel.size_spin.value() == 48
        assert panel.opacity_spin.value() == 0.5
        assert panel.offset_x_spin.value() == 24
        assert panel.offset_y_spin.value() == 24
        assert panel.color_button.text() == "#FFFFFF"

    def test_anchor_selected(self, panel):
        assert panel.anchor_combo.currentData() == Anchor.BOTTOM_RIGHT.value

    def test_loading_does_not_modify_spec(self, panel):
        assert panel.watermark == WatermarkSpec()


class TestBindings:
    def test_text(self, panel, qtbot):
        with qtbot.waitSignal(panel.watermark_changed, timeout=1000):
            panel.text_edit.setText("ACME")
        assert panel.watermark.text == "ACME"

    def test_size(self, panel):
        panel.size_spin.setValue(64)
        assert panel.watermark.font_size_px == 64

    def test_opacity(self, panel):
        panel.opacity_spin.setValue(0.8)
        assert panel.watermark.opacity == pytest.approx(0.8)

    def test_anchor(self, panel):
        panel.anchor_combo.setCurrentIndex(panel.anchor_combo.findData(Anchor.TOP_LEFT.value))
        assert panel.watermark.anchor is Anchor.TOP_LEFT

    def test_offsets(self, panel):
        panel.offset_x_spin.setValue(10)
        panel.offset_y_spin.setValue(30)
        assert (panel.watermark.offset_x, panel.watermark.offset_y) == (10, 30)

    def test_set_color(self, panel, qtbot):
        with qtbot.waitSignal(panel.watermark_changed, timeout=1000):
            panel.set_color("#ff8800")
        assert panel.watermark.color == "#FF8800"
        assert panel.color_button.text() == "#FF8800"
