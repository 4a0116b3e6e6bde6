"""Trim panel: in/out points bound to the project's trim window."""

from __future__ import annotations

from PySide6.QtCore import Signal
from PySide6.QtWidgets import (
    QDoubleSpinBox,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from trimmark.model.project import Project

MAX_UNKNOWN_DURATION = 24 * 3600.0


class TrimPanel(QWidget):
    """Edits the trim window; values are clamped by Project.set_trim."""

    trim_changed = Signal(float, float)  # start, end
    preview_requested = Signal(float, float)

    def __init__(self, project: Project, parent: QWidget | None = None):
        super().__init__(parent)
        self.project = project
        self._playhead = 0.0
        self._setup_ui()
        self._connect_signals()
        self.refresh()

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)

        form = QFormLayout()
        self.start_spin = QDoubleSpinBox()
        self.start_spin.setDecimals(3)
        self.start_spin.setSuffix(" s")
        self.end_spin = QDoubleSpinBox()
        self.end_spin.setDecimals(3)
        self.end_spin.setSuffix(" s")
        form.addRow("In:", self.start_spin)
        form.addRow("Out:", self.end_spin)
        layout.addLayout(form)

        btn_layout = QHBoxLayout()
        self.set_in_button = QPushButton("Set In")
        self.set_out_button = QPushButton("Set Out")
        self.preview_button = QPushButton("Preview Trim")
        btn_layout.addWidget(self.set_in_button)
        btn_layout.addWidget(self.set_out_button)
        btn_layout.addStretch()
        btn_layout.addWidget(self.preview_button)
        layout.addLayout(btn_layout)

        self.duration_label = QLabel()
        layout.addWidget(self.duration_label)
        layout.addStretch()

    def _connect_signals(self) -> None:
        self.start_spin.valueChanged.connect(self._on_start_changed)
        self.end_spin.valueChanged.connect(self._on_end_changed)
        self.set_in_button.clicked.connect(self.set_in_from_playhead)
        self.set_out_button.clicked.connect(self.set_out_from_playhead)
        self.preview_button.clicked.connect(self._request_preview)

    def refresh(self) -> None:
        """Reload ranges and values from the project."""
        duration = self.project.video.duration or MAX_UNKNOWN_DURATION
        has_source = self.project.source_path is not None
        for spin in (self.start_spin, self.end_spin):
            spin.blockSignals(True)
            spin.setRange(0.0, duration)
            spin.blockSignals(False)
        self._show_trim()
        for widget in (
            self.start_spin,
            self.end_spin,
            self.set_in_button,
            self.set_out_button,
            self.preview_button,
        ):
            widget.setEnabled(has_source)

    def _show_trim(self) -> None:
        trim = self.project.trim
        for spin, value in ((self.start_spin, trim.start), (self.end_spin, trim.end)):
            spin.blockSignals(True)
            spin.setValue(value)
            spin.blockSignals(False)
        self.duration_label.setText(f"Duration: {trim.duration:.3f} s")

    def _apply(self, start: float, end: float) -> None:
        trim = self.project.set_trim(start, end)
        self._show_trim()
        self.trim_changed.emit(trim.start, trim.end)

    def _on_start_changed(self, value: float) -> None:
        # Moving In past Out is not allowed; keep In at Out
        self._apply(min(value, self.project.trim.end), self.project.trim.end)

    def _on_end_changed(self, value: float) -> None:
        self._apply(self.project.trim.start, max(value, self.project.trim.start))

    def set_playhead(self, seconds: float) -> None:
        self._playhead = seconds

    def set_in(self, seconds: float) -> None:
        self._on_start_changed(seconds)

    def set_out(self, seconds: float) -> None:
        self._on_end_changed(seconds)

    def set_in_from_playhead(self) -> None:
        self.set_in(self._playhead)

    def set_out_from_playhead(self) -> None:
        self.set_out(self._playhead)

    def _request_preview(self) -> None:
        trim = self.project.trim
        self.preview_requested.emit(trim.start, trim.end)
