"""Export panel: output settings, progress, and export control."""

from __future__ import annotations

from pathlib import Path

from PySide6.QtCore import Signal
from PySide6.QtWidgets import (
    QCheckBox,
    QFileDialog,
    QFormLayout,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QProgressBar,
    QPushButton,
    QSpinBox,
    QVBoxLayout,
    QWidget,
)

from trimmark.config import Settings
from trimmark.export.watermark import render_watermark
from trimmark.model.project import Project
from trimmark.model.requests import ExportRequest
from trimmark.workers.export_worker import ExportWorker


def default_output_path(source_path: str) -> str:
    source = Path(source_path)
    return str(source.with_name(f"{source.stem}_trimmed.mp4"))


class ExportPanel(QWidget):
    """Panel for configuring and running the export."""

    export_complete = Signal(str)  # output_path
    export_error = Signal(str)

    def __init__(
        self,
        project: Project,
        settings: Settings | None = None,
        parent: QWidget | None = None,
    ):
        super().__init__(parent)
        self.project = project
        self.settings = settings or Settings()
        self._worker: ExportWorker | None = None
        self._setup_ui()
        self._connect_signals()
        self._load_settings()

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)

        # Output path
        path_group = QGroupBox("Output")
        path_layout = QHBoxLayout()
        self.path_edit = QLineEdit()
        self.path_edit.setPlaceholderText("(not set)")
        self.browse_button = QPushButton("Browse...")
        path_layout.addWidget(self.path_edit)
        path_layout.addWidget(self.browse_button)
        path_group.setLayout(path_layout)
        layout.addWidget(path_group)

        # Settings
        settings_group = QGroupBox("Encoding Settings")
        settings_layout = QFormLayout()

        self.quality_spin = QSpinBox()
        self.quality_spin.setRange(0, 51)
        self.quality_spin.setToolTip("Lower is higher quality")
        settings_layout.addRow("Quality (CRF):", self.quality_spin)

        self.hwaccel_check = QCheckBox("Use hardware encoder (NVENC)")
        settings_layout.addRow(self.hwaccel_check)

        settings_group.setLayout(settings_layout)
        layout.addWidget(settings_group)

        # Status
        self.status_label = QLabel("Open a video to export")
        layout.addWidget(self.status_label)

        # Progress
        self.progress_bar = QProgressBar()
        self.progress_bar.setRange(0, 100)
        self.progress_bar.setVisible(False)
        layout.addWidget(self.progress_bar)

        # Buttons
        btn_layout = QHBoxLayout()
        self.export_button = QPushButton("Export")
        self.cancel_button = QPushButton("Cancel")
        self.export_button.setEnabled(False)
        self.cancel_button.setEnabled(False)
        btn_layout.addStretch()
        btn_layout.addWidget(self.export_button)
        btn_layout.addWidget(self.cancel_button)
        layout.addLayout(btn_layout)

        layout.addStretch()

    def _connect_signals(self) -> None:
        self.browse_button.clicked.connect(self._browse_output)
        self.export_button.clicked.connect(self.start_export)
        self.cancel_button.clicked.connect(self.cancel_export)
        self.quality_spin.valueChanged.connect(self._on_quality_changed)
        self.hwaccel_check.toggled.connect(self._on_hwaccel_changed)
        self.path_edit.textChanged.connect(self._on_path_changed)

    def _load_settings(self) -> None:
        self.path_edit.setText(self.project.export.output_path or "")
        self.quality_spin.setValue(self.project.export.quality)
        self.hwaccel_check.setChecked(self.project.export.use_hardware_accel)

    def _browse_output(self) -> None:
        start = self.project.export.output_path or self.settings.last_output_dir
        path, _ = QFileDialog.getSaveFileName(
            self,
            "Export Video",
            start,
            "MP4 (*.mp4);;All Files (*)",
        )
        if path:
            self.path_edit.setText(path)
            self.settings.last_output_dir = str(Path(path).parent)

    def _on_quality_changed(self, value: int) -> None:
        self.project.export.quality = value

    def _on_hwaccel_changed(self, checked: bool) -> None:
        self.project.export.use_hardware_accel = checked

    def _on_path_changed(self, text: str) -> None:
        self.project.export.output_path = text.strip() or None
        self.refresh()

    def source_loaded(self) -> None:
        """Suggest an output path next to a newly opened source."""
        if self.project.source_path and not self.project.export.output_path:
            self.path_edit.setText(default_output_path(self.project.source_path))
        self.refresh()

    def validation_error(self) -> str | None:
        """Return why an export cannot start, or None if it can."""
        if not self.project.source_path:
            return "Open a video to export"
        if not self.project.export.output_path:
            return "Choose an output file"
        if self.project.trim.duration <= 0:
            return "Trim window is empty"
        return None

    def refresh(self) -> None:
        if self.is_exporting:
            return
        problem = self.validation_error()
        if problem:
            self.status_label.setText(problem)
        else:
            self.status_label.setText(f"{self.project.trim.duration:.1f}s will be exported")
        self.export_button.setEnabled(problem is None)

    def start_export(self) -> None:
        """Snapshot the project and launch the export worker."""
        if self.validation_error() is not None:
            return

        request = ExportRequest.from_project(
            self.project, font_file=self.settings.font_file or None
        )

        self.progress_bar.setValue(0)
        self.progress_bar.setVisible(True)
        self.export_button.setEnabled(False)
        self.cancel_button.setEnabled(True)
        self.status_label.setText("Exporting...")

        # Rasterize here; QFont resolution is only reliable on the GUI thread
        image = render_watermark(request.watermark)
        self._worker = ExportWorker(request, self.settings, watermark_image=image)
        self._worker.progress.connect(self._on_progress)
        self._worker.complete.connect(self._on_complete)
        self._worker.error.connect(self._on_error)
        self._worker.cancelled.connect(self._on_cancelled)
        self._worker.start()

    def cancel_export(self) -> None:
        if self._worker is not None:
            self._worker.cancel()
            self.cancel_button.setEnabled(False)

    def _on_progress(self, fraction: float) -> None:
        self.progress_bar.setValue(int(fraction * 100))

    def _finish(self) -> None:
        self.cancel_button.setEnabled(False)
        self._worker = None
        self.refresh()

    def _on_complete(self, output_path: str) -> None:
        self.progress_bar.setValue(100)
        self._finish()
        self.status_label.setText(f"Saved to {output_path}")
        self.export_complete.emit(output_path)

    def _on_error(self, message: str) -> None:
        self.progress_bar.setValue(0)
        self.progress_bar.setVisible(False)
        self._finish()
        self.status_label.setText(f"Export failed: {message}")
        self.export_error.emit(message)

    def _on_cancelled(self) -> None:
        self.progress_bar.setValue(0)
        self.progress_bar.setVisible(False)
        self._finish()
        self.status_label.setText("Export cancelled")

    @property
    def is_exporting(self) -> bool:
        return self._worker is not None and self._worker.isRunning()
