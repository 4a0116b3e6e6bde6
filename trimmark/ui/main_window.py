"""Main window: preview on the left, editing tabs on the right."""

from __future__ import annotations

import logging

from PySide6.QtWidgets import (
    QFileDialog,
    QHBoxLayout,
    QMainWindow,
    QMessageBox,
    QTabWidget,
    QWidget,
)

from trimmark.config import Settings
from trimmark.errors import TrimmarkError
from trimmark.export.ffprobe import extract_metadata
from trimmark.model.project import Project, VideoMeta
from trimmark.model.signals import ProjectSignals
from trimmark.ui.download_panel import DownloadPanel
from trimmark.ui.export_panel import ExportPanel
from trimmark.ui.trim_panel import TrimPanel
from trimmark.ui.video_preview import VideoPreview
from trimmark.ui.watermark_panel import WatermarkPanel

logger = logging.getLogger(__name__)

VIDEO_FILTER = (
    "Video Files (*.mp4 *.mov *.mkv *.m4v *.avi *.webm *.mpg *.mpeg *.ts *.m2ts "
    "*.mts *.wmv *.flv *.3gp *.mxf *.ogv);;All Files (*)"
)


class MainWindow(QMainWindow):
    """Trimmark main window with Trim / Watermark / Export / Download tabs."""

    def __init__(
        self,
        project: Project | None = None,
        settings: Settings | None = None,
        parent: QWidget | None = None,
    ):
        super().__init__(parent)
        self.setWindowTitle("Trimmark")
        self.setMinimumSize(1000, 600)

        self.settings = settings or Settings()
        self.project = project or Project(
            watermark=self.settings.default_watermark(),
            export=self.settings.default_export(),
        )
        self.signals = ProjectSignals()

        central = QWidget()
        self.setCentralWidget(central)
        layout = QHBoxLayout(central)

        self.preview = VideoPreview()
        layout.addWidget(self.preview, stretch=3)

        self.tabs = QTabWidget()
        self.trim_panel = TrimPanel(self.project)
        self.watermark_panel = WatermarkPanel(self.project.watermark)
        self.export_panel = ExportPanel(self.project, self.settings)
        self.download_panel = DownloadPanel(self.settings)
        self.tabs.addTab(self.trim_panel, "Trim")
        self.tabs.addTab(self.watermark_panel, "Watermark")
        self.tabs.addTab(self.export_panel, "Export")
        self.tabs.addTab(self.download_panel, "Download")
        layout.addWidget(self.tabs, stretch=2)

        # Menu bar
        file_menu = self.menuBar().addMenu("File")
        self.open_action = file_menu.addAction("Open…")
        self.open_action.triggered.connect(self._browse_open)

        # Connect signals
        self.preview.position_changed.connect(self.trim_panel.set_playhead)
        self.trim_panel.trim_changed.connect(self._on_trim_changed)
        self.trim_panel.preview_requested.connect(self.preview.play_range)
        self.preview.set_in_requested.connect(self.trim_panel.set_in)
        self.preview.set_out_requested.connect(self.trim_panel.set_out)
        self.watermark_panel.watermark_changed.connect(self._on_watermark_changed)
        self.export_panel.export_complete.connect(self.signals.export_complete)
        self.export_panel.export_error.connect(self.signals.export_error)
        self.export_panel.export_error.connect(self._show_export_error)
        self.download_panel.download_complete.connect(self._on_download_complete)

        self.preview.set_watermark(self.project.watermark)

    def _browse_open(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Open Video", "", VIDEO_FILTER)
        if path:
            self.open_file(path)

    def open_file(self, path: str) -> None:
        """Probe a video, make it the project source, and load the preview."""
        try:
            meta = extract_metadata(path, self.settings)
        except (FileNotFoundError, TrimmarkError) as e:
            # Keep going with unknown metadata; the preview may still play it
            logger.warning("Could not probe %s: %s", path, e)
            meta = VideoMeta()
        self.project.set_source(path, meta)
        self.preview.set_frame_size(meta.width, meta.height)
        self.preview.set_fps(meta.fps)
        self.preview.set_trim_window(self.project.trim.start, self.project.trim.end)
        self.preview.load(path)
        self.trim_panel.refresh()
        self.export_panel.source_loaded()
        self.setWindowTitle(f"Trimmark - {path}")
        self.signals.source_changed.emit(path)

    def _on_trim_changed(self, start: float, end: float) -> None:
        previous = self.preview.trim_window
        self.preview.set_trim_window(start, end)
        # Show Out only when Out alone moved
        if previous is not None and previous[0] == start and previous[1] != end:
            self.preview.seek(end)
        else:
            self.preview.seek(start)
        self.export_panel.refresh()
        self.signals.trim_changed.emit(start, end)

    def _on_watermark_changed(self) -> None:
        self.preview.set_watermark(self.project.watermark)
        self.signals.watermark_changed.emit()

    def _on_download_complete(self, output_path: str) -> None:
        self.signals.download_complete.emit(output_path)
        self.open_file(output_path)
        self.tabs.setCurrentWidget(self.trim_panel)

    def _show_export_error(self, message: str) -> None:
        QMessageBox.warning(self, "Export failed", message)

    def closeEvent(self, event) -> None:
        self.preview.cleanup()
        super().closeEvent(event)
