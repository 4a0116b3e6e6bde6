"""Download panel: fetch a video by URL with yt-dlp."""

from __future__ import annotations

from PySide6.QtCore import Signal
from PySide6.QtWidgets import (
    QFileDialog,
    QFormLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QProgressBar,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from trimmark.config import Settings
from trimmark.model.requests import DownloadPhase, DownloadProgress, DownloadRequest
from trimmark.workers.download_worker import DownloadWorker

PHASE_LABELS = {
    DownloadPhase.DOWNLOADING: "Downloading",
    DownloadPhase.MERGING: "Merging audio and video...",
    DownloadPhase.POSTPROCESSING: "Post-processing...",
    DownloadPhase.COMPLETED: "Download complete",
}


class DownloadPanel(QWidget):
    """Panel for downloading a video to disk before editing it."""

    download_complete = Signal(str)  # output_path
    download_error = Signal(str)

    def __init__(self, settings: Settings | None = None, parent: QWidget | None = None):
        super().__init__(parent)
        self.settings = settings or Settings()
        self._worker: DownloadWorker | None = None
        self._setup_ui()
        self._connect_signals()
        self._update_button_states()

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)

        form = QFormLayout()
        self.url_edit = QLineEdit()
        self.url_edit.setPlaceholderText("https://...")
        form.addRow("URL:", self.url_edit)

        path_row = QHBoxLayout()
        self.path_edit = QLineEdit()
        self.browse_button = QPushButton("Browse...")
        path_row.addWidget(self.path_edit)
        path_row.addWidget(self.browse_button)
        form.addRow("Save as:", path_row)
        layout.addLayout(form)

        self.phase_label = QLabel("")
        layout.addWidget(self.phase_label)

        self.progress_bar = QProgressBar()
        self.progress_bar.setRange(0, 100)
        self.progress_bar.setVisible(False)
        layout.addWidget(self.progress_bar)

        btn_layout = QHBoxLayout()
        self.download_button = QPushButton("Download")
        self.cancel_button = QPushButton("Cancel")
        self.cancel_button.setEnabled(False)
        btn_layout.addStretch()
        btn_layout.addWidget(self.download_button)
        btn_layout.addWidget(self.cancel_button)
        layout.addLayout(btn_layout)

        layout.addStretch()

    def _connect_signals(self) -> None:
        self.url_edit.textChanged.connect(self._update_button_states)
        self.path_edit.textChanged.connect(self._update_button_states)
        self.browse_button.clicked.connect(self._browse_output)
        self.download_button.clicked.connect(self.start_download)
        self.cancel_button.clicked.connect(self.cancel_download)

    def _browse_output(self) -> None:
        path, _ = QFileDialog.getSaveFileName(
            self,
            "Save Download As",
            self.path_edit.text() or self.settings.last_output_dir,
            "MP4 (*.mp4);;All Files (*)",
        )
        if path:
            self.path_edit.setText(path)

    def _update_button_states(self) -> None:
        ready = bool(self.url_edit.text().strip() and self.path_edit.text().strip())
        self.download_button.setEnabled(ready and self._worker is None)

    def start_download(self) -> None:
        url = self.url_edit.text().strip()
        output = self.path_edit.text().strip()
        if not url or not output or self._worker is not None:
            return

        self.progress_bar.setValue(0)
        self.progress_bar.setVisible(True)
        self.download_button.setEnabled(False)
        self.cancel_button.setEnabled(True)
        self.phase_label.setText("Starting download...")

        self._worker = DownloadWorker(DownloadRequest(url, output), self.settings)
        self._worker.progress.connect(self._on_progress)
        self._worker.complete.connect(self._on_complete)
        self._worker.error.connect(self._on_error)
        self._worker.cancelled.connect(self._on_cancelled)
        self._worker.start()

    def cancel_download(self) -> None:
        if self._worker is not None:
            self._worker.cancel()
            self.cancel_button.setEnabled(False)

    def _on_progress(self, progress: DownloadProgress) -> None:
        label = PHASE_LABELS[progress.phase]
        if progress.phase is DownloadPhase.DOWNLOADING and progress.ratio is not None:
            self.progress_bar.setValue(int(progress.ratio * 100))
            details = [f"{progress.ratio:.1%}"]
            if progress.speed:
                details.append(f"at {progress.speed}")
            if progress.eta:
                details.append(f"ETA {progress.eta}")
            label = f"{label} {' '.join(details)}"
        elif progress.phase is DownloadPhase.COMPLETED:
            self.progress_bar.setValue(100)
        self.phase_label.setText(label)

    def _finish(self) -> None:
        self.cancel_button.setEnabled(False)
        self._worker = None
        self._update_button_states()

    def _on_complete(self, output_path: str) -> None:
        self.progress_bar.setValue(100)
        self._finish()
        self.download_complete.emit(output_path)

    def _on_error(self, message: str) -> None:
        self.progress_bar.setValue(0)
        self.progress_bar.setVisible(False)
        self._finish()
        self.phase_label.setText(f"Download failed: {message}")
        self.download_error.emit(message)

    def _on_cancelled(self) -> None:
        self.progress_bar.setValue(0)
        self.progress_bar.setVisible(False)
        self._finish()
        self.phase_label.setText("Download cancelled")

    @property
    def is_downloading(self) -> bool:
        return self._worker is not None and self._worker.isRunning()
