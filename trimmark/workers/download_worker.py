"""QThread worker for yt-dlp downloads."""

from __future__ import annotations

import logging
import threading

from PySide6.QtCore import QThread, Signal

from trimmark.config import Settings
from trimmark.errors import OperationCancelled, TrimmarkError
from trimmark.export.downloader import download_with_progress
from trimmark.model.requests import DownloadRequest

logger = logging.getLogger(__name__)


class DownloadWorker(QThread):
    """Runs a download in a background thread.

    Signals:
        progress: DownloadProgress record
        complete: output_path
        error: error message
        cancelled: emitted instead of error when cancel() stopped the run
    """

    progress = Signal(object)  # DownloadProgress
    complete = Signal(str)
    error = Signal(str)
    cancelled = Signal()

    def __init__(
        self,
        request: DownloadRequest,
        settings: Settings | None = None,
        parent=None,
    ):
        super().__init__(parent)
        self.request = request
        self.settings = settings or Settings()
        self._cancel = threading.Event()

    def cancel(self) -> None:
        self._cancel.set()

    def run(self) -> None:
        try:
            output = download_with_progress(
                self.request,
                lambda p: self.progress.emit(p),
                settings=self.settings,
                cancel=self._cancel,
            )
            self.complete.emit(output)
        except OperationCancelled:
            self.cancelled.emit()
        except (TrimmarkError, OSError) as e:
            logger.warning("Download failed: %s", e)
            self.error.emit(str(e))
