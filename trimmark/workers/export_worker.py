"""QThread worker for ffmpeg export."""

from __future__ import annotations

import logging
import threading
from dataclasses import replace

from PySide6.QtCore import QThread, Signal
from PySide6.QtGui import QImage

from trimmark.config import Settings
from trimmark.errors import OperationCancelled, TrimmarkError
from trimmark.export.runner import export_with_progress
from trimmark.export.watermark import prerendered_watermark
from trimmark.model.requests import ExportRequest

logger = logging.getLogger(__name__)


class ExportWorker(QThread):
    """Runs an export in a background thread.

    ``watermark_image`` must be rendered by the caller on the GUI thread
    (see ``render_watermark``). The worker only writes it to a temporary
    PNG for the duration of the run and removes it afterwards on every
    outcome. Without an image, ffmpeg's drawtext is used.

    Signals:
        progress: fraction 0-1
        complete: output_path
        error: error message
        cancelled: emitted instead of error when cancel() stopped the run
    """

    progress = Signal(float)
    complete = Signal(str)
    error = Signal(str)
    cancelled = Signal()

    def __init__(
        self,
        request: ExportRequest,
        settings: Settings | None = None,
        watermark_image: QImage | None = None,
        parent=None,
    ):
        super().__init__(parent)
        self.request = request
        self.settings = settings or Settings()
        self.watermark_image = watermark_image
        self._cancel = threading.Event()

    def cancel(self) -> None:
        self._cancel.set()

    def run(self) -> None:
        try:
            with prerendered_watermark(self.watermark_image) as wm_path:
                request = replace(self.request, watermark_image=wm_path)
                export_with_progress(
                    request,
                    lambda p: self.progress.emit(p),
                    settings=self.settings,
                    cancel=self._cancel,
                )
            self.complete.emit(self.request.output_path)
        except OperationCancelled:
            self.cancelled.emit()
        except (TrimmarkError, OSError) as e:
            logger.warning("Export failed: %s", e)
            self.error.emit(str(e))
