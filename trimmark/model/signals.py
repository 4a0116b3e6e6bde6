"""Qt signals for cross-component updates."""

from PySide6.QtCore import QObject, Signal


class ProjectSignals(QObject):
    """Signals emitted when project state changes."""

    source_changed = Signal(str)  # source path
    trim_changed = Signal(float, float)  # start, end seconds
    watermark_changed = Signal()
    export_complete = Signal(str)  # output_path
    export_error = Signal(str)  # error message
    download_complete = Signal(str)  # output_path
