"""Video preview with the watermark composited on top.

The video and the watermark share one QGraphicsScene whose coordinates are
source-frame pixels, so the anchor offsets used here are the same numbers
ffmpeg receives and the view's scaling applies to both.
"""

from __future__ import annotations

import logging
from pathlib import Path

from PySide6.QtCore import QRectF, QSizeF, Qt, QUrl, Signal, Slot
from PySide6.QtGui import QKeySequence, QPixmap, QShortcut
from PySide6.QtMultimedia import QAudioOutput, QMediaPlayer
from PySide6.QtMultimediaWidgets import QGraphicsVideoItem
from PySide6.QtWidgets import (
    QCheckBox,
    QDoubleSpinBox,
    QGraphicsPixmapItem,
    QGraphicsScene,
    QGraphicsView,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QSlider,
    QVBoxLayout,
    QWidget,
)

from trimmark.export.watermark import render_watermark
from trimmark.model.project import WatermarkSpec

logger = logging.getLogger(__name__)

DEFAULT_FRAME_SIZE = (1280, 720)
DEFAULT_FPS = 30
MIN_RATE = 0.25
MAX_RATE = 4.0
RATE_STEP = 0.25
SECOND_STEP = 1.0


def format_time(seconds: float) -> str:
    seconds = max(0.0, seconds)
    m, s = divmod(seconds, 60)
    return f"{int(m)}:{s:06.3f}"


def frame_step(fps: float | None) -> float:
    """Seconds per frame, rounding the rate to whole frames (30 if unknown)."""
    return 1 / max(1, round(fps or DEFAULT_FPS))


class VideoPreview(QWidget):
    """Video preview with transport controls, trim looping, and watermark overlay.

    Keyboard: Space/K play-pause, Left/Right one frame (Shift: one second),
    J/L slower/faster, I/O request the trim In/Out at the playhead.
    """

    playback_finished = Signal()
    position_changed = Signal(float)  # seconds
    set_in_requested = Signal(float)
    set_out_requested = Signal(float)

    def __init__(self, parent: QWidget | None = None):
        super().__init__(parent)
        self._range_end_ms: int | None = None
        self._frame_size = DEFAULT_FRAME_SIZE
        self._watermark: WatermarkSpec | None = None
        self._fps: float | None = None
        self._trim: tuple[float, float] | None = None
        self._duration_ms = 0
        self._resume_after_scrub = False
        self._setup_ui()
        self._connect_signals()
        self._setup_shortcuts()

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)

        # Video display
        self.scene = QGraphicsScene(self)
        self.view = QGraphicsView(self.scene)
        self.view.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self.view.setVerticalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self.view.setStyleSheet("background: black;")
        self.video_item = QGraphicsVideoItem()
        self.scene.addItem(self.video_item)
        self.watermark_item = QGraphicsPixmapItem()
        self.watermark_item.setZValue(1)
        self.scene.addItem(self.watermark_item)
        layout.addWidget(self.view)

        # Seek bar, in milliseconds
        seek_row = QHBoxLayout()
        self.position_slider = QSlider(Qt.Orientation.Horizontal)
        self.position_slider.setRange(0, 0)
        self.position_slider.setEnabled(False)
        self.time_label = QLabel(format_time(0))
        self.duration_label = QLabel(format_time(0))
        seek_row.addWidget(self.position_slider, stretch=1)
        seek_row.addWidget(self.time_label)
        seek_row.addWidget(QLabel("/"))
        seek_row.addWidget(self.duration_label)
        layout.addLayout(seek_row)

        # Transport
        controls = QHBoxLayout()
        self.back_button = QPushButton("-1s")
        self.prev_frame_button = QPushButton("⟨")
        self.prev_frame_button.setToolTip("Previous frame")
        self.play_button = QPushButton("Play")
        self.pause_button = QPushButton("Pause")
        self.next_frame_button = QPushButton("⟩")
        self.next_frame_button.setToolTip("Next frame")
        self.forward_button = QPushButton("+1s")
        self.play_button.setEnabled(False)
        self.pause_button.setEnabled(False)
        for button in (
            self.back_button,
            self.prev_frame_button,
            self.play_button,
            self.pause_button,
            self.next_frame_button,
            self.forward_button,
        ):
            controls.addWidget(button)
        controls.addSpacing(12)

        self.rate_spin = QDoubleSpinBox()
        self.rate_spin.setRange(MIN_RATE, MAX_RATE)
        self.rate_spin.setSingleStep(RATE_STEP)
        self.rate_spin.setDecimals(2)
        self.rate_spin.setSuffix("×")
        self.rate_spin.setValue(1.0)
        controls.addWidget(QLabel("Rate"))
        controls.addWidget(self.rate_spin)

        self.volume_slider = QSlider(Qt.Orientation.Horizontal)
        self.volume_slider.setRange(0, 100)
        self.volume_slider.setValue(100)
        self.volume_slider.setMaximumWidth(100)
        self.mute_button = QPushButton("Mute")
        self.mute_button.setCheckable(True)
        controls.addWidget(QLabel("Vol"))
        controls.addWidget(self.volume_slider)
        controls.addWidget(self.mute_button)
        controls.addStretch()
        layout.addLayout(controls)

        # Trim window navigation
        trim_row = QHBoxLayout()
        self.jump_in_button = QPushButton("⇤ In")
        self.jump_out_button = QPushButton("Out ⇥")
        self.jump_in_button.setEnabled(False)
        self.jump_out_button.setEnabled(False)
        self.loop_check = QCheckBox("Loop selection")
        self.loop_check.setChecked(True)
        trim_row.addWidget(self.jump_in_button)
        trim_row.addWidget(self.jump_out_button)
        trim_row.addStretch()
        trim_row.addWidget(self.loop_check)
        layout.addLayout(trim_row)

        # Media player
        self.player = QMediaPlayer()
        self.audio_output = QAudioOutput()
        self.player.setAudioOutput(self.audio_output)
        self.player.setVideoOutput(self.video_item)

        self._apply_frame_size()

    def _connect_signals(self) -> None:
        self.play_button.clicked.connect(self.play)
        self.pause_button.clicked.connect(self.pause)
        self.back_button.clicked.connect(lambda: self.seek_by(-SECOND_STEP))
        self.forward_button.clicked.connect(lambda: self.seek_by(SECOND_STEP))
        self.prev_frame_button.clicked.connect(lambda: self.step_frames(-1))
        self.next_frame_button.clicked.connect(lambda: self.step_frames(1))
        self.rate_spin.valueChanged.connect(self._on_rate_changed)
        self.volume_slider.valueChanged.connect(self._on_volume_changed)
        self.mute_button.toggled.connect(self.set_muted)
        self.jump_in_button.clicked.connect(self.jump_to_in)
        self.jump_out_button.clicked.connect(self.jump_to_out)
        self.position_slider.sliderPressed.connect(self._on_slider_pressed)
        self.position_slider.valueChanged.connect(self._on_slider_moved)
        self.position_slider.sliderReleased.connect(self._on_slider_released)
        self.player.playbackStateChanged.connect(self._on_state_changed)
        self.player.positionChanged.connect(self._on_position_changed)
        self.player.durationChanged.connect(self._on_duration_changed)
        self.player.errorOccurred.connect(self._on_error)

    def _setup_shortcuts(self) -> None:
        bindings = (
            ("Space", self.toggle_play),
            ("K", self.toggle_play),
            ("Left", lambda: self.step_frames(-1)),
            ("Right", lambda: self.step_frames(1)),
            ("Shift+Left", lambda: self.seek_by(-SECOND_STEP)),
            ("Shift+Right", lambda: self.seek_by(SECOND_STEP)),
            ("J", self.slower),
            ("L", self.faster),
            ("I", lambda: self.set_in_requested.emit(self.position_sec)),
            ("O", lambda: self.set_out_requested.emit(self.position_sec)),
        )
        self.shortcuts: dict[str, QShortcut] = {}
        for key, slot in bindings:
            # Text inputs take these keys first through ShortcutOverride
            self.shortcuts[key] = QShortcut(QKeySequence(key), self, activated=slot)

    def _on_error(self, error: QMediaPlayer.Error, message: str) -> None:
        """Handle media player errors gracefully instead of crashing."""
        logger.warning("Media player error (%s): %s", error, message)
        self.player.stop()

    def cleanup(self) -> None:
        """Stop playback and release media resources.

        Call before widget destruction to avoid segfaults from the
        underlying FFmpeg backend trying to finalize during teardown.
        """
        self.player.stop()
        self.player.setSource(QUrl())
        self.player.setVideoOutput(None)
        self.player.setAudioOutput(None)

    def closeEvent(self, event) -> None:
        self.cleanup()
        super().closeEvent(event)

    def resizeEvent(self, event) -> None:
        super().resizeEvent(event)
        self._fit_view()

    # -- frame geometry ----------------------------------------------------

    def set_frame_size(self, width: int | None, height: int | None) -> None:
        """Use the probed source dimensions as scene coordinates."""
        if width and height:
            self._frame_size = (int(width), int(height))
        else:
            self._frame_size = DEFAULT_FRAME_SIZE
        self._apply_frame_size()

    def _apply_frame_size(self) -> None:
        w, h = self._frame_size
        self.video_item.setSize(QSizeF(w, h))
        self.scene.setSceneRect(QRectF(0, 0, w, h))
        self._place_watermark()
        self._fit_view()

    def _fit_view(self) -> None:
        self.view.fitInView(self.scene.sceneRect(), Qt.AspectRatioMode.KeepAspectRatio)

    @property
    def frame_size(self) -> tuple[int, int]:
        return self._frame_size

    def set_fps(self, fps: float | None) -> None:
        self._fps = fps

    @property
    def frame_step(self) -> float:
        return frame_step(self._fps)

    # -- watermark ---------------------------------------------------------

    def set_watermark(self, spec: WatermarkSpec | None) -> None:
        """Render the watermark with the export rasterizer and position it."""
        self._watermark = spec
        image = render_watermark(spec) if spec is not None else None
        if image is None:
            self.watermark_item.setPixmap(QPixmap())
            self.watermark_item.setVisible(False)
            return
        self.watermark_item.setPixmap(QPixmap.fromImage(image))
        self.watermark_item.setVisible(True)
        self._place_watermark()

    def _place_watermark(self) -> None:
        if self._watermark is None or self.watermark_item.pixmap().isNull():
            return
        pixmap = self.watermark_item.pixmap()
        w, h = self._frame_size
        x, y = self._watermark.anchor.place(
            self._watermark.offset_x,
            self._watermark.offset_y,
            w,
            h,
            pixmap.width(),
            pixmap.height(),
        )
        self.watermark_item.setPos(x, y)

    # -- playback ----------------------------------------------------------

    def load(self, path: str) -> None:
        """Load a video file for playback."""
        if not Path(path).is_file():
            logger.warning("Cannot load, file not found: %s", path)
            return
        self._range_end_ms = None
        self.player.setSource(QUrl.fromLocalFile(path))
        self.play_button.setEnabled(True)
        self.position_slider.setEnabled(True)

    def play_range(self, start_sec: float, end_sec: float) -> None:
        """Play the loaded video from start to end (seconds)."""
        self._range_end_ms = int(end_sec * 1000)
        self.player.setPosition(int(start_sec * 1000))
        self.player.play()

    def seek(self, seconds: float) -> None:
        self.player.setPosition(int(max(0.0, seconds) * 1000))

    def seek_by(self, delta_sec: float) -> None:
        """Move the playhead, clamped to [0, duration] once the duration is known."""
        target = self.position_sec + delta_sec
        if self._duration_ms > 0:
            target = min(target, self._duration_ms / 1000)
        self.seek(target)

    def step_frames(self, count: int) -> None:
        self.seek_by(count * self.frame_step)

    @Slot()
    def play(self) -> None:
        self.player.play()

    @Slot()
    def pause(self) -> None:
        self.player.pause()

    @Slot()
    def toggle_play(self) -> None:
        if self.is_playing:
            self.pause()
        else:
            self.play()

    # -- rate and audio ----------------------------------------------------

    def set_playback_rate(self, rate: float) -> None:
        """Set the rate; the spin box range clamps it to 0.25-4x."""
        self.rate_spin.setValue(rate)

    @property
    def playback_rate(self) -> float:
        return self.rate_spin.value()

    @Slot()
    def slower(self) -> None:
        self.rate_spin.stepDown()

    @Slot()
    def faster(self) -> None:
        self.rate_spin.stepUp()

    def _on_rate_changed(self, rate: float) -> None:
        self.player.setPlaybackRate(rate)

    def set_volume(self, volume: float) -> None:
        """Set the volume from 0 to 1."""
        self.volume_slider.setValue(round(min(1.0, max(0.0, volume)) * 100))

    def _on_volume_changed(self, value: int) -> None:
        self.audio_output.setVolume(value / 100)
        # Touching the volume unmutes
        if self.mute_button.isChecked():
            self.set_muted(False)

    @Slot(bool)
    def set_muted(self, muted: bool) -> None:
        if self.mute_button.isChecked() != muted:
            self.mute_button.setChecked(muted)
        self.audio_output.setMuted(muted)
        self.mute_button.setText("Unmute" if muted else "Mute")

    # -- trim window -------------------------------------------------------

    def set_trim_window(self, start_sec: float, end_sec: float) -> None:
        """Set the In/Out points used for jumping and loop playback."""
        self._trim = (start_sec, end_sec)
        self.jump_in_button.setEnabled(True)
        self.jump_out_button.setEnabled(True)

    @property
    def trim_window(self) -> tuple[float, float] | None:
        return self._trim

    @property
    def loop_trim(self) -> bool:
        return self.loop_check.isChecked()

    def set_loop_trim(self, enabled: bool) -> None:
        self.loop_check.setChecked(enabled)

    def jump_to_in(self) -> None:
        if self._trim is not None:
            self.seek(self._trim[0])

    def jump_to_out(self) -> None:
        if self._trim is not None:
            self.seek(self._trim[1])

    # -- player callbacks --------------------------------------------------

    @Slot(QMediaPlayer.PlaybackState)
    def _on_state_changed(self, state: QMediaPlayer.PlaybackState) -> None:
        is_playing = state == QMediaPlayer.PlaybackState.PlayingState
        self.play_button.setEnabled(not is_playing)
        self.pause_button.setEnabled(is_playing)
        if state == QMediaPlayer.PlaybackState.StoppedState:
            self.playback_finished.emit()

    @Slot(int)
    def _on_position_changed(self, position_ms: int) -> None:
        if not self.position_slider.isSliderDown():
            self.position_slider.blockSignals(True)
            self.position_slider.setValue(position_ms)
            self.position_slider.blockSignals(False)
        self.time_label.setText(format_time(position_ms / 1000))
        self.position_changed.emit(position_ms / 1000)

        # Wrap back to In when playback runs past Out
        if self.loop_trim and self._trim is not None and self.is_playing:
            start, end = self._trim
            if end > start and position_ms > int(end * 1000):
                self.player.setPosition(int(start * 1000))
                return

        # Stop at the end of the trim window when playing a range
        if self._range_end_ms is not None and position_ms >= self._range_end_ms:
            self.player.pause()
            self._range_end_ms = None
            self.playback_finished.emit()

    @Slot(int)
    def _on_duration_changed(self, duration_ms: int) -> None:
        self._duration_ms = max(0, duration_ms)
        self.position_slider.setRange(0, self._duration_ms)
        self.duration_label.setText(format_time(self._duration_ms / 1000))

    def _on_slider_pressed(self) -> None:
        self._resume_after_scrub = self.is_playing
        self.player.pause()

    def _on_slider_moved(self, value: int) -> None:
        self.player.setPosition(value)
        self.time_label.setText(format_time(value / 1000))

    def _on_slider_released(self) -> None:
        self.player.setPosition(self.position_slider.value())
        if self._resume_after_scrub:
            self.player.play()
        self._resume_after_scrub = False

    @property
    def is_playing(self) -> bool:
        return (
            self.player.playbackState()
            == QMediaPlayer.PlaybackState.PlayingState
        )

    @property
    def position_sec(self) -> float:
        return self.player.position() / 1000
