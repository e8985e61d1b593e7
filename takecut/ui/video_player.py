"""
OpenCV-based preview player with threaded frame reading.

Oynatıcı trim/cut bilgisini bilmez; her karede position_changed yayar ve
TimelineController.on_time_advanced gerekli seek/pause işlemlerini yapar.
"""

from __future__ import annotations

import logging
import math
import time
from pathlib import Path
from threading import Thread, Lock
from typing import Optional

import cv2
import numpy as np

from PySide6.QtCore import Qt, Signal, Slot, QObject
from PySide6.QtWidgets import QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QFrame
from PySide6.QtGui import QImage, QPixmap

from takecut.core.models import format_time

logger = logging.getLogger(__name__)


class FrameReader(QObject):
    """Background thread for reading video frames."""

    frame_ready = Signal(np.ndarray, int)  # frame, frame_number
    reached_end = Signal()

    def __init__(self):
        super().__init__()
        self._capture: Optional[cv2.VideoCapture] = None
        self._running = False
        self._thread: Optional[Thread] = None
        self._lock = Lock()
        self._seek_frame: Optional[int] = None
        self._playing = False
        self._fps = 30.0
        self._frame_count = 0
        self._current_frame = 0

    def open(self, path: str) -> bool:
        with self._lock:
            if self._capture is not None:
                self._capture.release()

            self._capture = cv2.VideoCapture(path)
            if not self._capture.isOpened():
                return False

            self._fps = self._capture.get(cv2.CAP_PROP_FPS) or 30.0
            self._frame_count = int(self._capture.get(cv2.CAP_PROP_FRAME_COUNT))
            self._current_frame = 0
            return True

    def start_thread(self):
        if self._thread is not None and self._thread.is_alive():
            return
        self._running = True
        self._thread = Thread(target=self._run, daemon=True)
        self._thread.start()

    def stop_thread(self):
        self._running = False
        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None

    def play(self):
        self._playing = True

    def pause(self):
        self._playing = False

    def seek(self, frame_num: int):
        """Seek isteği - sonraki döngüde uygulanır, bekleyen istek ezilir."""
        with self._lock:
            self._seek_frame = frame_num
            self._current_frame = frame_num

    def _run(self):
        frame_interval = 1.0 / self._fps
        last_frame_time = 0.0

        while self._running:
            with self._lock:
                target = self._seek_frame
                self._seek_frame = None
                if target is not None and self._capture is not None:
                    self._capture.set(cv2.CAP_PROP_POS_FRAMES, target)
                    ret, frame = self._capture.read()
                    if ret:
                        self._current_frame = target
                        self.frame_ready.emit(frame.copy(), target)
                    last_frame_time = time.time()
                    continue

            if not self._playing:
                time.sleep(0.01)
                continue

            now = time.time()
            if now - last_frame_time < frame_interval:
                time.sleep(0.002)
                continue

            with self._lock:
                if self._capture is None:
                    continue
                ret, frame = self._capture.read()
                if ret:
                    self._current_frame += 1
                    self.frame_ready.emit(frame.copy(), self._current_frame)
                    last_frame_time = now
                else:
                    self._playing = False
                    self.reached_end.emit()

    def close(self):
        self.stop_thread()
        with self._lock:
            if self._capture is not None:
                self._capture.release()
                self._capture = None

    @property
    def fps(self) -> float:
        return self._fps

    @property
    def frame_count(self) -> int:
        return self._frame_count

    @property
    def current_frame(self) -> int:
        return self._current_frame


class VideoPlayer(QWidget):
    """
    Preview player widget.

    Signals:
        position_changed(float): Her gösterilen karede zaman (saniye)
        playback_started()
        playback_paused()
    """

    position_changed = Signal(float)
    playback_started = Signal()
    playback_paused = Signal()

    def __init__(self, parent=None):
        super().__init__(parent)

        self._video_path: Optional[Path] = None
        self._frame_reader = FrameReader()
        self._frame_reader.frame_ready.connect(self._on_frame_ready)
        self._frame_reader.reached_end.connect(self.pause)
        self._duration: float = 0.0
        self._is_playing: bool = False

        self._setup_ui()

    def _setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(4)

        self._video_label = QLabel()
        self._video_label.setAlignment(Qt.AlignCenter)
        self._video_label.setMinimumHeight(240)
        self._video_label.setStyleSheet("background-color: #000000; border-radius: 4px;")
        self._video_label.setText("Open a take to start editing")
        layout.addWidget(self._video_label, 1)

        controls = QFrame()
        controls.setStyleSheet("background-color: #222222; border-radius: 4px; padding: 4px;")
        controls_layout = QHBoxLayout(controls)
        controls_layout.setContentsMargins(8, 4, 8, 4)
        controls_layout.setSpacing(8)

        self._play_btn = QPushButton("▶ Play")
        self._play_btn.setFixedWidth(100)
        self._play_btn.clicked.connect(self.toggle_playback)
        controls_layout.addWidget(self._play_btn)

        self._time_label = QLabel("00:00.00 / 00:00.00")
        self._time_label.setStyleSheet("color: #ffffff; font-family: monospace; font-size: 12px;")
        controls_layout.addWidget(self._time_label)
        controls_layout.addStretch()

        layout.addWidget(controls)

    def load_video(self, path: Path) -> bool:
        self.pause()
        self._frame_reader.close()
        self._video_path = path

        if not self._frame_reader.open(str(path)):
            logger.error(f"Failed to open video: {path}")
            self._video_label.setText(f"Could not open video: {path.name}")
            return False

        fps = self._frame_reader.fps
        self._duration = self._frame_reader.frame_count / fps if fps > 0 else 0.0
        logger.info(f"Loaded video: {path.name}, {fps:.2f} fps, {self._duration:.2f}s")

        self._frame_reader.start_thread()
        self._frame_reader.seek(0)
        return True

    # PlaybackTarget --------------------------------------------------------

    @property
    def current_time(self) -> float:
        fps = self._frame_reader.fps
        return self._frame_reader.current_frame / fps if fps > 0 else 0.0

    def seek(self, time_sec: float) -> None:
        if self._frame_reader.frame_count == 0:
            return
        # Hedef zamandan önceki kareye düşme (yarı açık cut aralıkları)
        frame = math.ceil(time_sec * self._frame_reader.fps - 1e-6)
        frame = max(0, min(frame, self._frame_reader.frame_count - 1))
        self._frame_reader.seek(frame)

    def play(self) -> None:
        if self._frame_reader.frame_count == 0 or self._is_playing:
            return
        self._is_playing = True
        self._frame_reader.play()
        self._play_btn.setText("⏸ Pause")
        self.playback_started.emit()

    def pause(self) -> None:
        if not self._is_playing:
            return
        self._is_playing = False
        self._frame_reader.pause()
        self._play_btn.setText("▶ Play")
        self.playback_paused.emit()

    # ----------------------------------------------------------------------

    def toggle_playback(self):
        if self._is_playing:
            self.pause()
        else:
            self.play()

    @property
    def is_playing(self) -> bool:
        return self._is_playing

    @property
    def duration(self) -> float:
        return self._duration

    @Slot(np.ndarray, int)
    def _on_frame_ready(self, frame: np.ndarray, frame_num: int):
        self._display_frame(frame)

        current = frame_num / self._frame_reader.fps if self._frame_reader.fps > 0 else 0.0
        self._time_label.setText(f"{format_time(current)} / {format_time(self._duration)}")
        self.position_changed.emit(current)

    def _display_frame(self, frame: np.ndarray):
        frame_rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        h, w, ch = frame_rgb.shape
        q_img = QImage(frame_rgb.data, w, h, ch * w, QImage.Format_RGB888)
        pixmap = QPixmap.fromImage(q_img)
        self._video_label.setPixmap(
            pixmap.scaled(self._video_label.size(), Qt.KeepAspectRatio, Qt.SmoothTransformation)
        )

    def closeEvent(self, event):
        self.pause()
        self._frame_reader.close()
        super().closeEvent(event)
