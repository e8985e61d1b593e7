"""
Timeline widget: waveform, cut bands, trim handles and playhead.

Tüm çizim verisi TimelineController.build_frame() çıktısından gelir;
widget yalnızca pointer olaylarını kontrolcüye iletir ve kareyi boyar.
"""

from __future__ import annotations

from typing import Optional
import logging

from PySide6.QtCore import Qt, QPointF, QRectF, Signal
from PySide6.QtWidgets import QWidget, QSizePolicy
from PySide6.QtGui import (
    QPainter,
    QPen,
    QBrush,
    QColor,
    QPainterPath,
    QLinearGradient,
    QFont,
)

from takecut.core.models import CutKind, format_time
from takecut.core.timeline import DragState, TimelineController, TimelineFrame
from takecut.media.waveform import WaveformData

logger = logging.getLogger(__name__)


COLOR_BACKGROUND = QColor("#1a1a1a")
COLOR_TRACK_BG = QColor("#2a2a2a")
COLOR_WAVEFORM = QColor("#4a90d9")
COLOR_WAVEFORM_FILL = QColor("#4a90d980")
COLOR_PLAYHEAD = QColor("#facc15")
COLOR_HANDLE = QColor("#facc15")
COLOR_DIM = QColor(0, 0, 0, 150)
COLOR_RULER = QColor("#666666")
COLOR_RULER_TEXT = QColor("#aaaaaa")
COLOR_TRACK_BORDER = QColor("#444444")
COLOR_DISABLED = QColor("#444444")

CUT_COLORS = {
    CutKind.FILLER: QColor("#ef4444"),
    CutKind.SILENCE: QColor("#3b82f6"),
    CutKind.MANUAL: QColor("#ff8844"),
}

RULER_HEIGHT = 22
WAVEFORM_HEIGHT = 90
HANDLE_WIDTH = 6


class TimelineWidget(QWidget):
    """
    Timeline paneli.

    Signals:
        drag_finished(): Trim tutamacı bırakıldı
    """

    drag_finished = Signal()

    def __init__(self, controller: Optional[TimelineController] = None, parent=None):
        super().__init__(parent)
        self._controller: Optional[TimelineController] = None
        self._waveform: Optional[WaveformData] = None

        self.setMinimumHeight(RULER_HEIGHT + WAVEFORM_HEIGHT)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Fixed)
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.StrongFocus)

        if controller is not None:
            self.set_controller(controller)

    def set_controller(self, controller: TimelineController):
        self._controller = controller
        controller.set_width(max(1, self.width()))
        controller.add_redraw_listener(self.update)
        self.update()

    def set_waveform(self, data: Optional[WaveformData]):
        self._waveform = data
        if data is not None:
            logger.debug(f"Waveform attached: {data.num_buckets} buckets")
        self.update()

    def sizeHint(self):
        size = super().sizeHint()
        size.setHeight(RULER_HEIGHT + WAVEFORM_HEIGHT)
        return size

    # ------------------------------------------------------------------
    # Pointer events
    # ------------------------------------------------------------------

    def mousePressEvent(self, event):
        if self._controller is None or event.button() != Qt.LeftButton:
            return super().mousePressEvent(event)
        self._controller.pointer_down(event.position().x())

    def mouseMoveEvent(self, event):
        if self._controller is None:
            return super().mouseMoveEvent(event)

        x = event.position().x()
        if self._controller.drag_state is not DragState.IDLE:
            self._controller.pointer_move(x)
            self.repaint()
        elif self._controller.handle_at(x) is not None:
            self.setCursor(Qt.SizeHorCursor)
        else:
            self.unsetCursor()

    def mouseReleaseEvent(self, event):
        if self._controller is None or event.button() != Qt.LeftButton:
            return super().mouseReleaseEvent(event)
        was_dragging = self._controller.drag_state is not DragState.IDLE
        self._controller.pointer_up()
        if was_dragging:
            self.drag_finished.emit()

    def leaveEvent(self, event):
        # Pencere dışına çıkınca drag biter
        if self._controller is not None and self._controller.drag_state is not DragState.IDLE:
            self._controller.pointer_up()
            self.drag_finished.emit()
        super().leaveEvent(event)

    def resizeEvent(self, event):
        super().resizeEvent(event)
        if self._controller is not None:
            self._controller.set_width(max(1, self.width()))

    # ------------------------------------------------------------------
    # Painting
    # ------------------------------------------------------------------

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.fillRect(self.rect(), QBrush(COLOR_BACKGROUND))

        if self._controller is None:
            painter.end()
            return

        frame = self._controller.build_frame(WAVEFORM_HEIGHT, self._waveform)

        self._paint_ruler(painter, frame)
        painter.translate(0, RULER_HEIGHT)
        self._paint_waveform(painter, frame)
        self._paint_cuts(painter, frame)
        self._paint_trim(painter, frame)
        self._paint_playhead(painter, frame)
        painter.end()

    def _paint_ruler(self, painter: QPainter, frame: TimelineFrame):
        duration = self._controller.model.duration
        painter.fillRect(QRectF(0, 0, frame.width, RULER_HEIGHT), QBrush(QColor("#252525")))
        if duration <= 0 or frame.width <= 0:
            return

        pixels_per_second = frame.width / duration
        seconds_per_major = 1.0
        if pixels_per_second < 20:
            seconds_per_major = 10.0
        elif pixels_per_second < 50:
            seconds_per_major = 5.0
        elif pixels_per_second < 100:
            seconds_per_major = 2.0

        painter.setFont(QFont("Menlo", 8))
        t = 0.0
        while t <= duration:
            x = t * pixels_per_second
            painter.setPen(QPen(COLOR_RULER, 1))
            painter.drawLine(QPointF(x, RULER_HEIGHT - 8), QPointF(x, RULER_HEIGHT))
            painter.setPen(QPen(COLOR_RULER_TEXT))
            painter.drawText(QPointF(x + 3, RULER_HEIGHT - 9), format_time(t))
            t += seconds_per_major

        painter.setPen(QPen(COLOR_RULER, 1))
        painter.drawLine(QPointF(0, RULER_HEIGHT - 1), QPointF(frame.width, RULER_HEIGHT - 1))

    def _paint_waveform(self, painter: QPainter, frame: TimelineFrame):
        rect = QRectF(0, 0, frame.width, frame.height)
        painter.fillRect(rect, QBrush(COLOR_TRACK_BG))
        center_y = frame.height / 2

        painter.setPen(QPen(QColor("#404040"), 1))
        painter.drawLine(QPointF(0, center_y), QPointF(frame.width, center_y))

        if frame.peaks_max:
            painter.setRenderHint(QPainter.Antialiasing)
            path = QPainterPath()
            path.moveTo(0, center_y)
            for x, peak in enumerate(frame.peaks_max):
                path.lineTo(x, center_y - peak * center_y * 0.85)
            for x in range(len(frame.peaks_min) - 1, -1, -1):
                path.lineTo(x, center_y - frame.peaks_min[x] * center_y * 0.85)
            path.closeSubpath()

            gradient = QLinearGradient(0, 0, 0, frame.height)
            gradient.setColorAt(0, COLOR_WAVEFORM)
            gradient.setColorAt(0.5, COLOR_WAVEFORM_FILL)
            gradient.setColorAt(1, COLOR_WAVEFORM)
            painter.fillPath(path, QBrush(gradient))
            painter.setPen(QPen(COLOR_WAVEFORM, 0.5))
            painter.drawPath(path)
            painter.setRenderHint(QPainter.Antialiasing, False)

        painter.setPen(QPen(COLOR_TRACK_BORDER, 1))
        painter.drawRect(rect.adjusted(0, 0, -1, -1))

    def _paint_cuts(self, painter: QPainter, frame: TimelineFrame):
        for band in frame.bands:
            if band.enabled:
                color = CUT_COLORS.get(band.kind, CUT_COLORS[CutKind.MANUAL])
                alpha = 110
            else:
                color = COLOR_DISABLED
                alpha = 60

            fill = QColor(color)
            fill.setAlpha(alpha)
            rect = QRectF(band.x0, 0, max(1.0, band.x1 - band.x0), frame.height)
            painter.fillRect(rect, QBrush(fill))
            painter.setPen(QPen(color, 1))
            painter.drawRect(rect)

    def _paint_trim(self, painter: QPainter, frame: TimelineFrame):
        for x0, x1 in frame.dimmed:
            painter.fillRect(QRectF(x0, 0, x1 - x0, frame.height), QBrush(COLOR_DIM))

        painter.setPen(Qt.NoPen)
        painter.setBrush(QBrush(COLOR_HANDLE))
        painter.drawRect(QRectF(frame.trim_start_x, 0, HANDLE_WIDTH, frame.height))
        painter.drawRect(QRectF(frame.trim_end_x - HANDLE_WIDTH, 0, HANDLE_WIDTH, frame.height))
        painter.setBrush(Qt.NoBrush)

    def _paint_playhead(self, painter: QPainter, frame: TimelineFrame):
        painter.setPen(QPen(COLOR_PLAYHEAD, 2))
        painter.drawLine(
            QPointF(frame.playhead_x, -RULER_HEIGHT),
            QPointF(frame.playhead_x, frame.height),
        )
