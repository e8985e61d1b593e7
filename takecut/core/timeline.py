"""
Timeline interaction state machine and frame builder.

Qt'den bağımsızdır; TimelineWidget pointer olaylarını buraya iletir ve
build_frame() çıktısını çizer. Böylece drag/seek/playback senkronizasyonu
ekran olmadan test edilebilir.

Drag durumları:
    IDLE -> DRAGGING_TRIM_START | DRAGGING_TRIM_END -> IDLE
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol
import logging

import numpy as np

from .cutlist import CutListModel
from .models import CutKind, Segment

logger = logging.getLogger(__name__)

DEFAULT_HANDLE_TOLERANCE_PX = 8.0


class DragState(Enum):
    IDLE = "idle"
    DRAGGING_TRIM_START = "dragging_trim_start"
    DRAGGING_TRIM_END = "dragging_trim_end"


class PlaybackTarget(Protocol):
    """Video oynatıcı arayüzü (VideoPlayer bunu sağlar)."""

    @property
    def current_time(self) -> float: ...

    def seek(self, time_sec: float) -> None: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...


class PeakSource(Protocol):
    def get_peaks_for_range(
        self, start_time: float, end_time: float, num_points: int
    ) -> tuple[np.ndarray, np.ndarray]: ...


@dataclass(frozen=True)
class CutBand:
    """Cut vurgusu (pixel uzayında)."""
    cut_id: str
    x0: float
    x1: float
    kind: CutKind
    enabled: bool


@dataclass(frozen=True)
class TimelineFrame:
    """
    Bir timeline karesinin tüm çizim verisi.

    Aynı girdiler her zaman aynı kareyi üretir.
    """
    width: int
    height: int
    peaks_min: tuple[float, ...]
    peaks_max: tuple[float, ...]
    bands: tuple[CutBand, ...]
    dimmed: tuple[tuple[float, float], ...]
    trim_start_x: float
    trim_end_x: float
    playhead_x: float


def time_to_x(time_sec: float, duration: float, width: float) -> float:
    if duration <= 0:
        return 0.0
    return time_sec / duration * width


def x_to_time(x: float, duration: float, width: float) -> float:
    if width <= 0:
        return 0.0
    return min(max(x / width * duration, 0.0), duration)


def build_frame(
    model: CutListModel,
    width: int,
    height: int,
    playhead: float,
    peaks: Optional[PeakSource] = None,
) -> TimelineFrame:
    """Waveform, cut bantları, trim dışı karartma, tutamaçlar ve playhead."""
    duration = model.duration

    if peaks is not None and width > 0:
        min_peaks, max_peaks = peaks.get_peaks_for_range(0.0, duration, width)
        peaks_min = tuple(float(v) for v in min_peaks)
        peaks_max = tuple(float(v) for v in max_peaks)
    else:
        peaks_min = peaks_max = ()

    bands = tuple(
        CutBand(
            cut_id=cut.id,
            x0=time_to_x(cut.start, duration, width),
            x1=time_to_x(cut.end, duration, width),
            kind=cut.kind,
            enabled=cut.enabled,
        )
        for cut in sorted(model.cuts, key=lambda c: (c.start, c.end, c.id))
    )

    trim_start_x = time_to_x(model.trim.start, duration, width)
    trim_end_x = time_to_x(model.trim.end, duration, width)
    dimmed = []
    if trim_start_x > 0:
        dimmed.append((0.0, trim_start_x))
    if trim_end_x < width:
        dimmed.append((trim_end_x, float(width)))

    return TimelineFrame(
        width=width,
        height=height,
        peaks_min=peaks_min,
        peaks_max=peaks_max,
        bands=bands,
        dimmed=tuple(dimmed),
        trim_start_x=trim_start_x,
        trim_end_x=trim_end_x,
        playhead_x=time_to_x(min(max(playhead, 0.0), duration), duration, width),
    )


class TimelineController:
    """
    Timeline etkileşim kontrolcüsü.

    Modeli tutar, pointer olaylarını trim drag / seek'e çevirir ve her
    playback tick'inde oynatıcıyı trim penceresi ve aktif cut'larla
    senkronize eder. Her değişiklikte redraw listener'ları çağrılır.
    """

    def __init__(
        self,
        model: CutListModel,
        player: Optional[PlaybackTarget] = None,
        width: int = 1000,
        handle_tolerance_px: float = DEFAULT_HANDLE_TOLERANCE_PX,
    ):
        self._model = model
        self.player = player
        self.width = width
        self.handle_tolerance_px = handle_tolerance_px
        self.drag_state = DragState.IDLE
        self.playhead: float = model.trim.start
        self._model_listeners: list[Callable[[CutListModel], None]] = []
        self._redraw_listeners: list[Callable[[], None]] = []

    # ------------------------------------------------------------------
    # Model / listeners
    # ------------------------------------------------------------------

    @property
    def model(self) -> CutListModel:
        return self._model

    def add_model_listener(self, callback: Callable[[CutListModel], None]) -> None:
        self._model_listeners.append(callback)

    def add_redraw_listener(self, callback: Callable[[], None]) -> None:
        self._redraw_listeners.append(callback)

    def replace_model(self, model: CutListModel) -> None:
        """Yeni modeli uygula, listener'ları bilgilendir, yeniden çiz."""
        if model == self._model:
            return
        self._model = model
        for callback in self._model_listeners:
            callback(model)
        self.request_redraw()

    def request_redraw(self) -> None:
        for callback in self._redraw_listeners:
            callback()

    def keep_segments(self) -> list[Segment]:
        return self._model.compute_keep_segments()

    def toggle_cut(self, cut_id: str) -> None:
        self.replace_model(self._model.toggle_cut(cut_id))

    def set_cut_enabled(self, cut_id: str, enabled: bool) -> None:
        self.replace_model(self._model.set_cut_enabled(cut_id, enabled))

    def add_manual_cut(self, start: float, end: float) -> None:
        """InvalidRange yukarı iletilir, model değişmez."""
        self.replace_model(self._model.add_manual_cut(start, end))

    def remove_cut(self, cut_id: str) -> None:
        self.replace_model(self._model.remove_cut(cut_id))

    # ------------------------------------------------------------------
    # Pixel mapping
    # ------------------------------------------------------------------

    def set_width(self, width: int) -> None:
        if width != self.width:
            self.width = width
            self.request_redraw()

    def time_to_x(self, time_sec: float) -> float:
        return time_to_x(time_sec, self._model.duration, self.width)

    def x_to_time(self, x: float) -> float:
        return x_to_time(x, self._model.duration, self.width)

    def handle_at(self, x: float) -> Optional[DragState]:
        """x bir trim tutamacına tolerans içinde yakınsa ilgili drag durumu."""
        start_dist = abs(x - self.time_to_x(self._model.trim.start))
        end_dist = abs(x - self.time_to_x(self._model.trim.end))
        tolerance = self.handle_tolerance_px

        if start_dist > tolerance and end_dist > tolerance:
            return None
        if start_dist < end_dist:
            return DragState.DRAGGING_TRIM_START
        if end_dist < start_dist:
            return DragState.DRAGGING_TRIM_END
        # Tutamaçlar üst üste: sağda ise end, solda ise start
        return (
            DragState.DRAGGING_TRIM_END
            if x >= self.time_to_x(self._model.trim.end)
            else DragState.DRAGGING_TRIM_START
        )

    # ------------------------------------------------------------------
    # Pointer events
    # ------------------------------------------------------------------

    def pointer_down(self, x: float) -> DragState:
        handle = self.handle_at(x)
        if handle is not None:
            self.drag_state = handle
            logger.debug(f"Drag started: {handle.value}")
        else:
            self.seek(self.x_to_time(x))
        return self.drag_state

    def pointer_move(self, x: float) -> None:
        if self.drag_state is DragState.IDLE:
            return

        time_sec = self.x_to_time(x)
        if self.drag_state is DragState.DRAGGING_TRIM_START:
            model = self._model.set_trim_start(time_sec)
        else:
            model = self._model.set_trim_end(time_sec)

        if model == self._model:
            # Sınıra dayandı, yine de kareyi çiz
            self.request_redraw()
        else:
            self.replace_model(model)

    def pointer_up(self) -> None:
        if self.drag_state is not DragState.IDLE:
            logger.debug(
                f"Drag finished: trim={self._model.trim.start:.2f}s - {self._model.trim.end:.2f}s"
            )
        self.drag_state = DragState.IDLE

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    def seek(self, time_sec: float) -> None:
        self.playhead = min(max(time_sec, 0.0), self._model.duration)
        if self.player is not None:
            self.player.seek(self.playhead)
        self.request_redraw()

    def play(self) -> None:
        if self.player is not None:
            self.player.play()
        self.request_redraw()

    def pause(self) -> None:
        if self.player is not None:
            self.player.pause()
        self.request_redraw()

    def resolve_position(self, current_time: float) -> tuple[float, bool]:
        """
        Oynatma pozisyonunu trim ve aktif cut'lara göre düzelt.

        Returns:
            (yeni pozisyon, duraklatılmalı mı)
        """
        trim = self._model.trim
        position = current_time

        if position < trim.start:
            position = trim.start
        if position >= trim.end:
            return trim.end, True

        # Art arda gelen cut'lar için tekrar kontrol et
        cut = self._model.cut_at(position)
        while cut is not None:
            position = cut.end
            if position >= trim.end:
                return trim.end, True
            cut = self._model.cut_at(position)

        return position, False

    def on_time_advanced(self, current_time: float) -> float:
        """Her playback tick'inde çağrılır."""
        position, should_pause = self.resolve_position(current_time)

        if should_pause and self.player is not None:
            self.player.pause()
        if position != current_time:
            logger.debug(f"Playback jump: {current_time:.3f}s -> {position:.3f}s")
            if self.player is not None:
                self.player.seek(position)

        self.playhead = position
        self.request_redraw()
        return position

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def build_frame(self, height: int, peaks: Optional[PeakSource] = None) -> TimelineFrame:
        return build_frame(self._model, self.width, height, self.playhead, peaks)
