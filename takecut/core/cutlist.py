"""
Cut list model.

Trim penceresi + AI cut'ları + manual cut'lar. Model immutable'dır: her
geçiş yeni bir CutListModel döndürür, hata durumunda eski model aynen
kalır. Keep-segment'ler saklanmaz, her çağrıda yeniden hesaplanır.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional
import logging

from . import intervals
from .models import Cut, CutKind, Segment, TrimWindow, new_cut_id

logger = logging.getLogger(__name__)

MIN_TRIM_GAP = 0.05  # saniye


class InvalidRange(ValueError):
    """Geçersiz zaman aralığı (end <= start, süre dışı, negatif)."""
    pass


class UnknownCutError(KeyError):
    """Verilen id ile cut bulunamadı."""
    pass


class CutNotRemovableError(ValueError):
    """AI cut'ları silinemez, sadece devre dışı bırakılabilir."""
    pass


@dataclass(frozen=True)
class CutListModel:
    """
    Editörün tek doğruluk kaynağı.

    Attributes:
        duration: Kaynak video süresi (metadata yüklenince bir kez set edilir)
        trim: Trim penceresi
        cuts: AI ve manual cut'lar (ekleme sırasıyla)
        min_trim_gap: trim_start ile trim_end arasındaki minimum mesafe
    """
    duration: float
    trim: TrimWindow
    cuts: tuple[Cut, ...] = ()
    min_trim_gap: float = field(default=MIN_TRIM_GAP, compare=False)

    @classmethod
    def create(
        cls,
        duration: float,
        cuts: Iterable[Cut] = (),
        min_trim_gap: float = MIN_TRIM_GAP,
    ) -> CutListModel:
        """Yeni model - trim penceresi [0, duration]."""
        if not math.isfinite(duration) or duration <= 0:
            raise InvalidRange(f"Duration must be positive, got {duration}")
        return cls(
            duration=duration,
            trim=TrimWindow(0.0, duration),
            cuts=tuple(cuts),
            min_trim_gap=min(min_trim_gap, duration),
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def enabled_cuts(self) -> list[Cut]:
        return [c for c in self.cuts if c.enabled]

    @property
    def ai_cuts(self) -> list[Cut]:
        return [c for c in self.cuts if c.is_ai]

    @property
    def manual_cuts(self) -> list[Cut]:
        return [c for c in self.cuts if not c.is_ai]

    def get_cut(self, cut_id: str) -> Cut:
        for cut in self.cuts:
            if cut.id == cut_id:
                return cut
        raise UnknownCutError(cut_id)

    def cut_at(self, time_sec: float) -> Optional[Cut]:
        """time_sec'i içeren ilk aktif cut (başlangıca göre sıralı)."""
        for cut in sorted(self.enabled_cuts, key=lambda c: c.start):
            if cut.contains(time_sec):
                return cut
        return None

    def compute_keep_segments(self) -> list[Segment]:
        """Korunacak segmentler - (trim, aktif cut'lar) için saf fonksiyon."""
        return intervals.subtract(self.trim, self.enabled_cuts)

    def removed_segments(self) -> list[Segment]:
        """Trim içinde fiilen kaldırılan aralıklar."""
        return intervals.removed_within(self.trim, self.enabled_cuts)

    def kept_duration(self) -> float:
        return intervals.total_duration(self.compute_keep_segments())

    def removed_duration(self) -> float:
        return intervals.total_duration(self.removed_segments())

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def with_ai_cuts(self, ai_cuts: Iterable[Cut]) -> CutListModel:
        """Mevcut AI cut'larını yenileriyle değiştir, manual'ları koru."""
        new_ai = [c for c in ai_cuts if c.is_ai]
        return replace(self, cuts=tuple(new_ai) + tuple(self.manual_cuts))

    def add_manual_cut(self, start: float, end: float, label: str = "") -> CutListModel:
        """
        Manual cut ekle.

        Raises:
            InvalidRange: end <= start, start < 0 veya end > duration
        """
        if not (math.isfinite(start) and math.isfinite(end)):
            raise InvalidRange("Cut bounds must be numbers")
        if start < 0:
            raise InvalidRange(f"Cut start must not be negative ({start:.2f}s)")
        if end <= start:
            raise InvalidRange(f"Cut end ({end:.2f}s) must be after start ({start:.2f}s)")
        if end > self.duration:
            raise InvalidRange(
                f"Cut end ({end:.2f}s) is beyond the video duration ({self.duration:.2f}s)"
            )

        cut = Cut(
            id=new_cut_id("manual"),
            start=start,
            end=end,
            kind=CutKind.MANUAL,
            label=label,
            enabled=True,
        )
        logger.debug(f"Manual cut added: {cut.id} {start:.2f}s - {end:.2f}s")
        return replace(self, cuts=self.cuts + (cut,))

    def set_cut_enabled(self, cut_id: str, enabled: bool) -> CutListModel:
        target = self.get_cut(cut_id)
        if target.enabled == enabled:
            return self
        return replace(
            self,
            cuts=tuple(
                replace(c, enabled=enabled) if c.id == cut_id else c
                for c in self.cuts
            ),
        )

    def toggle_cut(self, cut_id: str) -> CutListModel:
        return self.set_cut_enabled(cut_id, not self.get_cut(cut_id).enabled)

    def remove_cut(self, cut_id: str) -> CutListModel:
        """
        Manual cut sil.

        Raises:
            UnknownCutError: id bulunamadı
            CutNotRemovableError: AI cut'ı (sadece disable edilebilir)
        """
        target = self.get_cut(cut_id)
        if target.is_ai:
            raise CutNotRemovableError(
                f"AI cut {cut_id} can only be disabled, not removed"
            )
        return replace(self, cuts=tuple(c for c in self.cuts if c.id != cut_id))

    def set_trim_start(self, time_sec: float) -> CutListModel:
        """trim_start'ı [0, trim_end - min_gap] aralığına sıkıştır."""
        upper = max(0.0, self.trim.end - self.min_trim_gap)
        start = min(max(time_sec, 0.0), upper)
        if start == self.trim.start:
            return self
        return replace(self, trim=TrimWindow(start, self.trim.end))

    def set_trim_end(self, time_sec: float) -> CutListModel:
        """trim_end'i [trim_start + min_gap, duration] aralığına sıkıştır."""
        lower = min(self.duration, self.trim.start + self.min_trim_gap)
        end = max(min(time_sec, self.duration), lower)
        if end == self.trim.end:
            return self
        return replace(self, trim=TrimWindow(self.trim.start, end))

    def set_trim(self, start: float, end: float) -> CutListModel:
        """Proje yüklerken kullanılır."""
        if end - start < self.min_trim_gap:
            raise InvalidRange(f"Trim window too small: {start:.2f}s - {end:.2f}s")
        return self.set_trim_end(self.duration).set_trim_start(start).set_trim_end(end)
