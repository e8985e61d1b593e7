"""
Interval algebra for cut lists.

Pure functions only:
- merge_overlapping: overlapping/touching aralıkları birleştir
- clip_to_window: aralıkları trim penceresine kırp
- subtract: pencereden kesimleri çıkar, kalan keep-segment'leri döndür

Coverage identity (EPSILON toleransı ile):
    sum(keep) + sum(merge(clip(cuts))) == window.end - window.start
"""

from __future__ import annotations

from typing import Iterable, Protocol

from .models import Segment

EPSILON = 1e-9


class Interval(Protocol):
    start: float
    end: float


def merge_overlapping(intervals: Iterable[Interval]) -> list[Segment]:
    """
    Örtüşen veya uç uca değen aralıkları birleştir.

    Returns:
        Sıralı, örtüşmeyen, minimal Segment listesi
    """
    ordered = sorted(
        (i for i in intervals if i.end > i.start),
        key=lambda i: (i.start, i.end),
    )
    if not ordered:
        return []

    merged: list[Segment] = []
    current_start = ordered[0].start
    current_end = ordered[0].end

    for interval in ordered[1:]:
        if interval.start <= current_end:
            current_end = max(current_end, interval.end)
        else:
            merged.append(Segment(current_start, current_end))
            current_start = interval.start
            current_end = interval.end

    merged.append(Segment(current_start, current_end))
    return merged


def clip_to_window(intervals: Iterable[Interval], window: Interval) -> list[Segment]:
    """Pencere dışındakileri at, kısmen taşanları sınırda kes."""
    clipped = []
    for interval in intervals:
        start = max(interval.start, window.start)
        end = min(interval.end, window.end)
        if end - start > EPSILON:
            clipped.append(Segment(start, end))
    return clipped


def subtract(window: Interval, cuts: Iterable[Interval]) -> list[Segment]:
    """
    Trim penceresinden kesimleri çıkar.

    Kesimler önce pencereye kırpılır, sonra birleştirilir; aradaki
    boşluklar soldan sağa keep-segment olarak üretilir. Sıfır uzunluklu
    boşluklar atılır. Kesimler pencerenin tamamını kaplıyorsa boş liste
    döner (hata değil).
    """
    if window.end - window.start <= EPSILON:
        return []

    removed = merge_overlapping(clip_to_window(cuts, window))

    segments: list[Segment] = []
    cursor = window.start
    for cut in removed:
        if cut.start - cursor > EPSILON:
            segments.append(Segment(cursor, cut.start))
        cursor = max(cursor, cut.end)

    if window.end - cursor > EPSILON:
        segments.append(Segment(cursor, window.end))

    return segments


def total_duration(intervals: Iterable[Interval]) -> float:
    return sum(i.end - i.start for i in intervals)


def removed_within(window: Interval, cuts: Iterable[Interval]) -> list[Segment]:
    """Pencere içinde gerçekten kaldırılan (kırpılmış + birleşmiş) aralıklar."""
    return merge_overlapping(clip_to_window(cuts, window))
