"""
Transcript analyzer adapter.

Analyzer (AI servis) çıktısı:
    {"words": [{"word", "start", "end", "isFiller"}, ...],
     "silences": [{"start", "end", "duration"}, ...]}

Dolgu kelimeleri FILLER, sessizlikler SILENCE cut'larına dönüşür; hepsi
başlangıçta aktiftir. Analyzer başarısız olursa model AI cut'sız devam
eder, manual düzenleme etkilenmez.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Protocol
import logging

from takecut.core.cutlist import CutListModel
from takecut.core.models import (
    Cut,
    CutKind,
    SilenceSpan,
    TimedTranscript,
    TranscriptWord,
)

logger = logging.getLogger(__name__)


class AnalysisError(Exception):
    """Analyzer sonucu alınamadı."""
    pass


class TranscriptAnalyzer(Protocol):
    """Dış AI servisi - kelime zamanları, dolgu işaretleri, sessizlikler."""

    def analyze(self, media_path: Path) -> TimedTranscript: ...


def _read_span(item: dict) -> Optional[tuple[float, float]]:
    try:
        start = float(item["start"])
        end = float(item["end"])
    except (KeyError, TypeError, ValueError):
        return None
    if start < 0 or end <= start:
        return None
    return start, end


def parse_timed_transcript(data: dict) -> TimedTranscript:
    """
    Analyzer JSON'unu TimedTranscript'e çevir.

    Eksik anahtarlar boş liste sayılır; bozuk veya sıfır uzunluklu
    girdiler uyarı ile atlanır.
    """
    if not isinstance(data, dict):
        raise AnalysisError(f"Unexpected analyzer payload: {type(data).__name__}")

    words = []
    for item in data.get("words") or []:
        span = _read_span(item) if isinstance(item, dict) else None
        if span is None:
            logger.warning(f"Skipping malformed word entry: {item!r}")
            continue
        words.append(
            TranscriptWord(
                word=str(item.get("word", "")),
                start=span[0],
                end=span[1],
                is_filler=bool(item.get("isFiller", False)),
            )
        )

    silences = []
    for item in data.get("silences") or []:
        span = _read_span(item) if isinstance(item, dict) else None
        if span is None:
            logger.warning(f"Skipping malformed silence entry: {item!r}")
            continue
        silences.append(SilenceSpan(start=span[0], end=span[1]))

    return TimedTranscript(words=words, silences=silences)


def load_timed_transcript(path: Path) -> TimedTranscript:
    """Analyzer'ın yazdığı JSON dosyasını oku."""
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise AnalysisError(f"Could not read transcript {path}: {e}") from e
    return parse_timed_transcript(data)


def cuts_from_transcript(
    transcript: TimedTranscript,
    duration: Optional[float] = None,
) -> list[Cut]:
    """
    Dolgu kelimeleri ve sessizliklerden AI cut'ları üret.

    Args:
        transcript: Analyzer sonucu
        duration: Verilirse cut'lar video süresine kırpılır

    Returns:
        Başlangıca göre sıralı, aktif Cut listesi
    """
    cuts = []
    seen: dict[str, int] = {}

    def clipped(start: float, end: float) -> Optional[tuple[float, float]]:
        if duration is not None:
            end = min(end, duration)
        return (start, end) if end > start else None

    def unique_id(base: str) -> str:
        # Aynı milisaniyeye yuvarlanan girişler -1, -2 ... eki alır
        count = seen.get(base, 0)
        seen[base] = count + 1
        return base if count == 0 else f"{base}-{count}"

    for word in transcript.filler_words:
        span = clipped(word.start, word.end)
        if span is None:
            continue
        cuts.append(
            Cut(
                id=unique_id(f"filler-{word.start:.3f}"),
                start=span[0],
                end=span[1],
                kind=CutKind.FILLER,
                label=word.word,
            )
        )

    for silence in transcript.silences:
        span = clipped(silence.start, silence.end)
        if span is None:
            continue
        cuts.append(
            Cut(
                id=unique_id(f"silence-{silence.start:.3f}"),
                start=span[0],
                end=span[1],
                kind=CutKind.SILENCE,
                label=f"Silence ({silence.duration:.1f}s)",
            )
        )

    cuts.sort(key=lambda c: (c.start, c.end))
    return cuts


def seed_ai_cuts(
    model: CutListModel,
    analyzer: Optional[TranscriptAnalyzer],
    media_path: Path,
) -> CutListModel:
    """
    Analyzer'ı çalıştır ve AI cut'larını modele yerleştir.

    Analyzer yoksa, hata verirse veya boş dönerse model sıfır AI cut ile
    döner (graceful degradation).
    """
    if analyzer is None:
        logger.info("No transcript analyzer configured, continuing without AI cuts")
        return model.with_ai_cuts([])

    try:
        transcript = analyzer.analyze(media_path)
    except Exception as e:
        logger.warning(f"Transcript analysis unavailable: {e}")
        return model.with_ai_cuts([])

    if transcript is None or transcript.is_empty:
        logger.info("Transcript analysis returned nothing, continuing without AI cuts")
        return model.with_ai_cuts([])

    cuts = cuts_from_transcript(transcript, model.duration)
    logger.info(
        f"Seeded {len(cuts)} AI cuts "
        f"({len(transcript.filler_words)} fillers, {len(transcript.silences)} silences)"
    )
    return model.with_ai_cuts(cuts)


class JsonFileAnalyzer:
    """
    Önceden üretilmiş analyzer çıktısını medya dosyasının yanından okur.

    video.mp4 için video.transcript.json aranır.
    """

    suffix = ".transcript.json"

    def transcript_path(self, media_path: Path) -> Path:
        return media_path.with_name(media_path.stem + self.suffix)

    def analyze(self, media_path: Path) -> TimedTranscript:
        path = self.transcript_path(media_path)
        if not path.exists():
            raise AnalysisError(f"No transcript found next to {media_path.name}")
        return load_timed_transcript(path)
