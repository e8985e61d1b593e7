"""
Core data models for TakeCut.

Tüm zaman değerleri saniye (float) cinsinden tutulur.
Cut, TrimWindow, Segment ve ExportSettings immutable'dır; değişiklikler
dataclasses.replace ile yeni nesne üretir.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class CutKind(Enum):
    """Cut kaynağı."""
    FILLER = "filler"        # AI - dolgu kelimesi (um, ah, ...)
    SILENCE = "silence"      # AI - uzun sessizlik
    MANUAL = "manual"        # Kullanıcı tanımlı


class ExportFormat(Enum):
    MP4 = "mp4"
    GIF = "gif"

    @property
    def mime_type(self) -> str:
        return "video/mp4" if self is ExportFormat.MP4 else "image/gif"

    @property
    def extension(self) -> str:
        return f".{self.value}"

    @property
    def has_audio(self) -> bool:
        return self is ExportFormat.MP4


class Resolution(Enum):
    """Export çözünürlüğü."""
    SD_480 = "480p"
    HD_720 = "720p"
    FHD_1080 = "1080p"

    @property
    def frame_size(self) -> tuple[int, int]:
        """MP4 letterbox hedef boyutu (width, height)."""
        return {
            Resolution.SD_480: (854, 480),
            Resolution.HD_720: (1280, 720),
            Resolution.FHD_1080: (1920, 1080),
        }[self]

    @property
    def gif_width(self) -> int:
        """GIF genişliği - yükseklik aspect ratio ile hesaplanır."""
        return {
            Resolution.SD_480: 480,
            Resolution.HD_720: 720,
            Resolution.FHD_1080: 1080,
        }[self]


class FrameRate(Enum):
    FPS_15 = 15
    FPS_24 = 24
    FPS_30 = 30

    @property
    def fps(self) -> int:
        return self.value


@dataclass
class MediaInfo:
    """Video/audio dosyası metadata bilgileri."""
    file_path: Path
    duration: float              # saniye
    fps: float                   # video frame rate
    width: int = 0
    height: int = 0
    video_codec: str = ""
    audio_codec: str = ""
    sample_rate: int = 0         # 0 = audio stream yok
    channels: int = 0
    file_size: int = 0           # bytes

    @property
    def has_video(self) -> bool:
        return self.width > 0 and self.height > 0

    @property
    def has_audio(self) -> bool:
        return self.sample_rate > 0

    @property
    def total_frames(self) -> int:
        return int(self.duration * self.fps) if self.fps > 0 else 0


def new_cut_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


@dataclass(frozen=True)
class Cut:
    """
    Timeline üzerinde kaldırılmak üzere işaretlenmiş aralık.

    AI cut'larının içeriği sabittir, sadece ``enabled`` değişir.
    Manual cut'lar kullanıcı tarafından eklenip silinebilir.
    """
    start: float
    end: float
    kind: CutKind = CutKind.MANUAL
    label: str = ""
    enabled: bool = True
    id: str = field(default_factory=lambda: new_cut_id("cut"))

    def __post_init__(self):
        if self.start < 0 or self.end <= self.start:
            raise ValueError(f"Invalid cut range: {self.start} - {self.end}")

    @property
    def duration(self) -> float:
        return self.end - self.start

    @property
    def is_ai(self) -> bool:
        return self.kind is not CutKind.MANUAL

    def contains(self, time_sec: float) -> bool:
        """Half-open [start, end) kontrolü."""
        return self.start <= time_sec < self.end

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "start": self.start,
            "end": self.end,
            "kind": self.kind.value,
            "label": self.label,
            "enabled": self.enabled,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Cut:
        return cls(
            id=data.get("id") or new_cut_id("cut"),
            start=float(data["start"]),
            end=float(data["end"]),
            kind=CutKind(data.get("kind", "manual")),
            label=data.get("label", ""),
            enabled=data.get("enabled", True),
        )


@dataclass(frozen=True)
class TrimWindow:
    """Videonun düzenlenen bölgesi."""
    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start

    def to_dict(self) -> dict:
        return {"start": self.start, "end": self.end}

    @classmethod
    def from_dict(cls, data: dict) -> TrimWindow:
        return cls(start=float(data["start"]), end=float(data["end"]))


@dataclass(frozen=True)
class Segment:
    """Korunacak (keep) aralık. Sadece hesaplama ile üretilir."""
    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass(frozen=True)
class ExportSettings:
    """Export format/çözünürlük/fps seçimi."""
    format: ExportFormat = ExportFormat.MP4
    resolution: Resolution = Resolution.HD_720
    frame_rate: FrameRate = FrameRate.FPS_30

    @property
    def mime_type(self) -> str:
        return self.format.mime_type

    def to_dict(self) -> dict:
        return {
            "format": self.format.value,
            "resolution": self.resolution.value,
            "frame_rate": self.frame_rate.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ExportSettings:
        return cls(
            format=ExportFormat(data.get("format", "mp4")),
            resolution=Resolution(data.get("resolution", "720p")),
            frame_rate=FrameRate(int(data.get("frame_rate", 30))),
        )


@dataclass(frozen=True)
class TranscriptWord:
    """Analyzer kelime çıktısı."""
    word: str
    start: float
    end: float
    is_filler: bool = False


@dataclass(frozen=True)
class SilenceSpan:
    """Analyzer sessizlik çıktısı."""
    start: float
    end: float

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass
class TimedTranscript:
    """Kelime seviyesinde zamanlanmış transcript + sessizlikler."""
    words: list[TranscriptWord] = field(default_factory=list)
    silences: list[SilenceSpan] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.words and not self.silences

    @property
    def filler_words(self) -> list[TranscriptWord]:
        return [w for w in self.words if w.is_filler]

    @property
    def text(self) -> str:
        return " ".join(w.word for w in self.words)


def format_time(seconds: float) -> str:
    """MM:SS.cc formatı (cut listesi için)."""
    seconds = max(0.0, seconds)
    mins = int(seconds // 60)
    secs = int(seconds % 60)
    centis = int(round((seconds - int(seconds)) * 100))
    if centis == 100:
        centis = 99
    return f"{mins:02d}:{secs:02d}.{centis:02d}"


def snap_to_duration(value: float, duration: float, decimals: int = 2) -> float:
    """
    Görüntülenen hassasiyette süreye eşit olan değeri tam süreye çek.

    Spin box maksimumu yukarı yuvarlar (10.456 -> 10.46); bu değer modele
    gitmeden önce tekrar 10.456 olur.
    """
    if abs(value - duration) <= 0.5 * 10 ** -decimals:
        return duration
    return value
