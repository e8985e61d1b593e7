"""
Export plan compiler.

Keep-segment listesini FFmpeg işlem planına çevirir:

    extract (segment başına bir input) -> concat -> scale/pad/fps -> encode

Plan şekli segment sayısına göre değişir ve ayrı tiplerle ifade edilir:
    EmptyPlan          - segment yok, engine çağrılmaz
    SingleSegmentPlan  - tek extract, concat yok
    MultiSegmentPlan   - N extract + concat

MP4 tek FFmpeg çağrısı, GIF iki çağrı (palettegen + paletteuse) üretir.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Union
import logging

from takecut.core.intervals import EPSILON
from takecut.core.models import ExportFormat, ExportSettings, Segment

logger = logging.getLogger(__name__)

PALETTE_NAME = "palette.png"


def format_seconds(value: float) -> str:
    """FFmpeg zaman argümanı (milisaniye hassasiyeti)."""
    return f"{value:.3f}"


@dataclass(frozen=True)
class EncoderOptions:
    """Encoder kalite ayarları (Settings'ten gelir)."""
    crf: int = 23
    preset: str = "fast"
    audio_bitrate: str = "128k"
    gif_dither: str = "bayer:bayer_scale=5"


@dataclass(frozen=True)
class ExtractOp:
    """Bir segmenti bağımsız input olarak aç (input-side seek)."""
    index: int
    start: float
    end: float
    include_audio: bool

    @property
    def duration(self) -> float:
        return self.end - self.start

    def input_args(self, input_name: str) -> list[str]:
        return [
            "-ss", format_seconds(self.start),
            "-t", format_seconds(self.duration),
            "-i", input_name,
        ]


@dataclass(frozen=True)
class ConcatOp:
    """Extract edilmiş video(+audio) stream'lerini uç uca ekle."""
    count: int
    include_audio: bool

    video_label = "[cv]"
    audio_label = "[ca]"

    def filter(self) -> str:
        if self.include_audio:
            inputs = "".join(f"[{i}:v][{i}:a]" for i in range(self.count))
            return (
                f"{inputs}concat=n={self.count}:v=1:a=1"
                f"{self.video_label}{self.audio_label}"
            )
        inputs = "".join(f"[{i}:v]" for i in range(self.count))
        return f"{inputs}concat=n={self.count}:v=1:a=0{self.video_label}"


@dataclass(frozen=True)
class ScaleOp:
    """Hedef çözünürlük + fps normalizasyonu."""
    settings: ExportSettings

    def filter(self) -> str:
        fps = self.settings.frame_rate.fps
        if self.settings.format is ExportFormat.GIF:
            width = self.settings.resolution.gif_width
            return f"fps={fps},scale={width}:-1:flags=lanczos"

        width, height = self.settings.resolution.frame_size
        return (
            f"scale={width}:{height}:force_original_aspect_ratio=decrease,"
            f"pad={width}:{height}:(ow-iw)/2:(oh-ih)/2,"
            f"setsar=1,"
            f"fps={fps}"
        )


@dataclass(frozen=True)
class EncodeOp:
    """Format'a özel encode adımı."""
    settings: ExportSettings
    options: EncoderOptions
    include_audio: bool

    def mp4_args(self) -> list[str]:
        args = [
            "-c:v", "libx264",
            "-preset", self.options.preset,
            "-crf", str(self.options.crf),
            "-pix_fmt", "yuv420p",
        ]
        if self.include_audio:
            args += ["-c:a", "aac", "-b:a", self.options.audio_bitrate]
        else:
            args += ["-an"]
        # moov atom başa: streaming oynatma
        args += ["-movflags", "+faststart"]
        return args

    def palettegen_filter(self) -> str:
        return "palettegen=stats_mode=diff"

    def paletteuse_filter(self) -> str:
        return f"paletteuse=dither={self.options.gif_dither}:diff_mode=rectangle"


@dataclass(frozen=True)
class Invocation:
    """Tek bir FFmpeg çalıştırması."""
    label: str
    args: tuple[str, ...]
    output: str
    duration: float        # beklenen çıktı süresi (ilerleme için)


@dataclass(frozen=True)
class EmptyPlan:
    """Kesimler trim penceresinin tamamını kaplıyor."""
    settings: ExportSettings

    @property
    def extracts(self) -> tuple[ExtractOp, ...]:
        return ()

    @property
    def duration(self) -> float:
        return 0.0

    def invocations(self, input_name: str, output_name: str) -> list[Invocation]:
        return []


@dataclass(frozen=True)
class SingleSegmentPlan:
    extract: ExtractOp
    scale: ScaleOp
    encode: EncodeOp

    @property
    def settings(self) -> ExportSettings:
        return self.encode.settings

    @property
    def extracts(self) -> tuple[ExtractOp, ...]:
        return (self.extract,)

    @property
    def duration(self) -> float:
        return self.extract.duration

    def invocations(self, input_name: str, output_name: str) -> list[Invocation]:
        inputs = self.extract.input_args(input_name)
        source = f"[0:v]{self.scale.filter()}"

        if self.settings.format is ExportFormat.GIF:
            return _gif_invocations(inputs, source, 1, self.encode, output_name, self.duration)

        args = [*inputs, "-filter_complex", f"{source}[outv]", "-map", "[outv]"]
        if self.encode.include_audio:
            args += ["-map", "0:a:0"]
        args += [*self.encode.mp4_args(), output_name]
        return [Invocation("encode", tuple(args), output_name, self.duration)]


@dataclass(frozen=True)
class MultiSegmentPlan:
    extracts: tuple[ExtractOp, ...]
    concat: ConcatOp
    scale: ScaleOp
    encode: EncodeOp

    @property
    def settings(self) -> ExportSettings:
        return self.encode.settings

    @property
    def duration(self) -> float:
        return sum(op.duration for op in self.extracts)

    def invocations(self, input_name: str, output_name: str) -> list[Invocation]:
        inputs: list[str] = []
        for op in self.extracts:
            inputs += op.input_args(input_name)

        source = f"{self.concat.filter()};{ConcatOp.video_label}{self.scale.filter()}"

        if self.settings.format is ExportFormat.GIF:
            return _gif_invocations(
                inputs, source, len(self.extracts), self.encode, output_name, self.duration
            )

        args = [*inputs, "-filter_complex", f"{source}[outv]", "-map", "[outv]"]
        if self.encode.include_audio:
            args += ["-map", ConcatOp.audio_label]
        args += [*self.encode.mp4_args(), output_name]
        return [Invocation("encode", tuple(args), output_name, self.duration)]


ExportPlan = Union[EmptyPlan, SingleSegmentPlan, MultiSegmentPlan]


def _gif_invocations(
    inputs: list[str],
    source: str,
    input_count: int,
    encode: EncodeOp,
    output_name: str,
    duration: float,
) -> list[Invocation]:
    """İki geçişli GIF: önce palet üret, sonra paleti uygula."""
    palette_args = [
        *inputs,
        "-filter_complex", f"{source},{encode.palettegen_filter()}[pal]",
        "-map", "[pal]",
        PALETTE_NAME,
    ]
    # Palet, segment input'larından sonraki input olur
    palette_input = input_count
    encode_args = [
        *inputs,
        "-i", PALETTE_NAME,
        "-filter_complex",
        f"{source}[x];[x][{palette_input}:v]{encode.paletteuse_filter()}[outv]",
        "-map", "[outv]",
        "-loop", "0",
        output_name,
    ]
    return [
        Invocation("palette", tuple(palette_args), PALETTE_NAME, duration),
        Invocation("encode", tuple(encode_args), output_name, duration),
    ]


def validate_segments(segments: Sequence[Segment]) -> None:
    """Segmentler sıralı, örtüşmeyen ve pozitif uzunlukta olmalı."""
    previous_end = None
    for segment in segments:
        if segment.end - segment.start <= EPSILON:
            raise ValueError(f"Empty segment: {segment.start:.3f}s - {segment.end:.3f}s")
        if previous_end is not None and segment.start < previous_end:
            raise ValueError("Segments must be sorted and non-overlapping")
        previous_end = segment.end


def compile_plan(
    segments: Sequence[Segment],
    settings: ExportSettings,
    has_audio: bool = True,
    options: EncoderOptions = EncoderOptions(),
) -> ExportPlan:
    """
    Keep-segment'lerden export planı üret.

    Args:
        segments: CutListModel.compute_keep_segments() çıktısı
        settings: Format/çözünürlük/fps
        has_audio: Kaynakta audio stream var mı (GIF'te her zaman yok sayılır)
        options: Encoder kalite ayarları

    Returns:
        EmptyPlan, SingleSegmentPlan veya MultiSegmentPlan
    """
    validate_segments(segments)

    if not segments:
        logger.info("No segments to keep, export will produce an empty output")
        return EmptyPlan(settings)

    include_audio = settings.format.has_audio and has_audio
    extracts = tuple(
        ExtractOp(index=i, start=s.start, end=s.end, include_audio=include_audio)
        for i, s in enumerate(segments)
    )
    scale = ScaleOp(settings)
    encode = EncodeOp(settings, options, include_audio)

    if len(extracts) == 1:
        return SingleSegmentPlan(extract=extracts[0], scale=scale, encode=encode)

    return MultiSegmentPlan(
        extracts=extracts,
        concat=ConcatOp(count=len(extracts), include_audio=include_audio),
        scale=scale,
        encode=encode,
    )
