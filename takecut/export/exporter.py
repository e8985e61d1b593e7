"""
Export runner.

Planı media engine üzerinde çalıştırır:
- Aynı anda tek export (busy flag, yeni istek reddedilir, kuyruğa alınmaz)
- Engine ilerlemesini 0-100 tamsayıya çevirir (export boyunca azalmaz)
- Boş plan için engine çağırmadan sıfır süreli çıktı üretir
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Protocol, Sequence
import logging
import threading

from takecut.core.models import ExportSettings, Segment
from takecut.media.ffmpeg import FFmpegEngine, FFmpegError

from .empty import empty_output
from .plan import EmptyPlan, EncoderOptions, ExportPlan, compile_plan

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


class ExportInProgressError(RuntimeError):
    """Başka bir export zaten çalışıyor."""
    pass


class MediaEngine(Protocol):
    def write_file(self, name: str, data: bytes) -> Path: ...

    def read_file(self, name: str) -> bytes: ...

    def exec(
        self,
        args: list[str],
        duration: Optional[float] = None,
        progress_callback: Optional[Callable[[float], None]] = None,
    ) -> None: ...

    def close(self) -> None: ...


@dataclass
class ExportResult:
    """Encode edilmiş çıktı + MIME tipi."""
    data: bytes
    mime_type: str
    plan: ExportPlan
    duration: float

    @property
    def is_empty(self) -> bool:
        return isinstance(self.plan, EmptyPlan)

    @property
    def size(self) -> int:
        return len(self.data)

    def save(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.data)
        logger.info(f"Export saved: {path} ({self.size / 1024:.1f} KB)")
        return path


class ProgressTracker:
    """
    Çağrı başına 0.0-1.0 ilerlemeyi toplam 0-100'e eşler.

    Her çağrı eşit ağırlıklıdır; değer hiçbir zaman geri gitmez.
    """

    def __init__(self, invocation_count: int, callback: Optional[ProgressCallback] = None):
        self.invocation_count = max(1, invocation_count)
        self.callback = callback
        self.value = 0

    def report(self, invocation_index: int, fraction: float) -> int:
        fraction = min(max(fraction, 0.0), 1.0)
        overall = int((invocation_index + fraction) / self.invocation_count * 100)
        overall = min(overall, 100)
        if overall > self.value:
            self.value = overall
            if self.callback:
                self.callback(overall)
        return self.value

    def finish(self) -> None:
        if self.value < 100:
            self.value = 100
            if self.callback:
                self.callback(100)


class Exporter:
    """
    Keep-segment'leri encode edilmiş bir blob'a çevirir.

    Usage:
        exporter = Exporter()
        result = exporter.export(source_bytes, model.compute_keep_segments(), settings)
        result.save(Path("out.mp4"))
    """

    def __init__(
        self,
        engine_factory: Callable[[], MediaEngine] = FFmpegEngine,
        options: EncoderOptions = EncoderOptions(),
    ):
        self.engine_factory = engine_factory
        self.options = options
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def export(
        self,
        source: bytes,
        segments: Sequence[Segment],
        settings: ExportSettings,
        progress_callback: Optional[ProgressCallback] = None,
        has_audio: bool = True,
        input_name: str = "input.webm",
    ) -> ExportResult:
        """
        Export çalıştır.

        Raises:
            ExportInProgressError: Başka export devam ediyor
            FFmpegError: Engine hatası (model etkilenmez, tekrar denenebilir)
        """
        if not self._lock.acquire(blocking=False):
            raise ExportInProgressError("An export is already in progress")

        try:
            plan = compile_plan(segments, settings, has_audio=has_audio, options=self.options)
            tracker = ProgressTracker(1, progress_callback)

            if isinstance(plan, EmptyPlan):
                logger.info(f"Empty timeline, writing zero-duration {settings.format.value}")
                tracker.finish()
                return ExportResult(
                    data=empty_output(settings.format),
                    mime_type=settings.mime_type,
                    plan=plan,
                    duration=0.0,
                )

            return self._run(plan, source, settings, input_name, progress_callback)
        finally:
            self._lock.release()

    def export_file(
        self,
        source_path: Path,
        segments: Sequence[Segment],
        settings: ExportSettings,
        progress_callback: Optional[ProgressCallback] = None,
        has_audio: bool = True,
    ) -> ExportResult:
        """Dosyadan okuyup export et (input adı uzantıyı korur)."""
        return self.export(
            source_path.read_bytes(),
            segments,
            settings,
            progress_callback=progress_callback,
            has_audio=has_audio,
            input_name=f"input{source_path.suffix or '.webm'}",
        )

    def _run(
        self,
        plan: ExportPlan,
        source: bytes,
        settings: ExportSettings,
        input_name: str,
        progress_callback: Optional[ProgressCallback],
    ) -> ExportResult:
        output_name = f"output{settings.format.extension}"
        invocations = plan.invocations(input_name, output_name)
        tracker = ProgressTracker(len(invocations), progress_callback)

        logger.info(
            f"Exporting {len(plan.extracts)} segments "
            f"({plan.duration:.2f}s) as {settings.format.value} "
            f"{settings.resolution.value}@{settings.frame_rate.fps}fps "
            f"in {len(invocations)} FFmpeg run(s)"
        )

        engine = self.engine_factory()
        try:
            engine.write_file(input_name, source)

            for index, invocation in enumerate(invocations):
                logger.debug(f"FFmpeg step {index + 1}/{len(invocations)}: {invocation.label}")
                engine.exec(
                    list(invocation.args),
                    invocation.duration,
                    lambda fraction, i=index: tracker.report(i, fraction),
                )
                tracker.report(index, 1.0)

            data = engine.read_file(output_name)
        except FFmpegError as e:
            logger.error(f"Export failed: {e}")
            raise
        finally:
            engine.close()

        tracker.finish()
        logger.info(f"Export complete: {len(data) / 1024:.1f} KB")

        return ExportResult(
            data=data,
            mime_type=settings.mime_type,
            plan=plan,
            duration=plan.duration,
        )
