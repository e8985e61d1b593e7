"""
FFmpeg/FFprobe media engine.

Provides:
- Media probing (duration, fps, codec info)
- Çalışma dizinine bayt yazma / okuma (write_file, read_file)
- Argüman listesi çalıştırma, -progress ile ilerleme takibi (exec)
- Waveform için audio extraction
"""

from __future__ import annotations

import json
import os
import shutil
import subprocess
import sys
import tempfile
from pathlib import Path
from threading import Thread
from typing import Callable, Optional
import logging

from takecut.core.models import MediaInfo

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]
LogCallback = Callable[[str], None]


def get_bundle_bin_path() -> Optional[Path]:
    """Get the path to bundled binaries (for PyInstaller builds)."""
    if getattr(sys, 'frozen', False):
        bundle_dir = Path(sys._MEIPASS)
        bin_path = bundle_dir / "bin"
        if bin_path.exists():
            return bin_path
    return None


def get_static_ffmpeg_path() -> Optional[Path]:
    """Get path to static-ffmpeg package binaries."""
    try:
        import static_ffmpeg
        import importlib.util
        import platform as plat

        spec = importlib.util.find_spec("static_ffmpeg")
        if spec and spec.origin:
            static_bin_dir = Path(spec.origin).parent / "bin"

            if plat.system() == "Darwin":
                return static_bin_dir / "darwin"
            elif plat.system() == "Windows":
                return static_bin_dir / "win32"
            else:
                return static_bin_dir / "linux"
    except ImportError:
        pass
    return None


def find_binary(name: str) -> Optional[str]:
    """Find ffmpeg/ffprobe, checking bundle first, then static-ffmpeg, then system."""
    exe = f"{name}.exe" if sys.platform == "win32" else name

    for bin_dir, origin in (
        (get_bundle_bin_path(), "bundled"),
        (get_static_ffmpeg_path(), "static-ffmpeg"),
    ):
        if bin_dir:
            candidate = bin_dir / exe
            if candidate.exists() and os.access(candidate, os.X_OK):
                logger.info(f"Using {origin} {name}: {candidate}")
                return str(candidate)

    return shutil.which(name)


class FFmpegError(Exception):
    """FFmpeg işlemi hatası."""
    pass


class FFmpegNotFoundError(FFmpegError):
    """FFmpeg/FFprobe bulunamadı."""
    pass


def parse_progress_line(line: str, duration: Optional[float]) -> Optional[float]:
    """
    ``-progress pipe:1`` satırından 0.0 - 1.0 ilerleme üret.

    out_time_ms da (isminin aksine) mikro saniye taşır.
    """
    line = line.strip()
    if line == "progress=end":
        return 1.0
    if not duration or duration <= 0:
        return None

    for key in ("out_time_us=", "out_time_ms="):
        if line.startswith(key):
            try:
                time_us = int(line[len(key):])
            except ValueError:
                return None
            current_time = time_us / 1_000_000
            return min(max(current_time / duration, 0.0), 1.0)
    return None


def parse_probe_result(file_path: Path, data: dict, file_size: int = 0) -> MediaInfo:
    """FFprobe JSON çıktısını MediaInfo'ya dönüştür."""
    format_info = data.get("format", {})
    streams = data.get("streams", [])

    video_stream = None
    audio_stream = None
    for stream in streams:
        if stream.get("codec_type") == "video" and video_stream is None:
            video_stream = stream
        elif stream.get("codec_type") == "audio" and audio_stream is None:
            audio_stream = stream

    duration = float(format_info.get("duration", 0) or 0)

    width = 0
    height = 0
    fps = 0.0
    video_codec = ""

    if video_stream:
        width = int(video_stream.get("width", 0))
        height = int(video_stream.get("height", 0))
        video_codec = video_stream.get("codec_name", "")

        # WebM kayıtlarında r_frame_rate 1000/1 olabilir, avg_frame_rate'e düş
        for key in ("avg_frame_rate", "r_frame_rate"):
            try:
                num, den = map(int, video_stream.get(key, "0/1").split("/"))
            except ValueError:
                continue
            if den > 0 and 0 < num / den <= 240:
                fps = num / den
                break

        if not duration and video_stream.get("duration"):
            duration = float(video_stream["duration"])

    sample_rate = 0
    channels = 0
    audio_codec = ""

    if audio_stream:
        sample_rate = int(audio_stream.get("sample_rate", 48000))
        channels = int(audio_stream.get("channels", 2))
        audio_codec = audio_stream.get("codec_name", "")

    return MediaInfo(
        file_path=file_path,
        duration=duration,
        fps=fps,
        width=width,
        height=height,
        video_codec=video_codec,
        audio_codec=audio_codec,
        sample_rate=sample_rate,
        channels=channels,
        file_size=file_size,
    )


class FFmpegEngine:
    """
    FFmpeg binary wrapper with a private working directory.

    Dosyalar çalışma dizinine isimle yazılır/okunur; exec() argümanları
    bu dizinde çalıştırır, böylece plan argümanları göreli dosya adları
    kullanabilir.

    Usage:
        with FFmpegEngine() as engine:
            engine.write_file("input.webm", data)
            engine.exec(["-i", "input.webm", "output.mp4"], duration, on_progress)
            result = engine.read_file("output.mp4")
    """

    def __init__(
        self,
        ffmpeg_path: Optional[str] = None,
        ffprobe_path: Optional[str] = None,
        timeout: int = 3600,
    ):
        self._ffmpeg = ffmpeg_path or find_binary("ffmpeg")
        self._ffprobe = ffprobe_path or find_binary("ffprobe")

        if not self._ffmpeg:
            raise FFmpegNotFoundError(
                "FFmpeg not found. Please install FFmpeg and ensure it's in your PATH."
            )
        if not self._ffprobe:
            raise FFmpegNotFoundError(
                "FFprobe not found. Please install FFmpeg and ensure it's in your PATH."
            )

        self.timeout = timeout
        self._workdir: Optional[Path] = None
        self._log_callbacks: list[LogCallback] = []

        logger.info(f"FFmpeg: {self._ffmpeg}")
        logger.debug(f"FFprobe: {self._ffprobe}")

    @property
    def ffmpeg_path(self) -> str:
        return self._ffmpeg

    @property
    def workdir(self) -> Path:
        if self._workdir is None:
            self._workdir = Path(tempfile.mkdtemp(prefix="takecut_"))
        return self._workdir

    def __enter__(self) -> FFmpegEngine:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Çalışma dizinini sil."""
        if self._workdir is not None:
            shutil.rmtree(self._workdir, ignore_errors=True)
            self._workdir = None

    def subscribe_log(self, callback: LogCallback) -> None:
        """FFmpeg stderr satırlarını dinle."""
        self._log_callbacks.append(callback)

    # ------------------------------------------------------------------
    # Virtual file system
    # ------------------------------------------------------------------

    def _resolve(self, name: str) -> Path:
        path = self.workdir / Path(name).name
        return path

    def write_file(self, name: str, data: bytes) -> Path:
        path = self._resolve(name)
        path.write_bytes(data)
        logger.debug(f"Wrote {len(data)} bytes to {path.name}")
        return path

    def read_file(self, name: str) -> bytes:
        path = self._resolve(name)
        if not path.exists():
            raise FFmpegError(f"Output file was not created: {name}")
        return path.read_bytes()

    def delete_file(self, name: str) -> None:
        path = self._resolve(name)
        if path.exists():
            path.unlink()

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def exec(
        self,
        args: list[str],
        duration: Optional[float] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> None:
        """
        FFmpeg'i verilen argümanlarla çalışma dizininde çalıştır.

        Args:
            args: Binary hariç argüman listesi
            duration: Beklenen çıktı süresi (ilerleme hesabı için)
            progress_callback: İlerleme callback'i (0.0 - 1.0)

        Raises:
            FFmpegError: Sıfırdan farklı çıkış kodu veya timeout
        """
        cmd = [
            self._ffmpeg,
            "-y",
            "-hide_banner",
            "-nostdin",
            "-progress", "pipe:1",
            "-nostats",
            *args,
        ]
        logger.debug(f"Running FFmpeg: {' '.join(cmd)}")

        stderr_lines: list[str] = []

        def drain_stderr(stream):
            for line in stream:
                line = line.rstrip()
                if not line:
                    continue
                stderr_lines.append(line)
                logger.debug(f"ffmpeg: {line}")
                for callback in self._log_callbacks:
                    callback(line)

        try:
            process = subprocess.Popen(
                cmd,
                cwd=str(self.workdir),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except OSError as e:
            raise FFmpegError(f"Could not start FFmpeg: {e}") from e

        reader = Thread(target=drain_stderr, args=(process.stderr,), daemon=True)
        reader.start()

        try:
            for line in process.stdout:
                progress = parse_progress_line(line, duration)
                if progress is not None and progress_callback:
                    progress_callback(progress)
            process.wait(timeout=self.timeout)
        except subprocess.TimeoutExpired:
            process.kill()
            raise FFmpegError("FFmpeg process timeout")
        finally:
            reader.join(timeout=5.0)

        if process.returncode != 0:
            tail = "\n".join(stderr_lines[-10:])
            raise FFmpegError(f"FFmpeg failed (code {process.returncode}): {tail}")

    def probe(self, file_path: Path) -> MediaInfo:
        """
        Medya dosyasını analiz et ve metadata döndür.

        Raises:
            FFmpegError: Probe başarısız olursa
        """
        if not file_path.exists():
            raise FFmpegError(f"File not found: {file_path}")

        cmd = [
            self._ffprobe,
            "-v", "quiet",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            str(file_path)
        ]

        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=30)
            if result.returncode != 0:
                raise FFmpegError(f"FFprobe failed: {result.stderr}")
            data = json.loads(result.stdout)
        except subprocess.TimeoutExpired:
            raise FFmpegError("FFprobe timeout")
        except json.JSONDecodeError as e:
            raise FFmpegError(f"Failed to parse FFprobe output: {e}")

        return parse_probe_result(file_path, data, file_path.stat().st_size)

    def extract_audio(
        self,
        input_path: Path,
        output_path: Path,
        sample_rate: int = 16000,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Path:
        """
        Waveform için mono WAV çıkart.

        Args:
            input_path: Kaynak dosya
            output_path: Hedef WAV dosyası
            sample_rate: Çıktı sample rate
            progress_callback: İlerleme callback'i (0.0 - 1.0)
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)

        duration = None
        if progress_callback:
            try:
                duration = self.probe(input_path).duration
            except FFmpegError:
                pass

        self.exec(
            [
                "-i", str(input_path.resolve()),
                "-vn",
                "-acodec", "pcm_s16le",
                "-ar", str(sample_rate),
                "-ac", "1",
                "-f", "wav",
                str(output_path.resolve()),
            ],
            duration,
            progress_callback,
        )
        return output_path


_engine: Optional[FFmpegEngine] = None


def get_engine() -> FFmpegEngine:
    """Paylaşılan probe/extract engine'i (export her seferinde kendi engine'ini açar)."""
    global _engine
    if _engine is None:
        _engine = FFmpegEngine()
    return _engine


def probe_media(file_path: Path) -> MediaInfo:
    """Medya dosyasını probe et."""
    return get_engine().probe(file_path)
