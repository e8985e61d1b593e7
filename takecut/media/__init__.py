"""Media processing module."""

from .ffmpeg import (
    FFmpegEngine,
    FFmpegError,
    FFmpegNotFoundError,
    probe_media,
    parse_progress_line,
)
from .waveform import WaveformGenerator, WaveformData

__all__ = [
    "FFmpegEngine",
    "FFmpegError",
    "FFmpegNotFoundError",
    "probe_media",
    "parse_progress_line",
    "WaveformGenerator",
    "WaveformData",
]
