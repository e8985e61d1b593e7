"""
Application settings.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import logging

from platformdirs import user_data_dir, user_cache_dir

from .models import ExportFormat, ExportSettings, FrameRate, Resolution

logger = logging.getLogger(__name__)


APP_NAME = "TakeCut"
APP_AUTHOR = "TakeCut"


@dataclass
class Settings:
    """Uygulama ayarları."""
    # UI
    recent_projects: list[str] = field(default_factory=list)
    max_recent_projects: int = 10
    handle_tolerance_px: float = 8.0
    min_trim_gap_sec: float = 0.05

    # Waveform
    waveform_samples_per_bucket: int = 256

    # Export defaults
    default_export_format: str = "mp4"       # mp4, gif
    default_resolution: str = "720p"         # 480p, 720p, 1080p
    default_frame_rate: int = 30             # 15, 24, 30
    last_export_dir: Optional[str] = None

    # Encoder
    mp4_crf: int = 23                        # x264 kalite hedefi
    mp4_preset: str = "fast"
    mp4_audio_bitrate: str = "128k"
    gif_dither: str = "bayer:bayer_scale=5"
    engine_timeout_sec: int = 3600

    @classmethod
    def get_data_dir(cls) -> Path:
        """Uygulama veri dizini."""
        path = Path(user_data_dir(APP_NAME, APP_AUTHOR))
        path.mkdir(parents=True, exist_ok=True)
        return path

    @classmethod
    def get_cache_dir(cls) -> Path:
        """Uygulama cache dizini."""
        path = Path(user_cache_dir(APP_NAME, APP_AUTHOR))
        path.mkdir(parents=True, exist_ok=True)
        return path

    @classmethod
    def get_settings_path(cls) -> Path:
        return cls.get_data_dir() / "settings.json"

    def default_export_settings(self) -> ExportSettings:
        """Kayıtlı varsayılanlardan ExportSettings üret."""
        try:
            return ExportSettings(
                format=ExportFormat(self.default_export_format),
                resolution=Resolution(self.default_resolution),
                frame_rate=FrameRate(self.default_frame_rate),
            )
        except ValueError:
            logger.warning("Invalid export defaults in settings, using built-in defaults")
            return ExportSettings()

    def remember_export_settings(self, settings: ExportSettings) -> None:
        self.default_export_format = settings.format.value
        self.default_resolution = settings.resolution.value
        self.default_frame_rate = settings.frame_rate.value

    def add_recent_project(self, path: str) -> None:
        """Recent projects listesine ekle."""
        if path in self.recent_projects:
            self.recent_projects.remove(path)
        self.recent_projects.insert(0, path)
        self.recent_projects = self.recent_projects[:self.max_recent_projects]

    def to_dict(self) -> dict:
        return {
            "recent_projects": self.recent_projects,
            "max_recent_projects": self.max_recent_projects,
            "handle_tolerance_px": self.handle_tolerance_px,
            "min_trim_gap_sec": self.min_trim_gap_sec,
            "waveform_samples_per_bucket": self.waveform_samples_per_bucket,
            "default_export_format": self.default_export_format,
            "default_resolution": self.default_resolution,
            "default_frame_rate": self.default_frame_rate,
            "last_export_dir": self.last_export_dir,
            "mp4_crf": self.mp4_crf,
            "mp4_preset": self.mp4_preset,
            "mp4_audio_bitrate": self.mp4_audio_bitrate,
            "gif_dither": self.gif_dither,
            "engine_timeout_sec": self.engine_timeout_sec,
        }

    def save(self, path: Optional[Path] = None) -> None:
        """Ayarları kaydet."""
        path = path or self.get_settings_path()
        path.write_text(json.dumps(self.to_dict(), indent=2))

    @classmethod
    def load(cls, path: Optional[Path] = None) -> Settings:
        """Ayarları yükle veya varsayılanları döndür."""
        path = path or cls.get_settings_path()
        if not path.exists():
            return cls()

        try:
            data = json.loads(path.read_text())
            return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning(f"Settings file unreadable, using defaults: {e}")
            return cls()
