"""
Waveform peak data for the timeline.

Peak-based waveform verisi üretir ve cache'ler. Timeline her redraw'da
genişlik kadar sütun ister; bu yüzden önceden hesaplanmış bucket'lardan
örnekleme yapılır (O(width)).
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import logging

import numpy as np
from scipy.io import wavfile

logger = logging.getLogger(__name__)


@dataclass
class WaveformData:
    """
    Waveform peak verisi.

    Her bucket için min ve max değerler (-1.0 to 1.0) tutulur.
    """
    peaks_min: np.ndarray   # (n_buckets,) float32
    peaks_max: np.ndarray   # (n_buckets,) float32
    sample_rate: int
    samples_per_bucket: int
    total_samples: int

    @property
    def num_buckets(self) -> int:
        return len(self.peaks_min)

    @property
    def duration(self) -> float:
        return self.total_samples / self.sample_rate if self.sample_rate > 0 else 0.0

    @classmethod
    def from_samples(
        cls,
        samples: np.ndarray,
        sample_rate: int,
        samples_per_bucket: int = 256,
    ) -> WaveformData:
        """Normalize edilmiş mono sample'lardan bucket'lar üret."""
        samples = np.asarray(samples, dtype=np.float32)
        total_samples = len(samples)
        if total_samples == 0:
            empty = np.zeros(0, dtype=np.float32)
            return cls(empty, empty.copy(), sample_rate, samples_per_bucket, 0)

        num_buckets = (total_samples + samples_per_bucket - 1) // samples_per_bucket

        # Son bucket'ı sıfırla doldurup reshape ile vektörel hesapla
        padded = np.zeros(num_buckets * samples_per_bucket, dtype=np.float32)
        padded[:total_samples] = samples
        buckets = padded.reshape(num_buckets, samples_per_bucket)

        return cls(
            peaks_min=buckets.min(axis=1),
            peaks_max=buckets.max(axis=1),
            sample_rate=sample_rate,
            samples_per_bucket=samples_per_bucket,
            total_samples=total_samples,
        )

    def get_peaks_for_range(
        self,
        start_time: float,
        end_time: float,
        num_points: int,
    ) -> tuple[np.ndarray, np.ndarray]:
        """
        Belirli bir zaman aralığı için num_points sütunluk peak verisi.

        Her sütun kapsadığı bucket'ların min/max'ını alır, böylece
        uzaklaştırınca tepe noktaları kaybolmaz.
        """
        if num_points <= 0:
            return np.zeros(0, dtype=np.float32), np.zeros(0, dtype=np.float32)

        start_bucket = max(0, int(start_time * self.sample_rate / self.samples_per_bucket))
        end_bucket = min(
            self.num_buckets,
            int(np.ceil(end_time * self.sample_rate / self.samples_per_bucket)),
        )

        if start_bucket >= end_bucket:
            return np.zeros(num_points, dtype=np.float32), np.zeros(num_points, dtype=np.float32)

        min_data = self.peaks_min[start_bucket:end_bucket]
        max_data = self.peaks_max[start_bucket:end_bucket]

        edges = np.linspace(0, len(min_data), num_points + 1).astype(int)
        out_min = np.zeros(num_points, dtype=np.float32)
        out_max = np.zeros(num_points, dtype=np.float32)
        for i in range(num_points):
            lo = edges[i]
            hi = max(edges[i + 1], lo + 1)
            hi = min(hi, len(min_data))
            lo = min(lo, hi - 1)
            out_min[i] = min_data[lo:hi].min()
            out_max[i] = max_data[lo:hi].max()

        return out_min, out_max

    def save(self, path: Path) -> None:
        """Waveform verisini .npz olarak kaydet."""
        np.savez_compressed(
            path,
            peaks_min=self.peaks_min,
            peaks_max=self.peaks_max,
            metadata=np.array([
                self.sample_rate,
                self.samples_per_bucket,
                self.total_samples,
            ]),
        )
        logger.debug(f"Waveform saved to {path}")

    @classmethod
    def load(cls, path: Path) -> WaveformData:
        """Waveform verisini .npz'den yükle."""
        data = np.load(path)
        metadata = data["metadata"]
        return cls(
            peaks_min=data["peaks_min"],
            peaks_max=data["peaks_max"],
            sample_rate=int(metadata[0]),
            samples_per_bucket=int(metadata[1]),
            total_samples=int(metadata[2]),
        )


def normalize_audio(audio_data: np.ndarray) -> np.ndarray:
    """-1.0 / 1.0 aralığına normalize et ve mono'ya indir."""
    if audio_data.dtype == np.int16:
        audio = audio_data.astype(np.float32) / 32768.0
    elif audio_data.dtype == np.int32:
        audio = audio_data.astype(np.float32) / 2147483648.0
    elif audio_data.dtype == np.uint8:
        audio = (audio_data.astype(np.float32) - 128.0) / 128.0
    else:
        audio = audio_data.astype(np.float32)

    if audio.ndim > 1:
        audio = audio.mean(axis=1)
    return audio.astype(np.float32, copy=False)


class WaveformGenerator:
    """WAV dosyasından waveform peak verisi üret."""

    def __init__(
        self,
        samples_per_bucket: int = 256,
        cache_dir: Optional[Path] = None,
    ):
        self.samples_per_bucket = samples_per_bucket
        self.cache_dir = cache_dir

        if cache_dir:
            cache_dir.mkdir(parents=True, exist_ok=True)

    def _get_cache_path(self, wav_path: Path) -> Optional[Path]:
        if not self.cache_dir:
            return None

        # Hash: file path + mtime + size
        stat = wav_path.stat()
        hash_input = f"{wav_path}:{stat.st_mtime}:{stat.st_size}:{self.samples_per_bucket}"
        file_hash = hashlib.md5(hash_input.encode()).hexdigest()[:16]

        return self.cache_dir / f"waveform_{file_hash}.npz"

    def generate(self, wav_path: Path, use_cache: bool = True) -> WaveformData:
        """WAV dosyasından waveform verisi üret."""
        cache_path = self._get_cache_path(wav_path)
        if use_cache and cache_path and cache_path.exists():
            try:
                logger.debug(f"Loading cached waveform from {cache_path}")
                return WaveformData.load(cache_path)
            except (OSError, ValueError, KeyError) as e:
                logger.warning(f"Cache load failed: {e}")

        logger.debug(f"Generating waveform for {wav_path}")
        sample_rate, audio_data = wavfile.read(wav_path)

        waveform = WaveformData.from_samples(
            normalize_audio(audio_data),
            sample_rate,
            self.samples_per_bucket,
        )

        if cache_path:
            try:
                waveform.save(cache_path)
            except OSError as e:
                logger.warning(f"Cache save failed: {e}")

        return waveform
