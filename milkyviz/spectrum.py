"""Spectrum analysis of captured audio blocks and shared storage of the latest frame."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence

import numpy as np

DEFAULT_FFT_SIZES: tuple[int, ...] = (128, 256, 512, 1024, 2048)
DEFAULT_WAVEFORM_CAPACITY = 4096
DEFAULT_SPECTRUM_CAPACITY = 2048


class SpectrumAnalyzer:
    """Turns blocks of float samples into 8-bit amplitude spectra.

    The smallest configured FFT size that holds the whole block is used;
    blocks longer than the largest size are truncated to it.
    """

    def __init__(self, sizes: Iterable[int] = DEFAULT_FFT_SIZES) -> None:
        self.sizes: tuple[int, ...] = tuple(sizes)
        if not self.sizes:
            raise ValueError("at least one FFT size is required")
        for size in self.sizes:
            if size < 2 or size & (size - 1):
                raise ValueError(f"FFT size must be a power of two, got {size}")

    def select_size(self, sample_count: int) -> int:
        """Return the FFT size used for a block of ``sample_count`` samples."""
        return next((size for size in self.sizes if size >= sample_count), self.sizes[-1])

    def transform(self, samples: Sequence[float]) -> bytes:
        """Return ``len(samples) // 2`` spectrum bins scaled to 0-255.

        Silence maps to 128; louder components push a bin towards 255.
        """
        data = np.asarray(samples, dtype=np.float32).ravel()
        fft_size = self.select_size(len(data))
        data = data[:fft_size]
        bin_count = len(data) // 2

        padded = np.zeros(fft_size, dtype=np.float64)
        padded[: len(data)] = data
        spectrum = np.fft.rfft(padded)

        # Packed real-FFT layout: both components doubled, DC and Nyquist share bin 0.
        magnitudes = np.abs(2.0 * spectrum[: fft_size // 2])
        magnitudes[0] = np.hypot(2.0 * spectrum[0].real, 2.0 * spectrum[fft_size // 2].real)

        scale = 2.0 / fft_size
        scaled = magnitudes[:bin_count] * scale * 127.5 + 128.0
        clamped = np.clip(scaled, 0.0, 255.0)
        return bytes(np.trunc(clamped).astype(np.uint8))


def waveform_to_bytes(samples: Sequence[float]) -> bytes:
    """Map samples in [-1, 1] onto unsigned bytes (0-255), clamping outliers."""
    data = np.asarray(samples, dtype=np.float32).ravel()
    scaled = (data + np.float32(1.0)) * np.float32(127.5)
    return bytes(np.trunc(np.clip(scaled, 0.0, 255.0)).astype(np.uint8))


@dataclass(frozen=True)
class AudioFrame:
    """The most recent waveform and spectrum bytes."""

    waveform: bytes
    spectrum: bytes


class AudioFrameStore:
    """Thread-safe holder of the latest audio frame, bounded by fixed capacities."""

    def __init__(
        self,
        waveform_capacity: int = DEFAULT_WAVEFORM_CAPACITY,
        spectrum_capacity: int = DEFAULT_SPECTRUM_CAPACITY,
    ) -> None:
        if waveform_capacity < 0 or spectrum_capacity < 0:
            raise ValueError("capacities must not be negative")
        self.waveform_capacity = waveform_capacity
        self.spectrum_capacity = spectrum_capacity
        self._lock = threading.Lock()
        self._frame = AudioFrame(b"", b"")

    def update(self, waveform: bytes, spectrum: bytes) -> None:
        """Replace the stored frame, truncating data that exceeds the capacities."""
        frame = AudioFrame(
            bytes(waveform[: self.waveform_capacity]),
            bytes(spectrum[: self.spectrum_capacity]),
        )
        with self._lock:
            self._frame = frame

    def snapshot(self) -> AudioFrame:
        """Return the currently stored frame."""
        with self._lock:
            return self._frame


class FpsCounter:
    """Counts calls and reports the rate once at least a second has passed."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._last_time = 0.0
        self._frames = 0

    def tick(self) -> Optional[float]:
        """Count one frame; return the rate if a report is due, else ``None``."""
        now = self._clock()
        delta = now - self._last_time
        fps: Optional[float] = None
        if delta >= 1.0:
            fps = self._frames / delta
            self._last_time = now
            self._frames = 0
        self._frames += 1
        return fps


def process_block(
    analyzer: SpectrumAnalyzer, store: AudioFrameStore, samples: Sequence[float]
) -> AudioFrame:
    """Convert a captured block to waveform and spectrum bytes and store them."""
    waveform = waveform_to_bytes(samples)
    spectrum = analyzer.transform(samples)
    store.update(waveform, spectrum)
    return AudioFrame(waveform, spectrum)