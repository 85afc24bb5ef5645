"""Low-pass filtering and detection of energy spikes (beats) in audio frames."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

MAX_SPECTRUM_LENGTH = 1024
MAX_WAVEFORM_LENGTH = 1024
CUTOFF_FREQUENCY_HZ = 500
NOISE_GATE_THRESHOLD = 0.5
COOLDOWN_PERIOD = 3
SPIKE_SIGNAL = "native:SIGNAL:SIG_ENERGY"

_ENERGY_ALPHA = 0.85
_FLUX_ALPHA = 0.85
_ENERGY_THRESHOLD = 1.3
_FLUX_THRESHOLD = 1.4
_MIN_VOLUME_THRESHOLD = 0.15
_EPSILON = 1e-6


@dataclass
class BiquadFilter:
    """Biquad filter coefficients together with the delay state."""

    a0: float = 0.0
    a1: float = 0.0
    a2: float = 0.0
    b1: float = 0.0
    b2: float = 0.0
    z1: float = 0.0
    z2: float = 0.0

    def process(self, sample: float) -> float:
        """Filter one sample and advance the delay line."""
        output = (
            self.a0 * sample
            + self.a1 * self.z1
            + self.a2 * self.z2
            - self.b1 * self.z1
            - self.b2 * self.z2
        )
        self.z2 = self.z1
        self.z1 = sample
        return output

    def apply(self, samples: Iterable[float]) -> list[float]:
        """Filter a sequence of samples, returning the outputs."""
        return [self.process(sample) for sample in samples]


def low_pass_filter(cutoff_freq: float, sample_rate: float, q: float) -> BiquadFilter:
    """Build a low-pass biquad with the given cutoff and quality factor."""
    omega = 2.0 * math.pi * cutoff_freq / sample_rate
    alpha = math.sin(omega) / (2.0 * q)
    cos_omega = math.cos(omega)

    a0 = (1.0 - cos_omega) / 2.0
    a1 = 1.0 - cos_omega
    a2 = a0
    b1 = -2.0 * cos_omega
    b2 = 1.0 - alpha

    norm = 1.0 / (1.0 + alpha)
    return BiquadFilter(a0 * norm, a1 * norm, a2 * norm, b1 * norm, b2 * norm)


class EnergySpikeDetector:
    """Detects beats from low-passed waveform energy and weighted spectral flux."""

    def __init__(self) -> None:
        self.spike_detected = False
        self._avg_energy = 0.0
        self._avg_flux = 0.0
        self._cooldown = COOLDOWN_PERIOD
        self._previous_spectrum = [0.0] * MAX_SPECTRUM_LENGTH
        self._weights = [0.0] * MAX_SPECTRUM_LENGTH
        self._max_bin = 0
        self._bin_width = 0.0
        self._filter: BiquadFilter | None = None

    def _initialize(self, spectrum_length: int, sample_rate: float) -> BiquadFilter:
        self._bin_width = sample_rate / (2.0 * spectrum_length)
        lp_filter = low_pass_filter(CUTOFF_FREQUENCY_HZ, sample_rate, 1.0)
        self._max_bin = min(
            int(CUTOFF_FREQUENCY_HZ / self._bin_width), spectrum_length, MAX_SPECTRUM_LENGTH
        )
        for i in range(self._max_bin):
            frequency = (i + 1) * self._bin_width
            self._weights[i] = 1.0 / (frequency + _EPSILON)
        self._filter = lp_filter
        return lp_filter

    def detect(self, waveform: Sequence[int], spectrum: Sequence[int], sample_rate: float) -> bool:
        """Analyse one frame of 8-bit waveform and spectrum data.

        Returns whether an energy spike was detected; a detection also prints
        the spike signal line to standard output.
        """
        if not waveform:
            raise ValueError("no waveform data provided")
        if not spectrum:
            raise ValueError("no spectrum data provided")

        lp_filter = self._filter or self._initialize(len(spectrum), sample_rate)

        window = waveform[:MAX_WAVEFORM_LENGTH]
        filtered = lp_filter.apply(float(value) - 128.0 for value in window)
        current_energy = math.sqrt(sum(value * value for value in filtered) / len(filtered))

        if current_energy < NOISE_GATE_THRESHOLD:
            self.spike_detected = False
            return False

        self._avg_energy = self._avg_energy * _ENERGY_ALPHA + current_energy * (1.0 - _ENERGY_ALPHA)
        energy_ratio = current_energy / (self._avg_energy + _EPSILON)

        spectral_flux = 0.0
        sum_weights = 0.0
        for i, value in enumerate(spectrum[:MAX_SPECTRUM_LENGTH]):
            diff = float(value) - self._previous_spectrum[i]
            self._previous_spectrum[i] = float(value)
            if diff > 0:
                spectral_flux += diff * self._weights[i]
            sum_weights += self._weights[i]

        if sum_weights > 0.0:
            spectral_flux /= sum_weights
        self._avg_flux = self._avg_flux * _FLUX_ALPHA + spectral_flux * (1.0 - _FLUX_ALPHA)
        flux_ratio = spectral_flux / (self._avg_flux + _EPSILON)

        if (
            self._cooldown >= COOLDOWN_PERIOD
            and energy_ratio > _ENERGY_THRESHOLD
            and flux_ratio > _FLUX_THRESHOLD
            and current_energy > _MIN_VOLUME_THRESHOLD
        ):
            print(SPIKE_SIGNAL, flush=True)
            self.spike_detected = True
            self._cooldown = 0
        else:
            self.spike_detected = False
            self._cooldown += 1
        return self.spike_detected