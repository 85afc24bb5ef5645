"""Waveform smoothing and line rendering of the waveform onto a canvas."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

CACHE_SIZE = 2048

PlotFunction = Callable[[int, int, int, int, int, int], None]


@dataclass(frozen=True)
class SmoothedWaveform:
    """Bass-emphasized samples and the average offset smoothing introduced."""

    samples: tuple[float, ...]
    average_offset: float


def smooth_bass_emphasized_waveform(waveform: Sequence[int], volume_scale: float) -> SmoothedWaveform:
    """Blend each sample with the one two steps ahead, emphasizing bass.

    The result holds two samples fewer than ``waveform``.
    """
    if len(waveform) < 3:
        raise ValueError("waveform needs at least three samples")
    samples = tuple(
        volume_scale * (0.8 * current + 0.2 * ahead)
        for current, ahead in zip(waveform, waveform[2:])
    )
    total_offset = sum(value - original for value, original in zip(samples, waveform))
    return SmoothedWaveform(samples, total_offset / len(samples))


def _c_div(numerator: int, denominator: int) -> int:
    """Integer division truncating towards zero."""
    quotient = abs(numerator) // denominator
    return -quotient if numerator < 0 else quotient


def _to_byte(value: float) -> int:
    return min(255, max(0, int(value)))


class WaveformRenderer:
    """Draws waveform lines, refreshing its cached waveform every other frame."""

    def __init__(self) -> None:
        self._cache = [0.0] * CACHE_SIZE
        self._frame_counter = 0

    def render(
        self,
        plot: PlotFunction,
        canvas_width: int,
        canvas_height: int,
        smoothed: SmoothedWaveform,
        alpha_factor: float,
        y_offset: int,
        line_thickness: int,
    ) -> None:
        """Draw the waveform by calling ``plot(x, y, r, g, b, alpha)`` per pixel."""
        length = len(smoothed.samples)
        if length == 0:
            raise ValueError("no waveform samples to render")
        if canvas_width <= 0 or canvas_height <= 0:
            raise ValueError("canvas dimensions must be positive")
        length = min(length, CACHE_SIZE)

        scale_x = canvas_width / length
        half_height = canvas_height // 2

        if self._frame_counter % 2 == 0:
            self._cache[:length] = smoothed.samples[:length]
        self._frame_counter += 1

        offset = smoothed.average_offset
        half_thickness = _c_div(line_thickness, 2)

        def y_for(value: float) -> int:
            return half_height - _c_div(int((value - 128 - offset) * canvas_height), 512) + y_offset

        def alpha_for(value: float) -> int:
            return _to_byte(255 * (1.0 - value / 255.0) * alpha_factor)

        for i in range(length - 1):
            x1 = min(int(i * scale_x), canvas_width - 1)
            x2 = min(int((i + 1) * scale_x), canvas_width - 1)
            value1, value2 = self._cache[i], self._cache[i + 1]
            y1, y2 = y_for(value1), y_for(value2)
            alpha1, alpha2 = alpha_for(value1), alpha_for(value2)

            dx, dy = x2 - x1, y2 - y1
            steps = max(abs(dx), abs(dy))
            step_factor = 1.0 / steps if steps else 0.0
            t = 0.0
            for _ in range(steps + 1):
                x = int(x1 + t * dx)
                y = int(y1 + t * dy)
                alpha = _to_byte(alpha1 + t * (alpha2 - alpha1))
                for thickness_offset in range(-half_thickness, half_thickness + 1):
                    final_alpha = alpha
                    if abs(thickness_offset) == half_thickness:
                        final_alpha = int(final_alpha * 0.5)
                    plot(x, y + thickness_offset, 255, 255, 255, final_alpha)
                t += step_factor