"""Frame rendering pipeline, double-buffered frame output and the render loop."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from .energy import EnergySpikeDetector
from .sound import WaveformRenderer, smooth_bass_emphasized_waveform
from .spectrum import AudioFrame

logger = logging.getLogger(__name__)

BYTES_PER_PIXEL = 4
DEFAULT_SPEED = 0.03
INITIAL_SPEED_SCALAR = 0.01
VOLUME_SCALE = 0.7

# (alpha factor, y offset, line thickness) for each waveform pass.
_WAVEFORM_PASSES: tuple[tuple[float, int, int], ...] = (
    (0.85, 2, 1),
    (0.95, 1, 1),
    (0.95, -1, 1),
    (5.0, 0, 1),
)


def current_time_millis() -> int:
    """Return wall-clock time in whole milliseconds."""
    return int(time.time() * 1000)


def _noop(*_args: Any) -> None:
    return None


class FrameBuffers:
    """Two frame buffers: one being written, the other shown."""

    def __init__(self, buffer_a: bytearray, buffer_b: bytearray) -> None:
        self._buffers = (buffer_a, buffer_b)
        self._writing_a = True
        self._display_a = True
        self._lock = threading.Lock()

    def display_buffer(self) -> bytearray:
        """Return the buffer holding the most recently finished frame."""
        with self._lock:
            return self._buffers[0] if self._display_a else self._buffers[1]

    def write_buffer(self) -> bytearray:
        """Return the buffer the next frame is rendered into."""
        return self._buffers[0] if self._writing_a else self._buffers[1]

    def toggle(self) -> None:
        """Show the buffer just written and switch writing to the other one."""
        with self._lock:
            self._display_a = self._writing_a
            self._writing_a = not self._writing_a


@dataclass
class RenderEffects:
    """Pluggable visual effects applied by :class:`FrameRenderer`.

    Each hook defaults to doing nothing. Call signatures:

    - ``blur(prev_frame)``
    - ``preserve_mass_fade(prev_frame, temp_buffer)``
    - ``apply_palette(current_time, frame, width, height)``
    - ``set_pixel(frame, width, height, x, y, r, g, b, alpha)``
    - ``render_chasers(speed_scalar, frame, speed, 2, width, height, 42, 2)``
    - ``rotate(time_frame, temp_buffer, frame, angle, 0.85, width, height)``
    - ``scale(frame, temp_buffer, 1.35, width, height)``
    - ``reduce_bit_depth(frame, frame_size, bit_depth)``
    """

    blur: Callable[..., None] = _noop
    preserve_mass_fade: Callable[..., None] = _noop
    apply_palette: Callable[..., None] = _noop
    set_pixel: Callable[..., None] = _noop
    render_chasers: Callable[..., None] = _noop
    rotate: Callable[..., None] = _noop
    scale: Callable[..., None] = _noop
    reduce_bit_depth: Callable[..., None] = _noop


@dataclass(frozen=True)
class RenderSettings:
    """Fixed parameters of a continuous render loop."""

    canvas_width: int
    canvas_height: int
    bit_depth: int = 32
    sample_rate: int = 44100
    speed: float = DEFAULT_SPEED
    frame_interval: float = 0.016


class FrameRenderer:
    """Renders visual frames from audio data, keeping state between frames."""

    def __init__(self, effects: Optional[RenderEffects] = None) -> None:
        self.effects = effects or RenderEffects()
        self.speed_scalar = INITIAL_SPEED_SCALAR
        self._initialized = False
        self._prev_time = 0
        self._prev_frame_size = 0
        self._prev_frame = bytearray()
        self._temp_buffer = bytearray()
        self._last_size: tuple[int, int] = (0, 0)
        self._waveform_renderer = WaveformRenderer()
        self._detector = EnergySpikeDetector()

    def _reserve(self, frame: bytearray, width: int, height: int, frame_size: int) -> None:
        if (width, height) != self._last_size:
            frame[:frame_size] = bytes(frame_size)
            self._prev_frame = bytearray(frame_size)
            self._temp_buffer = bytearray(frame_size)
            self._last_size = (width, height)
        if len(self._prev_frame) < frame_size:
            self._prev_frame = bytearray(frame_size)
        if len(self._temp_buffer) < frame_size:
            self._temp_buffer = bytearray(frame_size)

    def render(
        self,
        frame: bytearray,
        canvas_width: int,
        canvas_height: int,
        waveform: Sequence[int],
        spectrum: Sequence[int],
        bit_depth: int = 32,
        speed: float = DEFAULT_SPEED,
        current_time: int = 0,
        sample_rate: int = 44100,
    ) -> bool:
        """Render one RGBA frame into ``frame``.

        Returns whether an energy spike was detected in the audio data.
        """
        if not waveform:
            raise ValueError("no waveform data provided")
        if not spectrum:
            raise ValueError("no spectrum data provided")
        frame_size = canvas_width * canvas_height * BYTES_PER_PIXEL
        if len(frame) < frame_size:
            raise ValueError(f"frame holds {len(frame)} bytes, {frame_size} needed")

        if self._prev_frame_size == 0:
            self._prev_frame_size = frame_size
        self._reserve(frame, canvas_width, canvas_height, frame_size)

        smoothed = smooth_bass_emphasized_waveform(waveform, VOLUME_SCALE)
        time_frame = 0.01 if self._prev_time == 0 else (current_time - self._prev_time) / 1000.0

        fx = self.effects
        if not self._initialized:
            frame[:frame_size] = bytes(frame_size)
            self._prev_frame[: self._prev_frame_size] = bytes(
                min(self._prev_frame_size, len(self._prev_frame))
            )
            self._initialized = True
        else:
            self.speed_scalar += speed
            fx.blur(self._prev_frame)
            fx.preserve_mass_fade(self._prev_frame, self._temp_buffer)
            self._temp_buffer[:frame_size] = self._prev_frame[:frame_size]
            frame[:frame_size] = self._temp_buffer[:frame_size]

        fx.apply_palette(current_time, frame, canvas_width, canvas_height)

        def plot(x: int, y: int, r: int, g: int, b: int, alpha: int) -> None:
            fx.set_pixel(frame, canvas_width, canvas_height, x, y, r, g, b, alpha)

        for alpha_factor, y_offset, thickness in _WAVEFORM_PASSES:
            self._waveform_renderer.render(
                plot, canvas_width, canvas_height, smoothed, alpha_factor, y_offset, thickness
            )

        spike = self._detector.detect(waveform, spectrum, sample_rate)

        fx.render_chasers(self.speed_scalar, frame, speed * 20, 2, canvas_width, canvas_height, 42, 2)
        fx.rotate(time_frame, self._temp_buffer, frame, 0.02 * current_time, 0.85,
                  canvas_width, canvas_height)
        fx.scale(frame, self._temp_buffer, 1.35, canvas_width, canvas_height)

        if bit_depth < 32:
            fx.reduce_bit_depth(frame, frame_size, bit_depth)

        self._prev_frame[:frame_size] = frame[:frame_size]
        self._prev_time = current_time
        self._prev_frame_size = frame_size
        return spike


class RenderLoop:
    """Renders frames continuously into double buffers on a background thread."""

    def __init__(
        self,
        renderer: FrameRenderer,
        buffers: FrameBuffers,
        settings: RenderSettings,
        source: Callable[[], AudioFrame],
        clock: Callable[[], int] = current_time_millis,
    ) -> None:
        self.renderer = renderer
        self.buffers = buffers
        self.settings = settings
        self._source = source
        self._clock = clock
        self.fps = 0.0
        self._last_frame_time = 0
        self._last_fps_log_time = 0
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def _update_fps(self, now: int) -> None:
        if now - self._last_fps_log_time >= 1000:
            delta = (now - self._last_frame_time) / 1000.0
            if delta > 0:
                self.fps = 1.0 / delta
                self._last_fps_log_time = now
                logger.info("Render FPS: %.2f", self.fps)
        self._last_frame_time = now

    def run_once(self) -> bool:
        """Render one frame into the write buffer and toggle the buffers.

        Returns whether a frame was rendered; frames without usable audio
        data are skipped but the buffers are still toggled.
        """
        now = self._clock()
        frame = self.buffers.write_buffer()
        self._update_fps(now)
        audio = self._source()
        settings = self.settings
        rendered = True
        try:
            self.renderer.render(
                frame,
                settings.canvas_width,
                settings.canvas_height,
                audio.waveform,
                audio.spectrum,
                settings.bit_depth,
                settings.speed,
                now,
                settings.sample_rate,
            )
        except ValueError as error:
            logger.warning("frame skipped: %s", error)
            rendered = False
        self.buffers.toggle()
        return rendered

    def _run(self) -> None:
        while not self._stop.is_set():
            self.run_once()
            self._stop.wait(self.settings.frame_interval)

    def start(self) -> None:
        """Start rendering on a daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError("render loop is already running")
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="render-loop", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop the render thread and wait for it to finish."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()