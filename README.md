# milkyviz

Building blocks for a music visualiser. The package works on audio data that you supply, and renders frames into byte buffers that you supply.

## Modules

- **`milkyviz.spectrum`** turns captured audio into bytes.
  - `SpectrumAnalyzer(sizes)` holds a set of power-of-two FFT sizes; the default is 128–2048. `select_size(n)` picks the smallest size that holds `n` samples, or the largest size if none does. `transform(samples)` returns `len(samples) // 2` bins scaled to 0–255, where silence maps to 128.
  - `waveform_to_bytes(samples)` maps samples in [-1, 1] to 0–255 and clamps values outside that range.
  - `AudioFrameStore(waveform_capacity, spectrum_capacity)` keeps the latest `AudioFrame` (`waveform`, `spectrum`) behind a lock. It truncates data that exceeds its capacities.
  - `FpsCounter(clock)` counts calls. `tick()` returns the call rate once at least a second has passed, and `None` otherwise.
  - `process_block(analyzer, store, samples)` converts one block, stores it and returns the resulting `AudioFrame`.
- **`milkyviz.energy`** does beat detection.
  - `low_pass_filter(cutoff_freq, sample_rate, q)` builds a `BiquadFilter`. The filter has `process(sample)` and `apply(samples)`.
  - `EnergySpikeDetector.detect(waveform, spectrum, sample_rate)` combines RMS energy of the low-passed signal with low-frequency-weighted spectral flux. It applies a noise gate and a cooldown between detections. It returns `True` on a spike, and on a spike it also prints `native:SIGNAL:SIG_ENERGY` to standard output. It raises `ValueError` on empty input.
- **`milkyviz.preset`** reads presets.
  - `parse_flattened_preset_buffer(buffer)` splits a flat float buffer into `Preset` objects of 64 values each. It produces at most 100 presets and ignores trailing values.
  - `Preset.get(name)` reads a well-known property. It raises `KeyError` for an unknown name.
  - `get_preset_property(presets, index, name)` reads a property by preset index. It raises `IndexError` for an index out of range.
- **`milkyviz.sound`** draws the waveform.
  - `smooth_bass_emphasized_waveform(waveform, volume_scale)` returns a `SmoothedWaveform` with the samples and the average offset introduced by smoothing.
  - `WaveformRenderer.render(plot, width, height, smoothed, alpha_factor, y_offset, line_thickness)` draws lines by calling `plot(x, y, r, g, b, alpha)` for each pixel.
- **`milkyviz.renderer`** renders frames.
  - `FrameRenderer(effects).render(frame, width, height, waveform, spectrum, ...)` renders one RGBA frame into a `bytearray` and returns whether an energy spike was detected.
  - `RenderEffects` holds the effect hooks: blur, fade, palette, pixel setting, chasers, rotate, scale and bit-depth reduction. Every hook does nothing by default.
  - `FrameBuffers` provides double buffering for output frames.
  - `RenderLoop(renderer, buffers, settings, source, clock)` renders on a daemon thread. It is driven by `RenderSettings` and has `start()`, `stop()` and `run_once()`.
  - `current_time_millis()` returns the current time in milliseconds.
- **`milkyviz.doublebuffer`**: `DoubleBuffer` holds one value. `get()` returns a copy, `set(value)` replaces the value whole, and `read()` is a context manager that holds the current value.
- **`milkyviz.dispatcher`**: `Dispatcher` allocates object identifiers and keeps weak references to the objects. It has `register_object`, `find_object` and `unregister_object`, and reuses freed identifiers only after a delay.

## Installation

```
pip install .
```

## Example

```python
import numpy as np
from milkyviz.spectrum import SpectrumAnalyzer, AudioFrameStore, process_block
from milkyviz.energy import EnergySpikeDetector
from milkyviz.renderer import FrameRenderer

analyzer = SpectrumAnalyzer()
store = AudioFrameStore()

t = np.arange(512) / 44100
samples = np.sin(2 * np.pi * 440 * t).astype(np.float32)
process_block(analyzer, store, samples)

audio = store.snapshot()
detector = EnergySpikeDetector()
print(detector.detect(audio.waveform, audio.spectrum, 44100))

frame = bytearray(64 * 48 * 4)
spike = FrameRenderer().render(frame, 64, 48, audio.waveform, audio.spectrum, current_time=1000)
```

## What it does not do

- It does not capture audio from a sound device. You pass in sample blocks yourself.
- It has no built-in visual effects. Blur, palette, pixel drawing, chasers, rotation, scaling and bit-depth reduction are `RenderEffects` hooks, and you provide them.
- It does not display frames and does not provide a command-line program.
- `Dispatcher` only manages identifiers. The package has no device, stream or control objects to register with it.

## Running the tests

```
pip install .[test]
pytest
```