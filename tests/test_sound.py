import pytest

from milkyviz.sound import SmoothedWaveform, WaveformRenderer, smooth_bass_emphasized_waveform


class _Recorder:
    def __init__(self):
        self.pixels = []

    def __call__(self, x, y, r, g, b, a):
        self.pixels.append((x, y, r, g, b, a))


def test_smoothing_constant_waveform_is_unchanged():
    result = smooth_bass_emphasized_waveform([100] * 10, 1.0)
    assert len(result.samples) == 8
    assert all(value == pytest.approx(100.0) for value in result.samples)
    assert result.average_offset == pytest.approx(0.0)


def test_smoothing_applies_volume_scale():
    result = smooth_bass_emphasized_waveform([100] * 6, 0.5)
    assert all(value == pytest.approx(50.0) for value in result.samples)
    assert result.average_offset == pytest.approx(-50.0)


def test_smoothing_weights_sample_two_ahead():
    waveform = [0, 0, 100, 0, 0]
    result = smooth_bass_emphasized_waveform(waveform, 1.0)
    assert result.samples[0] == pytest.approx(0.2 * 100)
    assert result.samples[2] == pytest.approx(0.8 * 100)


def test_smoothing_too_short_raises():
    with pytest.raises(ValueError):
        smooth_bass_emphasized_waveform([1, 2], 1.0)


def test_flat_waveform_draws_on_center_line():
    smoothed = smooth_bass_emphasized_waveform([128] * 34, 1.0)
    recorder = _Recorder()
    WaveformRenderer().render(recorder, 64, 40, smoothed, 1.0, 3, 1)
    assert recorder.pixels
    assert {y for _, y, *_ in recorder.pixels} == {40 // 2 + 3}
    assert {(r, g, b) for _, _, r, g, b, _ in recorder.pixels} == {(255, 255, 255)}


def test_pixels_cover_canvas_width():
    smoothed = smooth_bass_emphasized_waveform([128] * 34, 1.0)
    recorder = _Recorder()
    WaveformRenderer().render(recorder, 64, 40, smoothed, 1.0, 0, 1)
    xs = {x for x, *_ in recorder.pixels}
    assert min(xs) == 0
    assert max(xs) < 64
    assert all(0 <= a <= 255 for *_, a in recorder.pixels)


def test_thick_line_halves_edge_alpha():
    smoothed = smooth_bass_emphasized_waveform([128] * 34, 1.0)
    recorder = _Recorder()
    WaveformRenderer().render(recorder, 64, 40, smoothed, 1.0, 0, 3)
    center = 20
    assert {y for _, y, *_ in recorder.pixels} == {center - 1, center, center + 1}
    middle = {a for _, y, *_rgb, a in recorder.pixels if y == center}
    edges = {a for _, y, *_rgb, a in recorder.pixels if y != center}
    assert edges == {int(alpha * 0.5) for alpha in middle}


def test_cache_is_refreshed_every_other_frame():
    low = smooth_bass_emphasized_waveform([128] * 34, 1.0)
    high = SmoothedWaveform(tuple([200.0] * 32), 0.0)
    renderer = WaveformRenderer()

    first, second, third = _Recorder(), _Recorder(), _Recorder()
    renderer.render(first, 64, 40, low, 1.0, 0, 1)
    renderer.render(second, 64, 40, high, 1.0, 0, 1)
    renderer.render(third, 64, 40, high, 1.0, 0, 1)

    assert second.pixels == first.pixels
    assert {y for _, y, *_ in third.pixels} != {y for _, y, *_ in first.pixels}
    assert all(y < 20 for _, y, *_ in third.pixels)


def test_render_empty_waveform_raises():
    with pytest.raises(ValueError):
        WaveformRenderer().render(_Recorder(), 64, 40, SmoothedWaveform((), 0.0), 1.0, 0, 1)