import pytest

from milkyviz.preset import (
    MAX_PRESETS,
    PROPERTIES_PER_PRESET,
    PROPERTY_NAMES,
    Preset,
    get_preset_property,
    parse_flattened_preset_buffer,
)


def _buffer(preset_count, extra=0):
    return [float(i) for i in range(preset_count * PROPERTIES_PER_PRESET + extra)]


def test_preset_count_and_numbering():
    presets = parse_flattened_preset_buffer(_buffer(3))
    assert [p.number for p in presets] == [1, 2, 3]
    assert all(len(p.properties) == PROPERTIES_PER_PRESET for p in presets)


def test_partial_trailing_block_is_ignored():
    presets = parse_flattened_preset_buffer(_buffer(2, extra=10))
    assert len(presets) == 2


def test_short_buffer_gives_no_presets():
    assert parse_flattened_preset_buffer([1.0] * (PROPERTIES_PER_PRESET - 1)) == []


def test_preset_count_is_capped():
    presets = parse_flattened_preset_buffer(_buffer(MAX_PRESETS + 1))
    assert len(presets) == MAX_PRESETS
    assert presets[-1].number == MAX_PRESETS


def test_get_by_name_follows_name_order():
    presets = parse_flattened_preset_buffer(_buffer(2))
    second = presets[1]
    for position, name in enumerate(PROPERTY_NAMES):
        assert second.get(name) == PROPERTIES_PER_PRESET + position


def test_values_are_stored_as_single_precision():
    buffer = [0.1] * PROPERTIES_PER_PRESET
    preset = parse_flattened_preset_buffer(buffer)[0]
    assert preset.get("damping") == pytest.approx(0.1, rel=1e-6)


def test_unknown_name_raises_key_error():
    preset = Preset(1, tuple([0.0] * PROPERTIES_PER_PRESET))
    with pytest.raises(KeyError):
        preset.get("no_such_property")


def test_get_preset_property_by_index():
    presets = parse_flattened_preset_buffer(_buffer(2))
    assert get_preset_property(presets, 0, "damping") == 0.0
    assert get_preset_property(presets, 1, "damping") == float(PROPERTIES_PER_PRESET)


@pytest.mark.parametrize("index", [2, 5, -1])
def test_get_preset_property_out_of_range(index):
    presets = parse_flattened_preset_buffer(_buffer(2))
    with pytest.raises(IndexError):
        get_preset_property(presets, index, "damping")