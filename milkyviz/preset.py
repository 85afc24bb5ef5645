"""Visualizer presets parsed from a flat buffer of float properties."""

from __future__ import annotations

from array import array
from dataclasses import dataclass
from typing import Sequence

MAX_PRESETS = 100
PROPERTIES_PER_PRESET = 64

PROPERTY_NAMES: tuple[str, ...] = (
    "damping", "effect_bar", "effect_chasers", "effect_dots", "effect_grid",
    "effect_nuclide", "effect_shadebobs", "effect_solar", "effect_spectral",
    "f1", "f2", "f3", "f4", "gamma", "magic", "mode", "pal_bFX",
    "pal_curve_id_1", "pal_curve_id_2", "pal_curve_id_3", "pal_FXpalnum",
    "pal_hi_oband", "pal_lo_band", "s1", "s2", "shift", "spectrum",
    "t1", "t2", "volpos", "wave", "x_center", "y_center",
)


@dataclass(frozen=True)
class Preset:
    """One preset: its 1-based number and its block of property values."""

    number: int
    properties: tuple[float, ...]

    def get(self, name: str) -> float:
        """Return the value of the well-known property ``name``."""
        try:
            position = PROPERTY_NAMES.index(name)
        except ValueError:
            raise KeyError(f"property name {name!r} not found in preset {self.number}") from None
        return self.properties[position]


def parse_flattened_preset_buffer(buffer: Sequence[float]) -> list[Preset]:
    """Split a flat float buffer into presets of PROPERTIES_PER_PRESET values each.

    Trailing values that do not fill a whole preset are ignored and at most
    MAX_PRESETS presets are produced.
    """
    count = min(len(buffer) // PROPERTIES_PER_PRESET, MAX_PRESETS)
    presets = []
    for number in range(1, count + 1):
        start = (number - 1) * PROPERTIES_PER_PRESET
        chunk = array("f", buffer[start:start + PROPERTIES_PER_PRESET])
        presets.append(Preset(number, tuple(chunk)))
    return presets


def get_preset_property(presets: Sequence[Preset], index: int, name: str) -> float:
    """Return property ``name`` of the preset at zero-based ``index``."""
    if not 0 <= index < len(presets):
        raise IndexError("preset index out of range")
    return presets[index].get(name)