"""Spectrum analysis, beat detection, presets, waveform drawing, frame rendering and id dispatch."""

__version__ = "0.1.0"