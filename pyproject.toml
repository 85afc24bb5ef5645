[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "milkyviz"
version = "0.1.0"
description = "Music visualiser building blocks: spectrum analysis, beat detection, presets, waveform drawing, frame rendering and object-id dispatch"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["audio", "visualizer", "fft", "spectrum", "beat-detection", "waveform"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Sound/Audio :: Analysis",
    "Topic :: Multimedia :: Graphics",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["milkyviz"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
