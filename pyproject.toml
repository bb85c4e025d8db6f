[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vsdmp4"
version = "0.1.0"
description = "MP4 box parser with PSSH key id extraction, WebVTT/TTML subtitle extraction and segment merging"
requires-python = ">=3.10"
dependencies = []
keywords = ["mp4", "pssh", "playready", "webvtt", "ttml", "subtitles", "fmp4", "segments"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Video",
    "Topic :: Multimedia :: Video :: Conversion",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
vsdmp4 = "vsdmp4.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["vsdmp4"]

[tool.pytest.ini_options]
addopts = "-ra"
