[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "galtonboard"
version = "0.1.0"
description = "A Galton board simulation rendered on a 128x64 monochrome framebuffer"
requires-python = ">=3.10"
dependencies = []
keywords = ["galton", "simulation", "ssd1306", "framebuffer", "histogram"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Games/Entertainment :: Simulation",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
galtonboard = "galtonboard.app:main"

[tool.hatch.build.targets.wheel]
packages = ["galtonboard"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
