[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tomasim"
version = "0.1.0"
description = "Cycle-by-cycle simulator of Tomasulo's algorithm for a small MIPS-like instruction set"
requires-python = ">=3.10"
dependencies = []
keywords = ["tomasulo", "mips", "simulator", "out-of-order", "computer-architecture"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Education",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
tomasim = "tomasim.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["tomasim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
