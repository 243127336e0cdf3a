[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "umpk80emu"
version = "0.1.0"
description = "Emulator core of the UMPK-80 Intel 8080 training kit: CPU, bus, keyboard, display and disassembler"
requires-python = ">=3.10"
dependencies = []
keywords = ["emulator", "intel-8080", "i8080", "umpk-80", "disassembler", "retrocomputing"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
    "Topic :: Education",
    "Topic :: Software Development :: Disassemblers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.setuptools.packages.find]
include = ["umpk80emu*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
