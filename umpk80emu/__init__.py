"""Emulator library for the UMPK-80 Intel 8080 training computer: CPU, bus, devices and disassembler."""

__version__ = "0.1.0"