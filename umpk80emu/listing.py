"""Listing rows, I/O bit vectors and seven-segment decoding for the front panel."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, TextIO

from .disassembler import Disassembler, result_to_string

SEGMENT_NAMES = "HGFEDCBA"
_BITS_PER_BYTE = 8


@dataclass(frozen=True)
class ListingLine:
    """One byte of a disassembly listing; only an instruction's first byte carries its text."""

    address: int
    byte: int
    instruction: str

    def __str__(self) -> str:
        return f"{self.address:04X} | {self.byte:02X} | {self.instruction}"


def _iter_listing(memory: bytes, label_start: int) -> Iterator[ListingLine]:
    for result in Disassembler(memory):
        text = result_to_string(result)
        for offset, byte in enumerate(result.bytes):
            yield ListingLine(
                address=(label_start + result.address + offset) & 0xFFFF,
                byte=byte,
                instruction=text if offset == 0 else "-",
            )


def disassemble_listing(memory: bytes, label_start: int = 0x0000) -> list[ListingLine]:
    """Disassemble ``memory`` into one line per byte, labelled from ``label_start``.

    A trailing instruction cut off by the end of ``memory`` is left out.
    """
    return list(_iter_listing(bytes(memory), label_start))


def export_listing(lines: Iterable[ListingLine], stream: TextIO) -> None:
    """Write lines as ``ADDR | BB | text`` rows, one per line."""
    for line in lines:
        stream.write(f"{line}\n")


def bits_to_byte(bits: Iterable[bool]) -> int:
    """Pack eight flags, most significant bit first, into a byte."""
    flags = list(bits)
    if len(flags) != _BITS_PER_BYTE:
        raise ValueError(f"expected {_BITS_PER_BYTE} bits, got {len(flags)}")
    value = 0
    for flag in flags:
        value = (value << 1) | (1 if flag else 0)
    return value


def byte_to_bits(value: int) -> tuple[bool, ...]:
    """Unpack a byte into eight flags, most significant bit first."""
    if not 0 <= value <= 0xFF:
        raise ValueError(f"{value} is not a byte")
    return tuple(bool(value & (0x80 >> i)) for i in range(_BITS_PER_BYTE))


def lit_segments(value: int) -> tuple[str, ...]:
    """Names of the segments a display byte lights: bit 7 is H (the dot), bit 0 is A."""
    return tuple(
        name for name, lit in zip(SEGMENT_NAMES, byte_to_bits(value)) if lit
    )