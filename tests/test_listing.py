import io

import pytest

from umpk80emu.disassembler import Disassembler, result_to_string
from umpk80emu.listing import (
    SEGMENT_NAMES,
    ListingLine,
    bits_to_byte,
    byte_to_bits,
    disassemble_listing,
    export_listing,
    lit_segments,
)


PROGRAM = bytes([0x00, 0x3E, 0x12, 0xC3, 0x00, 0x08])


def test_listing_has_one_line_per_byte():
    lines = disassemble_listing(PROGRAM)
    assert len(lines) == len(PROGRAM)
    assert [line.byte for line in lines] == list(PROGRAM)


def test_listing_addresses_are_consecutive():
    lines = disassemble_listing(PROGRAM)
    assert [line.address for line in lines] == list(range(len(PROGRAM)))


def test_listing_text_matches_disassembler():
    lines = disassemble_listing(PROGRAM)
    expected = [result_to_string(r) for r in Disassembler(PROGRAM)]
    firsts = [line.instruction for line in lines if line.instruction != "-"]
    assert firsts == expected


def test_listing_continuation_bytes_are_dashes():
    lines = disassemble_listing(PROGRAM)
    assert [line.instruction == "-" for line in lines] == [
        False, False, True, False, True, True,
    ]


def test_listing_nop_first_line():
    lines = disassemble_listing(PROGRAM)
    assert lines[0] == ListingLine(0, 0x00, "NOP")


def test_listing_label_start_offsets_addresses():
    base = disassemble_listing(PROGRAM)
    shifted = disassemble_listing(PROGRAM, 0x0800)
    assert [line.address for line in shifted] == [line.address + 0x0800 for line in base]
    assert [line.instruction for line in shifted] == [line.instruction for line in base]


def test_listing_addresses_wrap_at_16_bits():
    lines = disassemble_listing(bytes([0x00, 0x00]), 0xFFFF)
    assert [line.address for line in lines] == [0xFFFF, 0x0000]


def test_listing_drops_truncated_instruction():
    assert disassemble_listing(bytes([0xC3, 0x00])) == []


def test_listing_of_empty_memory_is_empty():
    assert disassemble_listing(b"") == []


def test_export_format():
    stream = io.StringIO()
    export_listing(disassemble_listing(bytes([0x00])), stream)
    assert stream.getvalue() == "0000 | 00 | NOP\n"


def test_export_writes_every_line():
    lines = disassemble_listing(PROGRAM, 0x0800)
    stream = io.StringIO()
    export_listing(lines, stream)
    rows = stream.getvalue().splitlines()
    assert rows == [str(line) for line in lines]
    assert all(row.startswith(f"{line.address:04X} | ") for row, line in zip(rows, lines))


@pytest.mark.parametrize("value", [0x00, 0x01, 0x5A, 0x80, 0xA5, 0xFF])
def test_bits_round_trip(value):
    assert bits_to_byte(byte_to_bits(value)) == value


def test_byte_to_bits_msb_first():
    bits = byte_to_bits(0x80)
    assert bits[0] is True
    assert sum(bits) == 1


def test_bits_to_byte_length_checked():
    with pytest.raises(ValueError):
        bits_to_byte([True] * 7)


def test_byte_to_bits_range_checked():
    with pytest.raises(ValueError):
        byte_to_bits(0x100)


def test_lit_segments_blank():
    assert lit_segments(0x00) == ()


def test_lit_segments_all():
    assert lit_segments(0xFF) == tuple(SEGMENT_NAMES)


def test_lit_segments_single_bits():
    assert lit_segments(0x80) == ("H",)
    assert lit_segments(0x01) == ("A",)


@pytest.mark.parametrize("value", [0x06, 0x3F, 0x77, 0xC0])
def test_lit_segments_count_matches_bits(value):
    assert len(lit_segments(value)) == sum(byte_to_bits(value))


def test_lit_segments_rejects_non_byte():
    with pytest.raises(ValueError):
        lit_segments(-1)