"""Intel 8080 instruction table and a linear disassembler."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional


@dataclass(frozen=True)
class Instruction:
    mnemonic: str
    length: int
    operand: str = ""


@dataclass(frozen=True)
class DisassembleResult:
    """One decoded instruction; ``eof`` marks the end of the input."""

    address: int
    bytes: tuple[int, ...] = ()
    instruction: Optional[Instruction] = None
    eof: bool = False

    @property
    def bytes_count(self) -> int:
        return len(self.bytes)


_REGS = "BCDEHLMA"
_ALU = ("ADD", "ADC", "SUB", "SBB", "ANA", "XRA", "ORA", "CMP")
_UNDOC_NOP = ("(UNDOC) NOP", 1, "")

_LOW_ROWS = [
    [("NOP", 1, ""), ("LXI B", 3, "D16"), ("STAX B", 1, ""), ("INX B", 1, ""),
     ("INR B", 1, ""), ("DCR B", 1, ""), ("MVI B", 2, "D8"), ("RLC", 1, ""),
     _UNDOC_NOP, ("DAD B", 1, ""), ("LDAX B", 1, ""), ("DCX B", 1, ""),
     ("INR C", 1, ""), ("DCR C", 1, ""), ("MVI C", 2, ""), ("RRC", 1, "")],
    [_UNDOC_NOP, ("LXI D", 3, "D16"), ("STAX D", 1, ""), ("INX D", 1, ""),
     ("INR D", 1, ""), ("DCR D", 1, ""), ("MVI D", 2, "D8"), ("RAL", 1, ""),
     _UNDOC_NOP, ("DAD D", 1, ""), ("LDAX D", 1, ""), ("DCX D", 1, ""),
     ("INR E", 1, ""), ("DCR E", 1, ""), ("MVI E", 2, ""), ("RAR", 1, "")],
    [_UNDOC_NOP, ("LXI H", 3, "D16"), ("SHLD", 3, "ADR"), ("INX H", 1, ""),
     ("INR H", 1, ""), ("DCR H", 1, ""), ("MVI H", 2, "D8"), ("DAA", 1, ""),
     _UNDOC_NOP, ("DAD H", 1, ""), ("LHLD", 3, "ADR"), ("DCX H", 1, ""),
     ("INR L", 1, ""), ("DCR L", 1, ""), ("MVI L", 2, ""), ("CMA", 1, "")],
    [_UNDOC_NOP, ("LXI SP", 3, ""), ("STA", 3, "ADR"), ("INX SP", 1, ""),
     ("INR M", 1, ""), ("DCR M", 1, ""), ("MVI M", 2, "D8"), ("STC", 1, ""),
     _UNDOC_NOP, ("DAD SP", 1, ""), ("LDA", 3, "ADR"), ("DCX SP", 1, ""),
     ("INR A", 1, ""), ("DCR A", 1, ""), ("MVI A", 2, ""), ("CMC", 1, "")],
]

_HIGH_ROWS = [
    [("RNZ", 1, ""), ("POP B", 1, ""), ("JNZ", 3, "ADR"), ("JMP", 3, "ADR"),
     ("CNZ", 3, "ADR"), ("PUSH B", 1, ""), ("ADI", 2, "D8"), ("RST 0", 1, ""),
     ("RZ", 1, ""), ("RET", 1, ""), ("JZ", 3, "ADR"), ("(UNDOC) JMP", 1, ""),
     ("CZ ", 3, "ADR"), ("CALL ", 3, "ADR"), ("ACI", 2, "D8"), ("RST 1", 1, "")],
    [("RNC", 1, ""), ("POP D", 1, ""), ("JNC", 3, "ADR"), ("OUT", 2, "PORT"),
     ("CNC", 3, "ADR"), ("PUSH D", 1, ""), ("SUI", 2, "D8"), ("RST 2", 1, ""),
     ("RC", 1, ""), ("(UNDOC) RET", 1, ""), ("JC", 3, "ADR"), ("IN ", 2, "PORT"),
     ("CC ", 3, "ADR"), ("(UNDOC) CALL", 1, ""), ("SBI", 2, "D8"), ("RST 3", 1, "")],
    [("RPO", 1, ""), ("POP H", 1, ""), ("JPO", 3, "ADR"), ("XTHL", 1, ""),
     ("CPO", 3, "ADR"), ("PUSH H", 1, ""), ("ANI", 2, "D8"), ("RST 4", 1, ""),
     ("RPE", 1, ""), ("PCHL", 1, ""), ("JPE", 3, "ADR"), ("XCHG", 1, ""),
     ("CPE ", 3, "ADR"), ("(UNDOC) CALL", 1, ""), ("XRI", 2, "D8"), ("RST 5", 1, "")],
    [("RP", 1, ""), ("POP PSW", 1, ""), ("JP", 3, "ADR"), ("DI", 1, ""),
     ("CP", 3, "ADR"), ("PUSH PSW", 1, ""), ("ORI", 2, "D8"), ("RST 6", 1, ""),
     ("RM", 1, ""), ("SPHL", 1, ""), ("JM", 3, "ADR"), ("EI", 1, ""),
     ("CM ", 3, "ADR"), ("(UNDOC) CALL", 1, ""), ("CPI", 2, "D8"), ("RST 7", 1, "")],
]


def _build_table() -> tuple[Instruction, ...]:
    low = [Instruction(*entry) for row in _LOW_ROWS for entry in row]
    moves = [
        Instruction("HLT", 1) if (dst, src) == ("M", "M") else Instruction(f"MOV {dst},{src}", 1)
        for dst in _REGS
        for src in _REGS
    ]
    alu = [Instruction(f"{op} {reg}", 1) for op in _ALU for reg in _REGS]
    high = [Instruction(*entry) for row in _HIGH_ROWS for entry in row]
    return tuple(low + moves + alu + high)


_INSTRUCTIONS = _build_table()


def get_instruction(opcode: int) -> Instruction:
    """Table entry for an opcode byte."""
    if not 0 <= opcode <= 0xFF:
        raise ValueError(f"opcode {opcode} is not a byte")
    return _INSTRUCTIONS[opcode]


def result_to_string(result: DisassembleResult) -> str:
    """Assembly text of a result, with immediates in hex and an ``h`` suffix."""
    count = result.bytes_count
    if result.instruction is None or count not in (1, 2, 3):
        return "-"
    mnemonic = result.instruction.mnemonic
    if count == 1:
        return mnemonic
    if count == 2:
        return f"{mnemonic} {result.bytes[1]:02X}h"
    return f"{mnemonic} {result.bytes[2]:02X}{result.bytes[1]:02X}h"


class Disassembler:
    """Sequential decoder over a block of memory."""

    def __init__(self, memory: bytes) -> None:
        self._memory = bytes(memory)
        self._program_counter = 0x0000

    @property
    def program_counter(self) -> int:
        """Offset of the next instruction to decode."""
        return self._program_counter

    def disassemble(self) -> DisassembleResult:
        """Decode the next instruction, or return an ``eof`` result."""
        pc = self._program_counter
        size = len(self._memory)
        if pc >= size:
            return DisassembleResult(address=pc, eof=True)
        instruction = get_instruction(self._memory[pc])
        if pc + instruction.length > size:
            return DisassembleResult(address=pc, eof=True)
        data = tuple(self._memory[pc:pc + instruction.length])
        self._program_counter = (pc + instruction.length) & 0xFFFF
        return DisassembleResult(address=pc, bytes=data, instruction=instruction)

    def reset(self) -> None:
        self._program_counter = 0

    def __iter__(self) -> Iterator[DisassembleResult]:
        while not (result := self.disassemble()).eof:
            yield result