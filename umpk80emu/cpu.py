"""Intel 8080 processor core as wired in the trainer."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable

from .bus import Bus

_REG_M = 0b110
_PAIR_HL = 0b10
_PAIR_SP = 0b11


@dataclass
class CpuFlags:
    """Condition flags of the processor."""

    sign: bool = False
    zero: bool = False
    auxcarry: bool = False
    parity: bool = False
    carry: bool = False

    def pack(self) -> int:
        """Flags as a PSW byte; bit 1 is always set."""
        psw = 0b00000010
        psw |= int(self.sign) << 7
        psw |= int(self.zero) << 6
        psw |= int(self.auxcarry) << 4
        psw |= int(self.parity) << 2
        psw |= int(self.carry)
        return psw

    @classmethod
    def unpack(cls, psw: int) -> "CpuFlags":
        """Flags taken from a PSW byte."""
        return cls(
            sign=bool(psw & 0b10000000),
            zero=bool(psw & 0b01000000),
            auxcarry=bool(psw & 0b00010000),
            parity=bool(psw & 0b00000100),
            carry=bool(psw & 0b00000001),
        )


class Register(IntEnum):
    """Register codes as encoded in opcodes; M is memory at HL."""

    B = 0
    C = 1
    D = 2
    E = 3
    H = 4
    L = 5
    M = 6
    A = 7


class Cpu:
    """Instruction-level 8080 interpreter attached to a bus."""

    def __init__(self, bus: Bus) -> None:
        self._bus = bus
        self._hold = False
        self._interrupts_enabled = False
        self._cmd = 0x00
        self._adr = 0x0000
        self._pc = 0x0000
        self._sp = 0xFFFF
        self._regs = [0x00] * 8
        self._flags = CpuFlags()
        self.reset()

    # Public state

    def tick(self) -> None:
        """Fetch and execute one instruction."""
        self.execute(self._bus.memory_read(self._pc))

    def execute(self, opcode: int) -> None:
        """Execute ``opcode`` as if it had just been fetched at the program counter."""
        opcode &= 0xFF
        self._cmd = opcode
        self._pc = (self._pc + 1) & 0xFFFF
        self._adr = self._pc
        _OPCODES[opcode](self)

    def reset(self) -> None:
        """Clear all condition flags."""
        self._flags = CpuFlags()

    @property
    def is_hold(self) -> bool:
        return self._hold

    @property
    def interrupts_enabled(self) -> bool:
        return self._interrupts_enabled

    @property
    def command_register(self) -> int:
        return self._cmd

    @property
    def address_register(self) -> int:
        return self._adr

    @property
    def program_counter(self) -> int:
        return self._pc

    @program_counter.setter
    def program_counter(self, value: int) -> None:
        self._pc = value & 0xFFFF

    @property
    def stack_pointer(self) -> int:
        return self._sp

    @stack_pointer.setter
    def stack_pointer(self, value: int) -> None:
        self._sp = value & 0xFFFF

    @property
    def flags(self) -> CpuFlags:
        return dataclasses.replace(self._flags)

    @flags.setter
    def flags(self, value: CpuFlags) -> None:
        self._flags = dataclasses.replace(value)

    @property
    def register_flags(self) -> int:
        """Flags packed as a PSW byte."""
        return self._flags.pack()

    @register_flags.setter
    def register_flags(self, psw: int) -> None:
        self._flags = CpuFlags.unpack(psw)

    @property
    def a(self) -> int:
        return self.get_register(Register.A)

    @property
    def b(self) -> int:
        return self.get_register(Register.B)

    @property
    def c(self) -> int:
        return self.get_register(Register.C)

    @property
    def d(self) -> int:
        return self.get_register(Register.D)

    @property
    def e(self) -> int:
        return self.get_register(Register.E)

    @property
    def h(self) -> int:
        return self.get_register(Register.H)

    @property
    def l(self) -> int:  # noqa: E743
        return self.get_register(Register.L)

    def get_register(self, reg: Register) -> int:
        return self._get_reg(int(reg))

    def set_register(self, reg: Register, data: int) -> None:
        self._set_reg(int(reg), data)

    def interrupt_rst(self, rst_num: int) -> None:
        """Restart to vector ``rst_num * 8``; numbers outside 0..7 are ignored."""
        if 0 <= rst_num < 8:
            self._call_to(rst_num * 8)

    def force_call(self, adr: int) -> None:
        self._call_to(adr)

    def force_jump(self, adr: int) -> None:
        self._pc = adr & 0xFFFF

    # Machine cycles

    def _fetch_byte(self) -> int:
        data = self._bus.memory_read(self._adr)
        self._pc = (self._pc + 1) & 0xFFFF
        self._adr = self._pc
        return data

    def _fetch_word(self) -> int:
        low = self._fetch_byte()
        return (self._fetch_byte() << 8) | low

    def _stack_push(self, data: int) -> None:
        self._sp = (self._sp - 1) & 0xFFFF
        self._bus.memory_write(self._sp, (data >> 8) & 0xFF)
        self._sp = (self._sp - 1) & 0xFFFF
        self._bus.memory_write(self._sp, data & 0xFF)

    def _stack_pop(self) -> int:
        low = self._bus.memory_read(self._sp)
        self._sp = (self._sp + 1) & 0xFFFF
        high = self._bus.memory_read(self._sp)
        self._sp = (self._sp + 1) & 0xFFFF
        return (high << 8) | low

    # Register access

    def _hl(self) -> int:
        return (self._regs[Register.H] << 8) | self._regs[Register.L]

    def _get_reg(self, code: int) -> int:
        if code == _REG_M:
            return self._bus.memory_read(self._hl())
        return self._regs[code]

    def _set_reg(self, code: int, data: int) -> None:
        if code == _REG_M:
            self._bus.memory_write(self._hl(), data & 0xFF)
            return
        self._regs[code] = data & 0xFF

    def _get_pair(self, code: int) -> int:
        if code == _PAIR_SP:
            return self._sp
        return (self._regs[2 * code] << 8) | self._regs[2 * code + 1]

    def _set_pair(self, code: int, data: int) -> None:
        data &= 0xFFFF
        if code == _PAIR_SP:
            self._sp = data
            return
        self._regs[2 * code] = data >> 8
        self._regs[2 * code + 1] = data & 0xFF

    @property
    def _dst_code(self) -> int:
        return (self._cmd >> 3) & 0b111

    @property
    def _src_code(self) -> int:
        return self._cmd & 0b111

    @property
    def _pair_code(self) -> int:
        return (self._cmd >> 4) & 0b11

    def _update_flags(self, result: int) -> None:
        result &= 0xFFFF
        data = result & 0xFF
        flags = self._flags
        flags.carry = (result >> 8) != 0
        flags.zero = data == 0
        flags.sign = bool(data & 0x80)
        flags.auxcarry = (data & 0x0F) > 0x09
        flags.parity = bin(data).count("1") % 2 == 0

    def _condition(self) -> bool:
        flags = self._flags
        code = self._dst_code
        value = (flags.zero, flags.carry, flags.parity, flags.sign)[code >> 1]
        return value if code & 1 else not value

    def _alu(self, op: int, value: int) -> None:
        a = self._regs[Register.A]
        flags = self._flags
        if op == 0:
            result = a + value
        elif op == 1:
            result = a + value + int(flags.carry)
        elif op in (2, 7):
            result = (a - value) & 0xFFFF
        elif op == 3:
            result = (a - value + int(flags.carry)) & 0xFFFF
        elif op == 5:
            result = a ^ value
        else:
            result = a & value if op == 4 else a | value

        auxcarry = flags.auxcarry
        self._update_flags(result)
        if op in (4, 6):
            flags.auxcarry = auxcarry
            flags.carry = False
        elif op == 5:
            flags.auxcarry = False
            flags.carry = False
        if op != 7:
            self._regs[Register.A] = result & 0xFF

    def _call_to(self, adr: int) -> None:
        self._stack_push(self._pc)
        self._pc = adr & 0xFFFF

    # Instructions

    def _op_nop(self) -> None:
        pass

    def _op_stc(self) -> None:
        self._flags.carry = True

    def _op_cmc(self) -> None:
        self._flags.carry = not self._flags.carry

    def _op_inr(self) -> None:
        code = self._dst_code
        data = self._get_reg(code) + 1
        carry = self._flags.carry
        self._update_flags(data)
        self._flags.carry = carry
        self._set_reg(code, data)

    def _op_dcr(self) -> None:
        code = self._dst_code
        data = (self._get_reg(code) - 1) & 0xFFFF
        carry = self._flags.carry
        self._update_flags(data)
        self._flags.carry = carry
        self._set_reg(code, data)

    def _op_cma(self) -> None:
        self._regs[Register.A] ^= 0xFF

    def _op_daa(self) -> None:
        a = self._regs[Register.A]
        if (a & 0x0F) > 0x09 or self._flags.auxcarry:
            result = a + 0x06
            self._update_flags(result)
            self._regs[Register.A] = result & 0xFF
        a = self._regs[Register.A]
        high = a >> 4
        if high > 0x09 or self._flags.carry:
            high += 0x06
            self._regs[Register.A] = ((high << 4) | (a & 0x0F)) & 0xFF

    def _op_mov(self) -> None:
        self._set_reg(self._dst_code, self._get_reg(self._src_code))

    def _op_hlt(self) -> None:
        self._hold = True

    def _op_stax(self) -> None:
        adr = self._get_pair((self._cmd >> 4) & 0b1)
        self._bus.memory_write(adr, self._regs[Register.A])

    def _op_ldax(self) -> None:
        adr = self._get_pair((self._cmd >> 4) & 0b1)
        self._regs[Register.A] = self._bus.memory_read(adr)

    def _op_alu(self) -> None:
        self._alu(self._dst_code, self._get_reg(self._src_code))

    def _op_alui(self) -> None:
        self._alu(self._dst_code, self._fetch_byte())

    def _op_lxi(self) -> None:
        self._set_pair(self._pair_code, self._fetch_word())

    def _op_mvi(self) -> None:
        self._set_reg(self._dst_code, self._fetch_byte())

    def _op_rlc(self) -> None:
        a = self._regs[Register.A]
        carry = a >> 7
        self._flags.carry = bool(carry)
        self._regs[Register.A] = ((a << 1) | carry) & 0xFF

    def _op_rrc(self) -> None:
        a = self._regs[Register.A]
        carry = a & 1
        self._flags.carry = bool(carry)
        self._regs[Register.A] = (a >> 1) | (carry << 7)

    def _op_ral(self) -> None:
        a = self._regs[Register.A]
        old_carry = int(self._flags.carry)
        self._flags.carry = bool(a >> 7)
        self._regs[Register.A] = ((a << 1) | old_carry) & 0xFF

    def _op_rar(self) -> None:
        a = self._regs[Register.A]
        old_carry = int(self._flags.carry)
        self._flags.carry = bool(a & 1)
        self._regs[Register.A] = (a >> 1) | (old_carry << 7)

    def _op_push(self) -> None:
        code = self._pair_code
        if code == _PAIR_SP:
            self._stack_push((self._regs[Register.A] << 8) | self._flags.pack())
        else:
            self._stack_push(self._get_pair(code))

    def _op_pop(self) -> None:
        code = self._pair_code
        data = self._stack_pop()
        if code == _PAIR_SP:
            self._flags = CpuFlags.unpack(data & 0xFF)
            self._regs[Register.A] = data >> 8
        else:
            self._set_pair(code, data)

    def _op_dad(self) -> None:
        result = self._get_pair(self._pair_code) + self._get_pair(_PAIR_HL)
        self._flags.carry = result > 0xFFFF
        self._set_pair(_PAIR_HL, result)

    def _op_inx(self) -> None:
        code = self._pair_code
        self._set_pair(code, self._get_pair(code) + 1)

    def _op_dcx(self) -> None:
        code = self._pair_code
        self._set_pair(code, self._get_pair(code) - 1)

    def _op_xchg(self) -> None:
        regs = self._regs
        regs[Register.H], regs[Register.D] = regs[Register.D], regs[Register.H]
        regs[Register.L], regs[Register.E] = regs[Register.E], regs[Register.L]

    def _op_xthl(self) -> None:
        h, l = self._regs[Register.H], self._regs[Register.L]
        top = (self._sp + 1) & 0xFFFF
        self._regs[Register.L] = self._bus.memory_read(self._sp)
        self._regs[Register.H] = self._bus.memory_read(top)
        self._bus.memory_write(self._sp, l)
        self._bus.memory_write(top, h)

    def _op_sphl(self) -> None:
        self._sp = self._hl()

    def _op_sta(self) -> None:
        self._adr = self._fetch_word()
        self._bus.memory_write(self._adr, self._regs[Register.A])

    def _op_lda(self) -> None:
        self._adr = self._fetch_word()
        self._regs[Register.A] = self._bus.memory_read(self._adr)

    def _op_shld(self) -> None:
        adr = self._fetch_word()
        self._bus.memory_write(adr, self._regs[Register.L])
        self._bus.memory_write((adr + 1) & 0xFFFF, self._regs[Register.H])

    def _op_lhld(self) -> None:
        adr = self._fetch_word()
        self._regs[Register.L] = self._bus.memory_read(adr)
        self._regs[Register.H] = self._bus.memory_read((adr + 1) & 0xFFFF)

    def _op_pchl(self) -> None:
        self._pc = self._hl()

    def _op_jmp(self) -> None:
        self._pc = self._fetch_word()

    def _op_jcc(self) -> None:
        adr = self._fetch_word()
        if self._condition():
            self._pc = adr

    def _op_call(self) -> None:
        self._call_to(self._fetch_word())

    def _op_ccc(self) -> None:
        adr = self._fetch_word()
        if self._condition():
            self._call_to(adr)

    def _op_ret(self) -> None:
        self._pc = self._stack_pop()

    def _op_rcc(self) -> None:
        if self._condition():
            self._pc = self._stack_pop()

    def _op_rst(self) -> None:
        self._call_to(self._dst_code << 3)

    def _op_ei(self) -> None:
        self._interrupts_enabled = True

    def _op_di(self) -> None:
        self._interrupts_enabled = False

    def _op_in(self) -> None:
        port = self._fetch_byte()
        self._regs[Register.A] = self._bus.port_in(port) & 0xFF

    def _op_out(self) -> None:
        port = self._fetch_byte()
        self._bus.port_out(port, self._regs[Register.A])


_LOW_ROWS = (
    "nop lxi stax inx inr dcr mvi rlc nop dad ldax dcx inr dcr mvi rrc",
    "nop lxi stax inx inr dcr mvi ral nop dad ldax dcx inr dcr mvi rar",
    "nop lxi shld inx inr dcr mvi daa nop dad lhld dcx inr dcr mvi cma",
    "nop lxi sta inx inr dcr mvi stc nop dad lda dcx inr dcr mvi cmc",
)

_HIGH_ROWS = (
    "rcc pop jcc jmp ccc push alui rst rcc ret jcc jmp ccc call alui rst",
    "rcc pop jcc out ccc push alui rst rcc ret jcc in ccc call alui rst",
    "rcc pop jcc xthl ccc push alui rst rcc pchl jcc xchg ccc call alui rst",
    "rcc pop jcc di ccc push alui rst rcc sphl jcc ei ccc call alui rst",
)


def _build_opcode_table() -> tuple[Callable[[Cpu], None], ...]:
    names = [name for row in _LOW_ROWS for name in row.split()]
    names += ["hlt" if opcode == 0x76 else "mov" for opcode in range(0x40, 0x80)]
    names += ["alu"] * 0x40
    names += [name for row in _HIGH_ROWS for name in row.split()]
    return tuple(getattr(Cpu, f"_op_{name}") for name in names)


_OPCODES = _build_opcode_table()