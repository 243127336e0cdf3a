import itertools

import pytest

from umpk80emu.bus import Bus
from umpk80emu.cpu import Cpu, CpuFlags, Register
from umpk80emu.devices import RegisterDevice

NOP = 0x00
LXI_B = 0x01
LXI_D = 0x11
LXI_H = 0x21
LXI_SP = 0x31
SHLD = 0x22
LHLD = 0x2A
STA = 0x32
LDA = 0x3A
MVI_A = 0x3E
MVI_B = 0x06
MVI_M = 0x36
INR_A = 0x3C
DAD_B = 0x09
RLC = 0x07
RRC = 0x0F
DAA = 0x27
STC = 0x37
CMC = 0x3F
MOV_A_B = 0x78
HLT = 0x76
ADD_B = 0x80
XRA_A = 0xAF
JZ = 0xCA
CALL = 0xCD
RET = 0xC9
PUSH_B = 0xC5
POP_D = 0xD1
PUSH_PSW = 0xF5
POP_PSW = 0xF1
XCHG = 0xEB
XTHL = 0xE3
ADI = 0xC6
SUI = 0xD6
OUT = 0xD3
IN = 0xDB


def lo(word):
    return word & 0xFF


def hi(word):
    return word >> 8


def make_cpu(program, ticks=0):
    bus = Bus()
    bus.load_rom(bytes(program))
    cpu = Cpu(bus)
    for _ in range(ticks):
        cpu.tick()
    return cpu, bus


@pytest.mark.parametrize(
    "a, b, expected",
    [
        (0x33, 0x49, 0x82),
        (0x38, 0x45, 0x83),
        (0x38, 0x41, 0x79),
        (0x83, 0x54, 0x37),
        (0x88, 0x44, 0x32),
    ],
)
def test_daa_after_add(a, b, expected):
    cpu, _ = make_cpu([MVI_A, a, MVI_B, b, ADD_B, DAA], ticks=4)
    assert cpu.a == expected


def test_flags_pack_unpack_round_trip():
    for values in itertools.product([False, True], repeat=5):
        flags = CpuFlags(*values)
        assert CpuFlags.unpack(flags.pack()) == flags


def test_empty_flags_pack_to_fixed_bit():
    assert CpuFlags().pack() == 0b00000010
    assert CpuFlags.unpack(0xFF).pack() & 0b00000010


def test_register_flags_property_round_trip():
    cpu, _ = make_cpu([])
    flags = CpuFlags(sign=True, zero=False, auxcarry=True, parity=False, carry=True)
    cpu.register_flags = flags.pack()
    assert cpu.flags == flags


def test_mvi_and_mov():
    cpu, _ = make_cpu([MVI_B, 0x5A, MOV_A_B], ticks=2)
    assert cpu.b == 0x5A
    assert cpu.a == 0x5A
    assert cpu.command_register == MOV_A_B


def test_push_pop_round_trip():
    sp = 0x0C00
    cpu, _ = make_cpu(
        [LXI_SP, lo(sp), hi(sp), LXI_B, 0x34, 0x12, PUSH_B, POP_D], ticks=4
    )
    assert (cpu.d, cpu.e) == (0x12, 0x34)
    assert cpu.stack_pointer == sp


def test_push_pop_psw_restores_flags_and_accumulator():
    sp = 0x0C00
    cpu, _ = make_cpu(
        [LXI_SP, lo(sp), hi(sp), MVI_A, 0x81, STC, PUSH_PSW, XRA_A, POP_PSW],
        ticks=4,
    )
    saved = cpu.flags
    cpu.tick()
    assert cpu.a == 0
    cpu.tick()
    assert cpu.a == 0x81
    assert cpu.flags == saved


def test_call_and_ret():
    sp = 0x0C00
    program = bytearray(0x20)
    program[0:6] = bytes([LXI_SP, lo(sp), hi(sp), CALL, 0x10, 0x00])
    program[0x10] = RET
    cpu, _ = make_cpu(program, ticks=2)
    assert cpu.program_counter == 0x10
    cpu.tick()
    assert cpu.program_counter == 6
    assert cpu.stack_pointer == sp


def test_conditional_jump_not_taken():
    cpu, _ = make_cpu([JZ, 0x00, 0x09], ticks=1)
    assert cpu.program_counter == 3


def test_conditional_jump_taken_after_zero_result():
    cpu, _ = make_cpu([XRA_A, JZ, 0x00, 0x09], ticks=2)
    assert cpu.program_counter == 0x0900


def test_write_through_m_register():
    adr = 0x0900
    cpu, bus = make_cpu([LXI_H, lo(adr), hi(adr), MVI_M, 0x77], ticks=2)
    assert bus.memory_read(adr) == 0x77
    assert cpu.get_register(Register.M) == 0x77


def test_write_into_rom_is_ignored():
    cpu, bus = make_cpu([LXI_H, 0x00, 0x00, MVI_M, 0x77], ticks=2)
    assert bus.memory_read(0) == LXI_H


def test_xchg_swaps_pairs():
    cpu, _ = make_cpu([LXI_H, 0x11, 0x22, LXI_D, 0x33, 0x44, XCHG], ticks=3)
    assert (cpu.h, cpu.l) == (0x44, 0x33)
    assert (cpu.d, cpu.e) == (0x22, 0x11)


def test_add_overflow_sets_carry_and_zero():
    cpu, _ = make_cpu([MVI_A, 0xFF, ADI, 0x01], ticks=2)
    assert cpu.a == 0
    flags = cpu.flags
    assert flags.carry and flags.zero and not flags.sign


def test_sub_borrow_sets_carry_and_sign():
    cpu, _ = make_cpu([MVI_A, 0x00, SUI, 0x01], ticks=2)
    assert cpu.a == 0xFF
    flags = cpu.flags
    assert flags.carry and flags.sign and not flags.zero


def test_xra_clears_accumulator_with_even_parity():
    cpu, _ = make_cpu([MVI_A, 0x5A, STC, XRA_A], ticks=3)
    flags = cpu.flags
    assert cpu.a == 0
    assert flags.zero and flags.parity and not flags.carry


def test_rlc_eight_times_is_identity():
    cpu, _ = make_cpu([MVI_A, 0x96] + [RLC] * 8, ticks=9)
    assert cpu.a == 0x96


def test_rrc_then_rlc_round_trip():
    cpu, _ = make_cpu([MVI_A, 0x4B, RRC, RLC], ticks=2)
    cpu.tick()
    assert cpu.flags.carry == bool(0x4B & 1)
    cpu.tick()
    assert cpu.a == 0x4B


def test_inr_keeps_carry():
    cpu, _ = make_cpu([STC, MVI_A, 0xFF, INR_A], ticks=3)
    flags = cpu.flags
    assert cpu.a == 0
    assert flags.carry and flags.zero


def test_dad_overflow_sets_carry():
    cpu, _ = make_cpu([LXI_H, 0xFF, 0xFF, LXI_B, 0x01, 0x00, DAD_B], ticks=3)
    assert (cpu.h, cpu.l) == (0, 0)
    assert cpu.flags.carry


def test_cmc_toggles_carry():
    cpu, _ = make_cpu([CMC, CMC], ticks=1)
    assert cpu.flags.carry
    cpu.tick()
    assert not cpu.flags.carry


def test_sta_lda_round_trip():
    adr = 0x0A10
    cpu, bus = make_cpu(
        [MVI_A, 0x3C, STA, lo(adr), hi(adr), XRA_A, LDA, lo(adr), hi(adr)], ticks=2
    )
    assert bus.memory_read(adr) == 0x3C
    assert cpu.address_register == adr
    cpu.tick()
    cpu.tick()
    assert cpu.a == 0x3C


def test_shld_lhld_round_trip():
    adr = 0x0A20
    cpu, bus = make_cpu(
        [LXI_H, 0xCD, 0xAB, SHLD, lo(adr), hi(adr), LXI_H, 0, 0, LHLD, lo(adr), hi(adr)],
        ticks=2,
    )
    assert (bus.memory_read(adr), bus.memory_read(adr + 1)) == (0xCD, 0xAB)
    cpu.tick()
    cpu.tick()
    assert (cpu.h, cpu.l) == (0xAB, 0xCD)


def test_xthl_swaps_with_stack_top():
    sp = 0x0C00
    cpu, bus = make_cpu(
        [LXI_SP, lo(sp), hi(sp), LXI_B, 0x22, 0x11, PUSH_B, LXI_H, 0x44, 0x33, XTHL],
        ticks=5,
    )
    top = cpu.stack_pointer
    assert (cpu.h, cpu.l) == (0x11, 0x22)
    assert (bus.memory_read(top), bus.memory_read(top + 1)) == (0x44, 0x33)


def test_out_and_in_through_ports():
    bus = Bus()
    device = RegisterDevice()
    bus.port_bind_out(5, device)
    bus.port_bind_in(6, device)
    bus.load_rom(bytes([MVI_A, 0xA5, OUT, 5, XRA_A, IN, 6]))
    cpu = Cpu(bus)
    cpu.tick()
    cpu.tick()
    assert device.bus_port_read() == 0xA5
    cpu.tick()
    cpu.tick()
    assert cpu.a == 0xA5


def test_in_from_unbound_port_reads_zero():
    cpu, _ = make_cpu([MVI_A, 0x12, IN, 0x40], ticks=2)
    assert cpu.a == 0


def test_hlt_sets_hold():
    cpu, _ = make_cpu([NOP, HLT], ticks=1)
    assert not cpu.is_hold
    cpu.tick()
    assert cpu.is_hold


def test_interrupt_rst_pushes_program_counter():
    cpu, bus = make_cpu([])
    cpu.stack_pointer = 0x0C00
    cpu.program_counter = 0x0900
    cpu.interrupt_rst(1)
    assert cpu.program_counter == 8
    sp = cpu.stack_pointer
    assert (bus.memory_read(sp + 1) << 8) | bus.memory_read(sp) == 0x0900


@pytest.mark.parametrize("rst_num", [-1, 8])
def test_interrupt_rst_out_of_range_is_ignored(rst_num):
    cpu, _ = make_cpu([])
    cpu.program_counter = 0x0900
    cpu.interrupt_rst(rst_num)
    assert cpu.program_counter == 0x0900
    assert cpu.stack_pointer == 0xFFFF


def test_force_call_and_force_jump():
    cpu, bus = make_cpu([])
    cpu.stack_pointer = 0x0C00
    cpu.program_counter = 0x0812
    cpu.force_call(0x0900)
    assert cpu.program_counter == 0x0900
    sp = cpu.stack_pointer
    assert (bus.memory_read(sp + 1), bus.memory_read(sp)) == (0x08, 0x12)
    cpu.force_jump(0x0A00)
    assert cpu.program_counter == 0x0A00
    assert cpu.stack_pointer == sp


@pytest.mark.parametrize(
    "reg", [Register.A, Register.B, Register.C, Register.D, Register.E, Register.H, Register.L]
)
def test_register_set_get_round_trip(reg):
    cpu, _ = make_cpu([])
    cpu.set_register(reg, 0x1F3)
    assert cpu.get_register(reg) == 0xF3


def test_execute_runs_given_opcode():
    cpu, _ = make_cpu([])
    cpu.execute(STC)
    assert cpu.flags.carry
    assert cpu.command_register == STC
    assert cpu.program_counter == 1


def test_reset_clears_flags():
    cpu, _ = make_cpu([STC, XRA_A, STC], ticks=3)
    cpu.reset()
    assert cpu.flags == CpuFlags()