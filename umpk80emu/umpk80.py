"""The UMPK-80 trainer: CPU, bus and peripherals wired together."""

from __future__ import annotations

from enum import IntEnum

from .bus import ROM_SIZE, Bus
from .cpu import Cpu, Register
from .devices import (
    Display,
    Keyboard,
    KeyboardKey,
    RegisterDevice,
    RegisterScanDevice,
)

OS_SIZE = 0x800
SAVPC = 0x0BDC
PORT_STEP = 0x0E


class RegisterControlStep:
    """Write-only latch that arms single-step execution of a user instruction."""

    def __init__(self) -> None:
        self._is_step_exec = False

    @property
    def is_step_exec(self) -> bool:
        return self._is_step_exec

    def bus_port_write(self, data: int) -> None:
        self.turn_on_step_exec()

    def turn_on_step_exec(self) -> None:
        self._is_step_exec = True

    def turn_off_step_exec(self) -> None:
        self._is_step_exec = False


class TrainerRegister(IntEnum):
    """Register slots as the monitor saves them, starting at ``SAVPC``."""

    PC_LOW = 0
    PC_HIGH = 1
    SP_LOW = 2
    SP_HIGH = 3
    L = 4
    H = 5
    E = 6
    D = 7
    C = 8
    B = 9
    PSW = 10
    A = 11
    M = 12


class RegisterPair(IntEnum):
    """Register pairs as the monitor saves them, starting at ``SAVPC``."""

    PC = 0
    SP = 1
    HL = 2
    DE = 3
    BC = 4
    PSWA = 5


_CPU_REGISTERS = {
    TrainerRegister.L: Register.L,
    TrainerRegister.H: Register.H,
    TrainerRegister.E: Register.E,
    TrainerRegister.D: Register.D,
    TrainerRegister.C: Register.C,
    TrainerRegister.B: Register.B,
    TrainerRegister.A: Register.A,
    TrainerRegister.M: Register.M,
}


class Umpk80:
    """Complete trainer: 8080 CPU, memory, display, keyboard and I/O latches."""

    def __init__(self, old_layout: bool = False) -> None:
        if old_layout:
            self.port_speaker = 0x04
            self.port_io = 0x05
            self.port_keyboard = 0x18
            self.port_display = 0x38
            self.port_scan = 0x28
        else:
            self.port_speaker = 0x04
            self.port_io = 0x05
            self.port_keyboard = 0x06
            self.port_display = 0x06
            self.port_scan = 0x07

        self._bus = Bus()
        self._cpu = Cpu(self._bus)
        self._display = Display()
        self._register_scan = RegisterScanDevice(self._display)
        self._keyboard = Keyboard(self._register_scan)
        self._register5_in = RegisterDevice()
        self._register5_out = RegisterDevice()
        self._register_step_exec = RegisterControlStep()
        self._bind_devices()

    def _bind_devices(self) -> None:
        bus = self._bus
        bus.port_bind_out(self.port_scan, self._register_scan)
        bus.port_bind_in(self.port_keyboard, self._keyboard)
        bus.port_bind_out(self.port_display, self._display)
        bus.port_bind_in(self.port_io, self._register5_in)
        bus.port_bind_out(self.port_io, self._register5_out)
        bus.port_bind_out(PORT_STEP, self._register_step_exec)

    @property
    def cpu(self) -> Cpu:
        return self._cpu

    @property
    def bus(self) -> Bus:
        return self._bus

    @property
    def is_step_exec(self) -> bool:
        return self._register_step_exec.is_step_exec

    # I/O port 5

    def port5_in_set(self, data: int) -> None:
        self._register5_in.bus_port_write(data)

    def port5_in_get(self) -> int:
        return self._register5_in.bus_port_read()

    def port5_out_get(self) -> int:
        return self._register5_out.bus_port_read()

    # Execution

    def tick(self) -> None:
        """Run one instruction, or one stepped user instruction when stepping is armed."""
        if not self._register_step_exec.is_step_exec:
            self._cpu.tick()
            return
        self._cpu.tick()  # NOP in the monitor's step routine
        self._cpu.tick()  # JMP to the user program
        self._cpu.tick()  # the user instruction
        self._cpu.interrupt_rst(1)
        self._register_step_exec.turn_off_step_exec()

    def stop(self) -> None:
        self._cpu.interrupt_rst(1)

    def restart(self) -> None:
        self._cpu.interrupt_rst(0)

    # Keyboard and display

    def press_key(self, key: KeyboardKey) -> None:
        """Press a key; ST and R act immediately on the CPU instead."""
        if key == KeyboardKey.ST:
            self.stop()
        elif key == KeyboardKey.R:
            self.restart()
        else:
            self._keyboard.key_press(key)

    def release_key(self, key: KeyboardKey) -> None:
        if key in (KeyboardKey.ST, KeyboardKey.R):
            return
        self._keyboard.key_release(key)

    def get_key_state(self, key: KeyboardKey) -> bool:
        return self._keyboard.is_key_pressed(key)

    def get_display_digit(self, digit: int) -> int:
        return self._display.get(digit)

    # Memory images

    def load_os(self, os_image: bytes) -> None:
        """Load the monitor image into ROM; shorter images are padded with zeros."""
        if len(os_image) > OS_SIZE:
            raise ValueError(f"OS image is {len(os_image)} bytes, at most {OS_SIZE} allowed")
        self._bus.load_rom(bytes(os_image).ljust(OS_SIZE, b"\x00"))

    def load_program(self, program: bytes, dst_address: int = 0) -> None:
        """Copy a program into RAM at offset ``dst_address`` from the RAM base."""
        self._bus.load_ram(program, dst_address)

    def memory_read(self, adr: int) -> int:
        return self._bus.memory_read(adr)

    def memory_write(self, adr: int, data: int) -> None:
        self._bus.memory_write(adr, data)

    # Registers saved by the monitor

    def get_register_pair(self, reg_pair: RegisterPair) -> int:
        adr = SAVPC + int(reg_pair) * 2
        low = self._bus.memory_read(adr)
        high = self._bus.memory_read(adr + 1)
        return (high << 8) | low

    def set_register_pair(self, reg_pair: RegisterPair, value: int) -> None:
        adr = SAVPC + int(reg_pair) * 2
        self._bus.memory_write(adr, value & 0xFF)
        self._bus.memory_write(adr + 1, (value >> 8) & 0xFF)

    def get_register(self, reg: TrainerRegister) -> int:
        if reg == TrainerRegister.M:
            return self._bus.memory_read(self.get_register_pair(RegisterPair.HL))
        return self._bus.memory_read(SAVPC + int(reg))

    def set_register(self, reg: TrainerRegister, value: int) -> None:
        """Store a saved register; M has no saved slot and is left untouched."""
        if reg == TrainerRegister.M:
            return
        self._bus.memory_write(SAVPC + int(reg), value & 0xFF)

    # Live CPU registers

    def cpu_get_register(self, reg: TrainerRegister) -> int:
        cpu = self._cpu
        if reg == TrainerRegister.PC_LOW:
            return cpu.program_counter & 0xFF
        if reg == TrainerRegister.PC_HIGH:
            return (cpu.program_counter >> 8) & 0xFF
        if reg == TrainerRegister.SP_LOW:
            return cpu.stack_pointer & 0xFF
        if reg == TrainerRegister.SP_HIGH:
            return (cpu.stack_pointer >> 8) & 0xFF
        if reg == TrainerRegister.PSW:
            return cpu.register_flags
        return cpu.get_register(_CPU_REGISTERS[TrainerRegister(reg)])

    def cpu_set_register(self, reg: TrainerRegister, data: int) -> None:
        cpu = self._cpu
        data &= 0xFF
        if reg == TrainerRegister.PC_LOW:
            cpu.program_counter = (cpu.program_counter & 0xFF00) | data
        elif reg == TrainerRegister.PC_HIGH:
            cpu.program_counter = (cpu.program_counter & 0x00FF) | (data << 8)
        elif reg == TrainerRegister.SP_LOW:
            cpu.stack_pointer = (cpu.stack_pointer & 0xFF00) | data
        elif reg == TrainerRegister.SP_HIGH:
            cpu.stack_pointer = (cpu.stack_pointer & 0x00FF) | (data << 8)
        elif reg == TrainerRegister.PSW:
            cpu.register_flags = data
        else:
            cpu.set_register(_CPU_REGISTERS[TrainerRegister(reg)], data)


__all__ = [
    "OS_SIZE",
    "ROM_SIZE",
    "SAVPC",
    "PORT_STEP",
    "RegisterControlStep",
    "TrainerRegister",
    "RegisterPair",
    "Umpk80",
]