"""System bus of the trainer: 4 KiB of mirrored memory and 256 I/O ports."""

from __future__ import annotations

from typing import Protocol

ROM_SIZE = 0x0800
MEMORY_SIZE = 0x1000
PORTS_COUNT = 256

_ADDRESS_MASK = MEMORY_SIZE - 1


class _PortReader(Protocol):
    def bus_port_read(self) -> int: ...


class _PortWriter(Protocol):
    def bus_port_write(self, data: int) -> None: ...


class Bus:
    """Memory and port routing shared by the CPU and peripheral devices.

    The lower 2 KiB are ROM and ignore writes; every address is mirrored
    into the 4 KiB physical memory.
    """

    def __init__(self) -> None:
        self._memory = bytearray(MEMORY_SIZE)
        self._out_devices: dict[int, _PortWriter] = {}
        self._in_devices: dict[int, _PortReader] = {}

    def memory_write(self, adr: int, data: int) -> None:
        """Store a byte; writes into the ROM area are ignored."""
        adr &= 0xFFFF
        if adr < ROM_SIZE:
            return
        self._memory[adr & _ADDRESS_MASK] = data & 0xFF

    def memory_read(self, adr: int) -> int:
        """Read a byte from the (mirrored) address."""
        return self._memory[adr & _ADDRESS_MASK]

    def load_rom(self, data: bytes) -> None:
        """Copy an image into memory starting at address 0, bypassing ROM protection."""
        self._load(data, 0)

    def load_ram(self, data: bytes, ram_shift: int = 0) -> None:
        """Copy an image into RAM at ``ROM_SIZE + ram_shift``."""
        self._load(data, ROM_SIZE + ram_shift)

    def _load(self, data: bytes, start: int) -> None:
        if start < 0 or start + len(data) > MEMORY_SIZE:
            raise ValueError(
                f"image of {len(data)} bytes at {start:#06x} does not fit in memory"
            )
        self._memory[start:start + len(data)] = bytes(data)

    def port_bind_out(self, port: int, device: _PortWriter) -> None:
        """Attach a device receiving writes to ``port``."""
        self._out_devices[port & 0xFF] = device

    def port_out(self, port: int, data: int) -> None:
        """Send a byte to the device bound to ``port``, if any."""
        device = self._out_devices.get(port & 0xFF)
        if device is not None:
            device.bus_port_write(data & 0xFF)

    def port_bind_in(self, port: int, device: _PortReader) -> None:
        """Attach a device answering reads from ``port``."""
        self._in_devices[port & 0xFF] = device

    def port_in(self, port: int) -> int:
        """Read from the device bound to ``port``; unbound ports read as 0."""
        device = self._in_devices.get(port & 0xFF)
        return device.bus_port_read() if device is not None else 0x00

    def rom(self) -> bytes:
        """Snapshot of memory starting at the ROM base (address 0)."""
        return bytes(self._memory)

    def ram(self) -> bytes:
        """Snapshot of memory starting at the RAM base."""
        return bytes(self._memory[ROM_SIZE:])