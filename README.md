# umpk80emu

A library that emulates the UMPK-80, a single-board training computer
built around the Intel 8080. It models the processor, the 4 KiB address
space (2 KiB ROM holding the monitor, 2 KiB RAM for user programs), the
hexadecimal keyboard, the six-digit seven-segment display and the I/O
register on port 5, and includes an Intel 8080 disassembler.

## Installation

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## Using the library

### The board

```python
from umpk80emu.umpk80 import Umpk80

umpk = Umpk80()
umpk.load_program(bytes([0x3E, 0x42, 0x76]), 0)   # MVI A,42h ; HLT
assert umpk.memory_read(0x0800) == 0x3E

umpk.tick()                 # execute one instruction
digit = umpk.get_display_digit(0)
```

`Umpk80.load_os` loads a monitor image (at most 2 KiB) into ROM. Writes
below `0800h` through the bus are ignored, as on the real board where that
range is ROM, and addresses wrap at 4 KiB. Keys are pressed and released
with `press_key` / `release_key` using `umpk80emu.devices.KeyboardKey`;
`ST` and `R` act directly on the CPU (restart to vector 1 and 0). The
registers the monitor saves at `0BDCh` are reached with `get_register`,
`set_register`, `get_register_pair` and `set_register_pair`; the live CPU
registers with `cpu_get_register` and `cpu_set_register`.

### The processor on its own

```python
from umpk80emu.bus import Bus
from umpk80emu.cpu import Cpu

bus = Bus()
bus.load_rom(bytes([0x3E, 0x05, 0x3C, 0x76]))    # MVI A,5 ; INR A ; HLT
cpu = Cpu(bus)
for _ in range(3):
    cpu.tick()
assert cpu.a == 6 and cpu.is_hold
```

### The disassembler

```python
import sys

from umpk80emu.disassembler import get_instruction
from umpk80emu.listing import disassemble_listing, export_listing

print(get_instruction(0xC3).mnemonic)      # JMP

lines = disassemble_listing(bytes([0x3E, 0x42, 0xC3, 0x00, 0x08]), 0x0800)
export_listing(lines, sys.stdout)
```

Each listing line carries an address, one byte of machine code and the
decoded instruction (`-` for operand bytes), in the form
`0800 | 3E | MVI A 42h`. A `Disassembler` can also be iterated directly
to get one `DisassembleResult` per instruction.

### Sound

```python
from umpk80emu.sound import tone_samples, write_wav

write_wav("beep.wav", tone_samples(440, 44100))
```

### Modules

- `umpk80emu.bus` – memory and port bus
- `umpk80emu.cpu` – Intel 8080 processor core and flags
- `umpk80emu.devices` – display, keyboard and port registers
- `umpk80emu.umpk80` – the assembled board
- `umpk80emu.disassembler` – opcode table and disassembler
- `umpk80emu.listing` – listings and display/port bit helpers
- `umpk80emu.sound` – square-wave tone generation and WAV output

## What it does not do

The package is a library only. It has no command to run, no window or
front panel to show the display and keyboard, no audio playback (tones
can only be written to WAV files), and no background runner that drives
the board continuously or reacts to monitor routines; the caller calls
`tick` itself. No monitor ROM image is included.