"""Peripheral devices of the trainer: display, latches and keyboard."""

from __future__ import annotations

from enum import IntEnum

DISPLAY_DIGITS = 6
KEYBOARD_KEYS_COUNT = 24
KEYBOARD_COLUMNS_COUNT = 3
KEYBOARD_ROWS_COUNT = 8

_LIGHTOFF_TICKS = 255
_DIGIT_SELECT_MASKS = frozenset(1 << bit for bit in range(DISPLAY_DIGITS))


class Display:
    """Six-digit seven-segment display driven by a segment latch and a digit scan."""

    def __init__(self) -> None:
        self._digits = [0] * DISPLAY_DIGITS
        self._last_segment_value = 0x00
        self._lightoff_timer = 0

    def bus_port_write(self, data: int) -> None:
        """Latch the segment pattern for the next lit digit."""
        self._last_segment_value = data & 0xFF

    def lightup(self, digit_value: int) -> None:
        """Light the digit selected by a one-hot mask (0x20 is the leftmost)."""
        if digit_value not in _DIGIT_SELECT_MASKS:
            return
        digit = DISPLAY_DIGITS - digit_value.bit_length()
        self._digits[digit] = self._last_segment_value
        self._lightoff_timer = _LIGHTOFF_TICKS

    def get(self, digit: int) -> int:
        """Segments of a digit; reads as blank once the display stops being refreshed."""
        if not 0 <= digit < DISPLAY_DIGITS:
            raise IndexError(f"display digit {digit} out of range")
        self._lightoff_timer -= 1
        if self._lightoff_timer <= 0:
            self._lightoff_timer = 0
            return 0x00
        return self._digits[digit]


class RegisterScanDevice:
    """Scan latch shared by the display digit select and the keyboard rows."""

    def __init__(self, display: Display) -> None:
        self._display = display
        self._data = 0xFF

    def bus_port_read(self) -> int:
        return self._data

    def bus_port_write(self, data: int) -> None:
        self._data = data & 0xFF
        self._display.lightup(self._data)


class RegisterDevice:
    """Plain 8-bit latch."""

    def __init__(self) -> None:
        self._data = 0xFF

    def bus_port_read(self) -> int:
        return self._data

    def bus_port_write(self, data: int) -> None:
        self._data = data & 0xFF


class KeyboardKey(IntEnum):
    """Trainer keys in scan-matrix order; R and ST are wired outside the matrix."""

    KEY_D = 0
    KEY_E = 1
    KEY_F = 2
    KEY_A = 3
    KEY_B = 4
    KEY_C = 5
    KEY_7 = 6
    KEY_8 = 7
    KEY_9 = 8
    KEY_4 = 9
    KEY_5 = 10
    KEY_6 = 11
    KEY_1 = 12
    KEY_2 = 13
    KEY_3 = 14
    KEY_0 = 15
    ZP_UV = 16
    UM = 17
    P = 18
    OT_RG = 19
    OT_A = 20
    SHK = 21
    PR_SCH = 22
    SHC = 23
    R = 24
    ST = 25


class Keyboard:
    """Key matrix read through the scan latch: 8 rows of 3 columns."""

    def __init__(self, scan: RegisterScanDevice) -> None:
        self._scan = scan
        self._keys = [False] * KEYBOARD_KEYS_COUNT

    def bus_port_read(self) -> int:
        return self.scan(self._scan.bus_port_read())

    def _index(self, key: KeyboardKey) -> int:
        index = int(key)
        if not 0 <= index < KEYBOARD_KEYS_COUNT:
            raise ValueError(f"{key!r} is not part of the key matrix")
        return index

    def set_key_state(self, key: KeyboardKey, state: bool) -> None:
        self._keys[self._index(key)] = bool(state)

    def is_key_pressed(self, key: KeyboardKey) -> bool:
        return self._keys[self._index(key)]

    def is_key_released(self, key: KeyboardKey) -> bool:
        return not self._keys[self._index(key)]

    def key_press(self, key: KeyboardKey) -> None:
        self.set_key_state(key, True)

    def key_release(self, key: KeyboardKey) -> None:
        self.set_key_state(key, False)

    def scan(self, scan_value: int) -> int:
        """Column bits of the row selected by the highest zero bit of ``scan_value``."""
        row = next(
            (
                i
                for i in range(KEYBOARD_ROWS_COUNT)
                if not scan_value & (0x80 >> i)
            ),
            KEYBOARD_ROWS_COUNT,
        )
        return self._scan_row(row)

    def _scan_row(self, row: int) -> int:
        start = row * KEYBOARD_COLUMNS_COUNT
        end = min(start + KEYBOARD_COLUMNS_COUNT, KEYBOARD_KEYS_COUNT)
        for index in range(start, end):
            if self._keys[index]:
                return ~(1 << (index % KEYBOARD_COLUMNS_COUNT)) & 0xFF
        return 0xFF