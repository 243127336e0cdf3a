"""Square-wave tone generation for the trainer's speaker."""

from __future__ import annotations

import math
import wave
from array import array
from os import PathLike
from typing import Iterable, Union

SAMPLE_RATE = 44100
MAX_AMPLITUDE = 32767
TONE_AMPLITUDE = 0.7


def _period(freq: float) -> int:
    samples = int(SAMPLE_RATE / freq)
    if samples <= 0:
        raise ValueError(f"frequency {freq} Hz is above the sample rate")
    return samples


def square_wave(time: float, freq: float, amp: float) -> int:
    """Sample of a square wave at sample index ``time``; silent for zero frequency."""
    if freq == 0:
        return 0
    samples_per_cycle = _period(freq)
    cycle_part = int(time) % samples_per_cycle
    half_cycle = samples_per_cycle // 2
    amplitude = int(MAX_AMPLITUDE * amp)
    return amplitude if cycle_part < half_cycle else 0


def sine_wave(time: float, freq: float, amp: float) -> int:
    """Sample of a sine wave at sample index ``time``."""
    if freq == 0:
        raise ValueError("sine wave needs a non-zero frequency")
    samples_per_cycle = SAMPLE_RATE / freq
    radians = 2 * math.pi * (time / samples_per_cycle)
    amplitude = int(MAX_AMPLITUDE * amp)
    return int(amplitude * math.sin(radians))


def tone_samples(freq: float, duration: int) -> array:
    """``duration`` samples of the speaker's square-wave tone."""
    return array("h", (square_wave(i, freq, TONE_AMPLITUDE) for i in range(duration)))


def write_wav(path: Union[str, PathLike], samples: Iterable[int]) -> None:
    """Write mono 16-bit samples at the tone sample rate as a WAV file."""
    data = array("h", samples)
    with wave.open(str(path), "wb") as out:
        out.setnchannels(1)
        out.setsampwidth(2)
        out.setframerate(SAMPLE_RATE)
        out.writeframes(data.tobytes())