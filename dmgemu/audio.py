"""Sound register storage."""

from __future__ import annotations

from dataclasses import dataclass, field


def _bank(size: int):
    return field(default_factory=lambda: bytearray(size))


@dataclass
class Audio:
    """Sound channel registers and wave pattern RAM."""

    nr1: bytearray = _bank(5)  # channel 1, 0xFF10-0xFF14
    nr2: bytearray = _bank(4)  # channel 2, 0xFF16-0xFF19
    nr3: bytearray = _bank(5)  # channel 3, 0xFF1A-0xFF1E
    nr4: bytearray = _bank(4)  # channel 4, 0xFF20-0xFF23
    nr5: bytearray = _bank(3)  # control, 0xFF24-0xFF26
    wav: bytearray = _bank(16)  # wave pattern RAM, 0xFF30-0xFF3F