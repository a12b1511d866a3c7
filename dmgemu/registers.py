"""CPU register file with 8-bit registers and their 16-bit pairings."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntFlag


class Flag(IntFlag):
    """Bits of the F register."""

    NOFLAG = 0x00
    C = 0x10  # carry
    H = 0x20  # half carry
    N = 0x40  # subtract
    Z = 0x80  # zero


def _pair(high: str, low: str, doc: str) -> property:
    def fget(self: Registers) -> int:
        return (getattr(self, high) << 8) | getattr(self, low)

    def fset(self: Registers, value: int) -> None:
        setattr(self, high, (value >> 8) & 0xFF)
        setattr(self, low, value & 0xFF)

    return property(fget, fset, doc=doc)


@dataclass
class Registers:
    """The SM83 registers, initialised to their post-boot values."""

    a: int = 0x01
    f: int = 0xB0
    b: int = 0x00
    c: int = 0x13
    d: int = 0x00
    e: int = 0xD8
    h: int = 0x01
    l: int = 0x4D  # noqa: E741
    pc: int = 0x0100
    sp: int = 0xFFFE

    af = _pair("a", "f", "A and F as one 16-bit value.")
    bc = _pair("b", "c", "B and C as one 16-bit value.")
    de = _pair("d", "e", "D and E as one 16-bit value.")
    hl = _pair("h", "l", "H and L as one 16-bit value.")

    def set_flag(self, flag: int, value: bool) -> None:
        """Set or clear the given flag bits in F."""
        if value:
            self.f = (self.f | flag) & 0xFF
        else:
            self.f = self.f & ~flag & 0xFF

    def get_flag(self, flag: int) -> bool:
        """Return whether any of the given flag bits is set in F."""
        return bool(self.f & flag)