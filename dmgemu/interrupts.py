"""Interrupt flags, enable register and dispatch."""

from __future__ import annotations

from enum import IntFlag
from typing import Any


class Interrupt(IntFlag):
    """Interrupt request bits, as used in IE and IF."""

    VBLANK = 1 << 0
    STAT = 1 << 1
    TIMER = 1 << 2
    SERIAL = 1 << 3
    JOYPAD = 1 << 4

    @property
    def vector(self) -> int:
        """Address the CPU jumps to when servicing this interrupt."""
        return _VECTORS[self]


_VECTORS = {
    Interrupt.VBLANK: 0x40,
    Interrupt.STAT: 0x48,
    Interrupt.TIMER: 0x50,
    Interrupt.SERIAL: 0x58,
    Interrupt.JOYPAD: 0x60,
}

_PRIORITY = (
    Interrupt.VBLANK,
    Interrupt.STAT,
    Interrupt.TIMER,
    Interrupt.SERIAL,
    Interrupt.JOYPAD,
)

SERVICE_CYCLES = 5


class Interrupts:
    """Interrupt master enable, IE (0xFFFF) and IF (0xFF0F)."""

    def __init__(self, cpu: Any = None) -> None:
        self.cpu = cpu
        self.ei_queued = False
        self.ime = False
        self.ie = 0x00
        self.if_ = 0xE1

    def ei(self) -> None:
        """Enable interrupts after the next instruction."""
        self.ei_queued = True

    def di(self) -> None:
        """Disable interrupts immediately."""
        self.ei_queued = False
        self.ime = False

    def request_interrupt(self, interrupt: int) -> None:
        """Raise the request bit of an interrupt in IF."""
        self.if_ = int(self.if_ | interrupt) & 0xFF

    def service_interrupt(self, interrupt: int) -> None:
        """Jump to the interrupt's vector and acknowledge it."""
        vector = _VECTORS.get(interrupt)
        if vector is None:
            raise ValueError(f"Interrupt not found: {int(interrupt):#04x}")
        self.cpu.instructions.rst(vector)
        self.ime = False
        self.if_ = int(self.if_ & ~interrupt) & 0xFF
        self.cpu.timer.count_cycles(SERVICE_CYCLES)

    def check_interrupts(self) -> bool:
        """Service the highest-priority pending interrupt; return whether one was."""
        if self.cpu.halted and self.ie & self.if_:
            self.cpu.halted = False

        if self.ei_queued:
            self.ei_queued = False
            self.ime = True
            return False

        if self.ime:
            pending = self.ie & self.if_
            if pending:
                for interrupt in _PRIORITY:
                    if pending & interrupt:
                        self.service_interrupt(interrupt)
                        break
                return True
        return False