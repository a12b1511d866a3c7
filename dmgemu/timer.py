"""Divider and programmable timer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from dmgemu.interrupts import Interrupt

if TYPE_CHECKING:
    from dmgemu.interrupts import Interrupts

DIV_PERIOD = 64
_TIMA_PERIODS = {0: 256, 1: 4, 2: 16, 3: 64}


@dataclass
class Timer:
    """Counts machine cycles and drives DIV, TIMA and the frame clock."""

    interrupts: Interrupts | None = field(default=None, repr=False)
    div_clock: int = 0
    tima_clock: int = 0
    frame_clock: int = 0
    div: int = 0xAB  # 0xFF04
    tima: int = 0  # 0xFF05
    tma: int = 0  # 0xFF06
    tac: int = 0xF8  # 0xFF07

    def update(self) -> None:
        """Advance DIV and TIMA by the cycles counted so far."""
        steps, self.div_clock = divmod(self.div_clock, DIV_PERIOD)
        self.div = (self.div + steps) & 0xFF

        if not self.tac & 0x04:
            return
        period = _TIMA_PERIODS[self.tac & 0x03]
        while self.tima_clock >= period:
            self.tima_clock -= period
            if self.tima == 0xFF:
                self.tima = self.tma
                if self.interrupts is not None:
                    self.interrupts.request_interrupt(Interrupt.TIMER)
            else:
                self.tima += 1

    def count_cycles(self, cycles: int) -> None:
        """Add machine cycles to the running clocks."""
        self.frame_clock += cycles
        self.div_clock += cycles
        if self.tac & 0x04:
            self.tima_clock += cycles