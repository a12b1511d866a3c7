"""The SM83 processor and the components wired to it."""

from __future__ import annotations

from dmgemu.audio import Audio
from dmgemu.decoder import decode
from dmgemu.instructions import Instructions
from dmgemu.interrupts import Interrupts
from dmgemu.joypad import Joypad
from dmgemu.memory import Memory
from dmgemu.ppu import PPU
from dmgemu.registers import Registers
from dmgemu.timer import Timer


class CPU:
    """Owns the registers and peripherals and executes instructions."""

    def __init__(self, memory: Memory) -> None:
        self.memory = memory
        self.registers = Registers()
        self.interrupts = Interrupts(self)
        self.timer = Timer(interrupts=self.interrupts)
        self.instructions = Instructions(
            self.registers, memory, self.interrupts, self.timer
        )
        self.joypad = Joypad(self)
        self.ppu = PPU(self)
        self.apu = Audio()
        self.halted = False
        self.ended = False
        self.m_cycles = 1 << 20
        self.t_cycles = 1 << 22
        memory.cpu = self

    def step(self) -> None:
        """Execute one instruction, or idle one cycle while halted."""
        if self.halted:
            self.timer.count_cycles(1)
            return
        regs = self.registers
        opcode = self.memory.read8(regs.pc)
        regs.pc = (regs.pc + 1) & 0xFFFF
        decode(self.instructions, opcode)