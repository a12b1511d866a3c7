"""The address space: work RAM, video RAM, OAM, high RAM and I/O registers."""

from __future__ import annotations

from typing import Any

VRAM_SIZE = 0x2000
WRAM_SIZE = 0x2000
OAM_SIZE = 0xA0
HRAM_SIZE = 0x7F

_SOUND_BANKS = (
    ("nr1", 0xFF10, 0xFF14),
    ("nr2", 0xFF16, 0xFF19),
    ("nr3", 0xFF1A, 0xFF1E),
    ("nr4", 0xFF20, 0xFF23),
    ("nr5", 0xFF24, 0xFF26),
    ("wav", 0xFF30, 0xFF3F),
)

# I/O registers that read back straight from a component attribute.
_IO_READS = {
    0xFF04: ("timer", "div"),
    0xFF05: ("timer", "tima"),
    0xFF06: ("timer", "tma"),
    0xFF07: ("timer", "tac"),
    0xFF0F: ("interrupts", "if_"),
    0xFF40: ("ppu", "lcdc"),
    0xFF41: ("ppu", "stat"),
    0xFF42: ("ppu", "scy"),
    0xFF43: ("ppu", "scx"),
    0xFF44: ("ppu", "ly"),
    0xFF45: ("ppu", "lyc"),
    0xFF47: ("ppu", "bgp"),
    0xFF48: ("ppu", "obp0"),
    0xFF49: ("ppu", "obp1"),
    0xFF4A: ("ppu", "wy"),
    0xFF4B: ("ppu", "wx"),
}

# I/O registers whose writes store the value under a mask.
_IO_WRITES = {
    0xFF05: ("timer", "tima", 0xFF),
    0xFF06: ("timer", "tma", 0xFF),
    0xFF07: ("timer", "tac", 0x07),
    0xFF0F: ("interrupts", "if_", 0x1F),
    0xFF41: ("ppu", "stat", 0x7F),
    0xFF42: ("ppu", "scy", 0xFF),
    0xFF43: ("ppu", "scx", 0xFF),
    0xFF45: ("ppu", "lyc", 0xFF),
    0xFF47: ("ppu", "bgp", 0xFF),
    0xFF48: ("ppu", "obp0", 0xFF),
    0xFF49: ("ppu", "obp1", 0xFF),
    0xFF4A: ("ppu", "wy", 0xFF),
    0xFF4B: ("ppu", "wx", 0xFF),
}


class Memory:
    """Memory map without a bank controller; cartridges with one subclass it."""

    def __init__(self, rom: bytes) -> None:
        self.rom = rom
        self.vram = bytearray(VRAM_SIZE)
        self.wram = bytearray(WRAM_SIZE)
        self.oam = bytearray(OAM_SIZE)
        self.hram = bytearray(HRAM_SIZE)
        self.oamdma = 0xFF  # 0xFF46
        self.boot = 0x01  # 0xFF50
        self.cpu: Any = None

    def _sound_slot(self, add: int) -> tuple[bytearray, int] | None:
        for name, first, last in _SOUND_BANKS:
            if first <= add <= last:
                return getattr(self.cpu.apu, name), add - first
        return None

    def _read_joypad(self) -> int:
        joypad = self.cpu.joypad
        select = joypad.p1 & 0x30
        if select == 0x20:
            return 0x20 | (joypad.dpad & 0x0F)
        if select == 0x10:
            return 0x10 | (joypad.buttons & 0x0F)
        return 0x3F

    def _read_io(self, add: int) -> int:
        if add == 0xFF00:
            return self._read_joypad()
        if add == 0xFF46:
            return self.oamdma
        if add == 0xFF50:
            return self.boot
        target = _IO_READS.get(add)
        if target is None:
            return 0xFF
        component, attribute = target
        return getattr(getattr(self.cpu, component), attribute)

    def _write_io(self, add: int, val: int) -> None:
        if add == 0xFF00:
            joypad = self.cpu.joypad
            joypad.p1 = ((joypad.p1 & 0x0F) | val) & 0xFF
        elif add == 0xFF04:
            self.cpu.timer.div = 0
        elif add == 0xFF40:
            ppu = self.cpu.ppu
            ppu.lcdc = val
            if not val & 0x80:
                ppu.ly = 0
                ppu.stat &= 0xFC
        elif add == 0xFF46:
            self.oamdma = val
            self.oam_dma(val)
        elif add == 0xFF50:
            self.boot = 0x01
        elif add in _IO_WRITES:
            component, attribute, mask = _IO_WRITES[add]
            setattr(getattr(self.cpu, component), attribute, val & mask)

    def read8(self, add: int) -> int:
        """Read one byte."""
        add &= 0xFFFF
        if add < 0x8000:
            return self.rom[add]
        if add < 0xA000:
            return self.vram[add - 0x8000]
        if add < 0xC000:
            return 0xFF  # external RAM, only present behind a bank controller
        if add < 0xE000:
            return self.wram[add - 0xC000]
        if add < 0xFE00:
            return self.wram[add - 0xE000]  # echo RAM
        if add < 0xFEA0:
            return self.oam[add - 0xFE00]
        if add < 0xFF00:
            return 0xFF
        if 0xFF10 <= add <= 0xFF3F:
            slot = self._sound_slot(add)
            if slot is None:
                return 0xFF
            bank, index = slot
            return bank[index]
        if add < 0xFF80:
            return self._read_io(add)
        if add < 0xFFFF:
            return self.hram[add - 0xFF80]
        return self.cpu.interrupts.ie

    def write8(self, add: int, val: int) -> None:
        """Write one byte; writes to read-only areas are ignored."""
        add &= 0xFFFF
        val &= 0xFF
        if add < 0x8000:
            return
        if add < 0xA000:
            self.vram[add - 0x8000] = val
        elif add < 0xC000:
            return
        elif add < 0xE000:
            self.wram[add - 0xC000] = val
        elif add < 0xFE00:
            self.wram[add - 0xE000] = val
        elif add < 0xFEA0:
            self.oam[add - 0xFE00] = val
        elif add < 0xFF00:
            return
        elif 0xFF10 <= add <= 0xFF3F:
            slot = self._sound_slot(add)
            if slot is not None:
                bank, index = slot
                bank[index] = val
        elif add < 0xFF80:
            self._write_io(add, val)
        elif add < 0xFFFF:
            self.hram[add - 0xFF80] = val
        else:
            self.cpu.interrupts.ie = val & 0x1F

    def read16(self, add: int) -> int:
        """Read a little-endian 16-bit value."""
        return (self.read8((add + 1) & 0xFFFF) << 8) | self.read8(add)

    def write16(self, add: int, val: int) -> None:
        """Write a little-endian 16-bit value."""
        self.write8(add, val & 0xFF)
        self.write8((add + 1) & 0xFFFF, (val >> 8) & 0xFF)

    def oam_dma(self, src: int) -> None:
        """Copy 0xA0 bytes from page ``src`` into OAM."""
        base = (src & 0xFF) << 8
        self.oam[:] = bytes(self.read8(base + i) for i in range(OAM_SIZE))