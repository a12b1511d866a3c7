"""Cartridge memory bank controllers."""

from __future__ import annotations

from dataclasses import dataclass

from dmgemu.memory import Memory

ROM_BANK_SIZE = 0x4000
RAM_BANK_SIZE = 0x2000
MBC2_RAM_SIZE = 0x200
RAM_ENABLE = 0x0A


def _in_external_ram(add: int) -> bool:
    return 0xA000 <= add < 0xC000


class MBC0(Memory):
    """Cartridge without a bank controller: 32 KiB of fixed ROM."""


class MBC1(Memory):
    """MBC1: up to 2 MiB ROM and 32 KiB RAM with two banking modes."""

    def __init__(self, rom: bytes, rom_banks: int, ram_banks: int,
                 exram: bytearray | None = None) -> None:
        super().__init__(rom)
        self.rom_banks = rom_banks
        self.ram_banks = ram_banks
        self.exram = exram
        self.ramg = 0
        self.bank1 = 1
        self.bank2 = 0
        self.mode = 0

    def _ram_offset(self, add: int) -> int:
        return add - 0xA000 + ((self.mode * self.bank2) % self.ram_banks) * RAM_BANK_SIZE

    def _ram_usable(self) -> bool:
        return self.ramg == RAM_ENABLE and self.exram is not None

    def read8(self, add: int) -> int:
        add &= 0xFFFF
        if add < 0x4000:
            bank = self.mode * ((self.bank2 << 5) % self.rom_banks)
            return self.rom[add + bank * ROM_BANK_SIZE]
        if add < 0x8000:
            bank = (self.bank1 | (self.bank2 << 5)) % self.rom_banks
            return self.rom[add - 0x4000 + bank * ROM_BANK_SIZE]
        if _in_external_ram(add):
            if self._ram_usable():
                return self.exram[self._ram_offset(add)]
            return 0xFF
        return super().read8(add)

    def write8(self, add: int, val: int) -> None:
        add &= 0xFFFF
        val &= 0xFF
        if add < 0x2000:
            self.ramg = val & 0x0F
        elif add < 0x4000:
            self.bank1 = max(val & 0x1F, 1)
        elif add < 0x6000:
            self.bank2 = val & 0x03
        elif add < 0x8000:
            self.mode = val & 0x01
        elif _in_external_ram(add):
            if self._ram_usable():
                self.exram[self._ram_offset(add)] = val
        else:
            super().write8(add, val)


class MBC2(Memory):
    """MBC2: up to 256 KiB ROM and 512 half-bytes of built-in RAM."""

    def __init__(self, rom: bytes, rom_banks: int, ram_banks: int,
                 exram: bytearray | None = None) -> None:
        super().__init__(rom)
        self.rom_banks = rom_banks
        self.ram_banks = ram_banks
        self.exram = exram
        self.ramg = 0
        self.romb = 1

    def _ram_usable(self) -> bool:
        return self.ramg == RAM_ENABLE and self.exram is not None

    def read8(self, add: int) -> int:
        add &= 0xFFFF
        if add < 0x4000:
            return self.rom[add]
        if add < 0x8000:
            return self.rom[add - 0x4000 + (self.romb % self.rom_banks) * ROM_BANK_SIZE]
        if _in_external_ram(add):
            if self._ram_usable():
                return self.exram[(add - 0xA000) % MBC2_RAM_SIZE] & 0x0F
            return 0xFF
        return super().read8(add)

    def write8(self, add: int, val: int) -> None:
        add &= 0xFFFF
        val &= 0xFF
        if add < 0x4000:
            if add & 0x100:
                self.romb = max(val & 0x1F, 1)
            else:
                self.ramg = val & 0x0F
        elif _in_external_ram(add):
            if self._ram_usable():
                self.exram[(add - 0xA000) % MBC2_RAM_SIZE] = val & 0x0F
        else:
            super().write8(add, val)


@dataclass
class RTC:
    """Real-time clock registers of an MBC3 cartridge."""

    s: int = 0
    m: int = 0
    h: int = 0
    dl: int = 0
    dh: int = 0


_RTC_REGISTERS = {0x08: "s", 0x09: "m", 0x0A: "h", 0x0B: "dl", 0x0C: "dh"}


class MBC3(Memory):
    """MBC3: up to 2 MiB ROM, 32 KiB RAM and a real-time clock."""

    def __init__(self, rom: bytes, rom_banks: int, ram_banks: int,
                 exram: bytearray | None = None) -> None:
        super().__init__(rom)
        self.rom_banks = rom_banks
        self.ram_banks = ram_banks
        self.exram = exram
        self.ramg = 0
        self.romb = 1
        self.ramb = 0
        self.latch = 1
        self.latch_prev = 0
        self.rtc = RTC()

    def _ram_offset(self, add: int) -> int:
        return add - 0xA000 + (self.ramb % self.ram_banks) * RAM_BANK_SIZE

    def read8(self, add: int) -> int:
        add &= 0xFFFF
        if add < 0x4000:
            return self.rom[add]
        if add < 0x8000:
            return self.rom[add - 0x4000 + (self.romb % self.rom_banks) * ROM_BANK_SIZE]
        if _in_external_ram(add):
            if self.ramg != RAM_ENABLE:
                return 0xFF
            if self.ramb < 0x08:
                if self.exram is None:
                    return 0xFF
                return self.exram[self._ram_offset(add)]
            name = _RTC_REGISTERS.get(self.ramb)
            return 0xFF if name is None else getattr(self.rtc, name)
        return super().read8(add)

    def write8(self, add: int, val: int) -> None:
        add &= 0xFFFF
        val &= 0xFF
        if add < 0x2000:
            self.ramg = val & 0x0F
        elif add < 0x4000:
            self.romb = max(val & 0x7F, 1)
        elif add < 0x6000:
            self.ramb = val & 0x0F
        elif add < 0x8000:
            # The clock is not ticked, so a 0 -> 1 latch sequence has nothing to capture.
            self.latch_prev = self.latch
            self.latch = val
        elif _in_external_ram(add):
            if self.ramg != RAM_ENABLE:
                return
            if self.ramb < 0x08:
                if self.exram is not None:
                    self.exram[self._ram_offset(add)] = val
            else:
                name = _RTC_REGISTERS.get(self.ramb)
                if name is not None:
                    setattr(self.rtc, name, val)
        else:
            super().write8(add, val)