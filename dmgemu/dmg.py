"""Cartridge loading, the main emulation loop and the command line."""

from __future__ import annotations

import sys
from pathlib import Path

from dmgemu.cpu import CPU
from dmgemu.mbc import MBC0, MBC1, MBC2, MBC3, MBC2_RAM_SIZE, RAM_BANK_SIZE
from dmgemu.memory import Memory
from dmgemu.renderer import Renderer

START_POINT = 0x100
_HEADER_END = 0x150

_UNOFFICIAL_ROM_BANKS = {0x52: 72, 0x53: 80, 0x54: 96}
_RAM_BANKS = {0: 0, 1: 0, 2: 1, 3: 4, 4: 16, 5: 8}  # code 1 is an unused 2 KiB size

_MBC2_TYPES = (0x05, 0x06)

_CONTROLLERS = {
    0x00: MBC0, 0x08: MBC0, 0x09: MBC0,
    0x01: MBC1, 0x02: MBC1, 0x03: MBC1,
    0x05: MBC2, 0x06: MBC2,
    0x0F: MBC3, 0x10: MBC3, 0x11: MBC3, 0x12: MBC3, 0x13: MBC3,
}

_MBC_NAMES = {
    0x00: "MBC0",
    0x08: "MBC0 + RAM",
    0x09: "MBC0 + RAM + BATTERY",
    0x01: "MBC1",
    0x02: "MBC1 + RAM",
    0x03: "MBC1 + RAM + BATTERY",
    0x05: "MBC2",
    0x06: "MBC2 + BATTERY",
    0x0F: "MBC3 + TIMER + BATTERY",
    0x10: "MBC3 + TIMER + RAM + BATTERY",
    0x11: "MBC3",
    0x12: "MBC3 + RAM",
    0x13: "MBC3 + RAM + BATTERY",
}


def _rom_banks(code: int) -> int:
    if code <= 8:
        return 2 << code
    try:
        return _UNOFFICIAL_ROM_BANKS[code]
    except KeyError:
        raise ValueError(f"Unsupported ROM size code: {code:#04x}") from None


def _ram_banks(code: int) -> int:
    try:
        return _RAM_BANKS[code]
    except KeyError:
        raise ValueError(f"Unsupported RAM size code: {code:#04x}") from None


class DMG:
    """A loaded cartridge together with the machine that runs it."""

    def __init__(self, file: str | Path) -> None:
        rom = Path(file).read_bytes()
        if len(rom) < _HEADER_END:
            raise ValueError("ROM too small to hold a cartridge header")

        self.title = rom[0x134:0x144].split(b"\0", 1)[0].decode("latin-1")
        self.rom_banks = _rom_banks(rom[0x148])
        self.ram_banks = _ram_banks(rom[0x149])
        self.mbc = rom[0x147]

        self.exram: bytearray | None = None
        if self.ram_banks or self.mbc in _MBC2_TYPES:
            self.exram = bytearray(self._exram_capacity)
            self._load_save()

        controller = _CONTROLLERS.get(self.mbc)
        if controller is None:
            raise ValueError("Unsupported MBC type")
        if controller is MBC0:
            self.memory: Memory = MBC0(rom)
        else:
            self.memory = controller(rom, self.rom_banks, self.ram_banks, self.exram)

        self.cpu = CPU(self.memory)
        self.renderer = Renderer(self.cpu.ppu)

        self.print_info()

    @property
    def _exram_capacity(self) -> int:
        if self.mbc in _MBC2_TYPES:
            return MBC2_RAM_SIZE
        return self.ram_banks * RAM_BANK_SIZE

    def _load_save(self) -> None:
        try:
            with open(self.title, "rb") as save:
                data = save.read(self._exram_capacity)
        except OSError:
            return
        self.exram[:len(data)] = data

    def __enter__(self) -> DMG:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the window."""
        self.renderer.close()

    def start(self) -> None:
        """Run until the window is closed, then write the save file."""
        cpu = self.cpu
        while not cpu.ended:
            if not cpu.interrupts.check_interrupts():
                cpu.step()
            cpu.timer.update()
            cpu.ppu.step()
            if cpu.ppu.frame_ready:
                cpu.ppu.frame_ready = False
                self.renderer.render()
            cpu.joypad.step()
        self.save_game()

    def print_info(self) -> None:
        """Print the cartridge header information."""
        print(f"Title: {self.title}")
        print(f"ROM banks: {self.rom_banks}")
        print(f"RAM banks: {self.ram_banks}")
        self.print_mbc_type()

    def save_game(self) -> None:
        """Write external RAM to a file named after the title."""
        if self.exram is None:
            return
        try:
            with open(self.title, "wb") as save:
                save.write(bytes(self.exram[:self._exram_capacity]))
        except OSError:
            print("Could not save game", file=sys.stderr)

    def print_mbc_type(self) -> None:
        """Print the cartridge's bank controller type."""
        name = _MBC_NAMES.get(self.mbc, "unknown/not implemented MBC type")
        print(f"MBC type: 0x{self.mbc:x} - {name}")


def main(argv: list[str] | None = None) -> int:
    """Run the ROM file named on the command line."""
    args = sys.argv[1:] if argv is None else argv
    if not args:
        print("Usage: dmgemu <ROM file>")
        return 1
    try:
        with DMG(args[0]) as emu:
            emu.start()
    except OSError as error:
        print(f"Could not open file: {error}", file=sys.stderr)
        return 1
    except ValueError as error:
        print(error, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())