import pytest

from dmgemu.mbc import MBC0, MBC1, MBC2, MBC3, RTC
from dmgemu.memory import Memory


def banked_rom(banks):
    """ROM whose every byte holds the number of the bank it lies in."""
    return b"".join(bytes([bank]) * 0x4000 for bank in range(banks))


def test_mbc0_is_plain_memory():
    rom = bytes(range(256)) * 128
    mem = MBC0(rom)
    assert isinstance(mem, Memory)
    assert mem.read8(0x4321) == rom[0x4321]
    mem.write8(0x2000, 0x05)
    assert mem.read8(0x4000) == rom[0x4000]


class TestMBC1:
    def test_default_banks(self):
        mem = MBC1(banked_rom(4), 4, 0)
        assert mem.read8(0x0000) == 0
        assert mem.read8(0x4000) == 1

    def test_rom_bank_switch(self):
        mem = MBC1(banked_rom(8), 8, 0)
        mem.write8(0x2000, 3)
        assert mem.read8(0x4000) == 3
        assert mem.read8(0x7FFF) == 3

    def test_bank_zero_maps_to_one(self):
        mem = MBC1(banked_rom(8), 8, 0)
        mem.write8(0x2000, 0)
        assert mem.read8(0x4000) == 1

    def test_bank_wraps_by_rom_size(self):
        mem = MBC1(banked_rom(4), 4, 0)
        mem.write8(0x2000, 5)
        assert mem.read8(0x4000) == 1

    def test_upper_bank_bits(self):
        mem = MBC1(banked_rom(64), 64, 0)
        mem.write8(0x2000, 1)
        mem.write8(0x4000, 1)
        assert mem.read8(0x4000) == 0x21
        assert mem.read8(0x0000) == 0

    def test_mode_one_banks_lower_area(self):
        mem = MBC1(banked_rom(64), 64, 0)
        mem.write8(0x4000, 1)
        mem.write8(0x6000, 1)
        assert mem.read8(0x0000) == 0x20

    def test_ram_disabled_by_default(self):
        mem = MBC1(banked_rom(2), 2, 1, bytearray(0x2000))
        mem.write8(0xA000, 0x12)
        assert mem.read8(0xA000) == 0xFF
        assert mem.exram[0] == 0

    def test_ram_round_trip(self):
        mem = MBC1(banked_rom(2), 2, 1, bytearray(0x2000))
        mem.write8(0x0000, 0x0A)
        mem.write8(0xA123, 0x42)
        assert mem.read8(0xA123) == 0x42
        assert mem.exram[0x123] == 0x42

    def test_ram_bank_in_mode_one(self):
        mem = MBC1(banked_rom(2), 2, 4, bytearray(4 * 0x2000))
        mem.write8(0x0000, 0x0A)
        mem.write8(0x4000, 1)
        mem.write8(0x6000, 1)
        mem.write8(0xA000, 0x99)
        assert mem.exram[0x2000] == 0x99
        assert mem.exram[0] == 0
        assert mem.read8(0xA000) == 0x99

    def test_other_areas_pass_through(self):
        mem = MBC1(banked_rom(2), 2, 0)
        mem.write8(0xC010, 0x5A)
        assert mem.read8(0xC010) == 0x5A


class TestMBC2:
    def test_rom_bank_needs_address_bit_8(self):
        mem = MBC2(banked_rom(8), 8, 0, bytearray(0x200))
        mem.write8(0x2000, 3)
        assert mem.read8(0x4000) == 1
        mem.write8(0x2100, 3)
        assert mem.read8(0x4000) == 3
        assert mem.read8(0x0000) == 0

    def test_bank_zero_maps_to_one(self):
        mem = MBC2(banked_rom(8), 8, 0, bytearray(0x200))
        mem.write8(0x2100, 0)
        assert mem.read8(0x4000) == 1

    def test_ram_keeps_low_nibble(self):
        mem = MBC2(banked_rom(2), 2, 0, bytearray(0x200))
        mem.write8(0x0000, 0x0A)
        mem.write8(0xA000, 0xAB)
        assert mem.read8(0xA000) == 0x0B

    def test_ram_is_mirrored(self):
        mem = MBC2(banked_rom(2), 2, 0, bytearray(0x200))
        mem.write8(0x0000, 0x0A)
        mem.write8(0xA005, 0x07)
        assert mem.read8(0xA205) == 0x07
        assert mem.read8(0xBE05) == 0x07

    def test_ram_disabled(self):
        mem = MBC2(banked_rom(2), 2, 0, bytearray(0x200))
        mem.write8(0xA000, 0x07)
        assert mem.read8(0xA000) == 0xFF
        assert mem.exram[0] == 0


class TestMBC3:
    def test_rom_bank_switch(self):
        mem = MBC3(banked_rom(16), 16, 0)
        mem.write8(0x2000, 9)
        assert mem.read8(0x4000) == 9
        mem.write8(0x2000, 0)
        assert mem.read8(0x4000) == 1

    def test_ram_banks(self):
        mem = MBC3(banked_rom(2), 2, 4, bytearray(4 * 0x2000))
        mem.write8(0x0000, 0x0A)
        mem.write8(0x4000, 2)
        mem.write8(0xA010, 0x55)
        assert mem.exram[2 * 0x2000 + 0x10] == 0x55
        mem.write8(0x4000, 0)
        assert mem.read8(0xA010) == 0
        mem.write8(0x4000, 2)
        assert mem.read8(0xA010) == 0x55

    @pytest.mark.parametrize("select,field", [
        (0x08, "s"), (0x09, "m"), (0x0A, "h"), (0x0B, "dl"), (0x0C, "dh"),
    ])
    def test_rtc_registers(self, select, field):
        mem = MBC3(banked_rom(2), 2, 1, bytearray(0x2000))
        mem.write8(0x0000, 0x0A)
        mem.write8(0x4000, select)
        mem.write8(0xA000, 0x17)
        assert getattr(mem.rtc, field) == 0x17
        assert mem.read8(0xA000) == 0x17
        assert mem.exram[0] == 0

    def test_unknown_ram_select_reads_ff(self):
        mem = MBC3(banked_rom(2), 2, 1, bytearray(0x2000))
        mem.write8(0x0000, 0x0A)
        mem.write8(0x4000, 0x0D)
        mem.write8(0xA000, 0x17)
        assert mem.read8(0xA000) == 0xFF
        assert mem.rtc == RTC()

    def test_ram_disabled(self):
        mem = MBC3(banked_rom(2), 2, 1, bytearray(0x2000))
        mem.write8(0xA000, 0x17)
        assert mem.read8(0xA000) == 0xFF
        assert mem.exram[0] == 0

    def test_latch_tracks_previous_value(self):
        mem = MBC3(banked_rom(2), 2, 0)
        mem.write8(0x6000, 0x00)
        assert (mem.latch_prev, mem.latch) == (1, 0)
        mem.write8(0x6000, 0x01)
        assert (mem.latch_prev, mem.latch) == (0, 1)