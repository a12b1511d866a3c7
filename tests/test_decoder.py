from types import SimpleNamespace

import pytest

from dmgemu.audio import Audio
from dmgemu.decoder import decode
from dmgemu.instructions import INSTR_CYCLES, JR_COND_TRUE, Instructions
from dmgemu.interrupts import Interrupts
from dmgemu.joypad import Joypad
from dmgemu.mbc import MBC0
from dmgemu.ppu import PPU
from dmgemu.registers import Flag, Registers
from dmgemu.timer import Timer

REG_NAMES = ("b", "c", "d", "e", "h", "l", None, "a")


def make(program=b"", extra=None):
    rom = bytearray(0x8000)
    rom[0x100:0x100 + len(program)] = program
    for addr, data in (extra or {}).items():
        rom[addr:addr + len(data)] = data
    memory = MBC0(bytes(rom))
    cpu = SimpleNamespace(halted=False, ended=False, apu=Audio())
    interrupts = Interrupts(cpu)
    timer = Timer(interrupts=interrupts)
    cpu.interrupts = interrupts
    cpu.timer = timer
    cpu.ppu = PPU(cpu)
    cpu.joypad = Joypad(cpu)
    cpu.memory = memory
    memory.cpu = cpu
    ins = Instructions(Registers(), memory, interrupts, timer)
    cpu.instructions = ins
    return ins


def run(ins):
    regs = ins.registers
    opcode = ins.memory.read8(regs.pc)
    regs.pc = (regs.pc + 1) & 0xFFFF
    decode(ins, opcode)


def test_nop_counts_cycles_only():
    ins = make(b"\x00")
    before = (ins.registers.af, ins.registers.bc, ins.registers.hl)
    run(ins)
    assert ins.registers.pc == 0x101
    assert ins.timer.frame_clock == INSTR_CYCLES[0x00]
    assert (ins.registers.af, ins.registers.bc, ins.registers.hl) == before


def test_ld_bc_immediate():
    ins = make(b"\x01\x34\x12")
    run(ins)
    assert ins.registers.bc == 0x1234
    assert ins.registers.pc == 0x103


def test_ld_b_immediate_then_ld_c_b():
    ins = make(b"\x06\x77\x48")
    run(ins)
    run(ins)
    assert ins.registers.b == 0x77
    assert ins.registers.c == 0x77
    assert ins.registers.pc == 0x103


@pytest.mark.parametrize("dst", [0, 1, 2, 3, 4, 5, 7])
@pytest.mark.parametrize("src", [0, 1, 2, 3, 4, 5, 7])
def test_ld_register_to_register(dst, src):
    ins = make()
    setattr(ins.registers, REG_NAMES[src], 0x5A)
    decode(ins, 0x40 | dst << 3 | src)
    assert getattr(ins.registers, REG_NAMES[dst]) == 0x5A


def test_store_and_load_through_hl():
    ins = make(b"\x77\x3e\x00\x7e")
    ins.registers.hl = 0xC000
    ins.registers.a = 0x9C
    run(ins)
    run(ins)
    assert ins.registers.a == 0
    run(ins)
    assert ins.registers.a == 0x9C
    assert ins.memory.read8(0xC000) == 0x9C


def test_ld_hl_increment_and_decrement():
    ins = make(b"\x22\x32")
    ins.registers.hl = 0xC010
    ins.registers.a = 0x42
    run(ins)
    assert ins.registers.hl == 0xC011
    run(ins)
    assert ins.registers.hl == 0xC010
    assert ins.memory.read8(0xC010) == 0x42
    assert ins.memory.read8(0xC011) == 0x42


def test_inc_bc_wraps():
    ins = make(b"\x03")
    ins.registers.bc = 0xFFFF
    run(ins)
    assert ins.registers.bc == 0


def test_inc_then_dec_hl_indirect_restores_value():
    ins = make(b"\x34\x35")
    ins.registers.hl = 0xC020
    ins.memory.write8(0xC020, 0x3F)
    run(ins)
    run(ins)
    assert ins.memory.read8(0xC020) == 0x3F


def test_ld_hl_indirect_immediate():
    ins = make(b"\x36\xAB")
    ins.registers.hl = 0xC030
    run(ins)
    assert ins.memory.read8(0xC030) == 0xAB
    assert ins.registers.pc == 0x102


def test_add_a_b_sets_zero_half_and_carry():
    ins = make(b"\x80")
    ins.registers.a = 0x3A
    ins.registers.b = 0xC6
    run(ins)
    assert ins.registers.a == 0
    assert ins.registers.get_flag(Flag.Z)
    assert ins.registers.get_flag(Flag.H)
    assert ins.registers.get_flag(Flag.C)
    assert not ins.registers.get_flag(Flag.N)


def test_xor_a_clears_a():
    ins = make(b"\xAF")
    run(ins)
    assert ins.registers.a == 0
    assert ins.registers.get_flag(Flag.Z)


def test_cp_keeps_a():
    ins = make(b"\xFE\x01")
    ins.registers.a = 0x01
    run(ins)
    assert ins.registers.a == 0x01
    assert ins.registers.get_flag(Flag.Z)
    assert ins.registers.get_flag(Flag.N)


def test_add_hl_bc_with_zero_keeps_hl():
    ins = make(b"\x09")
    ins.registers.hl = 0x1234
    ins.registers.bc = 0
    run(ins)
    assert ins.registers.hl == 0x1234
    assert not ins.registers.get_flag(Flag.C)


def test_rlca_clears_zero_flag():
    ins = make(b"\x07")
    ins.registers.a = 0
    ins.registers.set_flag(Flag.Z, True)
    run(ins)
    assert ins.registers.a == 0
    assert not ins.registers.get_flag(Flag.Z)


def test_cpl_twice_restores_a():
    ins = make(b"\x2F\x2F")
    ins.registers.a = 0x5C
    run(ins)
    assert ins.registers.get_flag(Flag.N) and ins.registers.get_flag(Flag.H)
    run(ins)
    assert ins.registers.a == 0x5C


def test_scf_then_ccf():
    ins = make(b"\x37\x3F")
    run(ins)
    assert ins.registers.get_flag(Flag.C)
    run(ins)
    assert not ins.registers.get_flag(Flag.C)


def test_jr_nz_taken_adds_cycles():
    ins = make(b"\x20\x05")
    ins.registers.set_flag(Flag.Z, False)
    run(ins)
    assert ins.registers.pc == 0x102 + 5
    assert ins.timer.frame_clock == INSTR_CYCLES[0x20] + JR_COND_TRUE


def test_jr_nz_not_taken():
    ins = make(b"\x20\x05")
    ins.registers.set_flag(Flag.Z, True)
    run(ins)
    assert ins.registers.pc == 0x102
    assert ins.timer.frame_clock == INSTR_CYCLES[0x20]


def test_call_and_ret_round_trip():
    ins = make(b"\xCD\x00\x02", {0x200: b"\xC9"})
    run(ins)
    assert ins.registers.pc == 0x200
    assert ins.registers.sp == 0xFFFC
    run(ins)
    assert ins.registers.pc == 0x103
    assert ins.registers.sp == 0xFFFE


def test_push_bc_pop_de_round_trip():
    ins = make(b"\xC5\xD1")
    ins.registers.bc = 0xBEEF
    run(ins)
    run(ins)
    assert ins.registers.de == 0xBEEF
    assert ins.registers.sp == 0xFFFE


def test_pop_af_clears_low_nibble_of_f():
    ins = make(b"\xC5\xF1")
    ins.registers.bc = 0x12FF
    run(ins)
    run(ins)
    assert ins.registers.af == 0x12F0


def test_rst_38_pushes_return_address():
    ins = make(b"\xFF")
    run(ins)
    assert ins.registers.pc == 0x38
    assert ins.memory.read16(ins.registers.sp) == 0x101


def test_halt_marks_cpu_halted():
    ins = make(b"\x76")
    run(ins)
    assert ins.memory.cpu.halted is True


def test_ei_and_di():
    ins = make(b"\xFB\xF3")
    run(ins)
    assert ins.interrupts.ei_queued is True
    ins.interrupts.ime = True
    run(ins)
    assert ins.interrupts.ei_queued is False
    assert ins.interrupts.ime is False


def test_reti_enables_interrupts_and_returns():
    ins = make(b"\xCD\x00\x02", {0x200: b"\xD9"})
    run(ins)
    run(ins)
    assert ins.registers.pc == 0x103
    assert ins.interrupts.ei_queued is True


def test_ldh_store_and_load_high_ram():
    ins = make(b"\xE0\x80\x3E\x00\xF0\x80")
    ins.registers.a = 0x66
    run(ins)
    assert ins.memory.read8(0xFF80) == 0x66
    run(ins)
    run(ins)
    assert ins.registers.a == 0x66


def test_ld_a16_sp():
    ins = make(b"\x08\x00\xC0")
    run(ins)
    assert ins.memory.read16(0xC000) == ins.registers.sp
    assert ins.registers.pc == 0x103


def test_ld_absolute_round_trip():
    ins = make(b"\xEA\x40\xC0\x3E\x00\xFA\x40\xC0")
    ins.registers.a = 0x21
    run(ins)
    run(ins)
    run(ins)
    assert ins.registers.a == 0x21


def test_jp_hl():
    ins = make(b"\xE9")
    ins.registers.hl = 0x4321
    run(ins)
    assert ins.registers.pc == 0x4321


def test_ld_sp_hl():
    ins = make(b"\xF9")
    ins.registers.hl = 0xD000
    run(ins)
    assert ins.registers.sp == 0xD000


def test_unused_opcode_does_nothing():
    ins = make(b"\xD3")
    before = Registers(**vars(ins.registers))
    run(ins)
    assert ins.registers.pc == 0x101
    assert ins.registers.af == before.af
    assert ins.registers.sp == before.sp
    assert ins.timer.frame_clock == INSTR_CYCLES[0xD3]


def test_jp_conditional_not_taken_skips_address():
    ins = make(b"\xC2\x00\x30")
    ins.registers.set_flag(Flag.Z, True)
    run(ins)
    assert ins.registers.pc == 0x103
    assert ins.timer.frame_clock == INSTR_CYCLES[0xC2]