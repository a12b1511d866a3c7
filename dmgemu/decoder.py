"""Decoder for the unprefixed SM83 opcodes."""

from __future__ import annotations

from functools import partial
from typing import Callable

from dmgemu.instructions import (
    CALL_COND_TRUE,
    INSTR_CYCLES,
    JP_COND_TRUE,
    JR_COND_TRUE,
    RET_COND_TRUE,
    Instructions,
)
from dmgemu.registers import Flag

Handler = Callable[[Instructions], None]

# Operand index used in opcode bit fields: 6 stands for the byte at [HL].
_REG8 = ("b", "c", "d", "e", "h", "l", None, "a")
_HL_INDIRECT = 6
_REG16 = ("bc", "de", "hl", "sp")
_STACK16 = ("bc", "de", "hl", "af")
_ALU = (
    Instructions.add,
    Instructions.adc,
    Instructions.sub,
    Instructions.sbc,
    Instructions.and_,
    Instructions.xor,
    Instructions.or_,
    Instructions.cp,
)


def _fetch8(ins: Instructions) -> int:
    regs = ins.registers
    value = ins.memory.read8(regs.pc)
    regs.pc = (regs.pc + 1) & 0xFFFF
    return value


def _fetch16(ins: Instructions) -> int:
    regs = ins.registers
    value = ins.memory.read16(regs.pc)
    regs.pc = (regs.pc + 2) & 0xFFFF
    return value


def _read_operand(ins: Instructions, index: int) -> int:
    name = _REG8[index]
    if name is None:
        return ins.memory.read8(ins.registers.hl)
    return getattr(ins.registers, name)


def _write_operand(ins: Instructions, index: int, value: int) -> None:
    name = _REG8[index]
    if name is None:
        ins.memory.write8(ins.registers.hl, value)
    else:
        setattr(ins.registers, name, value & 0xFF)


def _condition(ins: Instructions, index: int) -> bool:
    """Evaluate NZ, Z, NC or C for index 0 to 3."""
    flag = Flag.Z if index < 2 else Flag.C
    return ins.registers.get_flag(flag) == bool(index & 1)


# Handlers; each takes the instruction set as its last argument.

def _nop(ins: Instructions) -> None:
    return None


def _ld_pair_imm(pair: str, ins: Instructions) -> None:
    setattr(ins.registers, pair, _fetch16(ins))


def _store_a(pair: str, step: int, ins: Instructions) -> None:
    regs = ins.registers
    ins.memory.write8(getattr(regs, pair), regs.a)
    if step:
        regs.hl = (regs.hl + step) & 0xFFFF


def _load_a(pair: str, step: int, ins: Instructions) -> None:
    regs = ins.registers
    regs.a = ins.memory.read8(getattr(regs, pair))
    if step:
        regs.hl = (regs.hl + step) & 0xFFFF


def _step_pair(pair: str, step: int, ins: Instructions) -> None:
    regs = ins.registers
    setattr(regs, pair, (getattr(regs, pair) + step) & 0xFFFF)


def _add_hl(pair: str, ins: Instructions) -> None:
    regs = ins.registers
    regs.hl = ins.add16(regs.hl, getattr(regs, pair))


def _modify(op: Callable[[Instructions, int], int], index: int,
            ins: Instructions) -> None:
    _write_operand(ins, index, op(ins, _read_operand(ins, index)))


def _ld_imm(index: int, ins: Instructions) -> None:
    _write_operand(ins, index, _fetch8(ins))


def _rotate_a(op: Callable[[Instructions, int], int], ins: Instructions) -> None:
    ins.registers.a = op(ins, ins.registers.a)
    ins.registers.set_flag(Flag.Z, False)


def _ld_mem_sp(ins: Instructions) -> None:
    addr = _fetch16(ins)
    ins.memory.write16(addr, ins.registers.sp)


def _daa(ins: Instructions) -> None:
    ins.daa()


def _cpl(ins: Instructions) -> None:
    regs = ins.registers
    regs.a = ~regs.a & 0xFF
    regs.set_flag(Flag.N, True)
    regs.set_flag(Flag.H, True)


def _scf(ins: Instructions) -> None:
    regs = ins.registers
    regs.set_flag(Flag.N, False)
    regs.set_flag(Flag.H, False)
    regs.set_flag(Flag.C, True)


def _ccf(ins: Instructions) -> None:
    regs = ins.registers
    carry = regs.get_flag(Flag.C)
    regs.set_flag(Flag.N, False)
    regs.set_flag(Flag.H, False)
    regs.set_flag(Flag.C, not carry)


def _ld_reg(dst: int, src: int, ins: Instructions) -> None:
    _write_operand(ins, dst, _read_operand(ins, src))


def _halt(ins: Instructions) -> None:
    ins.halt()


def _alu(op: Callable[[Instructions, int], None], src: int,
         ins: Instructions) -> None:
    op(ins, _read_operand(ins, src))


def _alu_imm(op: Callable[[Instructions, int], None], ins: Instructions) -> None:
    op(ins, _fetch8(ins))


def _branch(op: Callable[[Instructions, bool], bool], extra: int, index: int,
            ins: Instructions) -> None:
    if op(ins, _condition(ins, index)):
        ins.timer.count_cycles(extra)


def _always(op: Callable[[Instructions, bool], bool], ins: Instructions) -> None:
    op(ins, True)


def _pop(pair: str, ins: Instructions) -> None:
    setattr(ins.registers, pair, ins.pop())
    if pair == "af":
        ins.registers.f &= 0xF0  # the low nibble of F always reads as zero


def _push(pair: str, ins: Instructions) -> None:
    ins.push(getattr(ins.registers, pair))


def _rst(addr: int, ins: Instructions) -> None:
    ins.rst(addr)


def _reti(ins: Instructions) -> None:
    ins.interrupts.ei()
    ins.ret(True)


def _prefix_cb(ins: Instructions) -> None:
    from dmgemu.decoder_cb import decode_cb

    decode_cb(ins, ins.memory.read8(ins.registers.pc))
    ins.registers.pc = (ins.registers.pc + 1) & 0xFFFF


def _ldh_store(ins: Instructions) -> None:
    ins.memory.write8(0xFF00 + _fetch8(ins), ins.registers.a)


def _ldh_load(ins: Instructions) -> None:
    ins.registers.a = ins.memory.read8(0xFF00 + _fetch8(ins))


def _ld_c_store(ins: Instructions) -> None:
    ins.memory.write8(0xFF00 + ins.registers.c, ins.registers.a)


def _ld_c_load(ins: Instructions) -> None:
    ins.registers.a = ins.memory.read8(0xFF00 + ins.registers.c)


def _add_sp(ins: Instructions) -> None:
    ins.add_sp(_fetch8(ins))


def _ld_hl_sp(ins: Instructions) -> None:
    ins.ldhl(_fetch8(ins))


def _jp_hl(ins: Instructions) -> None:
    ins.registers.pc = ins.registers.hl


def _ld_sp_hl(ins: Instructions) -> None:
    ins.registers.sp = ins.registers.hl


def _store_a_abs(ins: Instructions) -> None:
    ins.memory.write8(_fetch16(ins), ins.registers.a)


def _load_a_abs(ins: Instructions) -> None:
    ins.registers.a = ins.memory.read8(_fetch16(ins))


def _di(ins: Instructions) -> None:
    ins.interrupts.di()


def _ei(ins: Instructions) -> None:
    ins.interrupts.ei()


def _build_table() -> dict[int, Handler]:
    table: dict[int, Handler] = {0x00: _nop, 0x10: _nop}

    for i, pair in enumerate(_REG16):
        table[0x01 + 16 * i] = partial(_ld_pair_imm, pair)
        table[0x03 + 16 * i] = partial(_step_pair, pair, 1)
        table[0x09 + 16 * i] = partial(_add_hl, pair)
        table[0x0B + 16 * i] = partial(_step_pair, pair, -1)

    for i, (pair, step) in enumerate((("bc", 0), ("de", 0), ("hl", 1), ("hl", -1))):
        table[0x02 + 16 * i] = partial(_store_a, pair, step)
        table[0x0A + 16 * i] = partial(_load_a, pair, step)

    for index in range(8):
        table[0x04 + 8 * index] = partial(_modify, Instructions.inc, index)
        table[0x05 + 8 * index] = partial(_modify, Instructions.dec, index)
        table[0x06 + 8 * index] = partial(_ld_imm, index)

    table[0x07] = partial(_rotate_a, Instructions.rlc)
    table[0x0F] = partial(_rotate_a, Instructions.rrc)
    table[0x17] = partial(_rotate_a, Instructions.rl)
    table[0x1F] = partial(_rotate_a, Instructions.rr)
    table[0x08] = _ld_mem_sp
    table[0x18] = partial(_always, Instructions.jr)
    table[0x27] = _daa
    table[0x2F] = _cpl
    table[0x37] = _scf
    table[0x3F] = _ccf

    for dst in range(8):
        for src in range(8):
            table[0x40 | dst << 3 | src] = partial(_ld_reg, dst, src)
    table[0x76] = _halt

    for i, op in enumerate(_ALU):
        for src in range(8):
            table[0x80 | i << 3 | src] = partial(_alu, op, src)
        table[0xC6 + 8 * i] = partial(_alu_imm, op)
        table[0xC7 + 8 * i] = partial(_rst, 8 * i)

    for index in range(4):
        table[0x20 + 8 * index] = partial(_branch, Instructions.jr, JR_COND_TRUE, index)
        table[0xC0 + 8 * index] = partial(_branch, Instructions.ret, RET_COND_TRUE, index)
        table[0xC2 + 8 * index] = partial(_branch, Instructions.jp, JP_COND_TRUE, index)
        table[0xC4 + 8 * index] = partial(_branch, Instructions.call, CALL_COND_TRUE, index)

    for i, pair in enumerate(_STACK16):
        table[0xC1 + 16 * i] = partial(_pop, pair)
        table[0xC5 + 16 * i] = partial(_push, pair)

    table.update({
        0xC3: partial(_always, Instructions.jp),
        0xC9: partial(_always, Instructions.ret),
        0xCB: _prefix_cb,
        0xCD: partial(_always, Instructions.call),
        0xD9: _reti,
        0xE0: _ldh_store,
        0xE2: _ld_c_store,
        0xE8: _add_sp,
        0xE9: _jp_hl,
        0xEA: _store_a_abs,
        0xF0: _ldh_load,
        0xF2: _ld_c_load,
        0xF3: _di,
        0xF8: _ld_hl_sp,
        0xF9: _ld_sp_hl,
        0xFA: _load_a_abs,
        0xFB: _ei,
    })
    return table


_HANDLERS = _build_table()


def decode(ins: Instructions, opcode: int) -> None:
    """Count the cycles of ``opcode`` and execute it.

    The opcode byte itself must already have been fetched; unused opcodes
    do nothing.
    """
    opcode &= 0xFF
    ins.timer.count_cycles(INSTR_CYCLES[opcode])
    handler = _HANDLERS.get(opcode)
    if handler is not None:
        handler(ins)