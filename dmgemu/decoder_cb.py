"""Decoder for the 0xCB-prefixed SM83 opcodes."""

from __future__ import annotations

from dmgemu.instructions import Instructions

# Operand index in the low three opcode bits: 6 stands for the byte at [HL].
_REG8 = ("b", "c", "d", "e", "h", "l", None, "a")
_HL_INDIRECT = 6

_SHIFTS = (
    Instructions.rlc,
    Instructions.rrc,
    Instructions.rl,
    Instructions.rr,
    Instructions.sla,
    Instructions.sra,
    Instructions.swap,
    Instructions.srl,
)


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


def _cycles(opcode: int) -> int:
    """Machine cycles of a prefixed opcode, not counting the prefix."""
    if opcode & 0x07 != _HL_INDIRECT:
        return 2
    return 3 if opcode >> 6 == 1 else 4


def decode_cb(ins: Instructions, opcode: int) -> None:
    """Count the cycles of a prefixed ``opcode`` and execute it."""
    opcode &= 0xFF
    ins.timer.count_cycles(_cycles(opcode))

    index = opcode & 0x07
    operation = opcode >> 6
    selector = (opcode >> 3) & 0x07
    value = _read_operand(ins, index)

    if operation == 0:
        _write_operand(ins, index, _SHIFTS[selector](ins, value))
    elif operation == 1:
        ins.bit(selector, value)
    elif operation == 2:
        _write_operand(ins, index, ins.res(selector, value))
    else:
        _write_operand(ins, index, ins.set(selector, value))