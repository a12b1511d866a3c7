"""SM83 instruction primitives shared by the opcode decoders."""

from __future__ import annotations

from typing import Any

from dmgemu.registers import Flag, Registers

# Machine cycles for each unprefixed opcode; conditional branches add extra
# cycles when taken.
INSTR_CYCLES = (
    1, 3, 2, 2, 1, 1, 2, 1, 5, 2, 2, 2, 1, 1, 2, 1,
    1, 3, 2, 2, 1, 1, 2, 1, 3, 2, 2, 2, 1, 1, 2, 1,
    2, 3, 2, 2, 1, 1, 2, 1, 2, 2, 2, 2, 1, 1, 2, 1,
    2, 3, 2, 2, 3, 3, 3, 1, 2, 2, 2, 2, 1, 1, 2, 1,
    1, 1, 1, 1, 1, 1, 2, 1, 1, 1, 1, 1, 1, 1, 2, 1,
    1, 1, 1, 1, 1, 1, 2, 1, 1, 1, 1, 1, 1, 1, 2, 1,
    1, 1, 1, 1, 1, 1, 2, 1, 1, 1, 1, 1, 1, 1, 2, 1,
    2, 2, 2, 2, 2, 2, 1, 2, 1, 1, 1, 1, 1, 1, 2, 1,
    1, 1, 1, 1, 1, 1, 2, 1, 1, 1, 1, 1, 1, 1, 2, 1,
    1, 1, 1, 1, 1, 1, 2, 1, 1, 1, 1, 1, 1, 1, 2, 1,
    1, 1, 1, 1, 1, 1, 2, 1, 1, 1, 1, 1, 1, 1, 2, 1,
    1, 1, 1, 1, 1, 1, 2, 1, 1, 1, 1, 1, 1, 1, 2, 1,
    2, 3, 3, 4, 3, 4, 2, 4, 2, 4, 3, 0, 3, 6, 2, 4,
    2, 3, 3, 0, 3, 4, 2, 4, 2, 4, 3, 0, 3, 0, 2, 4,
    3, 3, 2, 0, 0, 4, 2, 4, 4, 1, 4, 0, 0, 0, 2, 4,
    3, 3, 2, 1, 0, 4, 2, 4, 3, 2, 4, 1, 0, 0, 2, 4,
)

JR_COND_TRUE = 1
RET_COND_TRUE = 3
JP_COND_TRUE = 1
CALL_COND_TRUE = 3


def _signed8(value: int) -> int:
    """Interpret the low byte of ``value`` as a two's complement number."""
    return ((value + 0x80) & 0xFF) - 0x80


class Instructions:
    """The instruction set, operating on registers and memory.

    Operations on an 8-bit operand take its value and return the new value;
    the caller stores it back where it came from.
    """

    def __init__(self, registers: Registers, memory: Any,
                 interrupts: Any = None, timer: Any = None) -> None:
        self.registers = registers
        self.memory = memory
        self.interrupts = interrupts
        self.timer = timer

    def _flags(self, *, z: bool | None = None, n: bool | None = None,
               h: bool | None = None, c: bool | None = None) -> None:
        for flag, value in ((Flag.Z, z), (Flag.N, n), (Flag.H, h), (Flag.C, c)):
            if value is not None:
                self.registers.set_flag(flag, value)

    def _carry(self) -> int:
        return int(self.registers.get_flag(Flag.C))

    # 8-bit increments and rotations

    def inc(self, value: int) -> int:
        """Increment a byte; carry is left alone."""
        result = (value + 1) & 0xFF
        self._flags(z=result == 0, n=False, h=(result & 0x0F) == 0)
        return result

    def dec(self, value: int) -> int:
        """Decrement a byte; carry is left alone."""
        result = (value - 1) & 0xFF
        self._flags(z=result == 0, n=True, h=(result & 0x0F) == 0x0F)
        return result

    def rlc(self, value: int) -> int:
        """Rotate left, bit 7 into carry and bit 0."""
        self._flags(c=bool(value & 0x80))
        result = ((value << 1) | (value >> 7)) & 0xFF
        self._flags(z=result == 0, n=False, h=False)
        return result

    def add16(self, reg: int, val: int) -> int:
        """Add two 16-bit values, as ADD HL, rr does; Z is left alone."""
        result = reg + val
        self._flags(n=False, h=(reg & 0x0FFF) + (val & 0x0FFF) > 0x0FFF,
                    c=result > 0xFFFF)
        return result & 0xFFFF

    def rrc(self, value: int) -> int:
        """Rotate right, bit 0 into carry and bit 7."""
        self._flags(c=bool(value & 0x01))
        result = ((value >> 1) | (value << 7)) & 0xFF
        self._flags(z=result == 0, n=False, h=False)
        return result

    def rl(self, value: int) -> int:
        """Rotate left through the carry flag."""
        carry = self._carry()
        self._flags(c=bool(value & 0x80))
        result = ((value << 1) | carry) & 0xFF
        self._flags(z=result == 0, n=False, h=False)
        return result

    def jr(self, cond: bool = True) -> bool:
        """Read a signed offset and jump relative by it if ``cond``."""
        regs = self.registers
        offset = _signed8(self.memory.read8(regs.pc))
        regs.pc = (regs.pc + 1) & 0xFFFF
        if cond:
            regs.pc = (regs.pc + offset) & 0xFFFF
        return cond

    def rr(self, value: int) -> int:
        """Rotate right through the carry flag."""
        carry = self._carry()
        self._flags(c=bool(value & 0x01))
        result = ((value >> 1) | (carry << 7)) & 0xFF
        self._flags(z=result == 0, n=False, h=False)
        return result

    def daa(self) -> None:
        """Adjust A to packed BCD after an addition or subtraction."""
        regs = self.registers
        subtract = regs.get_flag(Flag.N)
        correction = 0
        if regs.get_flag(Flag.H) or (not subtract and (regs.a & 0x0F) > 9):
            correction |= 0x06
        if regs.get_flag(Flag.C) or (not subtract and regs.a > 0x99):
            correction |= 0x60
        if subtract:
            regs.a = (regs.a - correction) & 0xFF
        else:
            regs.a = (regs.a + correction) & 0xFF
        self._flags(c=correction >= 0x60, h=False, z=regs.a == 0)

    def halt(self) -> None:
        """Stop executing until an interrupt is pending."""
        self.memory.cpu.halted = True

    # 8-bit arithmetic and logic on A

    def add(self, val: int) -> None:
        """A += val."""
        a = self.registers.a
        result = a + val
        self._flags(z=(result & 0xFF) == 0, n=False,
                    h=(a & 0x0F) + (val & 0x0F) > 0x0F, c=result > 0xFF)
        self.registers.a = result & 0xFF

    def adc(self, val: int) -> None:
        """A += val + carry."""
        a = self.registers.a
        carry = self._carry()
        result = a + val + carry
        self._flags(z=(result & 0xFF) == 0, n=False,
                    h=(a & 0x0F) + (val & 0x0F) + carry > 0x0F, c=result > 0xFF)
        self.registers.a = result & 0xFF

    def sub(self, val: int) -> None:
        """A -= val."""
        a = self.registers.a
        result = a - val
        self._flags(z=(result & 0xFF) == 0, n=True,
                    h=(a & 0x0F) < (val & 0x0F), c=result < 0)
        self.registers.a = result & 0xFF

    def sbc(self, val: int) -> None:
        """A -= val + carry."""
        a = self.registers.a
        carry = self._carry()
        result = a - val - carry
        self._flags(z=(result & 0xFF) == 0, n=True,
                    h=(a & 0x0F) < (val & 0x0F) + carry, c=result < 0)
        self.registers.a = result & 0xFF

    def and_(self, val: int) -> None:
        """A &= val."""
        self.registers.a &= val & 0xFF
        self._flags(z=self.registers.a == 0, n=False, h=True, c=False)

    def xor(self, val: int) -> None:
        """A ^= val."""
        self.registers.a = (self.registers.a ^ val) & 0xFF
        self._flags(z=self.registers.a == 0, n=False, h=False, c=False)

    def or_(self, val: int) -> None:
        """A |= val."""
        self.registers.a = (self.registers.a | val) & 0xFF
        self._flags(z=self.registers.a == 0, n=False, h=False, c=False)

    def cp(self, val: int) -> None:
        """Compare A with val: set flags as for SUB but keep A."""
        a = self.registers.a
        result = a - val
        self._flags(z=(result & 0xFF) == 0, n=True,
                    h=(a & 0x0F) < (val & 0x0F), c=result < 0)

    # Control flow and the stack

    def ret(self, cond: bool = True) -> bool:
        """Pop PC from the stack if ``cond``."""
        if cond:
            self.registers.pc = self.pop()
        return cond

    def pop(self) -> int:
        """Pop and return a 16-bit value from the stack."""
        regs = self.registers
        value = self.memory.read16(regs.sp)
        regs.sp = (regs.sp + 2) & 0xFFFF
        return value

    def jp(self, cond: bool = True) -> bool:
        """Jump to the 16-bit immediate address if ``cond``."""
        regs = self.registers
        if cond:
            regs.pc = self.memory.read16(regs.pc)
        else:
            regs.pc = (regs.pc + 2) & 0xFFFF
        return cond

    def call(self, cond: bool = True) -> bool:
        """Push the return address and jump to the immediate address if ``cond``."""
        regs = self.registers
        if cond:
            target = self.memory.read16(regs.pc)
            self.push((regs.pc + 2) & 0xFFFF)
            regs.pc = target
        else:
            regs.pc = (regs.pc + 2) & 0xFFFF
        return cond

    def push(self, value: int) -> None:
        """Push a 16-bit value onto the stack."""
        regs = self.registers
        regs.sp = (regs.sp - 2) & 0xFFFF
        self.memory.write16(regs.sp, value & 0xFFFF)

    def rst(self, addr: int) -> None:
        """Push PC and jump to a fixed address."""
        self.push(self.registers.pc)
        self.registers.pc = addr & 0xFFFF

    def _sp_offset(self, val: int) -> int:
        sp = self.registers.sp
        val = _signed8(val)
        self._flags(z=False, n=False,
                    h=(sp & 0x0F) + (val & 0x0F) > 0x0F,
                    c=(sp & 0xFF) + (val & 0xFF) > 0xFF)
        return (sp + val) & 0xFFFF

    def add_sp(self, val: int) -> None:
        """SP += signed byte."""
        self.registers.sp = self._sp_offset(val)

    def ldhl(self, val: int) -> None:
        """HL = SP + signed byte."""
        self.registers.hl = self._sp_offset(val)

    # Operations of the 0xCB-prefixed set

    def sla(self, value: int) -> int:
        """Shift left arithmetically, bit 7 into carry."""
        self._flags(c=bool(value & 0x80))
        result = (value << 1) & 0xFF
        self._flags(z=result == 0, n=False, h=False)
        return result

    def sra(self, value: int) -> int:
        """Shift right keeping bit 7, bit 0 into carry."""
        self._flags(c=bool(value & 0x01))
        result = (value & 0x80) | (value >> 1)
        self._flags(z=result == 0, n=False, h=False)
        return result

    def swap(self, value: int) -> int:
        """Exchange the two nibbles."""
        result = ((value << 4) | (value >> 4)) & 0xFF
        self._flags(z=result == 0, n=False, h=False, c=False)
        return result

    def srl(self, value: int) -> int:
        """Shift right logically, bit 0 into carry."""
        self._flags(c=bool(value & 0x01))
        result = (value >> 1) & 0xFF
        self._flags(z=result == 0, n=False, h=False)
        return result

    def bit(self, bit: int, value: int) -> None:
        """Set Z if the given bit of ``value`` is clear."""
        self._flags(z=not value & (1 << bit), n=False, h=True)

    def res(self, bit: int, value: int) -> int:
        """Return ``value`` with the given bit cleared."""
        return value & ~(1 << bit) & 0xFF

    def set(self, bit: int, value: int) -> int:
        """Return ``value`` with the given bit set."""
        return (value | (1 << bit)) & 0xFF