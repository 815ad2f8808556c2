"""Code chunks and the register machine that runs them."""

from __future__ import annotations

import math
import operator
from typing import Callable, Optional

from gabvm.constant_pool import ConstantPool, Variant
from gabvm.instruction import (
    CHUNK_INITIAL_CAPACITY,
    MAX_CONSTANTS,
    MAX_REGISTERS,
    OpCode,
    decode_i,
    decode_opcode,
    decode_r,
)

_WORD_MAX = 0xFFFFFFFF


def _check_word(instruction: int) -> None:
    if not 0 <= instruction <= _WORD_MAX:
        raise ValueError(f"instruction {instruction:#x} does not fit in 32 bits")


def _divide(left: float, right: float) -> float:
    if right != 0:
        return left / right
    if left == 0 or math.isnan(left):
        return math.nan
    return math.copysign(math.inf, left) * math.copysign(1.0, right)


_ARITHMETIC: dict[OpCode, Callable[[float, float], float]] = {
    OpCode.ADD: operator.add,
    OpCode.SUB: operator.sub,
    OpCode.MUL: operator.mul,
    OpCode.DIV: _divide,
}

_COMPARISONS: dict[OpCode, Callable[[float, float], bool]] = {
    OpCode.CMP_LT: operator.lt,
    OpCode.CMP_GT: operator.gt,
    OpCode.CMP_EQ: operator.eq,
    OpCode.CMP_NE: operator.ne,
    OpCode.CMP_LE: operator.le,
    # CMP_GE is evaluated with the same test as CMP_LE.
    OpCode.CMP_GE: operator.le,
}


class Chunk:
    """A sequence of encoded instructions with its constant pool."""

    def __init__(self) -> None:
        self.const_pool = ConstantPool(MAX_CONSTANTS)
        self.instructions: list[int] = []
        self._capacity = CHUNK_INITIAL_CAPACITY

    @property
    def capacity(self) -> int:
        """Reserved instruction slots; doubles when full."""
        return self._capacity

    def add_instruction(self, instruction: int) -> int:
        """Append an instruction and return its index."""
        _check_word(instruction)
        if len(self.instructions) >= self._capacity:
            self._capacity *= 2
        self.instructions.append(instruction)
        return len(self.instructions) - 1

    def patch_instruction(self, index: int, instruction: int) -> None:
        """Replace the instruction at an existing index."""
        if not 0 <= index < len(self.instructions):
            raise IndexError(f"instruction index {index} out of range")
        _check_word(instruction)
        self.instructions[index] = instruction

    def __len__(self) -> int:
        return len(self.instructions)


class VM:
    """Register machine; registers keep their values between runs."""

    def __init__(self) -> None:
        self.registers: list[Variant] = [Variant.number(0.0)] * MAX_REGISTERS
        self.instruction_pointer = 0
        self.result: Optional[Variant] = None

    def _number(self, reg: int) -> float:
        return float(self.registers[reg].value)

    def execute(self, chunk: Chunk) -> Optional[Variant]:
        """Run a chunk until it returns or runs out; return the result."""
        self.instruction_pointer = 0
        returned = False
        while not returned and self.instruction_pointer < len(chunk.instructions):
            returned = self._step(chunk, chunk.instructions[self.instruction_pointer])
            self.instruction_pointer += 1
        return self.result

    def _step(self, chunk: Chunk, instruction: int) -> bool:
        raw_op = decode_opcode(instruction)
        try:
            op = OpCode(raw_op)
        except ValueError:
            raise ValueError(f"unknown opcode {raw_op}") from None

        if op is OpCode.LOAD_CONST:
            fields = decode_i(instruction)
            self.registers[fields.rd] = chunk.const_pool.get(fields.kx)
        elif op is OpCode.MOVE:
            fields = decode_r(instruction)
            self.registers[fields.rd] = self.registers[fields.r1]
        elif op in _ARITHMETIC:
            fields = decode_r(instruction)
            value = _ARITHMETIC[op](self._number(fields.r1), self._number(fields.r2))
            self.registers[fields.rd] = Variant.number(value)
        elif op in _COMPARISONS:
            fields = decode_r(instruction)
            value = _COMPARISONS[op](self._number(fields.r1), self._number(fields.r2))
            self.registers[fields.rd] = Variant.boolean(value)
        elif op is OpCode.RETURN:
            self.result = self.registers[decode_r(instruction).r1]
            return True
        elif op is OpCode.JMP:
            self.instruction_pointer += decode_i(instruction).imm
        elif op is OpCode.JMP_IF_FALSE:
            fields = decode_i(instruction)
            if not bool(self.registers[fields.rd].value):
                self.instruction_pointer += fields.imm
        return False