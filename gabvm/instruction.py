"""Opcodes and the 32-bit instruction encoding."""

from __future__ import annotations

import enum
from typing import NamedTuple

# Largest constant index that fits the 19-bit field.
MAX_CONSTANTS = (1 << 19) - 1

# Largest register count that fits the 7-bit field.
MAX_REGISTERS = (1 << 7) - 1

# Sentinel for "no register".
INVALID_REGISTER = MAX_REGISTERS + 1

# Initial number of instruction slots reserved by a chunk.
CHUNK_INITIAL_CAPACITY = 4

_WORD_MASK = 0xFFFFFFFF
_REG_MASK = 0x7F
_IMM_MASK = 0x7FFFF
_FLAGS_MASK = 0x1F


class OpCode(enum.IntEnum):
    """Operations understood by the virtual machine."""

    LOAD_CONST = 0  # rd <- constant (I-type)
    MOVE = 1  # rd <- r1 (R-type)
    ADD = 2  # rd <- r1 + r2 (R-type)
    SUB = 3  # rd <- r1 - r2 (R-type)
    MUL = 4  # rd <- r1 * r2 (R-type)
    DIV = 5  # rd <- r1 / r2 (R-type)
    CMP_LT = 6
    CMP_GT = 7
    CMP_EQ = 8
    CMP_NE = 9
    CMP_LE = 10
    CMP_GE = 11
    JMP = 12
    JMP_IF_FALSE = 13
    RETURN = 14


class RFields(NamedTuple):
    """Register operands of an R-type instruction."""

    rd: int
    r1: int
    r2: int
    flags: int


class IFields(NamedTuple):
    """Operands of an I-type instruction."""

    rd: int
    imm: int

    @property
    def kx(self) -> int:
        """The immediate read as a constant-pool index."""
        return self.imm


def encode_r(op: int, rd: int, r1: int, r2: int) -> int:
    """Pack an R-type instruction: 6-bit opcode and three 7-bit registers."""
    return ((op << 26) | (rd << 19) | (r1 << 12) | (r2 << 5)) & _WORD_MASK


def encode_i(op: int, rd: int, kx: int) -> int:
    """Pack an I-type instruction: opcode, register and a 19-bit immediate."""
    return ((op << 26) | (rd << 19) | (kx & _IMM_MASK)) & _WORD_MASK


def decode_opcode(instruction: int) -> int:
    """Return the opcode bits; compares equal to the matching OpCode member."""
    return (instruction & _WORD_MASK) >> 26


def decode_r(instruction: int) -> RFields:
    """Unpack the operands of an R-type instruction."""
    return RFields(
        rd=(instruction >> 19) & _REG_MASK,
        r1=(instruction >> 12) & _REG_MASK,
        r2=(instruction >> 5) & _REG_MASK,
        flags=instruction & _FLAGS_MASK,
    )


def decode_i(instruction: int) -> IFields:
    """Unpack the operands of an I-type instruction."""
    return IFields(
        rd=(instruction >> 19) & _REG_MASK,
        imm=instruction & _IMM_MASK,
    )