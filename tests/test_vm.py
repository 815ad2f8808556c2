import math

import pytest

from gabvm.codegen import generate
from gabvm.constant_pool import Variant, VariantType
from gabvm.instruction import (
    CHUNK_INITIAL_CAPACITY,
    OpCode,
    encode_i,
    encode_r,
)
from gabvm.syntax import (
    BinOp,
    BinOpExpr,
    BlockStmt,
    IfStmt,
    LiteralExpr,
    ReturnStmt,
    Script,
    VarDeclStmt,
    VariableExpr,
)
from gabvm.vm import VM, Chunk


class _E:
    """Expression builder using Python operators."""

    def __init__(self, node):
        self.node = node

    def _bin(self, op, other):
        return _E(BinOpExpr(self.node, op, _wrap(other).node))

    def __add__(self, other):
        return self._bin(BinOp.ADD, other)

    def __sub__(self, other):
        return self._bin(BinOp.SUB, other)

    def __mul__(self, other):
        return self._bin(BinOp.MUL, other)

    def __truediv__(self, other):
        return self._bin(BinOp.DIV, other)

    def __gt__(self, other):
        return self._bin(BinOp.GREATER, other)

    def __lt__(self, other):
        return self._bin(BinOp.LESS, other)


def _wrap(value):
    if isinstance(value, _E):
        return value
    return _E(LiteralExpr(Variant.number(value)))


def _let(name, value):
    return VarDeclStmt(name, _wrap(value).node)


def _run(statements):
    script = Script(statements)
    script.resolve_symbols()
    vm = VM()
    return vm.execute(generate(script))


def test_chunk_creation():
    chunk = Chunk()
    assert len(chunk) == 0
    assert chunk.instructions == []
    assert chunk.capacity == CHUNK_INITIAL_CAPACITY
    assert len(chunk.const_pool) == 0


def test_instruction_addition():
    chunk = Chunk()
    instructions = [0xDEADBEEF, 0xCAFEBABE, 0x12345678]
    for i, instruction in enumerate(instructions):
        index = chunk.add_instruction(instruction)
        assert index == i
        assert len(chunk) == i + 1
        assert chunk.instructions[i] == instruction
    assert chunk.capacity == CHUNK_INITIAL_CAPACITY


def test_chunk_resize():
    chunk = Chunk()
    for i in range(CHUNK_INITIAL_CAPACITY):
        chunk.add_instruction(i)
    assert chunk.capacity == CHUNK_INITIAL_CAPACITY

    chunk.add_instruction(0xFFFF)
    assert chunk.capacity == CHUNK_INITIAL_CAPACITY * 2
    assert len(chunk) == CHUNK_INITIAL_CAPACITY + 1


def test_patch_instruction():
    chunk = Chunk()
    chunk.add_instruction(0)
    chunk.add_instruction(1)
    chunk.patch_instruction(0, 0xABCD)
    assert chunk.instructions == [0xABCD, 1]


def test_patch_out_of_range():
    chunk = Chunk()
    chunk.add_instruction(0)
    with pytest.raises(IndexError):
        chunk.patch_instruction(1, 5)


def test_instruction_must_fit_word():
    chunk = Chunk()
    with pytest.raises(ValueError):
        chunk.add_instruction(1 << 32)


def test_vm_execute():
    a, b, c, d, e, f, g, h, i, result = (
        _E(VariableExpr(name)) for name in ["a", "b", "c", "d", "e", "f", "g", "h", "i", "result"]
    )
    statements = [
        _let("a", 2),
        _let("b", 3),
        _let("c", a + b * 5),
        _let("d", (c - a) * ((b + 4) / (a + 1))),
        _let("e", d + (c * (a - b) + (b / (a + 2)))),
        _let("f", e - ((d + c) * (b - a))),
        _let("g", ((f + e) * (d - c)) / ((a + b) - (e / (d + 1)))),
        _let("h", g + f - e * (d + c - (b * a))),
        _let("i", (h / g) + (f - (e * (d / (c + (b - a)))))),
        _let("result", ((i + h) * (g - f) + (e / d)) - ((c + b) * (a - 1))),
        IfStmt(
            (result > 20000).node,
            BlockStmt([ReturnStmt(_wrap(1).node)]),
            BlockStmt([ReturnStmt(_wrap(0).node)]),
        ),
    ]
    value = _run(statements)
    assert value.type is VariantType.NUMBER
    assert value.value == 1


def test_hand_assembled_add():
    chunk = Chunk()
    k0 = chunk.const_pool.add(Variant.number(2))
    k1 = chunk.const_pool.add(Variant.number(3))
    chunk.add_instruction(encode_i(OpCode.LOAD_CONST, 0, k0))
    chunk.add_instruction(encode_i(OpCode.LOAD_CONST, 1, k1))
    chunk.add_instruction(encode_r(OpCode.ADD, 2, 0, 1))
    chunk.add_instruction(encode_r(OpCode.RETURN, 0, 2, 0))
    vm = VM()
    assert vm.execute(chunk) == Variant.number(5)
    assert vm.result == Variant.number(5)
    assert vm.registers[2] == Variant.number(5)


def test_division_by_zero_gives_infinity():
    chunk = Chunk()
    k0 = chunk.const_pool.add(Variant.number(1))
    k1 = chunk.const_pool.add(Variant.number(0))
    chunk.add_instruction(encode_i(OpCode.LOAD_CONST, 0, k0))
    chunk.add_instruction(encode_i(OpCode.LOAD_CONST, 1, k1))
    chunk.add_instruction(encode_r(OpCode.DIV, 2, 0, 1))
    chunk.add_instruction(encode_r(OpCode.RETURN, 0, 2, 0))
    value = VM().execute(chunk)
    assert math.isinf(value.value) and value.value > 0


def test_jump_if_false_skips():
    chunk = Chunk()
    k0 = chunk.const_pool.add(Variant.boolean(False))
    k1 = chunk.const_pool.add(Variant.number(7))
    k2 = chunk.const_pool.add(Variant.number(9))
    chunk.add_instruction(encode_i(OpCode.LOAD_CONST, 0, k0))
    chunk.add_instruction(encode_i(OpCode.JMP_IF_FALSE, 0, 2))
    chunk.add_instruction(encode_i(OpCode.LOAD_CONST, 1, k1))
    chunk.add_instruction(encode_r(OpCode.RETURN, 0, 1, 0))
    chunk.add_instruction(encode_i(OpCode.LOAD_CONST, 1, k2))
    chunk.add_instruction(encode_r(OpCode.RETURN, 0, 1, 0))
    assert VM().execute(chunk) == Variant.number(9)


def test_unknown_opcode_raises():
    chunk = Chunk()
    chunk.add_instruction(63 << 26)
    with pytest.raises(ValueError):
        VM().execute(chunk)


def test_comparison_returns_boolean():
    value = _run([ReturnStmt((_wrap(2) < 3).node)])
    assert value == Variant.boolean(True)


def test_if_false_takes_else_branch():
    x = _E(VariableExpr("x"))
    statements = [
        _let("x", 1),
        IfStmt(
            (x > 5).node,
            BlockStmt([ReturnStmt(_wrap(10).node)]),
            BlockStmt([ReturnStmt(_wrap(20).node)]),
        ),
    ]
    assert _run(statements) == Variant.number(20)


def test_no_return_keeps_previous_result():
    vm = VM()
    first = Script([ReturnStmt(_wrap(4).node)])
    first.resolve_symbols()
    assert vm.execute(generate(first)) == Variant.number(4)
    second = Script([_let("y", 1)])
    second.resolve_symbols()
    assert vm.execute(generate(second)) == Variant.number(4)