"""Translation of a resolved syntax tree into a chunk of instructions."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from gabvm.instruction import MAX_REGISTERS, OpCode, encode_i, encode_r
from gabvm.syntax import (
    AssignStmt,
    BinOp,
    BinOpExpr,
    BlockStmt,
    Expr,
    ExprStmt,
    IfStmt,
    LiteralExpr,
    ReturnStmt,
    Script,
    Stmt,
    VarDeclStmt,
    VariableExpr,
)
from gabvm.vm import Chunk


class CodegenError(Exception):
    """The tree cannot be compiled: unresolved names or too many registers."""


_OPCODES = {
    BinOp.ADD: OpCode.ADD,
    BinOp.SUB: OpCode.SUB,
    BinOp.MUL: OpCode.MUL,
    BinOp.DIV: OpCode.DIV,
    BinOp.LESS: OpCode.CMP_LT,
    BinOp.GREATER: OpCode.CMP_GT,
    BinOp.EQUAL: OpCode.CMP_EQ,
    BinOp.NEQUAL: OpCode.CMP_NE,
    BinOp.LEQUAL: OpCode.CMP_LE,
    BinOp.GEQUAL: OpCode.CMP_GE,
}


class _Codegen:
    def __init__(self, first_reg: int) -> None:
        self.chunk = Chunk()
        self.first_reg = first_reg
        self.next_reg = first_reg

    @contextmanager
    def _preserving_registers(self) -> Iterator[None]:
        saved = self.next_reg
        try:
            yield
        finally:
            self.next_reg = saved

    def _alloc_register(self) -> int:
        if self.next_reg >= MAX_REGISTERS:
            raise CodegenError(f"out of registers ({MAX_REGISTERS} available)")
        reg = self.next_reg
        self.next_reg += 1
        return reg

    def _emit(self, instruction: int) -> int:
        return self.chunk.add_instruction(instruction)

    def _label(self) -> int:
        return self._emit(0)

    def _patch_jump(self, label: int, op: OpCode, reg: int) -> None:
        offset = len(self.chunk) - label - 1
        self.chunk.patch_instruction(label, encode_i(op, reg, offset))

    def stmt(self, stmt: Optional[Stmt]) -> None:
        match stmt:
            case ExprStmt(value=value):
                self.expr(value)
            case ReturnStmt(result=result):
                with self._preserving_registers():
                    reg = self.expr(result)
                    self._emit(encode_r(OpCode.RETURN, 0, reg, 0))
            case VarDeclStmt(initializer=None):
                pass
            case VarDeclStmt(name=name, initializer=initializer, reg=reg):
                if reg is None:
                    raise CodegenError(f"unresolved declaration: {name}")
                with self._preserving_registers():
                    source = self.expr(initializer)
                    self._emit(encode_r(OpCode.MOVE, reg, source, 0))
            case AssignStmt(target=target, value=value):
                with self._preserving_registers():
                    dest = self.expr(target)
                    source = self.expr(value)
                    self._emit(encode_r(OpCode.MOVE, dest, source, 0))
            case BlockStmt(statements=statements):
                for inner in statements:
                    self.stmt(inner)
            case IfStmt():
                self._if(stmt)
            case _:
                raise TypeError(f"not a statement: {stmt!r}")

    def _if(self, stmt: IfStmt) -> None:
        saved = self.next_reg
        cond_reg = self.expr(stmt.condition)
        if_false = self._label()
        self.next_reg = saved

        self.stmt(stmt.then_block)

        if stmt.else_block is None:
            self._patch_jump(if_false, OpCode.JMP_IF_FALSE, cond_reg)
            return

        end = self._label()
        self._patch_jump(if_false, OpCode.JMP_IF_FALSE, cond_reg)
        self.stmt(stmt.else_block)
        self._patch_jump(end, OpCode.JMP, 0)

    def expr(self, expr: Expr) -> int:
        match expr:
            case LiteralExpr(value=value):
                index = self.chunk.const_pool.add(value)
                reg = self._alloc_register()
                self._emit(encode_i(OpCode.LOAD_CONST, reg, index))
                return reg
            case BinOpExpr():
                return self._bin_op(expr)
            case VariableExpr(name=name, symbol=symbol):
                if symbol is None:
                    raise CodegenError(f"unresolved variable: {name}")
                return symbol.reg
            case _:
                raise TypeError(f"not an expression: {expr!r}")

    def _bin_op(self, expr: BinOpExpr) -> int:
        saved = self.next_reg
        lhs = self.expr(expr.left)
        rhs = self.expr(expr.right)

        if lhs >= saved:
            result = lhs
        elif rhs >= saved:
            result = rhs
        else:
            result = self._alloc_register()

        self._emit(encode_r(_OPCODES[expr.op], result, lhs, rhs))
        self.next_reg = result + 1
        return result


def generate(script: Script) -> Chunk:
    """Compile a script whose symbols have been resolved into a chunk."""
    state = _Codegen(script.vars_count)
    for stmt in script.statements:
        state.stmt(stmt)
    return state.chunk