"""Syntax tree of gab scripts and symbol resolution."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from gabvm.constant_pool import Variant
from gabvm.symbol_table import INITIAL_CAPACITY, Symbol, SymbolTable


class ResolveError(Exception):
    """A variable was used undeclared or declared twice."""


class BinOp(enum.Enum):
    """Binary operators."""

    ADD = enum.auto()
    SUB = enum.auto()
    MUL = enum.auto()
    DIV = enum.auto()
    LESS = enum.auto()
    GREATER = enum.auto()
    EQUAL = enum.auto()
    NEQUAL = enum.auto()
    LEQUAL = enum.auto()
    GEQUAL = enum.auto()


@dataclass
class LiteralExpr:
    """A constant value."""

    value: Variant


@dataclass
class BinOpExpr:
    """A binary operation."""

    left: Expr
    op: BinOp
    right: Expr


@dataclass
class VariableExpr:
    """A reference to a variable; symbol is filled in by resolution."""

    name: str
    symbol: Optional[Symbol] = field(default=None, compare=False)


Expr = Union[LiteralExpr, BinOpExpr, VariableExpr]


@dataclass
class ExprStmt:
    """An expression evaluated for its effect."""

    value: Expr


@dataclass
class VarDeclStmt:
    """A `let` declaration; reg is filled in by resolution."""

    name: str
    initializer: Optional[Expr] = None
    reg: Optional[int] = field(default=None, compare=False)


@dataclass
class AssignStmt:
    """Assignment of a value to a target."""

    target: Expr
    value: Expr


@dataclass
class IfStmt:
    """A conditional with an optional else branch."""

    condition: Expr
    then_block: Stmt
    else_block: Optional[Stmt] = None


@dataclass
class BlockStmt:
    """A braced list of statements."""

    statements: list = field(default_factory=list)


@dataclass
class ReturnStmt:
    """Return a value from the script."""

    result: Expr


Stmt = Union[ExprStmt, VarDeclStmt, AssignStmt, IfStmt, BlockStmt, ReturnStmt]


class Script:
    """A whole program: its statements and the variables it declares."""

    def __init__(self, statements: Iterable[Stmt] = ()) -> None:
        self.symbol_table = SymbolTable(INITIAL_CAPACITY)
        self.statements: list[Stmt] = list(statements)
        self.vars_count = 0

    def add_statement(self, stmt: Stmt) -> None:
        """Append a top-level statement."""
        self.statements.append(stmt)

    def resolve_symbols(self) -> None:
        """Give each declaration a register and bind each variable use to it."""
        for stmt in self.statements:
            self._visit_stmt(stmt)

    def _visit_stmt(self, stmt: Optional[Stmt]) -> None:
        match stmt:
            case None:
                return
            case ExprStmt(value=value):
                self._visit_expr(value)
            case VarDeclStmt(name=name, initializer=initializer):
                if not self.symbol_table.insert(name, self.vars_count):
                    raise ResolveError(f"variable already declared: {name}")
                if initializer is not None:
                    self._visit_expr(initializer)
                stmt.reg = self.vars_count
                self.vars_count += 1
            case AssignStmt(target=target, value=value):
                self._visit_expr(target)
                self._visit_expr(value)
            case IfStmt(condition=condition, then_block=then_block, else_block=else_block):
                self._visit_expr(condition)
                self._visit_stmt(then_block)
                self._visit_stmt(else_block)
            case BlockStmt(statements=statements):
                for inner in statements:
                    self._visit_stmt(inner)
            case ReturnStmt(result=result):
                self._visit_expr(result)
            case _:
                raise TypeError(f"not a statement: {stmt!r}")

    def _visit_expr(self, expr: Expr) -> None:
        match expr:
            case BinOpExpr(left=left, right=right):
                self._visit_expr(left)
                self._visit_expr(right)
            case VariableExpr(name=name):
                entry = self.symbol_table.lookup(name)
                if entry is None:
                    raise ResolveError(f"undeclared variable: {name}")
                expr.symbol = entry.symbol
            case LiteralExpr():
                pass
            case _:
                raise TypeError(f"not an expression: {expr!r}")