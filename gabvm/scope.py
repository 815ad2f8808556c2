"""Nested lexical scopes with register allocation."""

from __future__ import annotations

from typing import Optional

from gabvm.instruction import MAX_REGISTERS
from gabvm.symbol_table import INITIAL_CAPACITY, SymbolEntry, SymbolTable


class Scope:
    """A symbol table chained to an enclosing scope."""

    def __init__(self, parent: Optional[Scope] = None) -> None:
        self.symbol_table = SymbolTable(INITIAL_CAPACITY)
        self.parent = parent
        self.next_reg = parent.next_reg if parent is not None else 0

    def alloc_register(self) -> int:
        """Reserve the next free register and return it."""
        if self.next_reg >= MAX_REGISTERS:
            raise OverflowError(f"out of registers ({MAX_REGISTERS} available)")
        reg = self.next_reg
        self.next_reg += 1
        return reg

    def free_register(self) -> None:
        """Release the most recently reserved register."""
        if self.next_reg <= 0:
            raise RuntimeError("no register to free")
        self.next_reg -= 1

    def lookup(self, name: str) -> Optional[SymbolEntry]:
        """Find a name here or in an enclosing scope, innermost first."""
        scope: Optional[Scope] = self
        while scope is not None:
            entry = scope.symbol_table.lookup(name)
            if entry is not None:
                return entry
            scope = scope.parent
        return None