"""Lexer, syntax tree, code generator and register-based bytecode VM for a small scripting language."""

__version__ = "0.1.0"