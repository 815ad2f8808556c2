"""Tokenizer for gab source text."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterator

_END = "\0"
_DIGITS = frozenset("0123456789")
_LETTERS = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ")
_ALNUM = _DIGITS | _LETTERS
_WHITESPACE = frozenset(" \t\n\v\f\r")


class TokenType(enum.Enum):
    """Kinds of tokens produced by the lexer."""

    INVALID = enum.auto()
    EOF = enum.auto()
    NUMBER = enum.auto()
    PLUS = enum.auto()
    MINUS = enum.auto()
    MUL = enum.auto()
    DIV = enum.auto()
    ASSIGN = enum.auto()
    NOT = enum.auto()
    LESS = enum.auto()
    GREATER = enum.auto()
    EQUAL = enum.auto()
    NEQUAL = enum.auto()
    LEQUAL = enum.auto()
    GEQUAL = enum.auto()
    LPAREN = enum.auto()
    RPAREN = enum.auto()
    LBRACE = enum.auto()
    RBRACE = enum.auto()
    SEMICOLON = enum.auto()
    LET = enum.auto()
    RETURN = enum.auto()
    IF = enum.auto()
    ELSE = enum.auto()
    IDENT = enum.auto()


_KEYWORDS = {
    "let": TokenType.LET,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "return": TokenType.RETURN,
}

_SINGLE = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.MUL,
    "/": TokenType.DIV,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    ";": TokenType.SEMICOLON,
}

# Characters that may be followed by '=' to form a two-character operator.
_WITH_EQ = {
    "=": (TokenType.ASSIGN, TokenType.EQUAL),
    "!": (TokenType.NOT, TokenType.NEQUAL),
    "<": (TokenType.LESS, TokenType.LEQUAL),
    ">": (TokenType.GREATER, TokenType.GEQUAL),
}


@dataclass(frozen=True)
class Token:
    """A token and the source text it was read from."""

    type: TokenType
    lexeme: str = ""


class Lexer:
    """Reads tokens one by one from a source string."""

    def __init__(self, source: str) -> None:
        self.source = source
        self.pos = 0

    def _peek(self) -> str:
        if self.pos < len(self.source):
            return self.source[self.pos]
        return _END

    def _take_while(self, allowed: frozenset[str]) -> None:
        while self._peek() in allowed:
            self.pos += 1

    def _number(self) -> Token:
        start = self.pos
        self._take_while(_DIGITS)
        if self._peek() == ".":
            self.pos += 1
            self._take_while(_DIGITS)
        return Token(TokenType.NUMBER, self.source[start:self.pos])

    def _identifier(self) -> Token:
        start = self.pos
        self._take_while(_ALNUM)
        text = self.source[start:self.pos]
        return Token(_KEYWORDS.get(text, TokenType.IDENT), text)

    def next_token(self) -> Token:
        """Return the next token; EOF once the input is exhausted."""
        self._take_while(_WHITESPACE)

        ch = self._peek()
        if ch in _DIGITS or ch == ".":
            return self._number()
        if ch in _LETTERS:
            return self._identifier()

        self.pos += 1
        if ch == _END:
            return Token(TokenType.EOF)
        if ch in _SINGLE:
            return Token(_SINGLE[ch], ch)
        if ch in _WITH_EQ:
            base, with_eq = _WITH_EQ[ch]
            if self._peek() == "=":
                self.pos += 1
                return Token(with_eq, ch + "=")
            return Token(base, ch)
        return Token(TokenType.INVALID, ch)

    def __iter__(self) -> Iterator[Token]:
        """Yield the remaining tokens, ending with the EOF token."""
        while True:
            token = self.next_token()
            yield token
            if token.type is TokenType.EOF:
                return