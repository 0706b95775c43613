"""Tokenizer for networked variable type names such as ``CHandle< T >[24]``."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable, Iterator, Optional


@dataclass(frozen=True)
class Span:
    """Byte positions, relative to the start of the input, that a token covers."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"span start {self.start} is past its end {self.end}")

    def to(self, end: Span) -> Span:
        """Return a span from the start of this one to the end of ``end``."""
        return Span(self.start, end.end)

    def __repr__(self) -> str:
        return f"Span {{ {self.start}, {self.end} }}"


class VarTypeError(Exception):
    """Base class for errors raised while tokenizing or parsing a var type."""


class UnknownCharError(VarTypeError):
    """The input holds a character that no token can start with."""

    def __init__(self, char: str) -> None:
        super().__init__(f"unknown char {char}")
        self.char = char


class UnexpectedEofError(VarTypeError):
    """The input ended where another token was required."""

    def __init__(self) -> None:
        super().__init__("unexpected eof")


class UnexpectedTokenError(VarTypeError):
    """A token that does not fit the grammar was found at ``position``."""

    def __init__(self, position: int) -> None:
        super().__init__(f"unexpected token at {position}")
        self.position = position


class TokenKind(enum.Enum):
    LANGLE = "<"
    RANGLE = ">"
    LSQUARE = "["
    RSQUARE = "]"
    ASTERISK = "*"
    IDENT = "ident"
    LIT = "lit"


_PUNCTUATION = {
    "<": TokenKind.LANGLE,
    ">": TokenKind.RANGLE,
    "[": TokenKind.LSQUARE,
    "]": TokenKind.RSQUARE,
    "*": TokenKind.ASTERISK,
}


@dataclass(frozen=True)
class Token:
    """A token; ``value`` holds the text of identifiers and literals."""

    kind: TokenKind
    span: Span
    value: Optional[str] = None


def _is_ident_start(ch: str) -> bool:
    return ch.isascii() and ch.isalpha()


def _is_ident_continue(ch: str) -> bool:
    return (ch.isascii() and ch.isalnum()) or ch == "_"


def _is_ascii_digit(ch: str) -> bool:
    return ch in "0123456789"


class Tokenizer:
    """Iterator over the tokens of a var type string.

    Iteration raises :class:`UnknownCharError` on a character that cannot
    start a token; the offending character is consumed, so iteration may
    continue afterwards.
    """

    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0
        self._offset = 0
        self._prev_offset = 0

    def __iter__(self) -> Iterator[Token]:
        return self

    def _bump(self) -> Optional[str]:
        if self._pos >= len(self._text):
            return None
        ch = self._text[self._pos]
        self._pos += 1
        self._prev_offset = self._offset
        self._offset += len(ch.encode("utf-8"))
        return ch

    def _eat_while(self, predicate: Callable[[str], bool]) -> None:
        while self._pos < len(self._text) and predicate(self._text[self._pos]):
            self._bump()

    def _emit_run(self, kind: TokenKind, predicate: Callable[[str], bool]) -> Token:
        start = self._prev_offset
        start_pos = self._pos - 1
        self._eat_while(predicate)
        return Token(kind, Span(start, self._offset), self._text[start_pos : self._pos])

    def __next__(self) -> Token:
        while True:
            ch = self._bump()
            if ch is None:
                raise StopIteration
            kind = _PUNCTUATION.get(ch)
            if kind is not None:
                return Token(kind, Span(self._prev_offset, self._offset))
            if _is_ident_start(ch):
                return self._emit_run(TokenKind.IDENT, _is_ident_continue)
            if _is_ascii_digit(ch):
                return self._emit_run(TokenKind.LIT, _is_ascii_digit)
            if ch.isspace():
                self._eat_while(str.isspace)
                continue
            raise UnknownCharError(ch)