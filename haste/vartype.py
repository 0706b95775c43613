"""Parser that turns a var type string into a small expression tree."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Union

from haste.tokenizer import (
    Token,
    TokenKind,
    Tokenizer,
    UnexpectedEofError,
    UnexpectedTokenError,
)

_USIZE_MAX = (1 << 64) - 1


@dataclass(frozen=True)
class Ident:
    name: str


@dataclass(frozen=True)
class StrLit:
    value: str


@dataclass(frozen=True)
class NumLit:
    value: int


@dataclass(frozen=True)
class Pointer:
    expr: Expr


@dataclass(frozen=True)
class Template:
    expr: Expr
    arg: Expr


@dataclass(frozen=True)
class Array:
    expr: Expr
    length: Expr


Expr = Union[Ident, StrLit, NumLit, Pointer, Template, Array]


class _Parser:
    def __init__(self, text: str) -> None:
        self._tokens: Iterator[Token] = Tokenizer(text)
        self._pushed_back: Optional[Token] = None

    def _next_token(self) -> Optional[Token]:
        if self._pushed_back is not None:
            token, self._pushed_back = self._pushed_back, None
            return token
        return next(self._tokens, None)

    def _expect(self, accept: Callable[[TokenKind], bool]) -> Token:
        token = self._next_token()
        if token is None:
            raise UnexpectedEofError()
        if not accept(token.kind):
            raise UnexpectedTokenError(token.span.start)
        return token

    def _array_length(self) -> Expr:
        token = self._expect(lambda _kind: True)
        if token.kind is TokenKind.IDENT:
            return Ident(token.value)
        if token.kind is TokenKind.LIT:
            number = int(token.value)
            if number > _USIZE_MAX:
                raise UnexpectedTokenError(token.span.start)
            return NumLit(number)
        raise UnexpectedTokenError(token.span.start)

    def parse(self) -> Expr:
        first = self._expect(lambda kind: kind is TokenKind.IDENT)
        expr: Expr = Ident(first.value)
        while (token := self._next_token()) is not None:
            if token.kind is TokenKind.LANGLE:
                arg = self.parse()
                self._expect(lambda kind: kind is TokenKind.RANGLE)
                expr = Template(expr, arg)
            elif token.kind is TokenKind.LSQUARE:
                length = self._array_length()
                self._expect(lambda kind: kind is TokenKind.RSQUARE)
                expr = Array(expr, length)
            elif token.kind is TokenKind.ASTERISK:
                expr = Pointer(expr)
            elif token.kind in (TokenKind.RANGLE, TokenKind.RSQUARE):
                self._pushed_back = token
                break
            else:
                raise UnexpectedTokenError(token.span.start)
        return expr


def parse(text: str) -> Expr:
    """Parse a var type such as ``CHandle< CBaseEntity >[24]``.

    Raises a :class:`~haste.tokenizer.VarTypeError` subclass on bad input.
    """
    return _Parser(text).parse()