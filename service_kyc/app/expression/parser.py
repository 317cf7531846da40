"""
Parser for tag assertion expressions.

Grammar::

    Expression := OrExpr
    OrExpr     := AndExpr ( '||' AndExpr )*
    AndExpr    := Primary ( '&&' Primary )*
    Primary    := '(' Expression ')' | Assertion
    Assertion  := OrgName '.' TagName '@' '`' Value '`'

``&&`` binds tighter than ``||`` and both associate to the left. Values
are delimited by backticks and have no escape sequence. Parentheses nest
at most ``MAX_NESTING_DEPTH`` levels.
"""

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import List

from ..errors import ExpressionParseError
from .nodes import And, Assert, Node, Or

MAX_NESTING_DEPTH = 64


class TokenType(str, Enum):
    """Token kinds of the expression language."""
    LPAREN = "("
    RPAREN = ")"
    AND = "&&"
    OR = "||"
    DOT = "."
    AT = "@"
    IDENT = "identifier"
    VALUE = "value"
    END = "end of expression"


@dataclass(frozen=True)
class Token:
    type: TokenType
    text: str
    position: int


_SINGLE_CHAR_TOKENS = {
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ".": TokenType.DOT,
    "@": TokenType.AT,
}

_DOUBLE_CHAR_TOKENS = {
    "&&": TokenType.AND,
    "||": TokenType.OR,
}


def _is_ident_char(char: str) -> bool:
    return char == "_" or (char.isascii() and char.isalnum())


def tokenize(expression: str) -> List[Token]:
    """Split an expression into tokens, ending with an END token."""
    tokens: List[Token] = []
    pos = 0
    length = len(expression)

    while pos < length:
        char = expression[pos]

        if char.isspace():
            pos += 1
            continue

        if char in _SINGLE_CHAR_TOKENS:
            tokens.append(Token(_SINGLE_CHAR_TOKENS[char], char, pos))
            pos += 1
            continue

        pair = expression[pos:pos + 2]
        if pair in _DOUBLE_CHAR_TOKENS:
            tokens.append(Token(_DOUBLE_CHAR_TOKENS[pair], pair, pos))
            pos += 2
            continue

        if char == "`":
            closing = expression.find("`", pos + 1)
            if closing == -1:
                raise ExpressionParseError("Unterminated value literal", pos)
            tokens.append(Token(TokenType.VALUE, expression[pos + 1:closing], pos))
            pos = closing + 1
            continue

        if _is_ident_char(char):
            start = pos
            while pos < length and _is_ident_char(expression[pos]):
                pos += 1
            tokens.append(Token(TokenType.IDENT, expression[start:pos], start))
            continue

        raise ExpressionParseError(f"Unexpected character {char!r}", pos)

    tokens.append(Token(TokenType.END, "", length))
    return tokens


class ExpressionParser:
    """Recursive descent parser producing an ``Or | And | Assert`` tree."""

    def __init__(self, expression: str):
        self.expression = expression
        self.tokens = tokenize(expression)
        self.index = 0
        self.depth = 0

    def parse(self) -> Node:
        if self._peek().type == TokenType.END:
            raise ExpressionParseError("Empty expression", 0)

        node = self._parse_or()

        token = self._peek()
        if token.type != TokenType.END:
            raise ExpressionParseError(f"Unexpected token {token.text!r}", token.position)
        return node

    def _parse_or(self) -> Node:
        node = self._parse_and()
        while self._peek().type == TokenType.OR:
            self._advance()
            node = Or(node, self._parse_and())
        return node

    def _parse_and(self) -> Node:
        node = self._parse_primary()
        while self._peek().type == TokenType.AND:
            self._advance()
            node = And(node, self._parse_primary())
        return node

    def _parse_primary(self) -> Node:
        token = self._peek()
        if token.type == TokenType.LPAREN:
            if self.depth >= MAX_NESTING_DEPTH:
                raise ExpressionParseError("Expression nested too deeply", token.position)
            self._advance()
            self.depth += 1
            node = self._parse_or()
            self._expect(TokenType.RPAREN)
            self.depth -= 1
            return node
        return self._parse_assertion()

    def _parse_assertion(self) -> Assert:
        org = self._expect(TokenType.IDENT)
        self._expect(TokenType.DOT)
        tag = self._expect(TokenType.IDENT)
        self._expect(TokenType.AT)
        value = self._expect(TokenType.VALUE)
        return Assert(org.text, tag.text, value.text)

    def _peek(self) -> Token:
        return self.tokens[self.index]

    def _advance(self) -> Token:
        token = self.tokens[self.index]
        if token.type != TokenType.END:
            self.index += 1
        return token

    def _expect(self, token_type: TokenType) -> Token:
        token = self._peek()
        if token.type != token_type:
            found = token.type.value if token.type == TokenType.END else repr(token.text)
            raise ExpressionParseError(
                f"Expected {token_type.value} but found {found}", token.position
            )
        return self._advance()


@lru_cache(maxsize=1024)
def parse_expression(expression: str) -> Node:
    """Parse an expression into its syntax tree; malformed input raises ExpressionParseError."""
    return ExpressionParser(expression).parse()
