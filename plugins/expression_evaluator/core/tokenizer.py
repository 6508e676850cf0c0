"""Character-level token classification.

The evaluator never materialises a token list. It feeds the pending buffer
and the current character to :func:`classify` and reacts to the decision.
Everything here is a pure function of its inputs and a registry snapshot.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

from .errors import ErrorKind, ExpressionError
from .operand import is_operand
from .registry import RegistrySnapshot

END = ""
UNARY_MINUS = "uminus"
UNARY_PLUS = "uplus"

# Blanks survive only when followed by a digit or a decimal point.
_WHITESPACE_PATTERN = re.compile(r"\s+(?![\d.])")


class TokenKind(str, Enum):
    OPERATOR = "operator"
    OPERAND = "operand"
    INCOMPLETE = "incomplete"


@dataclass(frozen=True, slots=True)
class Token:
    kind: TokenKind
    text: str


def normalize_expression(expression: str) -> str:
    """Strip whitespace except where it separates a following number."""

    return _WHITESPACE_PATTERN.sub("", expression)


def _completes_operator(candidate: str, lookahead: str, registry: RegistrySnapshot) -> bool:
    if not registry.is_operator(candidate):
        return False
    if candidate in (UNARY_MINUS, UNARY_PLUS):
        return False
    if registry.is_variable_or_constant(candidate) and lookahead == END:
        return True
    if lookahead and registry.is_operator(lookahead) and not registry.is_function(lookahead):
        return True
    if not registry.is_function(candidate):
        return True
    return lookahead == "("


def _completes_operand(candidate: str, lookahead: str) -> bool:
    if not is_operand(candidate):
        return False
    if lookahead in ("e", "E"):
        return False
    return lookahead == END or not is_operand(candidate + lookahead)


def classify(buffer: str, char: str, lookahead: str, registry: RegistrySnapshot) -> TokenKind:
    """Decide whether ``buffer + char`` is a complete token.

    ``lookahead`` is the next character of the expression, or :data:`END`
    when ``char`` is the last one.
    """

    candidate = buffer + char
    if _completes_operator(candidate, lookahead, registry):
        return TokenKind.OPERATOR
    if _completes_operand(candidate, lookahead):
        return TokenKind.OPERAND
    return TokenKind.INCOMPLETE


def resolve_sign(
    token: str,
    lookahead: str,
    previous: str | None,
    registry: RegistrySnapshot,
) -> str:
    """Return ``uminus``/``uplus`` when a completed ``-``/``+`` is a sign."""

    if token not in ("-", "+") or lookahead == " ":
        return token
    if previous is None or (registry.is_operator(previous) and previous != ")"):
        return UNARY_MINUS if token == "-" else UNARY_PLUS
    return token


def tokenize(expression: str, registry: RegistrySnapshot) -> Iterator[Token]:
    """Yield the completed tokens of an already normalised expression.

    Signs are reported as typed; sign resolution needs the evaluator's view of
    the previous token.
    """

    buffer = ""
    for index, char in enumerate(expression):
        lookahead = expression[index + 1] if index + 1 < len(expression) else END
        kind = classify(buffer, char, lookahead, registry)
        if kind is TokenKind.INCOMPLETE:
            buffer += char
            continue
        yield Token(kind, buffer + char)
        buffer = ""
    if buffer:
        raise ExpressionError(ErrorKind.UNCLOSED_TOKEN, f"Invalid expression: unexpected '{buffer.strip()}'")


__all__ = [
    "END",
    "Token",
    "TokenKind",
    "UNARY_MINUS",
    "UNARY_PLUS",
    "classify",
    "normalize_expression",
    "resolve_sign",
    "tokenize",
]
