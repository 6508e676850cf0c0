"""Error types raised by the expression evaluator core."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Category tag attached to every :class:`ExpressionError`."""

    EMPTY_EXPRESSION = "empty_expression"
    EXPRESSION_TOO_LONG = "expression_too_long"
    UNCLOSED_TOKEN = "unclosed_token"
    OPERAND_UNDERFLOW = "operand_underflow"
    TRAILING_OPERANDS = "trailing_operands"
    UNMATCHED_PARENTHESIS = "unmatched_parenthesis"
    INVALID_COMMA = "invalid_comma"
    INVALID_PARENTHESIS = "invalid_parenthesis"
    FUNCTION_ERROR = "function_error"


class ExpressionError(ValueError):
    """Raised when an expression cannot be parsed or evaluated."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __repr__(self) -> str:
        return f"ExpressionError({self.kind.value!r}, {self.message!r})"


class RegistryError(ValueError):
    """Raised when a user function cannot be added to or removed from a registry."""


__all__ = ["ErrorKind", "ExpressionError", "RegistryError"]
