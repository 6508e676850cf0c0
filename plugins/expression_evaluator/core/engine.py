"""Dual-stack shunting-yard evaluation.

Operands and operators are pushed onto two stacks while the expression is
scanned once from left to right. Operators are applied as soon as precedence
allows, so no postfix form or syntax tree is ever built. Two more stacks
track open function calls and the number of commas seen in each.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from decimal import ROUND_HALF_UP, Decimal, localcontext

from .errors import ErrorKind, ExpressionError
from .operand import Operand
from .registry import Associativity, OperatorProperties, OperatorRegistry, RegistrySnapshot, default_registry
from .settings import DEFAULT_MAX_EXPRESSION_LENGTH, DEFAULT_PRECISION, clamp_precision
from .tokenizer import END, TokenKind, classify, normalize_expression, resolve_sign

logger = logging.getLogger(__name__)

OPEN = "("
CLOSE = ")"
COMMA = ","


@dataclass(frozen=True, slots=True)
class PendingOperator:
    """An operator stack entry.

    ``operand_count`` starts at the registered arity and is replaced with the
    counted arguments when a variable-arity call closes.
    """

    token: str
    properties: OperatorProperties
    operand_count: int

    @classmethod
    def of(cls, token: str, properties: OperatorProperties) -> "PendingOperator":
        return cls(token, properties, properties.arity)

    @property
    def precedence(self) -> int:
        return self.properties.precedence


class _Evaluation:
    """Stacks and transition rules for a single evaluation."""

    def __init__(self, registry: RegistrySnapshot):
        self.registry = registry
        self.operands: list[Operand] = []
        self.operators: list[PendingOperator] = []
        self.functions: list[PendingOperator] = []
        self.arguments: list[int] = []
        # previous token as seen by sign and call detection; constants are
        # recorded by value so that a following "(" does not open a call
        self.last_token: str | None = None
        # previous token as typed
        self.last_symbol: str | None = None
        self._open_marker = PendingOperator.of(OPEN, registry.lookup(OPEN))

    def run(self, expression: str) -> Operand:
        buffer = ""
        for index, char in enumerate(expression):
            lookahead = expression[index + 1] if index + 1 < len(expression) else END
            kind = classify(buffer, char, lookahead, self.registry)
            if kind is TokenKind.INCOMPLETE:
                buffer += char
                continue
            text = buffer + char
            buffer = ""
            if kind is TokenKind.OPERAND:
                self.operands.append(Operand.from_literal(text))
                self.last_token = self.last_symbol = text
            else:
                self._dispatch(text, lookahead)

        if buffer:
            raise ExpressionError(ErrorKind.UNCLOSED_TOKEN, f"Invalid expression: unexpected '{buffer.strip()}'")

        while self.operators:
            if self.operators[-1].token == OPEN:
                raise ExpressionError(ErrorKind.UNMATCHED_PARENTHESIS, "Unmatched number of parenthesis")
            self._evaluate_top()

        if len(self.operands) > 1:
            raise ExpressionError(ErrorKind.TRAILING_OPERANDS, "Invalid expression: missing operator")
        if not self.operands:
            raise ExpressionError(ErrorKind.OPERAND_UNDERFLOW, "Invalid expression: no value")
        return self.operands[-1]

    def _dispatch(self, text: str, lookahead: str) -> None:
        token = resolve_sign(text, lookahead, self.last_token, self.registry)
        properties = self.registry.lookup(token)
        if token == COMMA:
            self._comma()
        elif properties.arity == 0:
            value = properties.function(())
            self.operands.append(value)
            self.last_token = str(value)
            self.last_symbol = token
            return
        elif token == OPEN:
            self._open(lookahead)
        elif token == CLOSE:
            self._close()
        else:
            self._push(PendingOperator.of(token, properties))
        self.last_token = self.last_symbol = text

    def _comma(self) -> None:
        if not self.functions:
            raise ExpressionError(ErrorKind.INVALID_COMMA, "Invalid expression: ',' outside a function call")
        if self.last_symbol in (OPEN, COMMA):
            raise ExpressionError(ErrorKind.INVALID_COMMA, "Invalid expression: empty argument")
        call = self.functions[-1].properties
        if not call.variable_arity and self.arguments[-1] >= call.arity - 1:
            raise ExpressionError(ErrorKind.INVALID_COMMA, "Invalid expression: too many arguments")
        self.arguments[-1] += 1
        self._evaluate_parenthesis()
        self.operators.append(self._open_marker)

    def _open(self, lookahead: str) -> None:
        self.operators.append(self._open_marker)
        if lookahead == CLOSE and (
            self.last_token is None
            or (
                not self.registry.is_function(self.last_symbol)
                and not self.registry.is_variable_or_constant(self.last_symbol)
                and self.last_symbol != OPEN
            )
        ):
            raise ExpressionError(ErrorKind.INVALID_PARENTHESIS, "Invalid use of parenthesis")

        if self.last_token is not None and self.registry.is_function(self.last_token):
            self.functions.append(PendingOperator.of(self.last_token, self.registry.lookup(self.last_token)))
            self.arguments.append(0)
            # inner marker bounds the first argument for comma flushing
            self.operators.append(self._open_marker)
        elif self.functions:
            # plain group inside a call keeps the context stacks level
            self.functions.append(self._open_marker)
            self.arguments.append(0)

    def _close(self) -> None:
        if self.last_symbol == COMMA:
            raise ExpressionError(ErrorKind.INVALID_COMMA, "Invalid expression: empty argument")
        self._evaluate_parenthesis()
        if not self.functions:
            return
        context = self.functions[-1]
        if self.registry.is_function(context.token):
            self._evaluate_parenthesis()
            if context.properties.variable_arity:
                if not self.operators:
                    raise ExpressionError(ErrorKind.UNMATCHED_PARENTHESIS, "Unmatched number of parenthesis")
                pending = self.operators.pop()
                self.operators.append(replace(pending, operand_count=self.arguments[-1] + 1))
            self._evaluate_top()
        self.functions.pop()
        self.arguments.pop()

    def _push(self, incoming: PendingOperator) -> None:
        while self.operators:
            top = self.operators[-1]
            if top.precedence > incoming.precedence or (
                top.precedence == incoming.precedence and top.properties.associativity is Associativity.LEFT
            ):
                self._evaluate_top()
            else:
                break
        self.operators.append(incoming)

    def _evaluate_top(self) -> None:
        pending = self.operators.pop()
        count = pending.operand_count
        # a variable-arity function only gets a count once its call closes
        if count < 0 or count > len(self.operands):
            raise ExpressionError(ErrorKind.OPERAND_UNDERFLOW, "Invalid expression: missing operand")
        arguments = tuple(self.operands[len(self.operands) - count :])
        del self.operands[len(self.operands) - count :]
        self.operands.append(pending.properties.function(arguments))

    def _evaluate_parenthesis(self) -> None:
        while self.operators:
            if self.operators[-1].token == OPEN:
                self.operators.pop()
                return
            self._evaluate_top()
        raise ExpressionError(ErrorKind.UNMATCHED_PARENTHESIS, "Unmatched number of parenthesis")


def _prepare(expression: str) -> str:
    if not isinstance(expression, str) or not expression:
        raise ExpressionError(ErrorKind.EMPTY_EXPRESSION, "Expression is required")
    normalized = normalize_expression(expression)
    if not normalized:
        raise ExpressionError(ErrorKind.EMPTY_EXPRESSION, "Expression is required")
    return normalized


def round_result(value: float, precision: int) -> float:
    """Round half up to ``precision`` decimal places; non-finite values pass through."""

    if not math.isfinite(value):
        return value
    decimal_value = Decimal(repr(value))
    with localcontext() as ctx:
        ctx.prec = max(28, decimal_value.adjusted() + precision + 2)
        rounded = decimal_value.quantize(Decimal(1).scaleb(-precision), rounding=ROUND_HALF_UP)
    return float(rounded)


class DualStackEvaluator:
    """Evaluate infix expressions against an :class:`OperatorRegistry`."""

    def __init__(self, registry: OperatorRegistry | None = None, *, precision: int = DEFAULT_PRECISION):
        self.registry = registry if registry is not None else default_registry()
        self.precision = clamp_precision(precision)

    def evaluate_operand(self, expression: str) -> Operand:
        normalized = _prepare(expression)
        return _Evaluation(self.registry.snapshot()).run(normalized)

    def evaluate(self, expression: str) -> float:
        operand = self.evaluate_operand(expression)
        result = round_result(operand.to_float(), self.precision)
        logger.debug("evaluated %r -> %r", expression, result)
        return result


def evaluate(
    expression: str,
    *,
    precision: int | None = None,
    registry: OperatorRegistry | None = None,
) -> float:
    """Evaluate ``expression`` and return the rounded result."""

    evaluator = DualStackEvaluator(registry, precision=DEFAULT_PRECISION if precision is None else precision)
    return evaluator.evaluate(expression)


def _format_number(value: float) -> str:
    if not math.isfinite(value):
        return repr(value)
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(value)


def evaluate_expression(
    expression: str,
    *,
    precision: int | None = None,
    max_length: int = DEFAULT_MAX_EXPRESSION_LENGTH,
    registry: OperatorRegistry | None = None,
) -> dict[str, object]:
    """Evaluate a scalar expression and return its value plus display metadata."""

    if isinstance(expression, str) and len(expression) > max_length:
        raise ExpressionError(ErrorKind.EXPRESSION_TOO_LONG, "Expression is too long")
    precision = DEFAULT_PRECISION if precision is None else clamp_precision(precision)
    result = evaluate(expression, precision=precision, registry=registry)
    finite = math.isfinite(result)
    return {
        "expression": expression,
        "normalized": normalize_expression(expression),
        "result": result if finite else None,
        "finite": finite,
        "display": _format_number(result),
        "precision": precision,
    }


__all__ = [
    "DualStackEvaluator",
    "PendingOperator",
    "evaluate",
    "evaluate_expression",
    "round_result",
]
