"""Operator, function and constant table consulted by the evaluator.

The registry is shared by every evaluation in the process. Mutations are
serialised with a lock and readers work from an immutable snapshot that is
rebuilt lazily after each mutation, so an evaluation never observes a
half-applied change.
"""

from __future__ import annotations

import logging
import math
import random
import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from threading import RLock
from types import MappingProxyType
from typing import Callable, Iterable, Mapping, Sequence

import numpy as np

from .errors import ErrorKind, ExpressionError, RegistryError
from .operand import Operand

logger = logging.getLogger(__name__)

VARIABLE_ARITY = -1
FUNCTION_PRECEDENCE = 4
CONSTANT_PRECEDENCE = 5

_ADD_NAME_PATTERN = re.compile(r"[a-zA-Z][a-zA-Z0-9]+")
_REMOVE_NAME_PATTERN = re.compile(r"[a-zA-Z0-9]+")

Evaluation = Callable[[Sequence[Operand]], Operand]


class Associativity(str, Enum):
    LEFT = "left"
    RIGHT = "right"
    NO = "no"


class OperatorKind(str, Enum):
    PARENTHESIS = "parenthesis"
    SEPARATOR = "separator"
    OPERATOR = "operator"
    UNARY = "unary"
    FUNCTION = "function"
    CONSTANT = "constant"


_NAMED_KINDS = frozenset({OperatorKind.FUNCTION, OperatorKind.CONSTANT})


@dataclass(frozen=True, slots=True)
class OperatorProperties:
    """Arity, precedence, associativity and evaluation function of one token."""

    arity: int
    precedence: int
    kind: OperatorKind
    associativity: Associativity = Associativity.LEFT
    function: Evaluation | None = None
    builtin: bool = True

    @property
    def variable_arity(self) -> bool:
        return self.arity == VARIABLE_ARITY

    @property
    def named(self) -> bool:
        """Functions and constants are called by name, operators are symbols."""
        return self.kind in _NAMED_KINDS


def _unary(fn: Callable[[np.float64], np.float64]) -> Evaluation:
    def evaluate(operands: Sequence[Operand]) -> Operand:
        with np.errstate(all="ignore"):
            return Operand(float(fn(np.float64(operands[0].to_float()))))

    return evaluate


def _binary(fn: Callable[[np.float64, np.float64], np.float64]) -> Evaluation:
    def evaluate(operands: Sequence[Operand]) -> Operand:
        left, right = (np.float64(item.to_float()) for item in operands)
        with np.errstate(all="ignore"):
            return Operand(float(fn(left, right)))

    return evaluate


def _constant(factory: Callable[[], float]) -> Evaluation:
    def evaluate(operands: Sequence[Operand]) -> Operand:
        return Operand(float(factory()))

    return evaluate


def _round_half_up(value: np.float64) -> np.float64:
    return np.floor(value + 0.5)


def _log(value: np.float64, base: np.float64) -> np.float64:
    return np.log(value) / np.log(base)


def _factorial(value: np.float64) -> np.float64:
    try:
        return np.float64(math.gamma(float(value) + 1.0))
    except OverflowError:
        return np.float64(math.inf)
    except ValueError:
        # gamma has poles at the non-positive integers
        return np.float64(math.nan)


def _mean(operands: Sequence[Operand]) -> Operand:
    with np.errstate(all="ignore"):
        return Operand(float(np.mean([item.to_float() for item in operands])))


def _operator(arity: int, precedence: int, fn, associativity: Associativity = Associativity.LEFT) -> OperatorProperties:
    evaluation = _binary(fn) if arity == 2 else _unary(fn)
    kind = OperatorKind.OPERATOR if arity == 2 else OperatorKind.UNARY
    return OperatorProperties(arity, precedence, kind, associativity, function=evaluation)


def _function(arity: int, evaluation: Evaluation, *, builtin: bool = True) -> OperatorProperties:
    if arity == 0:
        return OperatorProperties(0, CONSTANT_PRECEDENCE, OperatorKind.CONSTANT, function=evaluation, builtin=builtin)
    return OperatorProperties(arity, FUNCTION_PRECEDENCE, OperatorKind.FUNCTION, function=evaluation, builtin=builtin)


def _builtin_entries() -> dict[str, OperatorProperties]:
    entries: dict[str, OperatorProperties] = {
        # parenthesis and separator
        "(": OperatorProperties(1, 0, OperatorKind.PARENTHESIS),
        ")": OperatorProperties(1, 0, OperatorKind.PARENTHESIS),
        ",": OperatorProperties(0, 0, OperatorKind.SEPARATOR),
        # binary
        "+": _operator(2, 1, np.add),
        "-": _operator(2, 1, np.subtract),
        "*": _operator(2, 2, np.multiply),
        "/": _operator(2, 2, np.divide),
        "%": _operator(2, 2, np.fmod),
        "^": _operator(2, 3, np.power, Associativity.RIGHT),
        # unary signs
        "uminus": _operator(1, 4, np.negative, Associativity.NO),
        "uplus": _operator(1, 4, np.positive, Associativity.NO),
    }

    unary_functions: dict[str, Callable[[np.float64], np.float64]] = {
        "abs": np.abs,
        "sin": np.sin,
        "cos": np.cos,
        "tan": np.tan,
        "asin": np.arcsin,
        "acos": np.arccos,
        "atan": np.arctan,
        "sinh": np.sinh,
        "cosh": np.cosh,
        "tanh": np.tanh,
        "asinh": np.arcsinh,
        "acosh": np.arccosh,
        "atanh": np.arctanh,
        "deg": np.degrees,
        "rad": np.radians,
        "round": _round_half_up,
        "floor": np.floor,
        "ceil": np.ceil,
        "ln": np.log,
        "log10": np.log10,
        "sqrt": np.sqrt,
        "cbrt": np.cbrt,
        "fact": _factorial,
    }
    for name, fn in unary_functions.items():
        entries[name] = _function(1, _unary(fn))

    entries["log"] = _function(2, _binary(_log))
    entries["max"] = _function(2, _binary(np.maximum))
    entries["min"] = _function(2, _binary(np.minimum))
    entries["mean"] = _function(VARIABLE_ARITY, _mean)

    # zero-argument functions and constants
    entries["rand"] = _function(0, _constant(random.random))
    entries["pi"] = _function(0, _constant(lambda: math.pi))
    entries["e"] = _function(0, _constant(lambda: math.e))
    return entries


class RegistrySnapshot:
    """Immutable read view of a registry."""

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[str, OperatorProperties]):
        self._entries = MappingProxyType(dict(entries))

    def lookup(self, token: str) -> OperatorProperties | None:
        return self._entries.get(token)

    def is_operator(self, token: str) -> bool:
        return token in self._entries

    def is_function(self, token: str) -> bool:
        props = self._entries.get(token)
        return props is not None and props.named

    def is_variable_or_constant(self, token: str) -> bool:
        props = self._entries.get(token)
        return props is not None and props.arity == 0

    def names(self) -> list[str]:
        return sorted(self._entries)

    def items(self) -> Iterable[tuple[str, OperatorProperties]]:
        return self._entries.items()

    def __contains__(self, token: object) -> bool:
        return token in self._entries


def _wrap_user_function(name: str, function: Callable[..., float]) -> Evaluation:
    def evaluate(operands: Sequence[Operand]) -> Operand:
        try:
            result = function(*(item.to_float() for item in operands))
            if isinstance(result, Operand):
                return result
            return Operand(float(result))
        except (ArithmeticError, TypeError, ValueError) as exc:
            raise ExpressionError(ErrorKind.FUNCTION_ERROR, f"Function {name} failed: {exc}") from exc

    return evaluate


class OperatorRegistry:
    """Mutable table of operators, functions and constants.

    User functions are plain callables over floats::

        registry.add_function("si", lambda p, r, t: p * r * t / 100, arity=3)
        registry.add_function("total", lambda *xs: sum(xs))  # variable arity
    """

    def __init__(self):
        self._lock = RLock()
        self._entries: dict[str, OperatorProperties] = _builtin_entries()
        self._builtins = frozenset(self._entries)
        self._snapshot: RegistrySnapshot | None = None

    def snapshot(self) -> RegistrySnapshot:
        with self._lock:
            if self._snapshot is None:
                self._snapshot = RegistrySnapshot(self._entries)
            return self._snapshot

    def lookup(self, token: str) -> OperatorProperties | None:
        return self.snapshot().lookup(token)

    def is_operator(self, token: str) -> bool:
        return self.snapshot().is_operator(token)

    def is_function(self, token: str) -> bool:
        return self.snapshot().is_function(token)

    def is_variable_or_constant(self, token: str) -> bool:
        return self.snapshot().is_variable_or_constant(token)

    def operator_names(self) -> list[str]:
        return self.snapshot().names()

    def add_function(
        self,
        name: str,
        function: Callable[..., float],
        arity: int = VARIABLE_ARITY,
    ) -> None:
        """Register ``function`` under ``name``.

        ``arity`` defaults to :data:`VARIABLE_ARITY`, in which case the
        function receives however many arguments the call site supplies.
        """

        if name is None:
            raise RegistryError("Function name cannot be empty.")
        if not _ADD_NAME_PATTERN.fullmatch(name):
            raise RegistryError(f"Not a valid function name: {name}.")
        if function is None or not callable(function):
            raise RegistryError("Function must be callable.")
        if arity < VARIABLE_ARITY:
            raise RegistryError(f"Invalid arity for {name}: {arity}.")
        with self._lock:
            if name in self._builtins:
                raise RegistryError(f"Cannot override predefined function: {name}.")
            self._entries[name] = _function(arity, _wrap_user_function(name, function), builtin=False)
            self._snapshot = None
        logger.info("registered function %s (arity %s)", name, arity)

    def remove_function(self, name: str) -> None:
        if name is None:
            raise RegistryError("Function name cannot be empty.")
        if not _REMOVE_NAME_PATTERN.fullmatch(name):
            raise RegistryError(f"Not a valid function name: {name}.")
        with self._lock:
            props = self._entries.get(name)
            if props is None or not props.named:
                raise RegistryError(f"Function not found: {name}.")
            if name in self._builtins:
                raise RegistryError(f"Cannot remove predefined function: {name}.")
            del self._entries[name]
            self._snapshot = None
        logger.info("removed function %s", name)

    def describe(self) -> list[dict[str, object]]:
        """Return a JSON friendly listing of every registered token."""

        rows: list[dict[str, object]] = []
        for name, props in sorted(self.snapshot().items()):
            rows.append(
                {
                    "name": name,
                    "kind": props.kind.value,
                    "arity": None if props.variable_arity else props.arity,
                    "variable_arity": props.variable_arity,
                    "precedence": props.precedence,
                    "associativity": props.associativity.value,
                    "builtin": props.builtin,
                }
            )
        return rows


@lru_cache(maxsize=1)
def default_registry() -> OperatorRegistry:
    """Return the process-wide :class:`OperatorRegistry`."""

    return OperatorRegistry()


__all__ = [
    "Associativity",
    "CONSTANT_PRECEDENCE",
    "FUNCTION_PRECEDENCE",
    "OperatorKind",
    "OperatorProperties",
    "OperatorRegistry",
    "RegistrySnapshot",
    "VARIABLE_ARITY",
    "default_registry",
]
