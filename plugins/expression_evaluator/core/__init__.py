"""Exports for the expression evaluator core."""

from .engine import DualStackEvaluator, PendingOperator, evaluate, evaluate_expression, round_result
from .errors import ErrorKind, ExpressionError, RegistryError
from .operand import Operand, is_operand
from .registry import (
    VARIABLE_ARITY,
    Associativity,
    OperatorKind,
    OperatorProperties,
    OperatorRegistry,
    RegistrySnapshot,
    default_registry,
)
from .settings import EvaluatorSettings, load_settings, read_settings_file
from .tokenizer import Token, TokenKind, classify, normalize_expression, resolve_sign, tokenize

__all__ = [
    "Associativity",
    "DualStackEvaluator",
    "ErrorKind",
    "EvaluatorSettings",
    "ExpressionError",
    "Operand",
    "OperatorKind",
    "OperatorProperties",
    "OperatorRegistry",
    "PendingOperator",
    "RegistryError",
    "RegistrySnapshot",
    "Token",
    "TokenKind",
    "VARIABLE_ARITY",
    "classify",
    "default_registry",
    "evaluate",
    "evaluate_expression",
    "is_operand",
    "load_settings",
    "read_settings_file",
    "normalize_expression",
    "resolve_sign",
    "round_result",
    "tokenize",
]
