"""Numeric value wrapper pushed onto the operand stack."""

from __future__ import annotations

import re
from dataclasses import dataclass

_NUMBER_PATTERN = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def is_operand(text: str) -> bool:
    """Return ``True`` when ``text`` is a complete numeric literal.

    Surrounding whitespace is ignored so that a blank kept by
    normalisation (``"2* 3"``) can prefix a literal.
    """

    if not text:
        return False
    return _NUMBER_PATTERN.fullmatch(text.strip()) is not None


@dataclass(frozen=True, slots=True)
class Operand:
    """A single numeric value."""

    value: float

    @classmethod
    def from_literal(cls, text: str) -> "Operand":
        if not is_operand(text):
            raise ValueError(f"Not a numeric literal: {text!r}")
        return cls(float(text.strip()))

    def to_float(self) -> float:
        return float(self.value)

    def __str__(self) -> str:
        return repr(self.to_float())


__all__ = ["Operand", "is_operand"]
