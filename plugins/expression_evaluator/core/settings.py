"""Configuration helpers for the expression evaluator."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

import yaml

DEFAULT_PRECISION = 10
MAX_PRECISION = 15
DEFAULT_MAX_EXPRESSION_LENGTH = 1024


@dataclass(frozen=True)
class EvaluatorSettings:
    precision: int = DEFAULT_PRECISION
    max_expression_length: int = DEFAULT_MAX_EXPRESSION_LENGTH


def _as_int(value: object, default: int) -> int:
    if value is None:
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def clamp_precision(value: int) -> int:
    return min(max(value, 0), MAX_PRECISION)


def load_settings(raw: Mapping[str, object] | None) -> EvaluatorSettings:
    """Build settings from the ``expression_evaluator`` section of ``config.yml``.

    Missing or malformed values fall back to the defaults.
    """

    raw = raw or {}
    precision = clamp_precision(_as_int(raw.get("precision"), DEFAULT_PRECISION))
    max_length = max(1, _as_int(raw.get("max_expression_length"), DEFAULT_MAX_EXPRESSION_LENGTH))
    return EvaluatorSettings(precision=precision, max_expression_length=max_length)


def read_settings_file(path: Path) -> EvaluatorSettings:
    """Load settings from the `plugins.expression_evaluator` block of a YAML file."""

    if not path.exists():
        return load_settings(None)
    with path.open("r", encoding="utf-8") as handle:
        document = yaml.safe_load(handle) or {}
    plugins = document.get("plugins") or {}
    return load_settings(plugins.get("expression_evaluator"))


__all__ = [
    "DEFAULT_MAX_EXPRESSION_LENGTH",
    "DEFAULT_PRECISION",
    "EvaluatorSettings",
    "MAX_PRECISION",
    "clamp_precision",
    "load_settings",
    "read_settings_file",
]
