"""Command line interface for the Expression Evaluator plugin."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

from .core import ExpressionError, default_registry, evaluate_expression
from .core.settings import MAX_PRECISION, read_settings_file

CONFIG_PATH = Path(__file__).resolve().parents[2] / "config.yml"


def _print(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def command_eval(args: argparse.Namespace) -> int:
    try:
        settings = read_settings_file(args.config)
        precision = settings.precision if args.precision is None else args.precision
        result = evaluate_expression(
            args.expression,
            precision=precision,
            max_length=settings.max_expression_length,
        )
    except ExpressionError as exc:
        _print({"error": {"code": exc.kind.value, "message": str(exc)}})
        return 1
    _print(result)
    return 0


def command_operators(args: argparse.Namespace) -> int:
    rows = default_registry().describe()
    if args.kind:
        rows = [row for row in rows if row["kind"] == args.kind]
    _print({"operators": rows})
    return 0


def _precision(value: str) -> int:
    try:
        precision = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid precision: {value}") from exc
    if not 0 <= precision <= MAX_PRECISION:
        raise argparse.ArgumentTypeError(f"precision must be between 0 and {MAX_PRECISION}")
    return precision


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Expression Evaluator CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    eval_parser = subparsers.add_parser("eval", help="Evaluate an expression")
    eval_parser.add_argument("expression", help="Infix expression, e.g. '2+3*4'")
    eval_parser.add_argument(
        "--precision",
        type=_precision,
        default=None,
        help="Decimal places kept in the result (defaults to config.yml)",
    )
    eval_parser.add_argument(
        "--config",
        type=Path,
        default=CONFIG_PATH,
        help="YAML file with an expression_evaluator plugin block",
    )
    eval_parser.set_defaults(func=command_eval)

    operators_parser = subparsers.add_parser("operators", help="List registered operators")
    operators_parser.add_argument(
        "--kind",
        choices=["parenthesis", "separator", "operator", "unary", "function", "constant"],
        help="Only list one kind of token",
    )
    operators_parser.set_defaults(func=command_operators)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
