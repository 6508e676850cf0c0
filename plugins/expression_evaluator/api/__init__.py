"""API routes for the Expression Evaluator plugin."""

from __future__ import annotations

from flask import Blueprint, Response, current_app, request

from common.errors import ValidationAppError
from common.responses import fail, ok
from common.validation import SchemaModel, ValidationError, parse_model

from ..core import (
    EvaluatorSettings,
    ExpressionError,
    default_registry,
    evaluate_expression,
    load_settings,
)
from ..core.settings import MAX_PRECISION


class EvaluatePayload(SchemaModel):
    expression: str
    precision: int | None = None


api_bp = Blueprint("expression_evaluator_api", __name__, url_prefix="/api/expression_evaluator")


def _settings() -> EvaluatorSettings:
    raw = current_app.config.get("PLUGIN_SETTINGS", {}).get("expression_evaluator", {})
    return load_settings(raw)


@api_bp.post("/evaluate")
def evaluate() -> Response:
    raw_payload = request.get_json(silent=True) or {}
    try:
        payload = parse_model(EvaluatePayload, raw_payload)
    except ValidationError as exc:
        return fail(
            ValidationAppError(
                message=str(exc),
                code="expr_eval.invalid_request",
                details=getattr(exc, "details", None),
            )
        )

    settings = _settings()
    precision = settings.precision if payload.precision is None else payload.precision
    if not 0 <= precision <= MAX_PRECISION:
        return fail(
            ValidationAppError(
                message=f"precision must be between 0 and {MAX_PRECISION}",
                code="expr_eval.invalid_precision",
            )
        )

    try:
        result = evaluate_expression(
            payload.expression,
            precision=precision,
            max_length=settings.max_expression_length,
        )
    except ExpressionError as exc:
        return fail(ValidationAppError(message=str(exc), code=f"expr_eval.{exc.kind.value}"))
    return ok(result)


@api_bp.get("/operators")
def operators() -> Response:
    return ok({"operators": default_registry().describe()})


blueprints = [api_bp]


__all__ = ["blueprints", "evaluate", "operators"]
