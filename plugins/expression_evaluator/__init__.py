"""Expression Evaluator plugin manifest."""

manifest = {
    "title": "Expression Evaluator",
    "summary": "Evaluate infix math expressions with functions, constants and variable-argument calls.",
    "category": "General Utilities",
    "blueprint": "expression_evaluator",
}

__all__ = ["manifest"]
