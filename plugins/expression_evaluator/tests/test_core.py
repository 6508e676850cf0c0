import math

import pytest

from plugins.expression_evaluator.core import (
    DualStackEvaluator,
    ErrorKind,
    ExpressionError,
    OperatorRegistry,
    evaluate,
    evaluate_expression,
    round_result,
)


@pytest.mark.parametrize(
    ("expression", "expected"),
    [
        ("2+3*4", 14.0),
        ("(2+3)*4", 20.0),
        ("10-3-2", 5.0),
        ("2^3^2", 512.0),
        ("7%4", 3.0),
        ("-7%4", -3.0),
        ("8/2/2", 2.0),
        ("2*pi", 6.2831853072),
        ("e", 2.7182818285),
        ("1 + 2", 3.0),
        ("0.1+0.2", 0.3),
        (".5*4", 2.0),
    ],
)
def test_arithmetic_respects_precedence_and_associativity(expression, expected):
    assert evaluate(expression) == expected


def test_unary_sign_inside_nested_calls():
    assert evaluate("5+3/cos(sin(-6))^0.25") == 8.0298136373


def test_unary_signs():
    assert evaluate("-3+5") == 2.0
    assert evaluate("+3") == 3.0
    assert evaluate("2*-3") == -6.0
    assert evaluate("2^-1") == 0.5
    assert evaluate("5--3") == 8.0
    # the sign binds tighter than the power operator
    assert evaluate("-2^2") == 4.0


def test_blank_after_minus_keeps_it_binary():
    assert evaluate("5 - 3") == 2.0


def test_scientific_notation():
    assert evaluate("1e+2 - 1e-2") == 99.99
    assert evaluate("2E3") == 2000.0
    assert evaluate("1.5e2+1") == 151.0


def test_random_constant_stays_in_unit_interval():
    for _ in range(20):
        assert evaluate("floor(-rand)") == -1.0
        assert evaluate("ceil(rand)") == 1.0


def test_nested_single_argument_functions_round_trip():
    assert evaluate("deg(asin(sin(rad(30))))") == 30.0


def test_variable_arity_function():
    assert evaluate("mean(1,2,3,4)") == 2.5
    assert evaluate("mean(5)") == 5.0
    assert evaluate("mean(1+1,2*3,mean(2,4))") == pytest.approx(11 / 3, abs=1e-9)


def test_fixed_arity_functions():
    assert evaluate("max(2,7)") == 7.0
    assert evaluate("min(2,7)") == 2.0
    assert evaluate("log(8,2)") == 3.0
    assert evaluate("log10(1000)") == 3.0
    assert evaluate("fact(5)") == 120.0
    assert evaluate("round(2.5)") == 3.0
    assert evaluate("round(-2.5)") == -2.0
    assert evaluate("sqrt(16)+cbrt(27)") == 7.0


def test_plain_groups_without_functions():
    assert evaluate("(1+2)*(3+4)") == 21.0
    assert evaluate("((2))") == 2.0


def test_plain_group_inside_function_call():
    assert evaluate("max((1+2),3)") == 3.0
    assert evaluate("max((1+2)*2,(3))") == 6.0
    assert evaluate("sin((0))+max(1,(2+3)*(1))") == 5.0


def test_function_result_in_larger_expression():
    assert evaluate("2*max(1,3)^2") == 18.0
    assert evaluate("abs(-4)-sqrt(4)") == 2.0


def test_constant_with_empty_parenthesis():
    assert evaluate("pi()") == evaluate("pi")


def test_non_finite_results_are_returned():
    assert evaluate("1/0") == math.inf
    assert evaluate("-1/0") == -math.inf
    assert math.isnan(evaluate("0/0"))
    assert math.isnan(evaluate("sqrt(-1)"))


def test_repeated_evaluation_is_stable():
    values = {evaluate("sin(1)^2+cos(1)^2") for _ in range(5)}
    assert values == {1.0}


def test_precision_is_configurable():
    assert evaluate("2/3", precision=3) == 0.667
    assert evaluate("2/3", precision=0) == 1.0
    assert DualStackEvaluator(precision=4).evaluate("pi") == 3.1416


def test_round_result_half_up():
    assert round_result(0.125, 2) == 0.13
    assert round_result(-0.125, 2) == -0.13
    assert round_result(1e300, 10) == 1e300
    assert round_result(math.inf, 10) == math.inf


@pytest.mark.parametrize(
    ("expression", "kind"),
    [
        ("", ErrorKind.EMPTY_EXPRESSION),
        ("   ", ErrorKind.EMPTY_EXPRESSION),
        ("(]", ErrorKind.UNCLOSED_TOKEN),
        ("2+foo", ErrorKind.UNCLOSED_TOKEN),
        ("2,3", ErrorKind.INVALID_COMMA),
        ("max(1,2,3)", ErrorKind.INVALID_COMMA),
        ("sin(1,2)", ErrorKind.INVALID_COMMA),
        ("sin(1", ErrorKind.UNMATCHED_PARENTHESIS),
        ("1+2)", ErrorKind.UNMATCHED_PARENTHESIS),
        ("2 3", ErrorKind.TRAILING_OPERANDS),
        ("2+", ErrorKind.OPERAND_UNDERFLOW),
        ("*2", ErrorKind.OPERAND_UNDERFLOW),
        ("()", ErrorKind.INVALID_PARENTHESIS),
        ("2*()", ErrorKind.INVALID_PARENTHESIS),
        ("2mean(,4)", ErrorKind.INVALID_COMMA),
        ("mean(1,,2)", ErrorKind.INVALID_COMMA),
        ("max(1,)", ErrorKind.INVALID_COMMA),
    ],
)
def test_malformed_expressions_are_rejected(expression, kind):
    with pytest.raises(ExpressionError) as excinfo:
        evaluate(expression)
    assert excinfo.value.kind is kind


def test_user_function_on_private_registry():
    registry = OperatorRegistry()
    registry.add_function("si", lambda p, r, t: p * r * t / 100, arity=3)
    registry.add_function("total", lambda *xs: sum(xs))
    assert evaluate("si(1000,5,2)", registry=registry) == 100.0
    assert evaluate("total(1,2,3,4,5)", registry=registry) == 15.0
    with pytest.raises(ExpressionError):
        evaluate("si(1000,5,2)")


def test_evaluate_expression_payload():
    payload = evaluate_expression("3*4 + 5")
    assert payload["result"] == 17.0
    assert payload["finite"] is True
    assert payload["display"] == "17"
    # only blanks in front of a number survive normalisation
    assert payload["normalized"] == "3*4+ 5"
    assert payload["precision"] == 10


def test_evaluate_expression_non_finite_payload():
    payload = evaluate_expression("1/0")
    assert payload["result"] is None
    assert payload["finite"] is False
    assert payload["display"] == "inf"


def test_evaluate_expression_rejects_long_input():
    with pytest.raises(ExpressionError) as excinfo:
        evaluate_expression("1+" * 20 + "1", max_length=10)
    assert excinfo.value.kind is ErrorKind.EXPRESSION_TOO_LONG
