import pytest

from plugins.expression_evaluator.core import (
    ErrorKind,
    ExpressionError,
    Operand,
    OperatorRegistry,
    TokenKind,
    classify,
    is_operand,
    normalize_expression,
    resolve_sign,
    tokenize,
)


@pytest.fixture
def registry():
    return OperatorRegistry().snapshot()


def _texts(expression, registry):
    return [token.text for token in tokenize(normalize_expression(expression), registry)]


def test_normalize_keeps_blanks_before_numbers_only():
    assert normalize_expression(" sin ( x ) ") == "sin(x)"
    assert normalize_expression("2 3") == "2 3"
    assert normalize_expression("1 + .5") == "1+ .5"
    assert normalize_expression("\t2\n*\n3") == "\t2*\n3"


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("1", True),
        ("1.", True),
        (".5", True),
        ("1.5e10", True),
        ("1E-3", True),
        (" 3", True),
        ("1e", False),
        ("1e+", False),
        (".", False),
        ("inf", False),
        ("nan", False),
        ("1_000", False),
        ("", False),
    ],
)
def test_is_operand(text, expected):
    assert is_operand(text) is expected


def test_operand_from_literal():
    assert Operand.from_literal(" 2.5e1").to_float() == 25.0
    with pytest.raises(ValueError):
        Operand.from_literal("abc")


def test_plain_operator_completes_immediately(registry):
    assert classify("", "+", "3", registry) is TokenKind.OPERATOR
    assert classify("", "(", "1", registry) is TokenKind.OPERATOR


def test_function_name_waits_for_parenthesis(registry):
    assert classify("si", "n", "h", registry) is TokenKind.INCOMPLETE
    assert classify("sin", "h", "(", registry) is TokenKind.OPERATOR
    assert classify("lo", "g", "1", registry) is TokenKind.INCOMPLETE
    assert classify("log1", "0", "(", registry) is TokenKind.OPERATOR


def test_constant_completes_at_end_or_before_operator(registry):
    assert classify("p", "i", "", registry) is TokenKind.OPERATOR
    assert classify("p", "i", "*", registry) is TokenKind.OPERATOR
    assert classify("", "e", "", registry) is TokenKind.OPERATOR
    assert classify("ran", "d", ")", registry) is TokenKind.OPERATOR


def test_typed_unary_names_never_complete(registry):
    assert classify("uminu", "s", "", registry) is TokenKind.INCOMPLETE
    assert classify("uplu", "s", "", registry) is TokenKind.INCOMPLETE


def test_number_extends_greedily(registry):
    assert classify("", "1", "2", registry) is TokenKind.INCOMPLETE
    assert classify("1", "2", "+", registry) is TokenKind.OPERAND
    assert classify("", "1", "e", registry) is TokenKind.INCOMPLETE
    assert classify("1e", "+", "2", registry) is TokenKind.INCOMPLETE
    assert classify("1e+", "2", "", registry) is TokenKind.OPERAND


def test_resolve_sign(registry):
    assert resolve_sign("-", "3", None, registry) == "uminus"
    assert resolve_sign("+", "3", "(", registry) == "uplus"
    assert resolve_sign("-", "3", "*", registry) == "uminus"
    assert resolve_sign("-", "3", ")", registry) == "-"
    assert resolve_sign("-", "3", "2", registry) == "-"
    assert resolve_sign("-", " ", None, registry) == "-"
    assert resolve_sign("*", "3", None, registry) == "*"


def test_tokenize_stream(registry):
    assert _texts("max(1.5e2, -pi)", registry) == ["max", "(", "1.5e2", ",", "-", "pi", ")"]
    assert _texts("2^3^2", registry) == ["2", "^", "3", "^", "2"]


def test_tokenize_reports_leftover_buffer(registry):
    with pytest.raises(ExpressionError) as excinfo:
        list(tokenize("2+foo", registry))
    assert excinfo.value.kind is ErrorKind.UNCLOSED_TOKEN
