# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging
import math

import pytest

from numsolve.errors import ExpressionEvaluationError, ExpressionParseError
from numsolve.expression import (
    CompiledExpression,
    TokenType,
    compile_expression,
    to_postfix,
    tokenize,
)

logger = logging.getLogger(__name__)


def test_quadratic_values():
    f = compile_expression("x^2-4")
    assert f(2) == 0
    assert f(3) == 5
    assert f(-3.0) == 5.0


def test_compiled_expression_is_reusable_value():
    f = compile_expression("2*x + 1")
    g = compile_expression("2*x + 1")
    assert isinstance(f, CompiledExpression)
    assert f == g
    assert hash(f) == hash(g)
    assert [f(x) for x in range(4)] == [1.0, 3.0, 5.0, 7.0]
    assert f.source == "2*x + 1"


@pytest.mark.parametrize(
    "text,rpn",
    [
        ("x^2 - 4", "x 2 ^ 4 -"),
        ("1 + 2 * 3", "1 2 3 * +"),
        ("(1 + 2) * 3", "1 2 + 3 *"),
        ("8 - 4 - 2", "8 4 - 2 -"),
        ("2 ^ 3 ^ 2", "2 3 2 ^ ^"),
        ("-x^2", "x 2 ^ neg"),
        ("sin(x)^2", "x sin 2 ^"),
        ("sin x^2", "x sin 2 ^"),
    ],
)
def test_postfix_order(text, rpn):
    assert compile_expression(text).to_rpn() == rpn


@pytest.mark.parametrize(
    "text,x,expected",
    [
        ("1 + 2 * 3", 0.0, 7.0),
        ("8 - 4 - 2", 0.0, 2.0),
        ("8 / 4 / 2", 0.0, 1.0),
        ("2 ^ 3 ^ 2", 0.0, 512.0),
        ("-x^2", 3.0, -9.0),
        ("(-x)^2", 3.0, 9.0),
        ("-2 * -3", 0.0, 6.0),
        ("+x - -x", 1.5, 3.0),
        ("2^-1", 0.0, 0.5),
        ("X * 2", 4.0, 8.0),
        ("1.5e2 + .5 + 2.", 0.0, 152.5),
        ("2.5E-1 * 4", 0.0, 1.0),
        ("sqrt(16) + ln(1) + log10(1000)", 0.0, 7.0),
        ("exp(0) + cos(0) + sin(0) + tan(0)", 0.0, 2.0),
        ("SIN(x)^2 + cos(x)^2", 0.7, 1.0),
        ("2*pi", 0.0, 2 * math.pi),
        ("e^(-x^(2)) - cos(x)", 1.0, math.exp(-1.0) - math.cos(1.0)),
        ("x*log10(x) - 1", 10.0, 9.0),
    ],
)
def test_evaluation(text, x, expected):
    assert compile_expression(text)(x) == pytest.approx(expected, rel=1e-12, abs=1e-12)


def test_unary_sign_detection():
    kinds = [(t.type, t.text) for t in tokenize("-(x - -1)")]
    assert kinds == [
        (TokenType.FUNCTION, "neg"),
        (TokenType.LEFT_PAREN, "("),
        (TokenType.VARIABLE, "x"),
        (TokenType.OPERATOR, "-"),
        (TokenType.FUNCTION, "neg"),
        (TokenType.NUMBER, "1"),
        (TokenType.RIGHT_PAREN, ")"),
    ]


def test_to_postfix_rejects_unmatched_right_paren():
    with pytest.raises(ExpressionParseError):
        to_postfix(tokenize("x + 1)"))


@pytest.mark.parametrize(
    "text",
    [
        "",
        "   ",
        "(x + 1",
        "x + 1)",
        "((x)",
        "foo(x)",
        "log(x)",
        "x $ 2",
        "2 3",
        "2x",
        "x +",
        "* x",
        "sin()",
        "()",
        "1.2.3",
        "neg(x)",
    ],
)
def test_malformed_input_raises(text):
    with pytest.raises(ExpressionParseError):
        compile_expression(text)


def test_none_raises():
    with pytest.raises(ExpressionParseError):
        compile_expression(None)


def test_division_by_zero_raises_on_evaluation():
    f = compile_expression("1/(x-1)")
    assert f(2.0) == 1.0
    with pytest.raises(ExpressionEvaluationError):
        f(1.0)


def test_domain_errors_are_not_finite():
    assert math.isnan(compile_expression("ln(x)")(-1.0))
    assert math.isnan(compile_expression("sqrt(x)")(-4.0))
    assert math.isnan(compile_expression("x^(1/3)")(-8.0))
    assert math.isinf(compile_expression("10^x")(400.0))
    assert math.isinf(compile_expression("exp(x)")(1000.0))


def test_evaluation_error_is_a_parse_error():
    # callers that only know about parse errors still catch it
    assert issubclass(ExpressionEvaluationError, ExpressionParseError)
    assert issubclass(ExpressionParseError, ValueError)
