# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Formula compiler for functions of one variable.

A formula such as ``"x^2 - 4"`` or ``"exp(-x) - sin(x)"`` is turned into
a postfix (RPN) program by the shunting-yard algorithm. The program is a
plain tuple of tokens; evaluating it at a point runs a small value-stack
machine.

Grammar
-------
- numbers: ``3``, ``.5``, ``2.``, ``1e-3``, ``2.5E+4``
- the variable ``x`` (any case) and the constants ``pi`` and ``e``
- binary ``+ - * / ^``; ``^`` binds tightest and is right-associative
- prefix ``+``/``-`` wherever an operand is expected
- ``sin cos tan exp ln log10 sqrt`` applied to a parenthesised argument
  or directly to the next term (``sin x^2`` is ``sin(x)^2``)

Example
-------
>>> f = compile_expression("x^2 - 4")
>>> f(3.0)
5.0
>>> f.to_rpn()
'x 2 ^ 4 -'
"""

import logging
import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple

import numpy as np

from .errors import ExpressionEvaluationError, ExpressionParseError

logger = logging.getLogger(__name__)

VARIABLE = "x"


class TokenType(Enum):
    NUMBER = "number"
    VARIABLE = "variable"
    OPERATOR = "operator"
    FUNCTION = "function"
    LEFT_PAREN = "("
    RIGHT_PAREN = ")"


@dataclass(frozen=True)
class Token:
    type: TokenType
    text: str
    value: float = 0.0


# binary operators: (precedence, right-associative, ufunc)
OPERATORS = {
    "+": (1, False, np.add),
    "-": (1, False, np.subtract),
    "*": (2, False, np.multiply),
    "/": (2, False, np.divide),
    "^": (3, True, np.power),
}

FUNCTIONS = {
    "sin": np.sin,
    "cos": np.cos,
    "tan": np.tan,
    "exp": np.exp,
    "ln": np.log,
    "log10": np.log10,
    "sqrt": np.sqrt,
    # prefix signs, emitted by the tokenizer only
    "neg": np.negative,
    "pos": np.positive,
}

CONSTANTS = {
    "pi": math.pi,
    "e": math.e,
}

UNARY_SIGNS = {"+": "pos", "-": "neg"}

# a prefix sign binds looser than ^ so that -x^2 == -(x^2)
UNARY_PRECEDENCE = 3
FUNCTION_PRECEDENCE = 4

_NUMBER_RE = re.compile(r"(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_NAME_RE = re.compile(r"[A-Za-z][A-Za-z0-9]*")


def tokenize(text: str) -> List[Token]:
    """
    Split `text` into tokens, left to right.

    Unary ``+``/``-`` are told apart from the binary operators by
    tracking whether an operand is expected at the current position.

    Raises
    ------
    ExpressionParseError : on an unknown character, malformed number or
        unsupported name.
    """
    tokens: List[Token] = []
    expect_operand = True
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]

        if ch.isspace():
            i += 1
            continue

        if ch in "0123456789.":
            m = _NUMBER_RE.match(text, i)
            if m is None or (m.end() < n and text[m.end()] == "."):
                raise ExpressionParseError(f"Invalid number at position {i}.")
            literal = m.group(0)
            tokens.append(Token(TokenType.NUMBER, literal, float(literal)))
            i = m.end()
            expect_operand = False
            continue

        m = _NAME_RE.match(text, i)
        if m is not None:
            name = m.group(0)
            lower = name.lower()
            i = m.end()
            if lower == VARIABLE:
                tokens.append(Token(TokenType.VARIABLE, VARIABLE))
                expect_operand = False
            elif lower in CONSTANTS:
                tokens.append(Token(TokenType.NUMBER, lower, CONSTANTS[lower]))
                expect_operand = False
            elif lower in FUNCTIONS and lower not in UNARY_SIGNS.values():
                tokens.append(Token(TokenType.FUNCTION, lower))
                expect_operand = True
            else:
                raise ExpressionParseError(f"Unknown function: {name}")
            continue

        if ch == "(":
            tokens.append(Token(TokenType.LEFT_PAREN, ch))
            expect_operand = True
            i += 1
            continue

        if ch == ")":
            tokens.append(Token(TokenType.RIGHT_PAREN, ch))
            expect_operand = False
            i += 1
            continue

        if ch in OPERATORS:
            if expect_operand:
                if ch not in UNARY_SIGNS:
                    raise ExpressionParseError(
                        f"Operator '{ch}' at position {i} is missing its left operand."
                    )
                tokens.append(Token(TokenType.FUNCTION, UNARY_SIGNS[ch]))
            else:
                tokens.append(Token(TokenType.OPERATOR, ch))
            expect_operand = True
            i += 1
            continue

        raise ExpressionParseError(f"Invalid token at position {i}: '{ch}'.")

    return tokens


def _precedence(token: Token) -> int:
    if token.type is TokenType.OPERATOR:
        return OPERATORS[token.text][0]
    if token.text in ("neg", "pos"):
        return UNARY_PRECEDENCE
    return FUNCTION_PRECEDENCE


def to_postfix(tokens: List[Token]) -> Tuple[Token, ...]:
    """
    Shunting-yard: reorder infix tokens into postfix order.

    Functions wait on the operator stack and are released by their
    closing parenthesis or by an incoming operator that binds less
    tightly. Left-associative operators pop ties, ``^`` does not.
    """
    output: List[Token] = []
    stack: List[Token] = []

    for token in tokens:
        if token.type in (TokenType.NUMBER, TokenType.VARIABLE):
            output.append(token)

        elif token.type in (TokenType.FUNCTION, TokenType.LEFT_PAREN):
            stack.append(token)

        elif token.type is TokenType.OPERATOR:
            prec, right_assoc, _ = OPERATORS[token.text]
            while stack and stack[-1].type is not TokenType.LEFT_PAREN:
                top = _precedence(stack[-1])
                if top > prec or (top == prec and not right_assoc):
                    output.append(stack.pop())
                else:
                    break
            stack.append(token)

        else:  # right parenthesis
            while stack and stack[-1].type is not TokenType.LEFT_PAREN:
                output.append(stack.pop())
            if not stack:
                raise ExpressionParseError("Unbalanced parentheses.")
            stack.pop()  # discard "("
            if (
                stack
                and stack[-1].type is TokenType.FUNCTION
                and _precedence(stack[-1]) == FUNCTION_PRECEDENCE
            ):
                output.append(stack.pop())

    while stack:
        token = stack.pop()
        if token.type is TokenType.LEFT_PAREN:
            raise ExpressionParseError("Unbalanced parentheses.")
        output.append(token)

    return tuple(output)


def check_arity(program: Tuple[Token, ...]) -> None:
    """
    Simulate the value stack of `program` without evaluating it so that
    operand-count errors surface at compile time.
    """
    depth = 0
    for token in program:
        if token.type in (TokenType.NUMBER, TokenType.VARIABLE):
            depth += 1
        elif token.type is TokenType.OPERATOR:
            if depth < 2:
                raise ExpressionParseError(
                    f"Operator '{token.text}' has too few operands."
                )
            depth -= 1
        elif depth < 1:
            raise ExpressionParseError(f"Function '{token.text}' has no argument.")

    if depth == 0:
        raise ExpressionParseError("Expression has no value.")
    if depth > 1:
        raise ExpressionParseError("Expression has too many operands.")


def evaluate(program: Tuple[Token, ...], x: float) -> float:
    """
    Run the postfix `program` with the variable bound to `x`.

    Domain errors (``ln(-1)``, overflow) follow IEEE rules and come back
    as NaN or Inf; only division by exactly zero raises.
    """
    stack: List[np.float64] = []
    xv = np.float64(x)

    with np.errstate(all="ignore"):
        for token in program:
            if token.type is TokenType.NUMBER:
                stack.append(np.float64(token.value))
            elif token.type is TokenType.VARIABLE:
                stack.append(xv)
            elif token.type is TokenType.OPERATOR:
                if len(stack) < 2:
                    raise ExpressionEvaluationError("Not enough operands in expression.")
                right = stack.pop()
                left = stack.pop()
                if token.text == "/" and right == 0.0:
                    raise ExpressionEvaluationError("Division by zero in expression.")
                op = OPERATORS.get(token.text)
                if op is None:
                    raise ExpressionEvaluationError(f"Unknown operator: {token.text}")
                stack.append(op[2](left, right))
            elif token.type is TokenType.FUNCTION:
                if not stack:
                    raise ExpressionEvaluationError("Function with no argument.")
                fn = FUNCTIONS.get(token.text)
                if fn is None:
                    raise ExpressionEvaluationError(f"Unknown function: {token.text}")
                stack.append(fn(stack.pop()))
            else:
                raise ExpressionEvaluationError(f"Unexpected token: {token.text}")

    if len(stack) != 1:
        raise ExpressionEvaluationError("Invalid expression for evaluation.")
    return float(stack[0])


@dataclass(frozen=True)
class CompiledExpression:
    """
    A compiled formula: the source text plus its postfix program.

    Instances are immutable and hashable, and calling one evaluates the
    program at the given point.
    """

    source: str
    program: Tuple[Token, ...]

    def __call__(self, x: float) -> float:
        return evaluate(self.program, x)

    def to_rpn(self) -> str:
        return " ".join(token.text for token in self.program)


def compile_expression(expression: str) -> CompiledExpression:
    """
    Compile `expression` into a reusable `CompiledExpression`.

    Raises
    ------
    ExpressionParseError : for blank text, unknown tokens or functions,
        unbalanced parentheses, or a wrong number of operands.
    """
    if expression is None or not expression.strip():
        raise ExpressionParseError("Empty expression.")

    program = to_postfix(tokenize(expression))
    check_arity(program)
    compiled = CompiledExpression(source=expression, program=program)
    logger.debug(f"compiled {expression!r} -> {compiled.to_rpn()}")
    return compiled
