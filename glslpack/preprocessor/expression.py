"""
Evaluation of ``#if`` / ``#elif`` controlling expressions.

The expression arrives after macro expansion and after ``defined`` has been
replaced, so only integer literals, operators and parentheses are expected.
Any identifier left over is an undefined macro, an error once its value is
needed.
"""

import re

from loguru import logger

from glslpack.errors import PreprocessFailed
from glslpack.utils import is_identifier_start

_INT_RE = re.compile(r"(0[xX][0-9A-Fa-f]+|0[0-7]*|[1-9][0-9]*)[uUlL]*")

# Binary operator precedence, higher binds tighter
BINARY_PRECEDENCE: dict[str, int] = {
    "||": 1,
    "&&": 2,
    "|": 3,
    "^": 4,
    "&": 5,
    "==": 6,
    "!=": 6,
    "<": 7,
    ">": 7,
    "<=": 7,
    ">=": 7,
    "<<": 8,
    ">>": 8,
    "+": 9,
    "-": 9,
    "*": 10,
    "/": 10,
    "%": 10,
}


def parse_int_literal(token: str) -> int:
    """Parse a C integer literal with optional suffixes.

    Raises:
        ValueError: If the token is not an integer literal
    """
    match = _INT_RE.fullmatch(token)
    if match is None:
        raise ValueError(f"Invalid integer literal: {token}")
    digits = match.group(1)
    if digits.lower().startswith("0x"):
        return int(digits, 16)
    if len(digits) > 1 and digits.startswith("0"):
        return int(digits, 8)
    return int(digits)


def _c_div(left: int, right: int) -> int:
    # C division truncates toward zero
    quotient = abs(left) // abs(right)
    return quotient if (left >= 0) == (right >= 0) else -quotient


def _c_mod(left: int, right: int) -> int:
    return left - right * _c_div(left, right)


class _ExpressionParser:
    """Precedence-climbing parser that evaluates as it goes."""

    def __init__(self, tokens: list[str], line: int | None):
        self.tokens = tokens
        self.pos = 0
        self.line = line

    def fail(self, message: str) -> PreprocessFailed:
        return PreprocessFailed(
            f"Invalid #if expression: {message}",
            line=self.line,
            diagnostic=message,
        )

    def peek(self) -> str | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def take(self) -> str:
        token = self.peek()
        if token is None:
            raise self.fail("unexpected end of expression")
        self.pos += 1
        return token

    def expect(self, token: str) -> None:
        actual = self.take()
        if actual != token:
            raise self.fail(f"expected '{token}', found '{actual}'")

    def parse(self) -> int:
        value = self.conditional(True)
        if self.peek() is not None:
            raise self.fail(f"unexpected token '{self.peek()}'")
        return value

    # Short-circuited operands and the untaken arm of ?: are parsed with
    # evaluate=False; they may name undefined macros or divide by zero.
    def conditional(self, evaluate: bool) -> int:
        condition = self.binary(1, evaluate)
        if self.peek() != "?":
            return condition
        self.take()
        if_true = self.conditional(evaluate and bool(condition))
        self.expect(":")
        if_false = self.conditional(evaluate and not condition)
        return if_true if condition else if_false

    def binary(self, min_precedence: int, evaluate: bool) -> int:
        left = self.unary(evaluate)
        while True:
            op = self.peek()
            precedence = BINARY_PRECEDENCE.get(op or "")
            if precedence is None or precedence < min_precedence:
                return left
            self.take()
            match op:
                case "&&":
                    evaluate_right = evaluate and bool(left)
                case "||":
                    evaluate_right = evaluate and not left
                case _:
                    evaluate_right = evaluate
            right = self.binary(precedence + 1, evaluate_right)
            left = self.apply(op, left, right) if evaluate else 0

    def apply(self, op: str, left: int, right: int) -> int:
        if op in ("/", "%") and right == 0:
            raise self.fail("division by zero")
        if op in ("<<", ">>") and right < 0:
            raise self.fail("negative shift count")
        match op:
            case "||":
                return int(bool(left) or bool(right))
            case "&&":
                return int(bool(left) and bool(right))
            case "|":
                return left | right
            case "^":
                return left ^ right
            case "&":
                return left & right
            case "==":
                return int(left == right)
            case "!=":
                return int(left != right)
            case "<":
                return int(left < right)
            case ">":
                return int(left > right)
            case "<=":
                return int(left <= right)
            case ">=":
                return int(left >= right)
            case "<<":
                return left << right
            case ">>":
                return left >> right
            case "+":
                return left + right
            case "-":
                return left - right
            case "*":
                return left * right
            case "/":
                return _c_div(left, right)
            case "%":
                return _c_mod(left, right)
        raise self.fail(f"unknown operator '{op}'")

    def unary(self, evaluate: bool) -> int:
        token = self.take()
        if token == "(":
            value = self.conditional(evaluate)
            self.expect(")")
            return value
        if token == "!":
            return int(not self.unary(evaluate))
        if token == "~":
            return ~self.unary(evaluate)
        if token == "-":
            return -self.unary(evaluate)
        if token == "+":
            return self.unary(evaluate)
        if is_identifier_start(token[0]):
            if not evaluate:
                return 0
            raise self.fail(f"undefined macro '{token}'")
        try:
            return parse_int_literal(token)
        except ValueError:
            raise self.fail(f"unexpected token '{token}'") from None


def evaluate_expression(tokens: list[str], line: int | None = None) -> bool:
    """Evaluate an expanded controlling expression.

    Args:
        tokens: Expression tokens, whitespace tokens are ignored
        line: Line number used in diagnostics

    Returns:
        Whether the expression is non-zero

    Raises:
        PreprocessFailed: On syntax errors, division by zero or undefined macros
    """
    significant = [token for token in tokens if not token.isspace()]
    if not significant:
        raise PreprocessFailed(
            "Invalid #if expression: empty expression",
            line=line,
            diagnostic="empty expression",
        )
    value = _ExpressionParser(significant, line).parse()
    logger.debug(f"Evaluated #if expression {''.join(significant)!r} -> {value}")
    return value != 0
