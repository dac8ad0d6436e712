"""Recursive-descent evaluator for sanitized arithmetic expressions."""

from __future__ import annotations

import re

_DISALLOWED_RE = re.compile(r"[^0-9+\-*/.() ]")


class ExpressionError(ValueError):
    """Raised when an arithmetic expression cannot be evaluated."""


def sanitize(expr: str) -> str:
    """Drop every character outside digits, operators, dot, parens and space."""
    return _DISALLOWED_RE.sub("", expr)


class ExpressionEvaluator:
    """Evaluates ``+ - * /`` arithmetic with parentheses.

    Grammar, left to right with the usual precedence::

        expr   := term (('+' | '-') term)*
        term   := factor (('*' | '/') factor)*
        factor := '(' expr ')' | number
        number := ['-'] digits ['.' digits]

    The whole input must be consumed; leftover tokens are an error.
    """

    __slots__ = ("_text", "_pos")

    def __init__(self) -> None:
        self._text = ""
        self._pos = 0

    def evaluate(self, expr: str) -> float:
        """Sanitize and evaluate *expr*, raising ExpressionError on failure."""
        text = sanitize(expr).strip()
        if not text:
            raise ExpressionError("Empty expression")

        self._text = text
        self._pos = 0
        result = self._parse_expr()
        self._skip_spaces()
        if self._pos != len(self._text):
            raise ExpressionError(
                f"Unexpected {self._peek()!r} at position {self._pos} in {text!r}"
            )
        return result

    # ------------------------------------------------------------------
    # Grammar
    # ------------------------------------------------------------------

    def _parse_expr(self) -> float:
        left = self._parse_term()
        while True:
            self._skip_spaces()
            op = self._peek()
            if op not in ("+", "-"):
                return left
            self._pos += 1
            right = self._parse_term()
            left = left + right if op == "+" else left - right

    def _parse_term(self) -> float:
        left = self._parse_factor()
        while True:
            self._skip_spaces()
            op = self._peek()
            if op not in ("*", "/"):
                return left
            self._pos += 1
            right = self._parse_factor()
            if op == "*":
                left = left * right
            else:
                if right == 0:
                    raise ExpressionError("Division by zero")
                left = left / right

    def _parse_factor(self) -> float:
        self._skip_spaces()
        if self._peek() == "(":
            self._pos += 1
            result = self._parse_expr()
            self._skip_spaces()
            if self._peek() != ")":
                raise ExpressionError("Mismatched parentheses")
            self._pos += 1
            return result
        return self._parse_number()

    def _parse_number(self) -> float:
        start = self._pos
        if self._peek() == "-":
            self._pos += 1
        digits = 0
        dots = 0
        while self._pos < len(self._text):
            ch = self._text[self._pos]
            if ch.isdigit():
                digits += 1
            elif ch == "." and dots == 0:
                dots += 1
            else:
                break
            self._pos += 1

        if digits == 0:
            raise ExpressionError(
                f"Expected a number at position {start} in {self._text!r}"
            )
        return float(self._text[start:self._pos])

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _peek(self) -> str:
        if self._pos < len(self._text):
            return self._text[self._pos]
        return ""

    def _skip_spaces(self) -> None:
        while self._peek() == " ":
            self._pos += 1


def evaluate_expression(expr: str) -> float:
    """Evaluate an arithmetic expression with a fresh evaluator."""
    return ExpressionEvaluator().evaluate(expr)
