"""Resolver for aggregate and cross-document function calls inside formulas."""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Callable, Optional, Union

from ..tables.models import Table
from .expression import ExpressionError, ExpressionEvaluator
from .syntax import FORMULA_MARKER

if TYPE_CHECKING:
    from ..index.store import CrossDocumentIndex

logger = logging.getLogger(__name__)

AGGREGATES: dict[str, Callable[[list[float]], float]] = {
    "SUM": lambda values: math.fsum(values),
    "AVG": lambda values: math.fsum(values) / len(values),
    "MIN": min,
    "MAX": max,
}

RANGES = ("row", "col")
DATA_ONLY_ARG = "data"

# Call start: a known name immediately followed by "(" and not part of a longer word
_CALL_START_RE = re.compile(r"(?<![A-Za-z0-9_])(SUM|AVG|MIN|MAX|NOTE)\(", re.IGNORECASE)

# Remainder of a NOTE call after "NOTE(": "doc").var
_NOTE_TAIL_RE = re.compile(r'"([^"]+)"\)\.(\w+)')

_CURRENCY_ARG_RE = re.compile(r"^[A-Za-z]{3}$")


class FormulaSyntaxError(ValueError):
    """Raised when a function call in a formula is malformed or unsupported."""


@dataclass
class AggregateCall:
    """SUM/AVG/MIN/MAX over a row or column."""

    name: str
    range: str
    data_only: bool = False
    currency: Optional[str] = None


@dataclass
class NoteCall:
    """NOTE("document").variable lookup."""

    document: str
    variable: str


Segment = Union[str, AggregateCall, NoteCall]


@dataclass
class TokenizedFormula:
    """A formula split into plain arithmetic text and function calls."""

    segments: list[Segment] = field(default_factory=list)

    @property
    def calls(self) -> list[Union[AggregateCall, NoteCall]]:
        return [s for s in self.segments if not isinstance(s, str)]


def _parse_aggregate_args(name: str, inner: str) -> AggregateCall:
    args = [arg.strip() for arg in inner.split(",")]
    range_name = args[0].lower()
    if range_name not in RANGES:
        raise FormulaSyntaxError(f"{name} expects 'row' or 'col', got {args[0]!r}")

    call = AggregateCall(name=name, range=range_name)
    for arg in args[1:]:
        if arg.lower() == DATA_ONLY_ARG:
            call.data_only = True
        elif _CURRENCY_ARG_RE.match(arg):
            call.currency = arg.upper()
        else:
            raise FormulaSyntaxError(f"Unsupported {name} argument {arg!r}")
    return call


def tokenize(expr: str) -> TokenizedFormula:
    """
    Split a formula body into arithmetic text and function calls.

    Nested calls such as ``SUM(row, MAX(col))`` are not supported and raise
    FormulaSyntaxError, as do unclosed calls and unknown arguments.
    """
    tokens = TokenizedFormula()
    pos = 0

    while True:
        match = _CALL_START_RE.search(expr, pos)
        if match is None:
            if pos < len(expr):
                tokens.segments.append(expr[pos:])
            return tokens

        if match.start() > pos:
            tokens.segments.append(expr[pos:match.start()])

        name = match.group(1).upper()
        body_start = match.end()

        if name == "NOTE":
            note = _NOTE_TAIL_RE.match(expr, body_start)
            if note is None:
                raise FormulaSyntaxError(f"Malformed NOTE call in {expr!r}")
            tokens.segments.append(NoteCall(document=note.group(1), variable=note.group(2)))
            pos = note.end()
            continue

        close = expr.find(")", body_start)
        if close == -1:
            raise FormulaSyntaxError(f"Unclosed {name} call in {expr!r}")
        inner = expr[body_start:close]
        if "(" in inner or '"' in inner:
            raise FormulaSyntaxError(f"Nested calls are not supported: {expr!r}")

        tokens.segments.append(_parse_aggregate_args(name, inner))
        pos = close + 1


def to_literal(value: float) -> str:
    """Render a number as plain decimal text the evaluator can read back."""
    text = repr(float(value))
    if "e" in text or "E" in text:
        text = format(Decimal(text), "f")
    return text


class FunctionResolver:
    """Evaluate formula cells against their table and the cross-document index."""

    def __init__(
        self,
        index: Optional["CrossDocumentIndex"] = None,
        evaluator: Optional[ExpressionEvaluator] = None,
    ):
        """
        Initialize the resolver.

        Args:
            index: Cross-document index used for NOTE lookups (NOTE fails without one)
            evaluator: Arithmetic evaluator (created if not provided)
        """
        self.index = index
        self.evaluator = evaluator or ExpressionEvaluator()

    def evaluate_formula(
        self, formula: str, table: Table, row: int, col: int
    ) -> Optional[float]:
        """
        Evaluate a formula cell.

        Args:
            formula: Formula text, with or without the leading "="
            table: The table the cell belongs to
            row: Row index of the evaluating cell
            col: Column index of the evaluating cell

        Returns:
            The computed number, or None when the formula cannot be evaluated
        """
        expr = formula.strip()
        if expr.startswith(FORMULA_MARKER):
            expr = expr[1:].strip()

        try:
            tokens = tokenize(expr)
            parts: list[str] = []
            for segment in tokens.segments:
                if isinstance(segment, str):
                    parts.append(segment)
                    continue
                value = self._evaluate_call(segment, table, row, col)
                if value is None or not math.isfinite(value):
                    return None
                parts.append(to_literal(value))
            result = self.evaluator.evaluate("".join(parts))
        except (FormulaSyntaxError, ExpressionError) as e:
            logger.debug(f"Formula {formula!r} at ({row}, {col}) has no value: {e}")
            return None

        return result if math.isfinite(result) else None

    def _evaluate_call(
        self,
        call: Union[AggregateCall, NoteCall],
        table: Table,
        row: int,
        col: int,
    ) -> Optional[float]:
        if isinstance(call, NoteCall):
            return self.evaluate_note(call.document, call.variable)

        values = self.range_values(table, call.range, row, col, call.data_only)
        if not values:
            return None
        return AGGREGATES[call.name](values)

    def evaluate_note(self, document: str, variable: str) -> Optional[float]:
        """Look up a variable published by another document."""
        if self.index is None:
            return None
        found = self.index.get(document, variable)
        return found.value if found else None

    def get_note_currency(self, document: str, variable: str) -> Optional[str]:
        """Return the currency stored with a published variable, if any."""
        if self.index is None:
            return None
        found = self.index.get(document, variable)
        return found.currency if found else None

    @staticmethod
    def range_values(
        table: Table, range_name: str, row: int, col: int, data_only: bool = False
    ) -> list[float]:
        """
        Collect the values an aggregate runs over.

        ``row`` takes every other cell of the evaluating row; ``col`` takes the
        same column of every other row, skipping the header divider. Cells
        without a value never count, and ``data_only`` drops formula cells.
        """
        values: list[float] = []

        if range_name == "row":
            if row >= len(table.rows):
                return values
            candidates = [cell for cell in table.rows[row] if cell.col != col]
        elif range_name == "col":
            candidates = [
                cells[col]
                for r, cells in enumerate(table.rows)
                if r != row and not table.is_separator_row(r) and col < len(cells)
            ]
        else:
            return values

        for cell in candidates:
            if cell.value is None:
                continue
            if data_only and cell.is_formula:
                continue
            values.append(cell.value)

        return values
