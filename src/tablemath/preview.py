"""Render computed values for tables that are already displayed as markup."""

import logging
from typing import Optional

from pydantic import BaseModel

from .formulas.formatting import NumberFormatter
from .formulas.resolver import FunctionResolver
from .formulas.syntax import (
    NOTE_CELL_PATTERN,
    NUMERIC_PREFIX_PATTERN,
    extract_currency,
    is_formula,
    parse_number,
)
from .index.store import CrossDocumentIndex
from .tables.models import Cell, Table

logger = logging.getLogger(__name__)


class RenderedCell(BaseModel):
    """Display state of one previewed cell."""

    content: str
    display: str
    formula: Optional[str] = None
    computed: bool = False


def _looks_numeric(text: str) -> bool:
    return bool(NUMERIC_PREFIX_PATTERN.match(text.strip()))


def is_header_row(cells: list[str]) -> bool:
    """A first row is a header when fewer than half its cells are numbers."""
    numeric = sum(1 for text in cells if _looks_numeric(text))
    return numeric < len(cells) / 2


class PreviewRenderer:
    """
    Recomputes formula cells from the text currently on screen.

    Every call starts from the given cell texts; nothing is read from the
    recalculation caches. NOTE lookups still go through the index.
    """

    def __init__(self, index: CrossDocumentIndex, formatter: Optional[NumberFormatter] = None):
        self.resolver = FunctionResolver(index)
        self.formatter = formatter or NumberFormatter()

    def build_table(self, rows: list[list[str]]) -> Table:
        header = bool(rows) and is_header_row(rows[0])
        grid: list[list[Cell]] = []
        for r, texts in enumerate(rows):
            cells = []
            for c, raw in enumerate(texts):
                content = raw.strip()
                formula = is_formula(content)
                value = None
                if not formula and not (header and r == 0):
                    value = parse_number(content)
                cells.append(Cell(row=r, col=c, content=content, is_formula=formula, value=value))
            grid.append(cells)
        return Table(rows=grid)

    def display_currency(self, cell: Cell) -> Optional[str]:
        """Currency hint of a formula, falling back to a referenced variable's currency."""
        currency = extract_currency(cell.content)
        if currency:
            return currency
        note = NOTE_CELL_PATTERN.match(cell.content)
        if note:
            return self.resolver.get_note_currency(note.group(1), note.group(2))
        return None

    def render(self, rows: list[list[str]]) -> list[list[RenderedCell]]:
        """Evaluate and format every formula cell of a displayed table."""
        table = self.build_table(rows)

        for r, cells in enumerate(table.rows):
            for cell in cells:
                if cell.is_formula:
                    result = self.resolver.evaluate_formula(cell.content, table, r, cell.col)
                    if result is not None:
                        cell.value = result

        rendered: list[list[RenderedCell]] = []
        for cells in table.rows:
            out = []
            for cell in cells:
                if cell.is_formula and cell.value is not None:
                    display = self.formatter.format(cell.value, self.display_currency(cell))
                    out.append(
                        RenderedCell(
                            content=cell.content,
                            display=display,
                            formula=cell.content,
                            computed=True,
                        )
                    )
                else:
                    out.append(RenderedCell(content=cell.content, display=cell.content))
            rendered.append(out)

        logger.debug(f"Previewed table with {len(table.formula_cells)} formulas")
        return rendered
