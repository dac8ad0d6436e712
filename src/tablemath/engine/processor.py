"""Table grid model: parse, evaluate, publish variables and reserialize."""

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..formulas.formatting import NumberFormatter
from ..formulas.resolver import FunctionResolver
from ..formulas.syntax import extract_currency, is_formula, is_separator, parse_number, slugify
from ..index.models import NamedVariable, VariableMap
from ..tables.models import Cell, Table
from ..tables.scanner import split_row

logger = logging.getLogger(__name__)


@dataclass
class ProcessedTable:
    """Result of processing one table."""

    table: Table
    lines: list[str]
    variables: VariableMap = field(default_factory=dict)


class TableProcessor:
    """Evaluates the formula cells of a table and renders the results."""

    def __init__(self, resolver: FunctionResolver, formatter: Optional[NumberFormatter] = None):
        self.resolver = resolver
        self.formatter = formatter or NumberFormatter()

    def parse(self, raw_lines: list[str]) -> Table:
        """Parse table lines into a grid of cells with literal values filled in."""
        return self.parse_cells([split_row(line) for line in raw_lines])

    def parse_cells(self, texts: list[list[str]]) -> Table:
        """Build a table from already split cell texts."""
        rows: list[list[Cell]] = []
        for r, row_texts in enumerate(texts):
            cells = []
            for c, raw in enumerate(row_texts):
                content = raw.strip()
                formula = is_formula(content)
                cells.append(
                    Cell(
                        row=r,
                        col=c,
                        content=content,
                        is_formula=formula,
                        value=None if formula else parse_number(content),
                    )
                )
            rows.append(cells)

        has_separator = len(rows) > 1 and all(is_separator(cell.content) for cell in rows[1])
        return Table(rows=rows, has_separator=has_separator)

    def evaluate(self, table: Table) -> None:
        """Compute every formula cell in place, row by row, left to right."""
        for r, cells in enumerate(table.rows):
            if table.is_separator_row(r):
                continue
            for cell in cells:
                if not cell.is_formula:
                    continue
                result = self.resolver.evaluate_formula(cell.content, table, r, cell.col)
                if result is not None:
                    cell.value = result

    def extract_variables(self, table: Table) -> VariableMap:
        """
        Collect the variables a table publishes.

        A row publishes when its first cell is a non-empty label and its last
        cell has a value. Later rows win on duplicate names.
        """
        variables: VariableMap = {}
        for r, cells in enumerate(table.rows):
            if table.is_separator_row(r) or len(cells) < 2:
                continue
            label = cells[0]
            last = cells[-1]
            if not label.content or label.is_formula or last.value is None:
                continue

            name = slugify(label.content)
            if not name:
                continue
            currency = extract_currency(last.content) if last.is_formula else None
            variables[name] = NamedVariable(value=last.value, currency=currency)
        return variables

    def render_cell(self, cell: Cell) -> str:
        """Display text for a cell: formatted result or the original content."""
        if cell.is_formula and cell.value is not None:
            return self.formatter.format(cell.value, extract_currency(cell.content))
        return cell.content

    def reserialize(self, table: Table, raw_lines: Optional[list[str]] = None) -> list[str]:
        """
        Render the table back to pipe-delimited lines.

        When the source lines are given, rows without a computed formula are
        passed through byte for byte.
        """
        lines = []
        for r, cells in enumerate(table.rows):
            computed = any(cell.is_formula and cell.value is not None for cell in cells)
            if raw_lines is not None and not computed:
                lines.append(raw_lines[r])
                continue
            lines.append("| " + " | ".join(self.render_cell(cell) for cell in cells) + " |")
        return lines

    def process(self, raw_lines: list[str]) -> ProcessedTable:
        """Parse, evaluate and render a table, collecting its variables."""
        table = self.parse(raw_lines)
        self.evaluate(table)
        variables = self.extract_variables(table)
        lines = self.reserialize(table, raw_lines)
        logger.debug(
            f"Processed table of {len(table.rows)} rows, "
            f"{len(table.formula_cells)} formulas, {len(variables)} variables"
        )
        return ProcessedTable(table=table, lines=lines, variables=variables)
