"""Data models for pipe-delimited tables."""

from typing import Optional
from pydantic import BaseModel, Field


class Cell(BaseModel):
    """A single table cell."""

    row: int
    col: int
    content: str
    is_formula: bool = False
    value: Optional[float] = None  # literal number or computed result

    @property
    def has_value(self) -> bool:
        return self.value is not None


class Table(BaseModel):
    """A parsed table: ordered rows of cells."""

    rows: list[list[Cell]] = Field(default_factory=list)
    has_separator: bool = False  # row index 1 is a header divider

    def is_separator_row(self, row: int) -> bool:
        return self.has_separator and row == 1

    @property
    def formula_cells(self) -> list[Cell]:
        """Return only cells that contain formulas."""
        return [cell for cells in self.rows for cell in cells if cell.is_formula]


class TableBlock(BaseModel):
    """A run of table lines located inside a document."""

    lines: list[str]
    start_line: int
    end_line: int

    def contains(self, line: int) -> bool:
        return self.start_line <= line <= self.end_line
