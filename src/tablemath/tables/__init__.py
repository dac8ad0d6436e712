"""Table models and table location within documents."""

from .models import Cell, Table, TableBlock
from .scanner import (
    extract_table,
    find_table_at_cursor,
    has_formulas,
    is_table_line,
    iter_tables,
    split_row,
)

__all__ = [
    "Cell",
    "Table",
    "TableBlock",
    "extract_table",
    "find_table_at_cursor",
    "has_formulas",
    "is_table_line",
    "iter_tables",
    "split_row",
]
