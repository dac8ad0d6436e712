"""Locate pipe-delimited tables inside document text."""

import re
from typing import Iterator, Optional, Pattern

from .models import TableBlock

MIN_TABLE_LINES = 2

# "=" opening a cell: directly after a pipe or a space
FORMULA_START_PATTERN: Pattern = re.compile(r"[ |]=")


def is_table_line(line: str) -> bool:
    """A table line starts and ends with a pipe once trimmed."""
    stripped = line.strip()
    return stripped.startswith("|") and stripped.endswith("|")


def extract_table(lines: list[str], index: int) -> Optional[TableBlock]:
    """
    Extract the table that contains line *index*.

    Walks back to the first table line of the run, then forward to the last.
    Runs shorter than two lines are not tables.
    """
    if index < 0 or index >= len(lines) or not is_table_line(lines[index]):
        return None

    start = index
    while start > 0 and is_table_line(lines[start - 1]):
        start -= 1

    end = index
    while end + 1 < len(lines) and is_table_line(lines[end + 1]):
        end += 1

    if end - start + 1 < MIN_TABLE_LINES:
        return None

    return TableBlock(lines=lines[start:end + 1], start_line=start, end_line=end)


def find_table_at_cursor(lines: list[str], cursor_line: int) -> Optional[TableBlock]:
    """Return the table the cursor sits in, if any."""
    return extract_table(lines, cursor_line)


def iter_tables(lines: list[str]) -> Iterator[TableBlock]:
    """Yield every table in a document, top to bottom."""
    i = 0
    while i < len(lines):
        if is_table_line(lines[i]):
            block = extract_table(lines, i)
            if block is not None:
                yield block
                i = block.end_line + 1
                continue
        i += 1


def has_formulas(table_lines: list[str]) -> bool:
    """Syntactic check for formula cells: any "=" right after a space or pipe."""
    return any(FORMULA_START_PATTERN.search(line) for line in table_lines)


def split_row(line: str) -> list[str]:
    """Split a table line into trimmed cell texts, dropping the outer pipes."""
    parts = line.split("|")
    return [part.strip() for part in parts[1:-1]]
