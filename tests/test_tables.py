"""Tests for table location and the table grid model."""

from tablemath.tables import (
    extract_table,
    find_table_at_cursor,
    has_formulas,
    is_table_line,
    iter_tables,
    split_row,
)
from tablemath.index import NamedVariable


DOCUMENT = [
    "# Title",            # 0
    "",                   # 1
    "| a | b |",          # 2
    "| --- | --- |",      # 3
    "| 1 | =SUM(row) |",  # 4
    "",                   # 5
    "| lonely |",         # 6
    "",                   # 7
    "| x | y |",          # 8
    "| 1 | 2 |",          # 9
]


class TestScanner:
    """Test finding tables in document lines."""

    def test_is_table_line(self):
        assert is_table_line("| a | b |")
        assert is_table_line("   | a |   ")
        assert not is_table_line("| a | b")
        assert not is_table_line("text")

    def test_extract_from_any_line_of_table(self):
        block = extract_table(DOCUMENT, 3)
        assert block.start_line == 2
        assert block.end_line == 4
        assert block.lines == DOCUMENT[2:5]

    def test_single_line_is_not_a_table(self):
        assert extract_table(DOCUMENT, 6) is None

    def test_iter_tables(self):
        blocks = list(iter_tables(DOCUMENT))
        assert [(b.start_line, b.end_line) for b in blocks] == [(2, 4), (8, 9)]

    def test_cursor_inside_table(self):
        block = find_table_at_cursor(DOCUMENT, 9)
        assert block.start_line == 8
        assert block.contains(9)

    def test_cursor_outside_table(self):
        assert find_table_at_cursor(DOCUMENT, 0) is None
        assert find_table_at_cursor(DOCUMENT, 100) is None

    def test_has_formulas(self):
        assert has_formulas(["| a | =SUM(row) |"])
        assert has_formulas(["|=2+2|"])
        assert not has_formulas(["| a | b |"])
        assert not has_formulas(["| a==b | c |"])

    def test_has_formulas_looks_past_earlier_equals(self):
        assert has_formulas(["| a=b | =SUM(row) |"])
        assert not has_formulas(["| a=b | c==d |"])

    def test_split_row(self):
        assert split_row("|  a | b  |c|") == ["a", "b", "c"]


class TestParse:
    """Test building the grid."""

    def test_cells_and_values(self, processor):
        table = processor.parse(["| Item | $1,200 | =SUM(row) |"])
        cells = table.rows[0]
        assert [c.content for c in cells] == ["Item", "$1,200", "=SUM(row)"]
        assert [c.is_formula for c in cells] == [False, False, True]
        assert cells[0].value is None
        assert cells[1].value == 1200
        assert cells[2].value is None

    def test_separator_detected_on_row_one_only(self, processor):
        assert processor.parse(["| a |", "| --- |", "| 1 |"]).has_separator
        assert not processor.parse(["| a |", "| 1 |", "| --- |"]).has_separator


class TestVariables:
    """Test named-variable extraction."""

    def test_label_rows_publish_last_value(self, processor):
        result = processor.process(
            [
                "| Item | Amount |",
                "| --- | --- |",
                "| Rent | 1000 |",
                "| Food | 500 |",
                "| **Total Cost** | =SUM(col, USD) |",
            ]
        )
        assert result.variables == {
            "rent": NamedVariable(value=1000),
            "food": NamedVariable(value=500),
            "total_cost": NamedVariable(value=1500, currency="USD"),
        }

    def test_header_row_without_value_publishes_nothing(self, processor):
        result = processor.process(["| Item | Amount |", "| --- | --- |"])
        assert result.variables == {}

    def test_formula_label_is_ignored(self, processor):
        result = processor.process(["| =1+1 | 5 |", "| a | b |"])
        assert result.variables == {}

    def test_failed_last_cell_publishes_nothing(self, processor):
        result = processor.process(["| Total | =SUM( |", "| x | y |"])
        assert result.variables == {}


class TestReserialize:
    """Test rendering tables back to text."""

    def test_formula_replaced_with_formatted_value(self, processor):
        result = processor.process(["| Rent | 1000 |", "| Total | =SUM(col) |"])
        assert result.lines == ["| Rent | 1000 |", "| Total | 1,000 |"]

    def test_currency_formatting(self, processor):
        result = processor.process(["| 1000 | 500 | =SUM(row, USD) |", "| a | b | c |"])
        assert result.lines[0] == "| 1000 | 500 | $1,500.00 |"

    def test_malformed_formula_line_is_byte_identical(self, processor):
        lines = ["|Total|=SUM(|", "| x | y |"]
        assert processor.process(lines).lines == lines

    def test_original_formula_text_is_kept_in_cells(self, processor):
        result = processor.process(["| 1 | =SUM(row) |", "| a | b |"])
        assert result.table.rows[0][1].content == "=SUM(row)"
        assert result.table.rows[0][1].value == 1
