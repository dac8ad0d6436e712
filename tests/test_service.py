"""Tests for the recalculation service."""

import asyncio

import pytest

from tablemath.index import CrossDocumentIndex
from tablemath.storage import TableMathSettings

from conftest import BUDGET_NOTE


class FakeEditor:
    """Editor stand-in holding text and a cursor line."""

    def __init__(self, text: str, cursor_line: int = 0):
        self.text = text
        self.cursor_line = cursor_line

    def get_value(self) -> str:
        return self.text

    def get_cursor_line(self) -> int:
        return self.cursor_line


class TestIndexAll:
    """Test bulk indexing of the vault."""

    @pytest.mark.asyncio
    async def test_indexes_documents_with_formulas(self, service):
        count = await service.index_all()

        assert count == 2
        assert service.index.documents() == ["Budget", "Report"]
        assert service.index.get("Budget", "total").value == 1500
        assert service.index.get("Report", "budget").value == 1500

    @pytest.mark.asyncio
    async def test_second_run_skips_unchanged(self, service):
        await service.index_all()
        assert await service.index_all() == 0

    @pytest.mark.asyncio
    async def test_index_survives_restart(self, service, test_settings):
        await service.index_all()
        assert test_settings.index_path.exists()

        fresh = CrossDocumentIndex(test_settings.index_path)
        await fresh.load()
        assert fresh.get("Budget", "total").value == 1500


class TestRecalculateDocument:
    """Test single-document recalculation from the source."""

    @pytest.mark.asyncio
    async def test_missing_document_is_skipped(self, service):
        assert await service.recalculate_document("Missing") is None

    @pytest.mark.asyncio
    async def test_plain_document_is_skipped(self, service):
        assert await service.recalculate_document("Plain") is None

    @pytest.mark.asyncio
    async def test_budget_document(self, service):
        result = await service.recalculate_document("Budget")
        assert result.tables[0].lines[-1] == "| Total | 1,500 |"


class TestEvents:
    """Test edit and rename handling."""

    @pytest.mark.asyncio
    async def test_edit_is_debounced(self, service):
        editor = FakeEditor(BUDGET_NOTE)
        first = service.on_edit("Budget", editor)
        editor.text = BUDGET_NOTE.replace("| Food | 500 |", "| Food | 700 |")
        second = service.on_edit("Budget", editor)

        result = await second
        assert first.cancelled()
        assert result.tables[0].lines[-1] == "| Total | 1,700 |"
        assert service.index.get("Budget", "total").value == 1700

    @pytest.mark.asyncio
    async def test_edits_to_different_documents_both_run(self, service):
        budget = service.on_edit("Budget", FakeEditor(BUDGET_NOTE))
        other = service.on_edit("Other", FakeEditor("| a | =1+1 |\n| b | 3 |"))

        results = await asyncio.gather(budget, other)
        assert [r.document for r in results] == ["Budget", "Other"]
        assert service.index.get("Other", "b").value == 3

    @pytest.mark.asyncio
    async def test_rename_moves_variables(self, service, vault):
        await service.index_all()
        (vault / "Budget.md").rename(vault / "Money.md")

        result = await service.on_rename("Budget", "Money")

        assert result is not None
        assert service.index.get_document("Budget") is None
        assert service.index.get("Money", "total").value == 1500


class TestSettingsAndEvaluate:
    """Test display options and ad-hoc evaluation."""

    def test_evaluate_with_row(self, service):
        value, display = service.evaluate("=SUM(row, USD)", [["1000", "500.5", ""]], 0, 2)
        assert value == 1500.5
        assert display == "$1,500.50"

    @pytest.mark.asyncio
    async def test_evaluate_note(self, service):
        await service.index_all()
        assert service.evaluate('=NOTE("Budget").total') == (1500, "1,500")

    def test_evaluate_failure(self, service):
        assert service.evaluate("=SUM(") == (None, None)
        assert service.evaluate('=NOTE("Nowhere").x') == (None, None)

    @pytest.mark.asyncio
    async def test_update_settings_applies_and_persists(self, service):
        await service.update_settings(TableMathSettings(precision=0, locale="en-US"))

        _, display = service.evaluate("=SUM(row, USD)", [["1000", "500.5", ""]], 0, 2)
        assert display == "$1,501"

        stored = await service.settings_store.load_settings()
        assert stored.precision == 0

    @pytest.mark.asyncio
    async def test_update_settings_rerenders_cached_tables(self, service):
        await service.recalculate_document("Budget", silent=True)
        await service.update_settings(TableMathSettings(precision=2, locale="de-DE"))

        result = await service.recalculate_document("Budget", silent=True)
        assert not result.skipped
        assert result.tables[0].lines[-1] == "| Total | 1.500 |"
