"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from tablemath.config import Settings
from tablemath.documents import VaultDocumentSource
from tablemath.engine import TableMathService, TableProcessor
from tablemath.formulas import FunctionResolver, NumberFormatter
from tablemath.index import CrossDocumentIndex, NamedVariable
from tablemath.storage import SettingsStore


BUDGET_NOTE = """# Budget

| Item | Amount |
| --- | --- |
| Rent | 1000 |
| Food | 500 |
| Total | =SUM(col) |
"""

REPORT_NOTE = """# Report

| Source | Value |
| --- | --- |
| Budget | =NOTE("Budget").total |
"""


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Create settings pointing at temporary paths."""
    vault = tmp_path / "vault"
    vault.mkdir()
    return Settings(
        precision=2,
        locale="en-US",
        vault_path=vault,
        index_path=tmp_path / "plugin" / "data.json",
        settings_db_path=tmp_path / "settings.db",
        debounce_seconds=0.01,
        index_batch_size=2,
        clear_stale_variables=False,
    )


@pytest.fixture
def index(tmp_path: Path) -> CrossDocumentIndex:
    """An empty index backed by a temporary file."""
    return CrossDocumentIndex(tmp_path / "index" / "data.json")


@pytest.fixture
def budget_index(index: CrossDocumentIndex) -> CrossDocumentIndex:
    """An index where "Budget" publishes total = 1500 USD."""
    index.set_variables("Budget", {"total": NamedVariable(value=1500, currency="USD")})
    return index


@pytest.fixture
def resolver(budget_index: CrossDocumentIndex) -> FunctionResolver:
    return FunctionResolver(budget_index)


@pytest.fixture
def processor(resolver: FunctionResolver) -> TableProcessor:
    return TableProcessor(resolver, NumberFormatter(precision=2, locale="en-US"))


@pytest.fixture
def vault(test_settings: Settings) -> Path:
    """A vault with a budget note, a report referencing it and a plain note."""
    root = test_settings.vault_path
    (root / "Budget.md").write_text(BUDGET_NOTE, encoding="utf-8")
    (root / "Report.md").write_text(REPORT_NOTE, encoding="utf-8")
    (root / "Plain.md").write_text("# Plain\n\nNo tables here.\n", encoding="utf-8")
    return root


@pytest_asyncio.fixture
async def settings_store(tmp_path: Path) -> AsyncGenerator[SettingsStore, None]:
    """A settings store on a temporary database."""
    store = SettingsStore(tmp_path / "test_settings.db")
    await store.initialize()
    yield store
    await store.close()


@pytest_asyncio.fixture
async def service(test_settings: Settings, vault: Path) -> AsyncGenerator[TableMathService, None]:
    """An initialized service over the test vault."""
    svc = TableMathService(
        source=VaultDocumentSource(vault),
        index=CrossDocumentIndex(test_settings.index_path),
        settings_store=SettingsStore(test_settings.settings_db_path),
        config=test_settings,
    )
    await svc.initialize()
    yield svc
    await svc.shutdown()
