"""Entry point for document events: bulk indexing, edits, renames, settings."""

import asyncio
import logging
from typing import Optional, Protocol

from ..config import Settings, settings
from ..documents import DocumentSource, VaultDocumentSource
from ..formulas.formatting import NumberFormatter
from ..formulas.syntax import extract_currency, might_contain_formulas
from ..index.store import CrossDocumentIndex
from ..preview import PreviewRenderer, RenderedCell
from ..storage import SettingsStore, TableMathSettings
from .debounce import Debouncer
from .recalculator import RecalcResult, TableRecalculator

logger = logging.getLogger(__name__)


class EditorContext(Protocol):
    """The editor a change happened in."""

    def get_value(self) -> str: ...

    def get_cursor_line(self) -> int: ...


class TableMathService:
    """
    Coordinates the recalculation engine with its collaborators.

    All work runs on one event loop; bulk indexing yields between batches
    so other events are not starved.
    """

    def __init__(
        self,
        source: Optional[DocumentSource] = None,
        index: Optional[CrossDocumentIndex] = None,
        settings_store: Optional[SettingsStore] = None,
        config: Optional[Settings] = None,
    ):
        """
        Initialize the service.

        Args:
            source: Where documents are read from (vault directory if not provided)
            index: Cross-document index (created if not provided)
            settings_store: Persistence for display options (created if not provided)
            config: Application settings (module settings if not provided)
        """
        self.config = config or settings
        self.source = source or VaultDocumentSource(self.config.vault_path)
        self.index = index or CrossDocumentIndex(self.config.index_path)
        self.settings_store = settings_store or SettingsStore(self.config.settings_db_path)
        self.options = TableMathSettings(precision=self.config.precision, locale=self.config.locale)

        formatter = NumberFormatter(self.options.precision, self.options.locale)
        self.recalculator = TableRecalculator(
            self.index,
            formatter,
            clear_stale_variables=self.config.clear_stale_variables,
        )
        self.renderer = PreviewRenderer(self.index, formatter)
        self.debouncer = Debouncer(self.config.debounce_seconds)

    async def initialize(self):
        """Load persisted settings and the index."""
        await self.settings_store.initialize()
        self._apply_options(await self.settings_store.load_settings())
        await self.index.load()
        logger.info("TableMathService initialized")

    async def shutdown(self):
        """Cancel pending recalculations and release resources."""
        self.debouncer.cancel()
        await self.settings_store.close()

    # Settings

    def _apply_options(self, options: TableMathSettings) -> None:
        self.options = options
        formatter = NumberFormatter(options.precision, options.locale)
        self.recalculator.formatter = formatter
        self.renderer.formatter = formatter

    async def update_settings(self, options: TableMathSettings) -> TableMathSettings:
        """Persist new display options; cached tables re-render on the next pass."""
        self._apply_options(options)
        await self.settings_store.save_settings(options)
        return options

    # Recalculation

    async def recalculate_text(
        self, document: str, text: str, cursor_line: int = 0, silent: bool = False
    ) -> RecalcResult:
        return await self.recalculator.recalculate(document, text, cursor_line, silent)

    async def recalculate_document(
        self, document: str, silent: bool = False
    ) -> Optional[RecalcResult]:
        """
        Read a document from the source and recalculate it.

        Returns:
            The result, or None when the document could not be read or has
            no function calls worth indexing
        """
        try:
            text = await self.source.read(document)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Skipping unreadable document {document!r}: {e}")
            return None

        if not might_contain_formulas(text):
            return None
        return await self.recalculate_text(document, text, cursor_line=0, silent=silent)

    async def index_all(self) -> int:
        """
        Recalculate every document in the source, in batches.

        Returns:
            Number of documents that were recalculated
        """
        documents = await self.source.list_documents()
        batch_size = self.config.index_batch_size
        count = 0

        for start in range(0, len(documents), batch_size):
            batch = documents[start:start + batch_size]
            results = await asyncio.gather(
                *(self.recalculate_document(doc, silent=True) for doc in batch)
            )
            count += sum(1 for result in results if result is not None and not result.skipped)
            await asyncio.sleep(0)

        logger.info(f"Indexed {count} of {len(documents)} documents")
        return count

    def on_edit(self, document: str, editor: EditorContext) -> asyncio.Task:
        """Schedule a debounced quiet recalculation of the edited document."""

        async def run() -> RecalcResult:
            return await self.recalculate_text(
                document,
                editor.get_value(),
                cursor_line=editor.get_cursor_line(),
                silent=True,
            )

        return self.debouncer.schedule(document, run)

    async def on_rename(self, old_name: str, new_name: str) -> Optional[RecalcResult]:
        """Re-index a renamed document under its new name."""
        self.debouncer.cancel(old_name)
        self.recalculator.invalidate(old_name)
        removed = self.index.remove_document(old_name)

        result = await self.recalculate_document(new_name, silent=True)
        if removed and not (result and result.index_saved):
            await self.index.save()
        return result

    def evaluate(
        self,
        formula: str,
        rows: Optional[list[list[str]]] = None,
        row: int = 0,
        col: int = 0,
    ) -> tuple[Optional[float], Optional[str]]:
        """
        Evaluate one formula against an ad-hoc table.

        Returns:
            (value, display text), both None when the formula has no value
        """
        processor = self.recalculator.processor
        table = processor.parse_cells(rows or [])
        value = processor.resolver.evaluate_formula(formula, table, row, col)
        if value is None:
            return None, None
        return value, processor.formatter.format(value, extract_currency(formula))

    # Preview

    def preview(self, rows: list[list[str]]) -> list[list[RenderedCell]]:
        """Compute display values for a table shown as markup."""
        return self.renderer.render(rows)
