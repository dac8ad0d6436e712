"""Incremental recalculation of the tables in a document."""

import logging
import zlib
from dataclasses import dataclass, field
from typing import Optional

from ..formulas.formatting import NumberFormatter
from ..formulas.resolver import FunctionResolver
from ..index.models import VariableMap
from ..index.store import CrossDocumentIndex
from ..tables.models import TableBlock
from ..tables.scanner import find_table_at_cursor, has_formulas, iter_tables
from .processor import TableProcessor

logger = logging.getLogger(__name__)


def content_hash(text: str) -> str:
    """Cheap non-cryptographic digest used to detect unchanged content."""
    return format(zlib.crc32(text.encode("utf-8")), "08x")


def cell_key(line: int, col: int) -> str:
    """Stable cache key for a cell: its document line and column."""
    return f"{line}-{col}"


@dataclass
class TableCacheEntry:
    """Last processed state of one table."""

    hash: str
    processed: list[str]
    variables: VariableMap = field(default_factory=dict)


@dataclass
class TableUpdate:
    """Rendered output for one table of a document."""

    start_line: int
    end_line: int
    lines: list[str]
    cached: bool = False


@dataclass
class RecalcResult:
    """Outcome of recalculating one document."""

    document: str
    skipped: bool = False
    cursor_scoped: bool = False
    tables: list[TableUpdate] = field(default_factory=list)
    variables: VariableMap = field(default_factory=dict)
    index_saved: bool = False

    @property
    def processed_count(self) -> int:
        return sum(1 for table in self.tables if not table.cached)

    def render(self, lines: list[str]) -> list[str]:
        """Return a display copy of the document with rendered tables spliced in."""
        rendered = list(lines)
        for table in sorted(self.tables, key=lambda t: t.start_line, reverse=True):
            rendered[table.start_line:table.end_line + 1] = table.lines
        return rendered


class TableRecalculator:
    """
    Recomputes the tables of a document and publishes their variables.

    Keeps a whole-document hash per document and a per-table cache keyed by
    document and start line so unchanged content is never processed twice.
    """

    def __init__(
        self,
        index: CrossDocumentIndex,
        formatter: Optional[NumberFormatter] = None,
        clear_stale_variables: bool = False,
    ):
        """
        Initialize the recalculator.

        Args:
            index: Cross-document index that receives published variables
            formatter: Number formatter for rendered results
            clear_stale_variables: Drop a document's variables when a full
                pass finds none, instead of keeping the previous entry
        """
        self.index = index
        self.processor = TableProcessor(FunctionResolver(index), formatter)
        self.clear_stale_variables = clear_stale_variables
        self._content_hashes: dict[str, str] = {}
        self._table_cache: dict[tuple[str, int], TableCacheEntry] = {}

    @property
    def formatter(self) -> NumberFormatter:
        return self.processor.formatter

    @formatter.setter
    def formatter(self, formatter: NumberFormatter) -> None:
        self.processor.formatter = formatter
        self.invalidate()

    def invalidate(self, document: Optional[str] = None) -> None:
        """Forget hashes and cached tables, for one document or all of them."""
        if document is None:
            self._content_hashes.clear()
            self._table_cache.clear()
            return
        self._content_hashes.pop(document, None)
        for key in [k for k in self._table_cache if k[0] == document]:
            del self._table_cache[key]

    async def recalculate(
        self,
        document: str,
        text: str,
        cursor_line: int = 0,
        silent: bool = False,
    ) -> RecalcResult:
        """
        Recalculate a document.

        Args:
            document: Document name, used as the index key
            text: Full document text
            cursor_line: Line the cursor is on; on a quiet pass only the
                table containing it is recomputed
            silent: Quiet/background pass; an unchanged document is skipped

        Returns:
            RecalcResult describing what was processed
        """
        result = RecalcResult(document=document)

        doc_hash = content_hash(text)
        if silent and self._content_hashes.get(document) == doc_hash:
            logger.debug(f"{document}: unchanged, skipping")
            result.skipped = True
            return result
        self._content_hashes[document] = doc_hash

        lines = text.split("\n")
        cursor_table = find_table_at_cursor(lines, cursor_line)
        editing = silent and cursor_table is not None
        result.cursor_scoped = editing

        for block in iter_tables(lines):
            if not has_formulas(block.lines):
                continue

            table_key = (document, block.start_line)
            table_hash = content_hash("\n".join(block.lines))
            cached = self._table_cache.get(table_key)
            if cached is not None and cached.hash == table_hash:
                result.variables.update(cached.variables)
                result.tables.append(
                    TableUpdate(block.start_line, block.end_line, cached.processed, cached=True)
                )
                continue

            if editing and not cursor_table.contains(block.start_line):
                continue

            self._process_block(document, block, table_key, table_hash, result)

        await self._publish(result)
        return result

    def _process_block(
        self,
        document: str,
        block: TableBlock,
        table_key: tuple[str, int],
        table_hash: str,
        result: RecalcResult,
    ) -> None:
        processed = self.processor.process(block.lines)

        for cell in processed.table.formula_cells:
            key = cell_key(block.start_line + cell.row, cell.col)
            self.index.store_formula(document, key, cell.content)
            self.index.store_computed_value(document, key, self.processor.render_cell(cell))

        self._table_cache[table_key] = TableCacheEntry(
            hash=table_hash,
            processed=processed.lines,
            variables=processed.variables,
        )
        result.variables.update(processed.variables)
        result.tables.append(TableUpdate(block.start_line, block.end_line, processed.lines))
        logger.info(
            f"{document}: recomputed table at line {block.start_line} "
            f"({len(processed.variables)} variables)"
        )

    async def _publish(self, result: RecalcResult) -> None:
        document = result.document
        previous = self.index.get_document(document)

        if result.variables:
            if result.variables == previous:
                return
            self.index.set_variables(document, result.variables)
            await self.index.save()
            result.index_saved = True
            return

        if self.clear_stale_variables and not result.cursor_scoped and previous:
            self.index.clear_variables(document)
            await self.index.save()
            result.index_saved = True
            logger.info(f"{document}: no variables left, cleared index entry")
