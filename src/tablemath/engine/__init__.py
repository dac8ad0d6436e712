"""Table processing and incremental recalculation."""

from .debounce import Debouncer
from .processor import ProcessedTable, TableProcessor
from .recalculator import RecalcResult, TableRecalculator, TableUpdate, content_hash
from .service import EditorContext, TableMathService

__all__ = [
    "Debouncer",
    "ProcessedTable",
    "TableProcessor",
    "RecalcResult",
    "TableRecalculator",
    "TableUpdate",
    "content_hash",
    "EditorContext",
    "TableMathService",
]
