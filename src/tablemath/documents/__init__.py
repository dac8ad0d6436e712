"""Document sources the recalculation engine reads from."""

from .source import DocumentSource, VaultDocumentSource

__all__ = ["DocumentSource", "VaultDocumentSource"]
