"""Cross-document index of published table variables."""

from .models import IndexData, NamedVariable, VariableMap
from .store import CrossDocumentIndex

__all__ = ["CrossDocumentIndex", "IndexData", "NamedVariable", "VariableMap"]
