"""JSON-backed store for variables published across documents."""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from ..config import settings
from .models import IndexData, NamedVariable, VariableMap

logger = logging.getLogger(__name__)


class CrossDocumentIndex:
    """
    Mapping of document name -> variable name -> NamedVariable.

    The mapping is persisted as one JSON file and rewritten wholesale on
    save. Formula and computed-value caches are kept alongside it in memory
    only; they start empty on every run.
    """

    def __init__(self, index_path: Optional[Path] = None):
        self.index_path = Path(index_path or settings.index_path)
        self._index: IndexData = {}
        self._formulas: dict[str, dict[str, str]] = {}
        self._computed: dict[str, dict[str, str]] = {}
        self._save_lock = asyncio.Lock()

    # Persistence

    async def load(self) -> None:
        """Load the index file; a missing or malformed file yields an empty index."""
        try:
            raw = await asyncio.to_thread(self.index_path.read_text, encoding="utf-8")
            self._index = self._decode(json.loads(raw))
            logger.info(f"Loaded index with {len(self._index)} documents from {self.index_path}")
        except FileNotFoundError:
            logger.info(f"No index at {self.index_path}, starting empty")
            self._index = {}
        except (OSError, ValueError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable index {self.index_path}: {e}")
            self._index = {}

    async def save(self) -> None:
        """Write the whole index to disk; concurrent saves run one at a time."""
        async with self._save_lock:
            payload = json.dumps(self.to_dict(), indent=2)
            await asyncio.to_thread(self._write, payload)
        logger.debug(f"Saved index with {len(self._index)} documents")

    def _write(self, payload: str) -> None:
        """Replace the index file atomically via a temp file in the same directory."""
        self.index_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.index_path.parent, prefix=f".{self.index_path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self.index_path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    @staticmethod
    def _decode(data: object) -> IndexData:
        if not isinstance(data, dict):
            raise ValueError("Index root must be an object")
        index: IndexData = {}
        for document, variables in data.items():
            if not isinstance(variables, dict):
                raise ValueError(f"Variables of {document!r} must be an object")
            index[str(document)] = {
                str(name): NamedVariable.model_validate(entry)
                for name, entry in variables.items()
            }
        return index

    def to_dict(self) -> dict:
        """Plain JSON-compatible view; absent currencies are omitted."""
        return {
            document: {
                name: variable.model_dump(exclude_none=True)
                for name, variable in variables.items()
            }
            for document, variables in self._index.items()
        }

    # Variables

    def get(self, document: str, variable: str) -> Optional[NamedVariable]:
        """Look up a published variable."""
        return self._index.get(document, {}).get(variable)

    def get_document(self, document: str) -> Optional[VariableMap]:
        """Return every variable a document publishes."""
        variables = self._index.get(document)
        return dict(variables) if variables is not None else None

    def documents(self) -> list[str]:
        return sorted(self._index)

    def set_variables(self, document: str, variables: VariableMap) -> bool:
        """
        Replace a document's variables.

        An empty mapping leaves the previous entry untouched.

        Returns:
            True if the entry was replaced
        """
        if not variables:
            return False
        self._index[document] = dict(variables)
        return True

    def clear_variables(self, document: str) -> bool:
        """Drop a document's variables, keeping its caches."""
        return self._index.pop(document, None) is not None

    def remove_document(self, document: str) -> bool:
        """Drop a document's variables and caches."""
        self._formulas.pop(document, None)
        self._computed.pop(document, None)
        return self._index.pop(document, None) is not None

    # In-memory caches

    def store_formula(self, document: str, cell_key: str, formula: str) -> None:
        self._formulas.setdefault(document, {})[cell_key] = formula

    def get_formula(self, document: str, cell_key: str) -> Optional[str]:
        return self._formulas.get(document, {}).get(cell_key)

    def store_computed_value(self, document: str, cell_key: str, value: str) -> None:
        self._computed.setdefault(document, {})[cell_key] = value

    def get_computed_value(self, document: str, cell_key: str) -> Optional[str]:
        return self._computed.get(document, {}).get(cell_key)
