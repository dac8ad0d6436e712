"""Read markdown documents from a vault directory."""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from ..config import settings

logger = logging.getLogger(__name__)


@runtime_checkable
class DocumentSource(Protocol):
    """Anything that can list documents and read their text."""

    async def list_documents(self) -> list[str]: ...

    async def read(self, document: str) -> str: ...


class VaultDocumentSource:
    """
    Documents are the ``*.md`` files under a root directory.

    A document is named by its file stem, so ``notes/Budget.md`` is
    ``Budget``. When two files share a stem the later path wins.
    """

    def __init__(self, root: Optional[Path] = None, suffix: str = ".md"):
        self.root = Path(root or settings.vault_path)
        self.suffix = suffix
        self._paths: dict[str, Path] = {}

    def _scan(self) -> dict[str, Path]:
        paths: dict[str, Path] = {}
        for path in sorted(self.root.rglob(f"*{self.suffix}")):
            if not path.is_file():
                continue
            if path.stem in paths:
                logger.warning(f"Duplicate document name {path.stem!r}: {path} shadows {paths[path.stem]}")
            paths[path.stem] = path
        return paths

    async def list_documents(self) -> list[str]:
        self._paths = await asyncio.to_thread(self._scan)
        return list(self._paths)

    def path_for(self, document: str) -> Path:
        return self._paths.get(document, self.root / f"{document}{self.suffix}")

    async def read(self, document: str) -> str:
        """Read a document's text. Raises OSError if it cannot be read."""
        path = self.path_for(document)
        return await asyncio.to_thread(path.read_text, encoding="utf-8")
