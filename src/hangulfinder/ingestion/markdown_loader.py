"""Markdown vault access for the search engine."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Protocol, Sequence

from hangulfinder.models import DocumentRef
from hangulfinder.utils.files import is_hidden, iter_document_paths

LOGGER = logging.getLogger(__name__)


class DocumentProvider(Protocol):
    """Source of documents the engine indexes."""

    def list_all(self) -> List[DocumentRef]: ...

    def read_content(self, ref: DocumentRef) -> str: ...


class MarkdownVaultProvider:
    """Serves markdown files under ``root`` with vault-relative POSIX paths."""

    def __init__(self, root: Path, *, extensions: Sequence[str] = (".md",)) -> None:
        self.root = Path(root).expanduser().resolve()
        self.extensions = tuple(extensions)

    def accepts(self, path: Path) -> bool:
        return path.suffix.lower() in {ext.lower() for ext in self.extensions} and not is_hidden(
            path, self.root
        )

    def relative_path(self, path: Path) -> str:
        path = Path(path)
        if path.is_absolute():
            path = path.relative_to(self.root)
        return path.as_posix()

    def resolve(self, path: str) -> Path:
        return self.root / path

    def ref_for(self, path: Path) -> DocumentRef:
        """Build a ``DocumentRef`` from a file on disk; raises ``OSError`` if gone."""
        path = Path(path)
        if not path.is_absolute():
            path = self.root / path
        stat = path.stat()
        return DocumentRef(
            path=self.relative_path(path),
            display_name=path.stem,
            size=stat.st_size,
            mtime=stat.st_mtime,
        )

    def list_all(self) -> List[DocumentRef]:
        if not self.root.exists():
            LOGGER.warning("Vault not found: %s", self.root)
            return []

        refs = []
        for path in iter_document_paths([self.root], self.extensions):
            if is_hidden(path, self.root):
                continue
            try:
                refs.append(self.ref_for(path))
            except OSError as exc:
                LOGGER.warning("Failed to stat %s: %s", path, exc)
        return refs

    def read_content(self, ref: DocumentRef) -> str:
        return self.resolve(ref.path).read_text(encoding="utf-8")
