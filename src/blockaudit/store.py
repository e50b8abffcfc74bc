"""Document stores: where a scan gets its corpus from.

A store lists document ids, reads their text, and supplies the structural
metadata a host would normally cache.  ``load_corpus`` pulls the whole
corpus up front and fails fast: any store error becomes a
``RetrievalError`` and no partial corpus is returned.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

from blockaudit.document import Document, StructuralMetadata
from blockaudit.io_utils import read_text_file
from blockaudit.markdown_meta import build_structural_metadata

log = logging.getLogger(__name__)


class RetrievalError(RuntimeError):
    """Raised when the document corpus cannot be retrieved."""


class DocumentStore(Protocol):
    def list_documents(self) -> list[str]: ...

    def read_text(self, doc_id: str) -> str: ...

    def metadata(self, doc_id: str, text: str) -> StructuralMetadata: ...


class MemoryDocumentStore:
    """In-memory corpus keyed by document id (a POSIX-style relative path).

    Metadata is derived from the text unless supplied explicitly.
    """

    def __init__(
        self,
        documents: Mapping[str, str],
        metadata: Mapping[str, StructuralMetadata] | None = None,
    ) -> None:
        self._documents = dict(documents)
        self._metadata = dict(metadata or {})

    def list_documents(self) -> list[str]:
        return sorted(self._documents)

    def read_text(self, doc_id: str) -> str:
        try:
            return self._documents[doc_id]
        except KeyError:
            raise RetrievalError(f"Unknown document: {doc_id}") from None

    def metadata(self, doc_id: str, text: str) -> StructuralMetadata:
        if doc_id in self._metadata:
            return self._metadata[doc_id]
        return build_structural_metadata(text)


class VaultDocumentStore:
    """Documents under a folder on disk, identified by relative POSIX path."""

    def __init__(self, root: Path, extensions: tuple[str, ...] = (".md",)) -> None:
        self.root = root
        self.extensions = tuple(e.lower() for e in extensions)

    def list_documents(self) -> list[str]:
        if not self.root.is_dir():
            raise RetrievalError(f"Corpus root is not a directory: {self.root}")
        doc_ids: list[str] = []
        for path in self.root.rglob("*"):
            rel = path.relative_to(self.root)
            if any(part.startswith(".") for part in rel.parts):
                continue
            if path.is_file() and path.suffix.lower() in self.extensions:
                doc_ids.append(rel.as_posix())
        return sorted(doc_ids)

    def read_text(self, doc_id: str) -> str:
        return read_text_file(self.root / doc_id)

    def metadata(self, doc_id: str, text: str) -> StructuralMetadata:
        return build_structural_metadata(text)


def load_corpus(store: DocumentStore) -> list[tuple[Document, StructuralMetadata]]:
    """Read every document and its metadata, or raise ``RetrievalError``."""
    try:
        doc_ids = store.list_documents()
        corpus: list[tuple[Document, StructuralMetadata]] = []
        for doc_id in doc_ids:
            text = store.read_text(doc_id)
            meta = store.metadata(doc_id, text)
            corpus.append((Document.from_path(doc_id, text, meta.aliases), meta))
    except RetrievalError:
        raise
    except Exception as exc:
        raise RetrievalError(f"Failed to retrieve corpus: {exc}") from exc
    log.debug("Loaded %d documents", len(corpus))
    return corpus
