"""Document model for one scan.

A ``Document`` is the raw text of one corpus file plus its identity.  The
host's structural cache for that file is carried separately as
``StructuralMetadata``, and ``SanitizedDocument`` pairs a document with the
blanked text the extractor searches.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath

from blockaudit.ranges import IgnoreRange, RangeSet


@dataclass(frozen=True, slots=True)
class Document:
    """One corpus document, immutable for the duration of a scan."""

    doc_id: str
    title: str
    raw_text: str
    aliases: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        if not self.doc_id:
            raise ValueError("doc_id cannot be empty")

    @classmethod
    def from_path(
        cls,
        doc_id: str,
        raw_text: str,
        aliases: tuple[str, ...] | frozenset[str] = (),
    ) -> Document:
        """Build a document whose title is the file stem of *doc_id*."""
        return cls(
            doc_id=doc_id,
            title=PurePosixPath(doc_id).stem,
            raw_text=raw_text,
            aliases=frozenset(aliases),
        )


@dataclass(frozen=True, slots=True)
class StructuralMetadata:
    """Host-supplied structure for one document.

    ``block_ids`` is None when the host does not track block identifiers;
    anchor existence then falls back to the extractor's own findings.
    """

    headings: tuple[IgnoreRange, ...] = ()
    code_blocks: tuple[IgnoreRange, ...] = ()
    aliases: tuple[str, ...] = ()
    block_ids: frozenset[str] | None = None


@dataclass(frozen=True, slots=True)
class SanitizedDocument:
    """A document plus its same-length, blanked search text."""

    document: Document
    sanitized_text: str
    ignore_ranges: RangeSet

    def __post_init__(self) -> None:
        if len(self.sanitized_text) != len(self.document.raw_text):
            raise ValueError(
                "sanitized_text length must equal raw_text length "
                f"({len(self.sanitized_text)} != {len(self.document.raw_text)})",
            )

    @property
    def doc_id(self) -> str:
        return self.document.doc_id
