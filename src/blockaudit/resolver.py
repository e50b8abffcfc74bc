"""Reference resolution against a read-only corpus snapshot.

``LinkIndex`` answers "which document does this link path mean, seen from
this source document?"; ``CorpusIndex`` adds "does that document define
this anchor?".  ``resolve_reference`` combines both into one of three
outcomes.  Nothing here mutates the index.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from pathlib import PurePosixPath

from blockaudit.document import Document
from blockaudit.extractor import AnchorDefinition, LinkReference
from blockaudit.linkpath import join_relative, parse_link

log = logging.getLogger(__name__)


class Resolution(StrEnum):
    RESOLVED = "resolved"
    BROKEN_UNKNOWN_DOCUMENT = "broken_unknown_document"
    BROKEN_UNKNOWN_ANCHOR = "broken_unknown_anchor"


@dataclass(frozen=True, slots=True)
class ResolvedReference:
    """A reference annotated with exactly one resolution outcome."""

    reference: LinkReference
    outcome: Resolution
    target_doc_id: str | None = None
    target_anchor_key: str | None = None

    def __post_init__(self) -> None:
        if self.outcome is Resolution.BROKEN_UNKNOWN_DOCUMENT:
            if self.target_doc_id is not None:
                raise ValueError("unknown-document outcome cannot name a target")
        elif self.target_doc_id is None:
            raise ValueError(f"{self.outcome} outcome requires target_doc_id")
        if self.outcome is Resolution.RESOLVED and not self.target_anchor_key:
            raise ValueError("resolved outcome requires target_anchor_key")

    @property
    def is_resolved(self) -> bool:
        return self.outcome is Resolution.RESOLVED

    @property
    def is_broken(self) -> bool:
        return self.outcome is not Resolution.RESOLVED


# ---------------------------------------------------------------------------
# Path index
# ---------------------------------------------------------------------------


def _strip_suffix(doc_id: str) -> str:
    p = PurePosixPath(doc_id)
    return str(p.with_suffix("")) if p.suffix else doc_id


def _folder_parts(doc_id: str) -> tuple[str, ...]:
    return PurePosixPath(doc_id).parent.parts


def _closest(candidates: Iterable[str], source_doc_id: str) -> str:
    """Pick the candidate nearest to the source document.

    Longest shared folder prefix wins, then the shallowest path, then the
    lexicographically smallest.
    """
    source_folder = _folder_parts(source_doc_id)

    def sort_key(doc_id: str) -> tuple[int, int, str]:
        folder = _folder_parts(doc_id)
        shared = 0
        for a, b in zip(source_folder, folder):
            if a != b:
                break
            shared += 1
        return (-shared, len(folder), doc_id)

    return min(candidates, key=sort_key)


class LinkIndex:
    """Case-insensitive path, title and alias lookup for one corpus snapshot."""

    def __init__(self) -> None:
        self._by_path: dict[str, str] = {}
        self._by_stem_path: dict[str, list[str]] = defaultdict(list)
        self._by_alias: dict[str, list[str]] = defaultdict(list)

    @classmethod
    def from_documents(cls, documents: Iterable[Document]) -> LinkIndex:
        index = cls()
        for doc in documents:
            index.add(doc)
        return index

    def add(self, document: Document) -> None:
        doc_id = document.doc_id
        self._by_path[doc_id.lower()] = doc_id
        self._by_stem_path[_strip_suffix(doc_id).lower()].append(doc_id)
        for alias in document.aliases:
            self._by_alias[alias.strip().lower()].append(doc_id)

    def __contains__(self, doc_id: object) -> bool:
        return isinstance(doc_id, str) and doc_id.lower() in self._by_path

    def _exact(self, path: str) -> list[str]:
        key = path.lower()
        if key in self._by_path:
            return [self._by_path[key]]
        return list(self._by_stem_path.get(key, ()))

    def _suffix(self, path: str) -> list[str]:
        key = path.lower()
        tail = "/" + key
        return [
            doc_id
            for stem, doc_ids in self._by_stem_path.items()
            if stem == key or stem.endswith(tail)
            for doc_id in doc_ids
        ]

    def resolve_path(self, path: str, source_doc_id: str) -> str | None:
        """Resolve a normalized link path to a document id, or None.

        Lookup order: empty path (source itself), exact corpus path, path
        relative to the source folder, path suffix / title, alias.  Within
        one step, several candidates are narrowed to the closest by path.
        A bare name has no folder to anchor it, so its exact, relative and
        title matches form one step.
        """
        if not path:
            return source_doc_id if source_doc_id in self else None

        if path.startswith("/"):
            matches = self._exact(path.lstrip("/"))
            return _closest(matches, source_doc_id) if matches else None

        if "/" not in path:
            matches = self._exact(path) + self._suffix(path)
            relative = join_relative(source_doc_id, path)
            if relative is not None:
                matches += self._exact(relative)
            if matches:
                return _closest(set(matches), source_doc_id)
            aliased = self._by_alias.get(path.lower())
            return _closest(aliased, source_doc_id) if aliased else None

        steps: list[list[str]] = [self._exact(path)]
        relative = join_relative(source_doc_id, path)
        if relative is not None:
            steps.append(self._exact(relative))
        if not path.startswith("../"):
            steps.append(self._suffix(path))
        steps.append(list(self._by_alias.get(path.lower(), ())))

        for matches in steps:
            if matches:
                return _closest(matches, source_doc_id)
        return None


# ---------------------------------------------------------------------------
# Corpus index
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CorpusIndex:
    """Read-only view of every document's path and anchors.

    ``host_block_ids`` maps a document to the block ids its host tracks;
    a missing or None entry falls back to the extracted anchors.
    """

    link_index: LinkIndex
    anchors_by_doc: Mapping[str, frozenset[str]]
    host_block_ids: Mapping[str, frozenset[str] | None]

    @classmethod
    def build(
        cls,
        documents: Iterable[Document],
        anchors: Iterable[AnchorDefinition],
        host_block_ids: Mapping[str, frozenset[str] | None] | None = None,
    ) -> CorpusIndex:
        by_doc: dict[str, set[str]] = defaultdict(set)
        for anchor in anchors:
            by_doc[anchor.source_doc_id].add(anchor.anchor_key)
        return cls(
            link_index=LinkIndex.from_documents(documents),
            anchors_by_doc={k: frozenset(v) for k, v in by_doc.items()},
            host_block_ids=dict(host_block_ids or {}),
        )

    def has_anchor(self, doc_id: str, anchor_key: str) -> bool:
        tracked = self.host_block_ids.get(doc_id)
        if tracked is not None:
            return anchor_key in tracked
        return anchor_key in self.anchors_by_doc.get(doc_id, frozenset())


def resolve_reference(
    reference: LinkReference, index: CorpusIndex,
) -> ResolvedReference | None:
    """Classify one reference, or return None if it is malformed."""
    link = parse_link(reference.link_text)
    if link is None:
        log.debug(
            "Skipping malformed reference %r in %s at %d",
            reference.link_text,
            reference.source_doc_id,
            reference.position_start,
        )
        return None

    target = index.link_index.resolve_path(link.path, reference.source_doc_id)
    if target is None:
        return ResolvedReference(reference, Resolution.BROKEN_UNKNOWN_DOCUMENT)
    if not index.has_anchor(target, link.anchor_key):
        return ResolvedReference(
            reference, Resolution.BROKEN_UNKNOWN_ANCHOR, target_doc_id=target,
        )
    return ResolvedReference(
        reference,
        Resolution.RESOLVED,
        target_doc_id=target,
        target_anchor_key=link.anchor_key,
    )
