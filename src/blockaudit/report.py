"""Defect report: per-document orphan anchors and broken links.

The report is built in a single reduction over the reconciler's output and
is never mutated afterwards.  Every defect carries a ``Location`` triple
that a host can hand to its own navigation; the engine never navigates.
"""
from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, TypeAlias

from blockaudit.context import ContextWindow, build_context
from blockaudit.extractor import AnchorDefinition
from blockaudit.resolver import Resolution, ResolvedReference


@dataclass(frozen=True, slots=True)
class Location:
    doc_id: str
    position_start: int
    position_end: int


@dataclass(frozen=True, slots=True)
class OrphanAnchor:
    anchor: AnchorDefinition
    context: ContextWindow
    duplicate: bool = False

    @property
    def location(self) -> Location:
        a = self.anchor
        return Location(a.source_doc_id, a.position_start, a.position_end)


@dataclass(frozen=True, slots=True)
class BrokenLink:
    resolved: ResolvedReference
    context: ContextWindow

    @property
    def outcome(self) -> Resolution:
        return self.resolved.outcome

    @property
    def location(self) -> Location:
        r = self.resolved.reference
        return Location(r.source_doc_id, r.position_start, r.position_end)


Defect: TypeAlias = OrphanAnchor | BrokenLink


@dataclass(frozen=True, slots=True)
class DocumentDefects:
    """Defects found in one source document, sorted by position."""

    doc_id: str
    orphan_anchors: tuple[OrphanAnchor, ...] = ()
    broken_links: tuple[BrokenLink, ...] = ()

    @property
    def defect_count(self) -> int:
        return len(self.orphan_anchors) + len(self.broken_links)


@dataclass(frozen=True, slots=True)
class DefectReport:
    """Every document's defects plus scan totals.

    ``documents`` holds an entry for every scanned document, including
    documents without defects.
    """

    documents: Mapping[str, DocumentDefects] = field(
        default_factory=lambda: MappingProxyType({}),
    )
    document_count: int = 0
    anchor_count: int = 0
    reference_count: int = 0
    skipped_references: int = 0

    @property
    def orphan_count(self) -> int:
        return sum(len(d.orphan_anchors) for d in self.documents.values())

    @property
    def broken_count(self) -> int:
        return sum(len(d.broken_links) for d in self.documents.values())

    @property
    def is_clean(self) -> bool:
        return self.orphan_count == 0 and self.broken_count == 0

    def iter_defects(self) -> Iterator[Defect]:
        """All defects ordered by ``(doc_id, position_start)``."""
        for doc_id in sorted(self.documents):
            entry = self.documents[doc_id]
            merged: list[Defect] = [*entry.orphan_anchors, *entry.broken_links]
            merged.sort(key=lambda d: (d.location.position_start, d.location.position_end))
            yield from merged

    def with_defects(self) -> list[DocumentDefects]:
        return [
            self.documents[doc_id]
            for doc_id in sorted(self.documents)
            if self.documents[doc_id].defect_count
        ]


def build_report(
    orphans: Iterable[AnchorDefinition],
    broken: Iterable[ResolvedReference],
    texts: Mapping[str, str],
    *,
    window_size: int,
    duplicates: frozenset[tuple[str, str]] = frozenset(),
    anchor_count: int = 0,
    reference_count: int = 0,
    skipped_references: int = 0,
) -> DefectReport:
    """Annotate every defect with context and group by source document."""
    orphan_by_doc: dict[str, list[OrphanAnchor]] = defaultdict(list)
    for anchor in orphans:
        context = build_context(
            texts[anchor.source_doc_id],
            anchor.position_start,
            anchor.position_end,
            window_size,
        )
        orphan_by_doc[anchor.source_doc_id].append(
            OrphanAnchor(anchor, context, duplicate=anchor.key in duplicates),
        )

    broken_by_doc: dict[str, list[BrokenLink]] = defaultdict(list)
    for resolved in broken:
        ref = resolved.reference
        context = build_context(
            texts[ref.source_doc_id], ref.position_start, ref.position_end, window_size,
        )
        broken_by_doc[ref.source_doc_id].append(BrokenLink(resolved, context))

    documents = {
        doc_id: DocumentDefects(
            doc_id=doc_id,
            orphan_anchors=tuple(sorted(
                orphan_by_doc.get(doc_id, ()),
                key=lambda d: d.anchor.position_start,
            )),
            broken_links=tuple(sorted(
                broken_by_doc.get(doc_id, ()),
                key=lambda d: d.resolved.reference.position_start,
            )),
        )
        for doc_id in sorted(texts)
    }
    return DefectReport(
        documents=MappingProxyType(documents),
        document_count=len(texts),
        anchor_count=anchor_count,
        reference_count=reference_count,
        skipped_references=skipped_references,
    )


def navigate(defect: Defect, open_location: Callable[[Location], Any]) -> Any:
    """Hand the defect's location to a host-supplied navigation callback."""
    return open_location(defect.location)


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def _context_to_dict(context: ContextWindow) -> dict[str, str]:
    return {"before": context.before, "matched": context.matched, "after": context.after}


def orphan_to_dict(orphan: OrphanAnchor) -> dict[str, Any]:
    a = orphan.anchor
    return {
        "anchor_key": a.anchor_key,
        "position_start": a.position_start,
        "position_end": a.position_end,
        "duplicate": orphan.duplicate,
        "context": _context_to_dict(orphan.context),
    }


def broken_to_dict(broken: BrokenLink) -> dict[str, Any]:
    r = broken.resolved.reference
    return {
        "target_path": r.raw_target_path,
        "anchor_key": r.raw_anchor_key,
        "outcome": str(broken.outcome),
        "target_doc_id": broken.resolved.target_doc_id,
        "position_start": r.position_start,
        "position_end": r.position_end,
        "context": _context_to_dict(broken.context),
    }


def report_to_dict(report: DefectReport, *, include_clean: bool = False) -> dict[str, Any]:
    """JSON-ready form of a report; clean documents are omitted by default."""
    entries = (
        [report.documents[d] for d in sorted(report.documents)]
        if include_clean
        else report.with_defects()
    )
    return {
        "summary": {
            "documents": report.document_count,
            "anchors": report.anchor_count,
            "references": report.reference_count,
            "skipped_references": report.skipped_references,
            "orphan_anchors": report.orphan_count,
            "broken_links": report.broken_count,
        },
        "documents": {
            entry.doc_id: {
                "orphan_anchors": [orphan_to_dict(o) for o in entry.orphan_anchors],
                "broken_links": [broken_to_dict(b) for b in entry.broken_links],
            }
            for entry in entries
        },
    }


_OUTCOME_LABELS = {
    Resolution.BROKEN_UNKNOWN_DOCUMENT: "unknown document",
    Resolution.BROKEN_UNKNOWN_ANCHOR: "unknown anchor",
}


def format_text(report: DefectReport) -> str:
    """Plain-text listing grouped by document."""
    lines: list[str] = []
    for entry in report.with_defects():
        lines.append(entry.doc_id)
        for orphan in entry.orphan_anchors:
            flag = " (duplicate)" if orphan.duplicate else ""
            lines.append(
                f"  orphan ^{orphan.anchor.anchor_key}{flag} "
                f"@{orphan.anchor.position_start}: {orphan.context.render()}",
            )
        for broken in entry.broken_links:
            r = broken.resolved.reference
            lines.append(
                f"  broken {r.link_text} [{_OUTCOME_LABELS[broken.outcome]}] "
                f"@{r.position_start}: {broken.context.render()}",
            )
    lines.append(
        f"{report.orphan_count} orphan anchors, {report.broken_count} broken links "
        f"in {report.document_count} documents",
    )
    return "\n".join(lines)
