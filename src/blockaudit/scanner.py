"""Scan pipeline and session state machine.

A scan runs in two stages separated by a barrier:

1. Per document (independent, optionally in a process pool): sanitize the
   raw text and extract anchors and references.
2. Corpus-wide, only after every document finished stage 1: build the
   read-only ``CorpusIndex``, resolve every reference, reconcile, and fold
   the results into a ``DefectReport``.

``ScanSession`` wraps the pipeline in the status machine
INITIALIZING -> SCANNING -> FINISHED | ERROR.  A retrieval failure ends in
ERROR with no report; FINISHED always carries a (possibly empty) report.
"""
from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import StrEnum
from multiprocessing import Pool

from blockaudit.config import ScanConfig
from blockaudit.document import Document, SanitizedDocument, StructuralMetadata
from blockaudit.extractor import (
    AnchorDefinition,
    LinkReference,
    extract_anchors,
    extract_references,
)
from blockaudit.reconciler import find_duplicate_anchors, reconcile
from blockaudit.report import DefectReport, build_report
from blockaudit.resolver import CorpusIndex, ResolvedReference, resolve_reference
from blockaudit.sanitizer import sanitize_document
from blockaudit.store import DocumentStore, RetrievalError, load_corpus

log = logging.getLogger(__name__)


class ScanStatus(StrEnum):
    INITIALIZING = "initializing"
    SCANNING = "scanning"
    FINISHED = "finished"
    ERROR = "error"


_TRANSITIONS: dict[ScanStatus, frozenset[ScanStatus]] = {
    ScanStatus.INITIALIZING: frozenset({ScanStatus.SCANNING, ScanStatus.ERROR}),
    ScanStatus.SCANNING: frozenset({ScanStatus.FINISHED, ScanStatus.ERROR}),
    ScanStatus.FINISHED: frozenset(),
    ScanStatus.ERROR: frozenset(),
}


@dataclass(frozen=True, slots=True)
class DocumentScan:
    """Stage-1 output for one document."""

    sanitized: SanitizedDocument
    anchors: tuple[AnchorDefinition, ...]
    references: tuple[LinkReference, ...]
    block_ids: frozenset[str] | None = None

    @property
    def document(self) -> Document:
        return self.sanitized.document


@dataclass(frozen=True, slots=True)
class ScanResult:
    status: ScanStatus
    report: DefectReport | None = None
    error: str | None = None
    elapsed_s: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status is ScanStatus.FINISHED


# ---------------------------------------------------------------------------
# Stage 1: per document
# ---------------------------------------------------------------------------


def scan_document(
    document: Document,
    metadata: StructuralMetadata,
    config: ScanConfig,
) -> DocumentScan:
    """Sanitize one document and extract its anchors and references."""
    sanitized = sanitize_document(document, metadata, config)
    return DocumentScan(
        sanitized=sanitized,
        anchors=tuple(extract_anchors(document.doc_id, sanitized.sanitized_text)),
        references=tuple(extract_references(document.doc_id, sanitized.sanitized_text)),
        block_ids=metadata.block_ids,
    )


def _scan_document_args(
    args: tuple[Document, StructuralMetadata, ScanConfig],
) -> DocumentScan:
    return scan_document(*args)


def scan_documents(
    corpus: Iterable[tuple[Document, StructuralMetadata]],
    config: ScanConfig,
) -> list[DocumentScan]:
    """Run stage 1 over the corpus; returns only once every document is done."""
    tasks = [(doc, meta, config) for doc, meta in corpus]
    if config.workers > 1 and len(tasks) > 1:
        with Pool(processes=min(config.workers, len(tasks))) as pool:
            return pool.map(_scan_document_args, tasks)
    return [_scan_document_args(task) for task in tasks]


# ---------------------------------------------------------------------------
# Stage 2: corpus-wide
# ---------------------------------------------------------------------------


def resolve_all(
    scans: Iterable[DocumentScan], index: CorpusIndex,
) -> tuple[list[ResolvedReference], int]:
    """Resolve every reference; returns ``(resolved, skipped_count)``."""
    resolved: list[ResolvedReference] = []
    skipped = 0
    for scan in scans:
        for ref in scan.references:
            outcome = resolve_reference(ref, index)
            if outcome is None:
                skipped += 1
            else:
                resolved.append(outcome)
    return resolved, skipped


def classify(scans: list[DocumentScan], config: ScanConfig) -> DefectReport:
    """Resolve, reconcile and fold stage-1 results into a report."""
    anchors = [a for scan in scans for a in scan.anchors]
    index = CorpusIndex.build(
        (scan.document for scan in scans),
        anchors,
        {scan.document.doc_id: scan.block_ids for scan in scans},
    )
    resolved, skipped = resolve_all(scans, index)
    outcome = reconcile(anchors, resolved)
    if skipped:
        log.info("Skipped %d malformed references", skipped)

    return build_report(
        outcome.orphan_anchors,
        outcome.broken_links,
        {scan.document.doc_id: scan.document.raw_text for scan in scans},
        window_size=config.window_size,
        duplicates=find_duplicate_anchors(anchors),
        anchor_count=len(anchors),
        reference_count=len(resolved) + skipped,
        skipped_references=skipped,
    )


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class ScanSession:
    """One scan invocation over one corpus snapshot.

    Sessions share no state; ``run`` may be called once.
    """

    def __init__(
        self,
        store: DocumentStore,
        config: ScanConfig | None = None,
        on_status: Callable[[ScanStatus], None] | None = None,
    ) -> None:
        self.store = store
        self.config = config or ScanConfig()
        self._on_status = on_status
        self._status = ScanStatus.INITIALIZING
        self._started = False

    @property
    def status(self) -> ScanStatus:
        return self._status

    def _transition(self, status: ScanStatus) -> None:
        if status not in _TRANSITIONS[self._status]:
            raise RuntimeError(f"Invalid scan transition {self._status} -> {status}")
        log.debug("Scan status %s -> %s", self._status, status)
        self._status = status
        if self._on_status is not None:
            self._on_status(status)

    def run(self) -> ScanResult:
        if self._started:
            raise RuntimeError("ScanSession.run() may only be called once")
        self._started = True
        t0 = time.perf_counter()
        if self._on_status is not None:
            self._on_status(self._status)

        try:
            corpus = load_corpus(self.store)
        except RetrievalError as exc:
            log.error("Corpus retrieval failed: %s", exc)
            self._transition(ScanStatus.ERROR)
            return ScanResult(
                ScanStatus.ERROR, error=str(exc), elapsed_s=time.perf_counter() - t0,
            )

        self._transition(ScanStatus.SCANNING)
        try:
            report = classify(scan_documents(corpus, self.config), self.config)
        except Exception:
            self._transition(ScanStatus.ERROR)
            raise

        self._transition(ScanStatus.FINISHED)
        elapsed = time.perf_counter() - t0
        log.info(
            "Scanned %d documents in %.2fs: %d orphan anchors, %d broken links",
            report.document_count,
            elapsed,
            report.orphan_count,
            report.broken_count,
        )
        return ScanResult(ScanStatus.FINISHED, report=report, elapsed_s=elapsed)


def scan_corpus(store: DocumentStore, config: ScanConfig | None = None) -> ScanResult:
    return ScanSession(store, config).run()


async def scan_corpus_async(
    store: DocumentStore, config: ScanConfig | None = None,
) -> ScanResult:
    """Run a scan in a worker thread so an event loop stays responsive."""
    return await asyncio.to_thread(scan_corpus, store, config)
