"""Orphan block-anchor and broken block-link detection for Markdown corpora."""

from blockaudit.config import ScanConfig, load_scan_config
from blockaudit.context import ContextWindow, build_context
from blockaudit.document import Document, SanitizedDocument, StructuralMetadata
from blockaudit.extractor import (
    AnchorDefinition,
    LinkReference,
    extract_anchors,
    extract_references,
)
from blockaudit.ranges import IgnoreRange, RangeSet
from blockaudit.reconciler import Reconciliation, reconcile
from blockaudit.report import (
    BrokenLink,
    DefectReport,
    DocumentDefects,
    Location,
    OrphanAnchor,
    navigate,
    report_to_dict,
)
from blockaudit.resolver import (
    CorpusIndex,
    LinkIndex,
    Resolution,
    ResolvedReference,
    resolve_reference,
)
from blockaudit.sanitizer import sanitize, sanitize_document
from blockaudit.scanner import (
    ScanResult,
    ScanSession,
    ScanStatus,
    scan_corpus,
    scan_corpus_async,
)
from blockaudit.store import (
    DocumentStore,
    MemoryDocumentStore,
    RetrievalError,
    VaultDocumentStore,
)

__all__ = [
    "AnchorDefinition",
    "BrokenLink",
    "ContextWindow",
    "CorpusIndex",
    "DefectReport",
    "Document",
    "DocumentDefects",
    "DocumentStore",
    "IgnoreRange",
    "LinkIndex",
    "LinkReference",
    "Location",
    "MemoryDocumentStore",
    "OrphanAnchor",
    "RangeSet",
    "Reconciliation",
    "Resolution",
    "ResolvedReference",
    "RetrievalError",
    "SanitizedDocument",
    "ScanConfig",
    "ScanResult",
    "ScanSession",
    "ScanStatus",
    "StructuralMetadata",
    "VaultDocumentStore",
    "build_context",
    "extract_anchors",
    "extract_references",
    "load_scan_config",
    "navigate",
    "reconcile",
    "report_to_dict",
    "resolve_reference",
    "sanitize",
    "sanitize_document",
    "scan_corpus",
    "scan_corpus_async",
]
