"""Two-sided reconciliation of anchors against resolved references.

An anchor is an orphan when no reference in the corpus resolves to its
``(doc_id, anchor_key)`` pair.  A reference is a broken link when its
outcome is not ``RESOLVED``.

Duplicate keys within one document are all retained: a reference that
resolves the key resolves every definition carrying it, and an unreferenced
key reports each of its definitions as a separate orphan.
"""
from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass

from blockaudit.extractor import AnchorDefinition
from blockaudit.resolver import ResolvedReference


@dataclass(frozen=True, slots=True)
class Reconciliation:
    orphan_anchors: tuple[AnchorDefinition, ...]
    broken_links: tuple[ResolvedReference, ...]
    resolved_keys: frozenset[tuple[str, str]]
    resolved_anchors: tuple[AnchorDefinition, ...] = ()


def resolved_key_set(resolved: Iterable[ResolvedReference]) -> frozenset[tuple[str, str]]:
    """Every ``(doc_id, anchor_key)`` pair reached by a resolved reference."""
    return frozenset(
        (r.target_doc_id, r.target_anchor_key)
        for r in resolved
        if r.is_resolved
        and r.target_doc_id is not None
        and r.target_anchor_key is not None
    )


def reconcile(
    anchors: Iterable[AnchorDefinition],
    resolved: Iterable[ResolvedReference],
) -> Reconciliation:
    """Split anchors into resolved/orphan and collect broken references."""
    references = tuple(resolved)
    keys = resolved_key_set(references)

    orphans: list[AnchorDefinition] = []
    matched: list[AnchorDefinition] = []
    for anchor in anchors:
        (matched if anchor.key in keys else orphans).append(anchor)

    return Reconciliation(
        orphan_anchors=tuple(orphans),
        broken_links=tuple(r for r in references if r.is_broken),
        resolved_keys=keys,
        resolved_anchors=tuple(matched),
    )


def find_duplicate_anchors(
    anchors: Iterable[AnchorDefinition],
) -> frozenset[tuple[str, str]]:
    """``(doc_id, anchor_key)`` pairs defined more than once."""
    counts = Counter(anchor.key for anchor in anchors)
    return frozenset(key for key, n in counts.items() if n > 1)
