"""Anchor-definition and link-reference extraction.

Both passes run over a document's *sanitized* text, so anything inside
code, front matter, HTML or bare URLs has already been blanked.  Offsets
are identical in sanitized and raw text; every record is reported in raw
coordinates.

Anchor syntax:    ``Some text ^key`` (caret + key at end of line, CRLF or LF)
Reference syntax: ``[[Note#^key]]``, ``[[Note#^key|label]]``,
                  ``[label](Note.md#^key)``, ``[[#^key]]``
"""
from __future__ import annotations

import re
from dataclasses import dataclass

ANCHOR_RE: re.Pattern[str] = re.compile(r"\^([A-Za-z0-9-]+)\r?$", re.MULTILINE)
REFERENCE_RE: re.Pattern[str] = re.compile(
    r"[\[(]"                 # opening delimiter
    r"([^\[(\n]*?)"          # target path (may be empty)
    r"#\^([A-Za-z0-9-]+)"    # anchor key
    r"[\]|)]",               # closing delimiter
)


@dataclass(frozen=True, slots=True)
class AnchorDefinition:
    """A ``^key`` marker; the span covers the caret and the key."""

    source_doc_id: str
    anchor_key: str
    position_start: int
    position_end: int

    def __post_init__(self) -> None:
        if not self.anchor_key:
            raise ValueError("anchor_key cannot be empty")
        if self.position_start < 0 or self.position_end <= self.position_start:
            raise ValueError(
                f"invalid span [{self.position_start}, {self.position_end})",
            )

    @property
    def key(self) -> tuple[str, str]:
        return (self.source_doc_id, self.anchor_key)


@dataclass(frozen=True, slots=True)
class LinkReference:
    """One link occurrence; the span starts after the opening delimiter."""

    source_doc_id: str
    raw_target_path: str
    raw_anchor_key: str
    position_start: int
    position_end: int

    def __post_init__(self) -> None:
        if self.position_start < 0 or self.position_end <= self.position_start:
            raise ValueError(
                f"invalid span [{self.position_start}, {self.position_end})",
            )

    @property
    def link_text(self) -> str:
        """The combined ``path#^key`` text as written."""
        return f"{self.raw_target_path}#^{self.raw_anchor_key}"


def extract_anchors(doc_id: str, sanitized_text: str) -> list[AnchorDefinition]:
    """Find every anchor definition, in document order."""
    anchors: list[AnchorDefinition] = []
    for m in ANCHOR_RE.finditer(sanitized_text):
        groups = m.groups()
        if len(groups) != 1 or not groups[0]:
            continue
        anchors.append(AnchorDefinition(
            source_doc_id=doc_id,
            anchor_key=groups[0],
            position_start=m.start(),
            position_end=m.end(1),
        ))
    return anchors


def extract_references(doc_id: str, sanitized_text: str) -> list[LinkReference]:
    """Find every block reference, in document order."""
    references: list[LinkReference] = []
    for m in REFERENCE_RE.finditer(sanitized_text):
        references.append(LinkReference(
            source_doc_id=doc_id,
            raw_target_path=m.group(1),
            raw_anchor_key=m.group(2),
            position_start=m.start() + 1,
            position_end=m.end(),
        ))
    return references
